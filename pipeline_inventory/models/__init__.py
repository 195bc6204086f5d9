"""
Data models for the pipeline_inventory library.

This package contains the record types (pipes and compressor stations),
the InventoryModel record store and the queryable collections returned
by its searches.
"""

from .pipe import Pipe
from .compressor_station import CompressorStation
from .inventory_model import InventoryModel, Selection, DeletionResult, MAX_BULK_ADD
from .queryable_collection import QueryableCollection
from .pipe_collection import PipeCollection
from .station_collection import StationCollection, Comparison, PERCENT_EPSILON
from .validation import ValidationResult, ValidationError, ModelValidationError, RecordNotFoundError
from .model_transaction import InventoryTransaction

__all__ = [
    # Core models
    'Pipe',
    'CompressorStation',
    'InventoryModel',
    'Selection',
    'DeletionResult',
    'MAX_BULK_ADD',
    # Queryable collections
    'QueryableCollection',
    'PipeCollection',
    'StationCollection',
    'Comparison',
    'PERCENT_EPSILON',
    # Validation
    'ValidationResult',
    'ValidationError',
    'ModelValidationError',
    'RecordNotFoundError',
    'InventoryTransaction',
]
