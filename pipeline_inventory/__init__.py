"""
Pipeline inventory library.

This package manages an in-memory inventory of pipe segments and
compressor stations, with search, bulk selection and a flat text file
format for saving and loading.

The main public API includes:
- InventoryModel: record store for pipes and compressor stations
- Pipe, CompressorStation: the record types
- TextFileStorage: save/load the store as a text file
"""

from .models import Pipe, CompressorStation, InventoryModel
from .storage import TextFileStorage, TextInventoryCodec, FormatError

__version__ = '0.1.0'
__all__ = [
    'Pipe',
    'CompressorStation',
    'InventoryModel',
    'TextFileStorage',
    'TextInventoryCodec',
    'FormatError',
]
