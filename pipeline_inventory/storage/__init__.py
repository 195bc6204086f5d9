"""
Storage backends for the inventory.
"""

from .base import StorageInterface, FormatError
from .text_storage import TextFileStorage, TextInventoryCodec, resolve_filename

__all__ = ['StorageInterface', 'FormatError', 'TextFileStorage', 'TextInventoryCodec', 'resolve_filename']
