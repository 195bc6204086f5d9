from abc import ABC, abstractmethod
from typing import Optional

from ..models.inventory_model import InventoryModel


class FormatError(ValueError):
    """Persisted data does not match the expected format."""

    def __init__(self, message: str, line_number: Optional[int] = None):
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)
        self.line_number = line_number


class StorageInterface(ABC):
    """Base interface for inventory storage backends."""

    @abstractmethod
    def save(self, model: InventoryModel, target: str) -> str:
        """
        Persist the whole model.

        Args:
            model: Store to save
            target: Backend specific location (file name, key, ...)

        Returns:
            The resolved location the data was written to
        """
        pass

    @abstractmethod
    def load(self, target: str) -> InventoryModel:
        """
        Read a complete model.

        Args:
            target: Backend specific location

        Returns:
            A new InventoryModel with the stored records and id counters

        Raises:
            FormatError: if the stored data is malformed
        """
        pass

    def load_into(self, model: InventoryModel, target: str) -> InventoryModel:
        """Load target and replace the contents of model with it; model is untouched on error."""
        loaded = self.load(target)
        model.replace_with(loaded)
        return model
