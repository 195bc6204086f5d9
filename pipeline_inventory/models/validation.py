"""
Validation module for InventoryModel.

This module provides validation functionality for record operations,
including validation results and the exceptions raised by the store.
"""

from dataclasses import dataclass, field
from typing import List, Any, Optional


@dataclass
class ValidationError:
    """Represents a single validation error."""

    field: str
    message: str
    value: Any = None

    def __str__(self) -> str:
        if self.value is not None:
            return f"{self.field}: {self.message} (value: {self.value})"
        return f"{self.field}: {self.message}"


@dataclass
class ValidationResult:
    """Errors collected while checking a record or a raw input."""

    errors: List[ValidationError] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def add_error(self, field: str, message: str, value: Any = None) -> None:
        self.errors.append(ValidationError(field, message, value))

    @classmethod
    def error(cls, field: str, message: str, value: Any = None) -> 'ValidationResult':
        """Result holding a single error."""
        return cls(errors=[ValidationError(field, message, value)])

    def get_error_messages(self) -> List[str]:
        return [str(error) for error in self.errors]


def validate_name(name: Any, result: ValidationResult, field_name: str = 'name') -> None:
    """Record an error if name is not a non-empty single-line string."""
    if not isinstance(name, str) or not name.strip():
        result.add_error(field_name, "must be a non-empty string", name)
    elif '\n' in name or '\r' in name:
        result.add_error(field_name, "must not contain line breaks", name)


def validate_positive_int(value: Any, result: ValidationResult, field_name: str) -> None:
    """Record an error if value is not an integer >= 1."""
    # bool is an int subclass but never a valid count
    if isinstance(value, bool) or not isinstance(value, int):
        result.add_error(field_name, "must be an integer", value)
    elif value < 1:
        result.add_error(field_name, "must be at least 1", value)


class ModelValidationError(Exception):
    """Exception raised when model validation fails."""

    def __init__(self, message: str, validation_result: Optional[ValidationResult] = None, details: Any = None):
        """
        Initialize validation error.

        Args:
            message: Error message
            validation_result: Optional ValidationResult with details
            details: Optional additional details
        """
        super().__init__(message)
        self.validation_result = validation_result
        self.details = details

    def __str__(self) -> str:
        if self.validation_result:
            error_messages = "\n  - ".join(self.validation_result.get_error_messages())
            return f"{super().__str__()}\nErrors:\n  - {error_messages}"
        return super().__str__()


class RecordNotFoundError(LookupError):
    """Raised when an id does not resolve to a record."""

    def __init__(self, record_type: str, record_id: Any):
        super().__init__(f"{record_type} with ID {record_id} not found")
        self.record_type = record_type
        self.record_id = record_id
