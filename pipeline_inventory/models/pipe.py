from dataclasses import dataclass
from typing import Any, Dict
import math

from .validation import ValidationResult, validate_name, validate_positive_int


@dataclass
class Pipe:
    """Data class for storing a pipe segment."""

    id: int
    name: str
    length: float  # km
    diameter: int  # mm
    under_repair: bool = False

    def validate(self) -> ValidationResult:
        """Check field ranges; the id is owned by the store and not checked here."""
        result = ValidationResult()
        validate_name(self.name, result)
        if isinstance(self.length, bool) or not isinstance(self.length, (int, float)):
            result.add_error('length', "must be a number", self.length)
        elif not math.isfinite(self.length) or self.length <= 0:
            result.add_error('length', "must be a positive number", self.length)
        validate_positive_int(self.diameter, result, 'diameter')
        return result

    def toggle_repair(self) -> bool:
        """Flip the repair flag and return the new value."""
        self.under_repair = not self.under_repair
        return self.under_repair

    @property
    def status(self) -> str:
        return "under repair" if self.under_repair else "operational"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for tabular export."""
        return {
            'id': self.id,
            'name': self.name,
            'length': self.length,
            'diameter': self.diameter,
            'under_repair': self.under_repair,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Pipe':
        """Create instance from dictionary."""
        known_fields = {field for field in cls.__dataclass_fields__}
        filtered_data = {k: v for k, v in data.items() if k in known_fields}

        if 'length' in filtered_data:
            filtered_data['length'] = float(filtered_data['length'])
        for field in ['id', 'diameter']:
            if field in filtered_data:
                filtered_data[field] = int(filtered_data[field])
        if 'under_repair' in filtered_data:
            filtered_data['under_repair'] = bool(filtered_data['under_repair'])

        return cls(**filtered_data)

    def __str__(self):
        """Return a human-readable string representation of the pipe."""
        return (f"ID: {self.id} | {self.name}, Length: {self.length} km, "
                f"Diameter: {self.diameter} mm, Under repair: {'yes' if self.under_repair else 'no'}")
