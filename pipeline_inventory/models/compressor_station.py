from dataclasses import dataclass
from typing import Any, Dict

from .validation import ValidationResult, validate_name, validate_positive_int


@dataclass
class CompressorStation:
    """Data class for storing a compressor station and its workshop counts."""

    id: int
    name: str
    total_workshops: int
    active_workshops: int
    station_class: int

    def validate(self) -> ValidationResult:
        """Check field ranges and the active <= total invariant."""
        result = ValidationResult()
        validate_name(self.name, result)
        validate_positive_int(self.total_workshops, result, 'total_workshops')
        validate_positive_int(self.station_class, result, 'station_class')

        active = self.active_workshops
        if isinstance(active, bool) or not isinstance(active, int):
            result.add_error('active_workshops', "must be an integer", active)
        elif active < 0:
            result.add_error('active_workshops', "must not be negative", active)
        elif isinstance(self.total_workshops, int) and active > self.total_workshops:
            result.add_error(
                'active_workshops',
                f"must not exceed total_workshops ({self.total_workshops})",
                active,
            )
        return result

    @property
    def inactive_percent(self) -> float:
        """Share of workshops not running, 0 for a station without workshops."""
        if self.total_workshops <= 0:
            return 0.0
        return 100.0 * (self.total_workshops - self.active_workshops) / self.total_workshops

    def start_workshop(self) -> bool:
        """Start one workshop. Returns False when all workshops already run."""
        if self.active_workshops >= self.total_workshops:
            return False
        self.active_workshops += 1
        return True

    def stop_workshop(self) -> bool:
        """Stop one workshop. Returns False when none is running."""
        if self.active_workshops <= 0:
            return False
        self.active_workshops -= 1
        return True

    def clamp_active(self) -> None:
        """Pull active_workshops back into [0, total_workshops]."""
        if self.active_workshops > self.total_workshops:
            self.active_workshops = self.total_workshops
        if self.active_workshops < 0:
            self.active_workshops = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for tabular export."""
        return {
            'id': self.id,
            'name': self.name,
            'total_workshops': self.total_workshops,
            'active_workshops': self.active_workshops,
            'station_class': self.station_class,
            'inactive_percent': round(self.inactive_percent, 1),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CompressorStation':
        """Create instance from dictionary, ignoring derived columns."""
        known_fields = {field for field in cls.__dataclass_fields__}
        filtered_data = {k: int(v) if k != 'name' else v for k, v in data.items() if k in known_fields}
        return cls(**filtered_data)

    def __str__(self):
        """Return a human-readable string representation of the station."""
        return (f"ID: {self.id} | {self.name}, Workshops: {self.total_workshops}, "
                f"Active: {self.active_workshops}, Inactive: {self.inactive_percent:.1f}%, "
                f"Class: {self.station_class}")
