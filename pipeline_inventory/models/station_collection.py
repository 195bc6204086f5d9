"""
Specialized queryable collection for CompressorStation objects.
"""

from enum import Enum
from typing import TYPE_CHECKING, Union
from .queryable_collection import QueryableCollection

if TYPE_CHECKING:
    from .compressor_station import CompressorStation

# Tolerance for "equal" inactive-percentage comparisons
PERCENT_EPSILON = 0.01


class Comparison(Enum):
    """Comparison applied to a station's inactive percentage."""

    GREATER = '>'
    LESS = '<'
    EQUAL = '=='

    @classmethod
    def parse(cls, value: Union[str, 'Comparison']) -> 'Comparison':
        """Accept an enum member, its symbol, or one of gt/lt/eq."""
        if isinstance(value, cls):
            return value
        aliases = {'gt': cls.GREATER, 'lt': cls.LESS, 'eq': cls.EQUAL, '=': cls.EQUAL}
        key = str(value).strip().lower()
        if key in aliases:
            return aliases[key]
        return cls(key)

    def matches(self, actual: float, target: float) -> bool:
        if self is Comparison.GREATER:
            return actual > target
        if self is Comparison.LESS:
            return actual < target
        return abs(actual - target) < PERCENT_EPSILON


class StationCollection(QueryableCollection['CompressorStation']):
    """
    Collection of compressor stations with the searches offered by the inventory.

    Examples:
        model.stations.by_name("cs").all()
        model.stations.by_inactive_percent('>', 50).ids()
    """

    def by_name(self, fragment: str) -> 'StationCollection':
        """Keep stations whose name contains fragment, ignoring case."""
        needle = fragment.lower()
        return StationCollection([
            s for s in self._items
            if needle in s.name.lower()
        ])

    def by_inactive_percent(self, comparison: Union[str, Comparison], target: float) -> 'StationCollection':
        """
        Keep stations whose inactive percentage compares to target.

        Args:
            comparison: Comparison or one of '>', '<', '==' (also gt/lt/eq)
            target: Percentage to compare against; '==' uses PERCENT_EPSILON

        Raises:
            ValueError: if comparison is not recognised

        Examples:
            # Stations with every workshop running
            model.stations.by_inactive_percent('==', 0)
        """
        op = Comparison.parse(comparison)
        return StationCollection([
            s for s in self._items
            if op.matches(s.inactive_percent, target)
        ])

    def fully_active(self) -> 'StationCollection':
        return StationCollection([
            s for s in self._items
            if s.active_workshops == s.total_workshops
        ])

    def by_class(self, station_class: int) -> 'StationCollection':
        return StationCollection([
            s for s in self._items
            if s.station_class == station_class
        ])
