"""
Specialized queryable collection for Pipe objects.
"""

from typing import TYPE_CHECKING
from .queryable_collection import QueryableCollection

if TYPE_CHECKING:
    from .pipe import Pipe


class PipeCollection(QueryableCollection['Pipe']):
    """
    Collection of pipes with the searches offered by the inventory.

    Examples:
        model.pipes.by_name("main").all()
        model.pipes.under_repair().count()
        model.pipes.by_name("north").under_repair(False).ids()
    """

    def by_name(self, fragment: str) -> 'PipeCollection':
        """
        Keep pipes whose name contains fragment, ignoring case.

        Args:
            fragment: Substring to look for; an empty fragment matches every pipe
        """
        needle = fragment.lower()
        return PipeCollection([
            p for p in self._items
            if needle in p.name.lower()
        ])

    def under_repair(self, status: bool = True) -> 'PipeCollection':
        """
        Keep pipes whose repair flag equals status.

        Examples:
            in_service = model.pipes.under_repair(False)
        """
        return PipeCollection([
            p for p in self._items
            if p.under_repair == status
        ])

    def total_length(self) -> float:
        return sum(p.length for p in self._items)
