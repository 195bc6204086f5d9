"""
Queryable collection base class for chainable in-memory queries.

Search results from the inventory are returned as collections so that
filters compose by method chaining instead of nested loops.
"""

from typing import TypeVar, Generic, Callable, List, Optional, Any, Union
from collections.abc import Iterable

T = TypeVar('T')


class QueryableCollection(Generic[T]):
    """
    A lightweight, chainable wrapper around a list of records.

    Examples:
        # Functional filtering
        collection.filter(lambda p: p.length > 10).all()

        # Attribute matching
        collection.where(under_repair=True).count()

        # Chaining
        collection.filter(lambda p: p.diameter >= 500).order_by(lambda p: p.name).first()
    """

    def __init__(self, items: Union[List[T], Iterable[T]]):
        """
        Initialize a queryable collection.

        Args:
            items: List or iterable of records to wrap
        """
        self._items: List[T] = list(items) if not isinstance(items, list) else items

    def filter(self, predicate: Callable[[T], bool]) -> 'QueryableCollection[T]':
        """
        Keep the records for which predicate returns True.

        Args:
            predicate: Function that takes a record and returns True to include it

        Returns:
            New collection of the same class with the matching records
        """
        return self.__class__([item for item in self._items if predicate(item)])

    def where(self, **kwargs) -> 'QueryableCollection[T]':
        """
        Keep records whose attributes equal all the given values (AND logic).

        Examples:
            pipes.where(diameter=500, under_repair=False)
        """
        def matches(item: T) -> bool:
            return all(
                getattr(item, key, None) == value
                for key, value in kwargs.items()
            )
        return self.filter(matches)

    def first(self) -> Optional[T]:
        """Return the first record or None if the collection is empty."""
        return self._items[0] if self._items else None

    def first_or_raise(self, exception: Optional[Exception] = None) -> T:
        """
        Return the first record or raise if the collection is empty.

        Args:
            exception: Optional exception to raise. If None, raises ValueError.
        """
        if not self._items:
            if exception:
                raise exception
            raise ValueError("Collection is empty")
        return self._items[0]

    def all(self) -> List[T]:
        """Return all records as a list."""
        return self._items

    def count(self) -> int:
        return len(self._items)

    def exists(self) -> bool:
        return len(self._items) > 0

    def is_empty(self) -> bool:
        return len(self._items) == 0

    def order_by(self, key_func: Callable[[T], Any], reverse: bool = False) -> 'QueryableCollection[T]':
        """
        Sort records by a key function.

        Examples:
            # Longest pipes first
            pipes.order_by(lambda p: p.length, reverse=True)
        """
        return self.__class__(sorted(self._items, key=key_func, reverse=reverse))

    def ids(self) -> List[int]:
        """Return the ids of the records, in collection order."""
        return [getattr(item, 'id') for item in self._items]

    def map(self, transform: Callable[[T], Any]) -> List[Any]:
        """Apply transform to every record and return the results as a list."""
        return [transform(item) for item in self._items]

    def __iter__(self):
        return iter(self._items)

    def __len__(self):
        return len(self._items)

    def __getitem__(self, index):
        """Allow indexing and slicing."""
        if isinstance(index, slice):
            return self.__class__(self._items[index])
        return self._items[index]

    def __bool__(self):
        return len(self._items) > 0

    def __repr__(self):
        """Show the class name, the first few record names and the count."""
        class_name = self.__class__.__name__
        count = len(self._items)

        if count == 0:
            return f"{class_name}([])"

        preview_items = [
            repr(item.name) if hasattr(item, 'name') else f"<{type(item).__name__}>"
            for item in self._items[:3]
        ]
        if count > 3:
            preview_items.append('...')

        preview = '[' + ', '.join(preview_items) + ']'
        return f"{class_name}({preview}, count={count})"
