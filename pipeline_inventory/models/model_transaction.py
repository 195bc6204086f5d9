"""
Transaction support for batched inventory updates.

InventoryTransaction queues additions and deletions, validates all of them
when the block exits and applies them together. If validation or any step
fails, the model is restored to its state at the start of the block,
including the id counters.
"""

from typing import TYPE_CHECKING, List, Dict, Any, Iterable
import logging
import copy

from .pipe import Pipe
from .compressor_station import CompressorStation
from .validation import ModelValidationError

if TYPE_CHECKING:
    from .inventory_model import InventoryModel

logger = logging.getLogger(__name__)


class InventoryTransaction:
    """
    Context manager for all-or-nothing inventory updates.

    Examples:
        >>> with model.transaction() as txn:
        ...     txn.add_pipe("North", 3.5, 700)
        ...     txn.add_station("CS-2", 4, 4, 1)

        >>> with model.transaction() as txn:
        ...     txn.delete_ids([1, 2], is_pipe=True)
    """

    def __init__(self, model: 'InventoryModel'):
        self.model = model
        self._snapshot = None
        self._changes: List[Dict[str, Any]] = []
        self.added_pipe_ids: List[int] = []
        self.added_station_ids: List[int] = []

    def __enter__(self):
        self._snapshot = self._create_snapshot()
        logger.debug("Started transaction")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is not None:
            logger.error(f"Transaction failed: {exc_val}, rolling back")
            self._rollback()
            return False
        try:
            self._commit()
            logger.debug(f"Transaction committed ({len(self._changes)} operations)")
        except Exception as e:
            logger.error(f"Commit failed: {e}, rolling back")
            self._rollback()
            raise
        return False

    def add_pipe(self, name: str, length: float, diameter: int) -> None:
        self._changes.append({
            "operation": "add_pipe",
            "name": name,
            "length": length,
            "diameter": diameter,
        })

    def add_station(self, name: str, total: int, active: int, station_class: int) -> None:
        self._changes.append({
            "operation": "add_station",
            "name": name,
            "total": total,
            "active": active,
            "station_class": station_class,
        })

    def delete_ids(self, ids: Iterable[int], is_pipe: bool) -> None:
        self._changes.append({
            "operation": "delete_ids",
            "ids": list(ids),
            "is_pipe": is_pipe,
        })

    def get_changes(self) -> Dict[str, Any]:
        """Summarise what the transaction did (or would do)."""
        return {
            "total_operations": len(self._changes),
            "operations": [c["operation"] for c in self._changes],
            "added_pipe_ids": list(self.added_pipe_ids),
            "added_station_ids": list(self.added_station_ids),
        }

    def _create_snapshot(self) -> Dict[str, Any]:
        return {
            '_pipes': copy.deepcopy(self.model._pipes),
            '_stations': copy.deepcopy(self.model._stations),
            'next_pipe_id': self.model.next_pipe_id,
            'next_station_id': self.model.next_station_id,
        }

    def _restore_snapshot(self, snapshot: Dict[str, Any]) -> None:
        self.model._pipes = snapshot['_pipes']
        self.model._stations = snapshot['_stations']
        self.model.next_pipe_id = snapshot['next_pipe_id']
        self.model.next_station_id = snapshot['next_station_id']
        logger.debug("Restored model to snapshot")

    def _rollback(self) -> None:
        if self._snapshot:
            self._restore_snapshot(self._snapshot)
        self.added_pipe_ids.clear()
        self.added_station_ids.clear()

    def _validate_all(self) -> List[str]:
        """Validate queued additions without touching the model."""
        errors = []
        for position, change in enumerate(self._changes, start=1):
            operation = change["operation"]
            if operation == "add_pipe":
                candidate = Pipe(0, change["name"], change["length"], change["diameter"])
            elif operation == "add_station":
                candidate = CompressorStation(
                    0, change["name"], change["total"], change["active"], change["station_class"]
                )
            else:
                continue
            result = candidate.validate()
            errors.extend(
                f"Operation {position} ({operation}): {error}"
                for error in result.get_error_messages()
            )
        return errors

    def _commit(self) -> None:
        validation_errors = self._validate_all()
        if validation_errors:
            raise ModelValidationError(
                f"Validation failed with {len(validation_errors)} errors",
                details=validation_errors
            )

        for change in self._changes:
            self._apply_change(change)

    def _apply_change(self, change: Dict[str, Any]) -> None:
        operation = change["operation"]

        if operation == "add_pipe":
            self.added_pipe_ids.append(
                self.model.add_pipe(change["name"], change["length"], change["diameter"])
            )

        elif operation == "add_station":
            self.added_station_ids.append(
                self.model.add_station(
                    change["name"], change["total"], change["active"], change["station_class"]
                )
            )

        elif operation == "delete_ids":
            self.model.delete_by_ids(change["ids"], change["is_pipe"])
