from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Union
import copy
import logging

from .pipe import Pipe
from .compressor_station import CompressorStation
from .pipe_collection import PipeCollection
from .station_collection import StationCollection
from .model_transaction import InventoryTransaction
from .validation import ModelValidationError, RecordNotFoundError, ValidationResult

logger = logging.getLogger(__name__)

# Upper bound for a single bulk add
MAX_BULK_ADD = 100

Record = Union[Pipe, CompressorStation]


@dataclass
class Selection:
    """Positions picked out of one collection by an id list, plus any warnings."""

    indices: List[int] = field(default_factory=list)
    ids: List[int] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def __bool__(self):
        return len(self.indices) > 0


@dataclass
class DeletionResult:
    """Records removed by a delete, in removal order, plus ids that were not found."""

    removed: List[Record] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.removed)


@dataclass
class InventoryModel:
    """
    Record store for pipes and compressor stations.

    Owns both ordered collections and the id counters. Ids are assigned
    sequentially from 1 and never reused, so after deletions the collections
    stay in insertion order rather than id order.

    Examples:
        model = InventoryModel()
        pipe_id = model.add_pipe("Main", 12.5, 500)
        model.toggle_repair(pipe_id)
        model.pipes.under_repair().ids()  # [1]
    """

    # Internal storage - use the .pipes / .stations properties for querying
    _pipes: List[Pipe] = field(default_factory=list)
    _stations: List[CompressorStation] = field(default_factory=list)

    next_pipe_id: int = 1
    next_station_id: int = 1

    # ========================================================================
    # Query API
    # ========================================================================

    @property
    def pipes(self) -> PipeCollection:
        """
        Queryable collection of all pipes, in insertion order.

        Examples:
            model.pipes.by_name("main").all()
            model.pipes.under_repair(False).count()
        """
        return PipeCollection(list(self._pipes))

    @property
    def stations(self) -> StationCollection:
        """
        Queryable collection of all compressor stations, in insertion order.

        Examples:
            model.stations.by_inactive_percent('>', 25).all()
        """
        return StationCollection(list(self._stations))

    def search(self, predicate: Callable[[Record], bool], is_pipe: bool) -> Union[PipeCollection, StationCollection]:
        """Linear scan of one collection with an arbitrary predicate."""
        collection = self.pipes if is_pipe else self.stations
        return collection.filter(predicate)

    def find_pipe_index(self, pipe_id: int) -> Optional[int]:
        for index, pipe in enumerate(self._pipes):
            if pipe.id == pipe_id:
                return index
        return None

    def find_station_index(self, station_id: int) -> Optional[int]:
        for index, station in enumerate(self._stations):
            if station.id == station_id:
                return index
        return None

    def get_pipe(self, pipe_id: int) -> Pipe:
        """
        Look up a pipe by id.

        Raises:
            RecordNotFoundError: if no pipe has this id
        """
        index = self.find_pipe_index(pipe_id)
        if index is None:
            raise RecordNotFoundError("Pipe", pipe_id)
        return self._pipes[index]

    def get_station(self, station_id: int) -> CompressorStation:
        """
        Look up a compressor station by id.

        Raises:
            RecordNotFoundError: if no station has this id
        """
        index = self.find_station_index(station_id)
        if index is None:
            raise RecordNotFoundError("Compressor station", station_id)
        return self._stations[index]

    def is_empty(self) -> bool:
        return not self._pipes and not self._stations

    # ========================================================================
    # Creation
    # ========================================================================

    def add_pipe(self, name: str, length: float, diameter: int) -> int:
        """
        Add a pipe with the next sequential id; new pipes are not under repair.

        Returns:
            The id assigned to the pipe

        Raises:
            ModelValidationError: if the name is empty or length/diameter are not positive
        """
        pipe = Pipe(id=self.next_pipe_id, name=name, length=length, diameter=diameter)
        self._raise_if_invalid(pipe.validate(), "Invalid pipe")
        if isinstance(pipe.length, int):
            pipe.length = float(pipe.length)

        self._pipes.append(pipe)
        self.next_pipe_id += 1
        logger.info(f"Added pipe {pipe.id} ({pipe.name})")
        return pipe.id

    def add_station(self, name: str, total: int, active: int, station_class: int) -> int:
        """
        Add a compressor station with the next sequential id.

        Returns:
            The id assigned to the station

        Raises:
            ModelValidationError: if total < 1, active is outside [0, total] or class < 1
        """
        station = CompressorStation(
            id=self.next_station_id,
            name=name,
            total_workshops=total,
            active_workshops=active,
            station_class=station_class,
        )
        self._raise_if_invalid(station.validate(), "Invalid compressor station")

        self._stations.append(station)
        self.next_station_id += 1
        logger.info(f"Added compressor station {station.id} ({station.name})")
        return station.id

    def transaction(self) -> InventoryTransaction:
        """
        Create a transaction context for all-or-nothing updates.

        Examples:
            >>> with model.transaction() as txn:
            ...     txn.add_pipe("A", 1.0, 100)
            ...     txn.add_pipe("B", 2.0, 200)
        """
        return InventoryTransaction(self)

    def bulk_add_pipes(self, specs: Iterable[tuple]) -> List[int]:
        """
        Add several pipes at once from (name, length, diameter) tuples.

        Either every pipe is added or, if any is invalid, none is.

        Raises:
            ModelValidationError: if the batch is empty, larger than MAX_BULK_ADD
                or contains an invalid pipe
        """
        specs = list(specs)
        self._check_bulk_size(len(specs))
        with self.transaction() as txn:
            for spec in specs:
                name, length, diameter = self._unpack_spec(spec, 3, "(name, length, diameter)")
                txn.add_pipe(name, length, diameter)
        logger.info(f"Added {len(txn.added_pipe_ids)} pipes. Total: {len(self._pipes)}")
        return txn.added_pipe_ids

    def bulk_add_stations(self, specs: Iterable[tuple]) -> List[int]:
        """
        Add several stations at once from (name, total, active, station_class) tuples.

        Either every station is added or, if any is invalid, none is.
        """
        specs = list(specs)
        self._check_bulk_size(len(specs))
        with self.transaction() as txn:
            for spec in specs:
                name, total, active, station_class = self._unpack_spec(
                    spec, 4, "(name, total, active, station_class)"
                )
                txn.add_station(name, total, active, station_class)
        logger.info(f"Added {len(txn.added_station_ids)} compressor stations. Total: {len(self._stations)}")
        return txn.added_station_ids

    # ========================================================================
    # Editing
    # ========================================================================

    def edit_pipe(self, pipe_id: int, updater: Callable[[Pipe], None]) -> Pipe:
        """
        Apply updater to a copy of the pipe and keep the result if it is valid.

        Args:
            pipe_id: Id of the pipe to edit
            updater: Callable that mutates the pipe it is given

        Raises:
            RecordNotFoundError: if no pipe has this id
            ModelValidationError: if the edited pipe is invalid; the stored pipe is unchanged
        """
        index = self.find_pipe_index(pipe_id)
        if index is None:
            raise RecordNotFoundError("Pipe", pipe_id)

        edited = copy.copy(self._pipes[index])
        updater(edited)
        result = edited.validate()
        if edited.id != pipe_id:
            result.add_error('id', "cannot be changed", edited.id)
        self._raise_if_invalid(result, f"Invalid edit of pipe {pipe_id}")
        if isinstance(edited.length, int):
            edited.length = float(edited.length)

        self._pipes[index] = edited
        return edited

    def edit_station(self, station_id: int, updater: Callable[[CompressorStation], None]) -> CompressorStation:
        """
        Apply updater to a copy of the station and keep the result if it is valid.

        If the edit leaves more active workshops than the station has, the
        active count is clamped down to the new total.

        Raises:
            RecordNotFoundError: if no station has this id
            ModelValidationError: if the edited station is invalid; the stored station is unchanged
        """
        index = self.find_station_index(station_id)
        if index is None:
            raise RecordNotFoundError("Compressor station", station_id)

        edited = copy.copy(self._stations[index])
        updater(edited)
        if (isinstance(edited.total_workshops, int) and isinstance(edited.active_workshops, int)
                and edited.active_workshops > edited.total_workshops >= 1):
            logger.info(
                f"Compressor station {station_id}: active workshops clamped "
                f"from {edited.active_workshops} to {edited.total_workshops}"
            )
            edited.clamp_active()

        result = edited.validate()
        if edited.id != station_id:
            result.add_error('id', "cannot be changed", edited.id)
        self._raise_if_invalid(result, f"Invalid edit of compressor station {station_id}")

        self._stations[index] = edited
        return edited

    def toggle_repair(self, pipe_id: int) -> bool:
        """Flip the repair flag of a pipe and return the new value."""
        pipe = self.edit_pipe(pipe_id, lambda p: p.toggle_repair())
        logger.info(f"Pipe {pipe_id} status changed to {pipe.status}")
        return pipe.under_repair

    def update_pipe(self, pipe_id: int, name: str, length: float, diameter: int) -> Pipe:
        """Overwrite name, length and diameter of a pipe."""
        def overwrite(pipe: Pipe) -> None:
            pipe.name = name
            pipe.length = length
            pipe.diameter = diameter

        pipe = self.edit_pipe(pipe_id, overwrite)
        logger.info(f"Updated pipe {pipe_id}, new name: {pipe.name}")
        return pipe

    def update_station(self, station_id: int, name: str, total: int, station_class: int) -> CompressorStation:
        """Overwrite name, workshop total and class; active workshops are clamped to the new total."""
        def overwrite(station: CompressorStation) -> None:
            station.name = name
            station.total_workshops = total
            station.station_class = station_class

        station = self.edit_station(station_id, overwrite)
        logger.info(f"Updated compressor station {station_id}, new name: {station.name}")
        return station

    def start_workshop(self, station_id: int) -> bool:
        """
        Start one workshop of a station.

        Returns:
            False, without changing anything, if every workshop already runs

        Raises:
            RecordNotFoundError: if no station has this id
        """
        station = self.get_station(station_id)
        if not station.start_workshop():
            logger.info(
                f"Compressor station {station_id}: cannot start a workshop, "
                f"all {station.total_workshops} are running"
            )
            return False
        logger.info(f"Compressor station {station_id}: workshop started, running {station.active_workshops}")
        return True

    def stop_workshop(self, station_id: int) -> bool:
        """
        Stop one workshop of a station.

        Returns:
            False, without changing anything, if no workshop is running
        """
        station = self.get_station(station_id)
        if not station.stop_workshop():
            logger.info(f"Compressor station {station_id}: cannot stop a workshop, none is running")
            return False
        logger.info(f"Compressor station {station_id}: workshop stopped, running {station.active_workshops}")
        return True

    # ========================================================================
    # Selection and deletion
    # ========================================================================

    def select_by_id_list(self, text: str, is_pipe: bool) -> Selection:
        """
        Resolve a comma separated id list, or 'all', to positions in a collection.

        Unknown ids and tokens that are not integers are skipped with a warning.
        The resulting indices are unique and ascending.

        Examples:
            model.select_by_id_list("3, 1, 3", is_pipe=True).ids  # [1, 3]
            model.select_by_id_list("ALL", is_pipe=False)
        """
        records = self._pipes if is_pipe else self._stations
        label = "pipes" if is_pipe else "compressor stations"
        selection = Selection()

        if not records:
            selection.warnings.append(f"No {label} available")
            return selection

        if text.strip().lower() == 'all':
            selection.indices = list(range(len(records)))
        else:
            positions = {record.id: index for index, record in enumerate(records)}
            found = set()
            for token in text.split(','):
                token = token.strip()
                if not token:
                    continue
                try:
                    record_id = int(token)
                except ValueError:
                    selection.warnings.append(f"'{token}' is not a number")
                    continue
                if record_id in positions:
                    found.add(positions[record_id])
                else:
                    selection.warnings.append(f"ID {record_id} does not exist")
            selection.indices = sorted(found)

        selection.ids = [records[index].id for index in selection.indices]
        for warning in selection.warnings:
            logger.warning(warning)
        return selection

    def delete_by_ids(self, ids: Iterable[int], is_pipe: bool) -> DeletionResult:
        """
        Remove the records with the given ids.

        Ids that match nothing are reported in the result's warnings.
        """
        records = self._pipes if is_pipe else self._stations
        wanted = set(ids)
        result = DeletionResult()

        present = {record.id for record in records}
        for missing in sorted(wanted - present):
            message = f"ID {missing} does not exist"
            logger.warning(message)
            result.warnings.append(message)

        indices = [index for index, record in enumerate(records) if record.id in wanted]
        self._remove_indices(records, indices, result)
        return result

    def delete_selection(self, text: str, is_pipe: bool) -> DeletionResult:
        """Select by id list (or 'all') and delete what was selected."""
        selection = self.select_by_id_list(text, is_pipe)
        records = self._pipes if is_pipe else self._stations
        result = DeletionResult(warnings=list(selection.warnings))
        self._remove_indices(records, selection.indices, result)
        return result

    def _remove_indices(self, records: List[Record], indices: List[int], result: DeletionResult) -> None:
        # Highest position first so earlier positions stay valid
        for index in sorted(set(indices), reverse=True):
            record = records.pop(index)
            result.removed.append(record)
            kind = "pipe" if isinstance(record, Pipe) else "compressor station"
            logger.info(f"Deleted {kind} {record.id} ({record.name})")

    # ========================================================================
    # Whole-store operations
    # ========================================================================

    def clear(self) -> None:
        """Remove all records and reset both id counters."""
        self._pipes = []
        self._stations = []
        self.next_pipe_id = 1
        self.next_station_id = 1

    def replace_with(self, other: 'InventoryModel') -> None:
        """Replace all records and counters with those of other (no merging)."""
        self._pipes = list(other._pipes)
        self._stations = list(other._stations)
        self.next_pipe_id = other.next_pipe_id
        self.next_station_id = other.next_station_id

    def get_statistics(self) -> dict:
        """Summary counts for reporting."""
        return {
            'pipes': len(self._pipes),
            'pipes_under_repair': self.pipes.under_repair().count(),
            'total_pipe_length': self.pipes.total_length(),
            'stations': len(self._stations),
            'workshops_total': sum(s.total_workshops for s in self._stations),
            'workshops_active': sum(s.active_workshops for s in self._stations),
        }

    def _check_bulk_size(self, count: int) -> None:
        if not 1 <= count <= MAX_BULK_ADD:
            raise ModelValidationError(
                f"Bulk add takes between 1 and {MAX_BULK_ADD} records, got {count}"
            )

    @staticmethod
    def _unpack_spec(spec, size: int, shape: str) -> tuple:
        if not isinstance(spec, (tuple, list)) or len(spec) != size:
            raise ModelValidationError(f"Bulk add item {spec!r} is not a {shape} tuple")
        return tuple(spec)

    @staticmethod
    def _raise_if_invalid(result: ValidationResult, message: str) -> None:
        if not result.is_valid:
            raise ModelValidationError(message, validation_result=result)

    def __str__(self):
        return f"InventoryModel(pipes={len(self._pipes)}, stations={len(self._stations)})"
