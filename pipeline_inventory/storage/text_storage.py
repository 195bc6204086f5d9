"""
Line-oriented text format for the inventory.

Layout::

    NEXT_PIPE_ID <n>
    NEXT_STATION_ID <n>
    PIPES <count>
    <id> / <name> / <length> / <diameter> / <0|1>        one line each, per pipe
    STATIONS <count>
    <id> / <name> / <total> / <active> / <class>         one line each, per station

Files written without the two counter lines are still accepted; both
counters then start from 1 (and are raised past the highest loaded id).
"""

from pathlib import Path
from typing import List, Optional, Tuple
import logging

from .base import StorageInterface, FormatError
from ..models.inventory_model import InventoryModel
from ..models.pipe import Pipe
from ..models.compressor_station import CompressorStation

logger = logging.getLogger(__name__)

NEXT_PIPE_ID = 'NEXT_PIPE_ID'
NEXT_STATION_ID = 'NEXT_STATION_ID'
PIPES_MARKER = 'PIPES'
STATIONS_MARKER = 'STATIONS'
DEFAULT_EXTENSION = '.txt'


class _LineReader:
    """Cursor over the lines of a document, tracking 1-based line numbers."""

    def __init__(self, text: str):
        # Only \n ends a line; names may hold any other separator str.splitlines knows
        self.lines = [line[:-1] if line.endswith('\r') else line for line in text.split('\n')]
        self.position = 0

    @property
    def line_number(self) -> int:
        return self.position + 1

    def skip_blank(self) -> None:
        while self.position < len(self.lines) and not self.lines[self.position].strip():
            self.position += 1

    def peek_tokens(self) -> List[str]:
        self.skip_blank()
        if self.position >= len(self.lines):
            return []
        return self.lines[self.position].split()

    def next_line(self, what: str) -> str:
        if self.position >= len(self.lines):
            raise FormatError(f"unexpected end of data, expected {what}", self.line_number)
        line = self.lines[self.position]
        self.position += 1
        return line

    def next_value(self, what: str) -> str:
        self.skip_blank()
        return self.next_line(what).strip()


class TextInventoryCodec:
    """Encoder/decoder pair for the text format."""

    @staticmethod
    def encode(model: InventoryModel) -> str:
        """Serialize the whole store, counters included."""
        lines = [
            f"{NEXT_PIPE_ID} {model.next_pipe_id}",
            f"{NEXT_STATION_ID} {model.next_station_id}",
            f"{PIPES_MARKER} {len(model.pipes)}",
        ]
        for pipe in model.pipes:
            lines.extend([
                str(pipe.id),
                pipe.name,
                repr(float(pipe.length)),
                str(pipe.diameter),
                '1' if pipe.under_repair else '0',
            ])

        lines.append(f"{STATIONS_MARKER} {len(model.stations)}")
        for station in model.stations:
            lines.extend([
                str(station.id),
                station.name,
                str(station.total_workshops),
                str(station.active_workshops),
                str(station.station_class),
            ])
        return "\n".join(lines) + "\n"

    @classmethod
    def decode(cls, text: str) -> InventoryModel:
        """
        Parse text into a new InventoryModel.

        Raises:
            FormatError: if a marker is missing or malformed or a field cannot be parsed
        """
        reader = _LineReader(text)

        next_pipe_id, next_station_id = cls._read_counters(reader)

        pipe_count = cls._read_marker(reader, PIPES_MARKER)
        pipes = [cls._read_pipe(reader) for _ in range(pipe_count)]

        station_count = cls._read_marker(reader, STATIONS_MARKER)
        stations = [cls._read_station(reader) for _ in range(station_count)]

        # Keep ids unique for records added after loading
        if pipes:
            next_pipe_id = max(next_pipe_id, max(p.id for p in pipes) + 1)
        if stations:
            next_station_id = max(next_station_id, max(s.id for s in stations) + 1)

        return InventoryModel(
            _pipes=pipes,
            _stations=stations,
            next_pipe_id=next_pipe_id,
            next_station_id=next_station_id,
        )

    @classmethod
    def _read_counters(cls, reader: _LineReader) -> Tuple[int, int]:
        tokens = reader.peek_tokens()
        if not tokens or tokens[0] != NEXT_PIPE_ID:
            # Legacy layout: no counters, the first line is the PIPES marker
            logger.debug("No id counter header, defaulting counters to 1")
            return 1, 1

        next_pipe_id = cls._parse_header(reader, NEXT_PIPE_ID)
        next_station_id = cls._parse_header(reader, NEXT_STATION_ID)
        return next_pipe_id, next_station_id

    @staticmethod
    def _parse_header(reader: _LineReader, keyword: str) -> int:
        tokens = reader.peek_tokens()
        line_number = reader.line_number
        if len(tokens) != 2 or tokens[0] != keyword:
            raise FormatError(f"expected '{keyword} <number>'", line_number)
        reader.next_line(keyword)
        try:
            value = int(tokens[1])
        except ValueError:
            raise FormatError(f"{keyword} value '{tokens[1]}' is not an integer", line_number)
        if value < 1:
            raise FormatError(f"{keyword} must be at least 1, got {value}", line_number)
        return value

    @staticmethod
    def _read_marker(reader: _LineReader, marker: str) -> int:
        tokens = reader.peek_tokens()
        line_number = reader.line_number
        if len(tokens) != 2 or tokens[0] != marker:
            raise FormatError(f"missing or malformed {marker} marker", line_number)
        try:
            count = int(tokens[1])
        except ValueError:
            raise FormatError(f"{marker} count '{tokens[1]}' is not an integer", line_number)
        if count < 0:
            raise FormatError(f"{marker} count must not be negative", line_number)
        reader.next_line(marker)
        return count

    @staticmethod
    def _parse_number(reader: _LineReader, what: str, kind=int):
        line_number = reader.line_number
        raw = reader.next_value(what)
        try:
            return kind(raw)
        except ValueError:
            raise FormatError(f"{what} '{raw}' is not a valid {kind.__name__}", line_number)

    @staticmethod
    def _check_record(record, what: str, line_number: int) -> None:
        result = record.validate()
        if not result.is_valid:
            raise FormatError(
                f"invalid {what} {record.id}: {'; '.join(result.get_error_messages())}", line_number
            )

    @classmethod
    def _read_pipe(cls, reader: _LineReader) -> Pipe:
        reader.skip_blank()
        start_line = reader.line_number
        pipe_id = cls._parse_number(reader, "pipe id")
        name = reader.next_line("pipe name")
        length = cls._parse_number(reader, "pipe length", float)
        diameter = cls._parse_number(reader, "pipe diameter")
        repair_line = reader.line_number
        repair = reader.next_value("pipe repair flag")
        if repair not in ('0', '1'):
            raise FormatError(f"pipe repair flag must be 0 or 1, got '{repair}'", repair_line)
        pipe = Pipe(id=pipe_id, name=name, length=length, diameter=diameter, under_repair=repair == '1')
        cls._check_record(pipe, "pipe", start_line)
        return pipe

    @classmethod
    def _read_station(cls, reader: _LineReader) -> CompressorStation:
        reader.skip_blank()
        start_line = reader.line_number
        station = CompressorStation(
            id=cls._parse_number(reader, "station id"),
            name=reader.next_line("station name"),
            total_workshops=cls._parse_number(reader, "station workshop total"),
            active_workshops=cls._parse_number(reader, "station active workshops"),
            station_class=cls._parse_number(reader, "station class"),
        )
        if not 0 <= station.active_workshops <= station.total_workshops:
            logger.warning(
                f"Compressor station {station.id}: active workshops {station.active_workshops} "
                f"outside [0, {station.total_workshops}], clamped"
            )
            station.clamp_active()
        cls._check_record(station, "compressor station", start_line)
        return station


def resolve_filename(filename: str, default_extension: str = DEFAULT_EXTENSION) -> Path:
    """Append default_extension when filename has none."""
    path = Path(filename)
    if not path.suffix:
        path = path.with_name(path.name + default_extension)
    return path


class TextFileStorage(StorageInterface):
    """Stores the inventory in a text file using TextInventoryCodec."""

    def __init__(self, encoding: str = 'utf-8', default_extension: str = DEFAULT_EXTENSION):
        self.encoding = encoding
        self.default_extension = default_extension

    def resolve(self, filename: str) -> Path:
        return resolve_filename(filename, self.default_extension)

    def save(self, model: InventoryModel, target: str) -> str:
        """
        Write model to target (extension defaulted).

        Raises:
            OSError: if the file cannot be created
        """
        path = self.resolve(target)
        text = TextInventoryCodec.encode(model)
        with open(path, 'w', encoding=self.encoding, newline='\n') as f:
            f.write(text)
        logger.info(f"Saved {len(model.pipes)} pipes and {len(model.stations)} stations to {path.absolute()}")
        return str(path)

    def load(self, target: str) -> InventoryModel:
        """
        Read target (extension defaulted) into a new model.

        Raises:
            OSError: if the file cannot be read
            FormatError: if the content is malformed
        """
        path = self.resolve(target)
        with open(path, 'r', encoding=self.encoding) as f:
            text = f.read()
        model = TextInventoryCodec.decode(text)
        logger.info(f"Loaded {len(model.pipes)} pipes and {len(model.stations)} stations from {path.absolute()}")
        return model

    def exists(self, target: Optional[str]) -> bool:
        return target is not None and self.resolve(target).exists()
