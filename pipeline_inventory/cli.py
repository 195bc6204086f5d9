#!/usr/bin/env python3

import sys
import os
import argparse
import logging
from typing import Callable, List, Optional

from pipeline_inventory.models import (
    InventoryModel, ModelValidationError, RecordNotFoundError, Comparison,
)
from pipeline_inventory.models.persistence import InventoryExporter
from pipeline_inventory.storage import TextFileStorage, FormatError
from pipeline_inventory.utils.input_parsing import (
    parse_name, parse_int, parse_float, parse_bool, parse_percent,
    parse_pipe_spec, parse_station_spec,
)

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
AUDIT_FORMAT = '%(asctime)s | %(levelname)s | %(message)s'
DEFAULT_DATA_FILE = 'pipeline.txt'

COMMANDS = [
    'add_pipe', 'add_station', 'add_pipes', 'add_stations', 'view',
    'edit_pipe', 'edit_station', 'delete_pipes', 'delete_stations',
    'search_pipes', 'search_stations', 'save', 'load',
]


class Command:
    """Runs one inventory action against the data file."""

    def __init__(self, args, storage: Optional[TextFileStorage] = None, out=None):
        self.args = args
        self.storage = storage or TextFileStorage()
        self.out = out or sys.stdout
        self.model = InventoryModel()

    def emit(self, text: str) -> None:
        print(text, file=self.out)

    def load_model(self) -> None:
        if self.storage.exists(self.args.data_file):
            self.storage.load_into(self.model, self.args.data_file)
        else:
            logger.debug(f"Data file {self.args.data_file} not found, starting empty")

    def save_model(self) -> None:
        self.storage.save(self.model, self.args.data_file)

    def run(self) -> int:
        """Run the specified command."""
        logger.info(f"Command: {self.args.command}")
        # load replaces the store wholesale, so the current data file is never read
        if self.args.command != 'load':
            self.load_model()
        return getattr(self, f'run_{self.args.command}')() or 0

    def require(self, *names: str) -> None:
        missing = [f"--{n.replace('_', '-')}" for n in names if getattr(self.args, n) is None]
        if missing:
            raise ModelValidationError(f"{self.args.command} requires {', '.join(missing)}")

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def run_add_pipe(self):
        self.require('name', 'length', 'diameter')
        pipe_id = self.model.add_pipe(self.args.name, self.args.length, self.args.diameter)
        self.save_model()
        self.emit(f"Pipe '{self.args.name}' added with ID: {pipe_id}")

    def run_add_station(self):
        self.require('name', 'total', 'active', 'station_class')
        station_id = self.model.add_station(
            self.args.name, self.args.total, self.args.active, self.args.station_class
        )
        self.save_model()
        self.emit(f"Compressor station '{self.args.name}' added with ID: {station_id}")

    def run_add_pipes(self):
        self.require('item')
        ids = self.model.bulk_add_pipes(self.args.item)
        self.save_model()
        self.emit(f"Added {len(ids)} pipes. Total: {len(self.model.pipes)}")

    def run_add_stations(self):
        self.require('item')
        ids = self.model.bulk_add_stations(self.args.item)
        self.save_model()
        self.emit(f"Added {len(ids)} compressor stations. Total: {len(self.model.stations)}")

    # ------------------------------------------------------------------
    # Display and search
    # ------------------------------------------------------------------

    def run_view(self):
        self.emit(InventoryExporter.render(
            self.args.format, self.model.pipes.all(), self.model.stations.all()
        ))

    def run_search_pipes(self):
        results = self.model.pipes
        if self.args.name is not None:
            results = results.by_name(self.args.name)
        if self.args.repair is not None:
            results = results.under_repair(self.args.repair)
        logger.info(f"Pipe search found {len(results)}")
        self.emit(InventoryExporter.render(self.args.format, pipes=results.all()))

    def run_search_stations(self):
        results = self.model.stations
        if self.args.name is not None:
            results = results.by_name(self.args.name)
        if self.args.percent is not None:
            results = results.by_inactive_percent(self.args.compare, self.args.percent)
        logger.info(f"Compressor station search found {len(results)}")
        self.emit(InventoryExporter.render(self.args.format, stations=results.all()))

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def run_edit_pipe(self):
        self.require('id')
        if self.args.toggle_repair:
            under_repair = self.model.toggle_repair(self.args.id)
            self.emit(f"Repair status changed to: {'under repair' if under_repair else 'operational'}")
        else:
            self.require('name', 'length', 'diameter')
            self.model.update_pipe(self.args.id, self.args.name, self.args.length, self.args.diameter)
            self.emit("Pipe parameters updated")
        self.save_model()

    def run_edit_station(self):
        self.require('id')
        if self.args.start_workshop or self.args.stop_workshop:
            if self.args.start_workshop:
                changed = self.model.start_workshop(self.args.id)
            else:
                changed = self.model.stop_workshop(self.args.id)
            station = self.model.get_station(self.args.id)
            if not changed:
                self.emit(f"Operation not possible: {station.active_workshops}/"
                          f"{station.total_workshops} workshops running")
                return
            self.emit(f"Workshops running: {station.active_workshops}/{station.total_workshops}")
        else:
            self.require('name', 'total', 'station_class')
            self.model.update_station(self.args.id, self.args.name, self.args.total, self.args.station_class)
            self.emit("Compressor station parameters updated")
        self.save_model()

    # ------------------------------------------------------------------
    # Deletion
    # ------------------------------------------------------------------

    def _delete(self, is_pipe: bool):
        self.require('ids')
        result = self.model.delete_selection(self.args.ids, is_pipe)
        for warning in result.warnings:
            self.emit(f"Warning: {warning}")
        for record in result.removed:
            self.emit(f"Deleted: {record.name} (ID: {record.id})")
        if result.count:
            self.save_model()
        remaining = len(self.model.pipes) if is_pipe else len(self.model.stations)
        self.emit(f"Deleted {result.count}. Remaining: {remaining}")

    def run_delete_pipes(self):
        self._delete(is_pipe=True)

    def run_delete_stations(self):
        self._delete(is_pipe=False)

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    def run_save(self):
        self.require('output')
        path = self.storage.save(self.model, self.args.output)
        self.emit(f"Data saved to: {os.path.abspath(path)}")

    def run_load(self):
        self.require('input')
        self.model = self.storage.load(self.args.input)
        self.save_model()
        self.emit(f"Loaded pipes: {len(self.model.pipes)}, compressor stations: {len(self.model.stations)}")


def _argument(parse: Callable, *args, **kwargs) -> Callable[[str], object]:
    """Adapt an input parser to an argparse type."""
    def convert(raw: str):
        try:
            return parse(raw, *args, **kwargs)
        except ModelValidationError as e:
            raise argparse.ArgumentTypeError(
                "; ".join(e.validation_result.get_error_messages()) if e.validation_result else str(e)
            )
    return convert


def _comparison(raw: str) -> Comparison:
    try:
        return Comparison.parse(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"unknown comparison '{raw}' (use >, <, == or gt, lt, eq)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Pipeline inventory management tool')
    parser.add_argument('command', help='Command to execute', choices=COMMANDS)
    parser.add_argument('-d', '--data-file', help='Inventory file (".txt" appended if no extension)',
                        default=os.getenv('PIPELINE_DATA_FILE', DEFAULT_DATA_FILE))
    parser.add_argument('-v', '--verbose', help='Verbose output', action='store_true')
    parser.add_argument('--log-file', help='Append a timestamped record of every action to this file',
                        default=os.getenv('PIPELINE_LOG_FILE'))
    parser.add_argument('--format', help='Output format', choices=['human', 'csv', 'json'], default='human')

    # Record fields
    parser.add_argument('--id', help='Record ID for edit commands', type=_argument(parse_int, 'id', minimum=1))
    parser.add_argument('--name', help='Name (or name fragment when searching)')
    parser.add_argument('--length', help='Pipe length in km',
                        type=_argument(parse_float, 'length', minimum=0.0, exclusive_minimum=True))
    parser.add_argument('--diameter', help='Pipe diameter in mm', type=_argument(parse_int, 'diameter', minimum=1))
    parser.add_argument('--total', help='Total workshops', type=_argument(parse_int, 'total_workshops', minimum=1))
    parser.add_argument('--active', help='Active workshops', type=_argument(parse_int, 'active_workshops', minimum=0))
    parser.add_argument('--class', dest='station_class', help='Station class',
                        type=_argument(parse_int, 'station_class', minimum=1))
    parser.add_argument('--item', action='append',
                        help='Bulk add item, NAME:LENGTH:DIAMETER for pipes or NAME:TOTAL:ACTIVE:CLASS for stations')

    # Edit actions
    parser.add_argument('--toggle-repair', help='Flip the repair status of a pipe', action='store_true')
    workshop = parser.add_mutually_exclusive_group()
    workshop.add_argument('--start-workshop', help='Start one workshop of a station', action='store_true')
    workshop.add_argument('--stop-workshop', help='Stop one workshop of a station', action='store_true')

    # Delete / search
    parser.add_argument('--ids', help="Comma separated IDs, or 'all'")
    parser.add_argument('--repair', help='Search pipes by repair status (yes/no)',
                        type=_argument(parse_bool, 'repair'))
    parser.add_argument('--compare', help='Inactive percentage comparison (>, <, ==)',
                        type=_comparison, default=Comparison.EQUAL)
    parser.add_argument('--percent', help='Inactive workshop percentage (0-100)',
                        type=_argument(parse_percent))

    # Files
    parser.add_argument('-o', '--output', help='Target file for save')
    parser.add_argument('-i', '--input', help='Source file for load')
    return parser


def _parse_items(args) -> None:
    """Convert --item strings once the command tells which record type they describe."""
    if not args.item:
        return
    if args.command == 'add_pipes':
        args.item = [parse_pipe_spec(raw) for raw in args.item]
    elif args.command == 'add_stations':
        args.item = [parse_station_spec(raw) for raw in args.item]


def configure_logging(verbose: bool = False, log_file: Optional[str] = None) -> None:
    logging.basicConfig(
        level=os.getenv('LOG_LEVEL', 'INFO').upper(),
        format=LOG_FORMAT
    )
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    if log_file:
        handler = logging.FileHandler(log_file, encoding='utf-8')
        handler.setFormatter(logging.Formatter(AUDIT_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
        logging.getLogger().addHandler(handler)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(args.verbose, args.log_file)

    try:
        _parse_items(args)
        if args.name is not None and args.command.startswith(('add_', 'edit_')):
            args.name = parse_name(args.name)
        return Command(args).run()
    except (ModelValidationError, RecordNotFoundError, FormatError) as e:
        logger.error(str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        logger.error(f"File error: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
