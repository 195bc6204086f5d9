"""
Tests for the command line interface.

Each test drives main() with an explicit data file in a temporary directory.
"""

import logging

import pytest

from pipeline_inventory.cli import main, build_parser
from pipeline_inventory.storage import TextFileStorage


@pytest.fixture
def data_file(data_dir) -> str:
    return str(data_dir / 'inventory.txt')


def run(data_file, *args) -> int:
    return main([args[0], '--data-file', data_file, *args[1:]])


def load(data_file):
    return TextFileStorage().load(data_file)


class TestCreationCommands:
    """add_* commands."""

    def test_add_pipe_creates_file(self, data_file, capsys):
        assert run(data_file, 'add_pipe', '--name', 'Main', '--length', '12.5', '--diameter', '500') == 0

        assert "added with ID: 1" in capsys.readouterr().out
        pipe = load(data_file).get_pipe(1)
        assert (pipe.name, pipe.length, pipe.diameter) == ("Main", 12.5, 500)

    def test_add_station(self, data_file):
        assert run(data_file, 'add_station', '--name', 'CS1', '--total', '5', '--active', '3', '--class', '2') == 0

        station = load(data_file).get_station(1)
        assert (station.total_workshops, station.active_workshops, station.station_class) == (5, 3, 2)

    def test_add_station_active_above_total(self, data_file, capsys):
        assert run(data_file, 'add_station', '--name', 'CS1', '--total', '2', '--active', '3', '--class', '1') == 1

        assert "Error" in capsys.readouterr().err

    def test_missing_fields(self, data_file, capsys):
        assert run(data_file, 'add_pipe', '--name', 'Main') == 1

        assert "--length" in capsys.readouterr().err

    def test_invalid_argument_value_exits(self, data_file):
        with pytest.raises(SystemExit):
            run(data_file, 'add_pipe', '--name', 'Main', '--length', '-2', '--diameter', '500')

    def test_bulk_add(self, data_file, capsys):
        assert run(data_file, 'add_pipes', '--item', 'A:1:100', '--item', 'B:2.5:200') == 0
        assert run(data_file, 'add_stations', '--item', 'S1:3:1:1') == 0

        out = capsys.readouterr().out
        assert "Added 2 pipes. Total: 2" in out
        model = load(data_file)
        assert model.pipes.ids() == [1, 2]
        assert model.stations.ids() == [1]

    def test_bulk_add_invalid_item(self, data_file):
        assert run(data_file, 'add_stations', '--item', 'S1:3:1:1', '--item', 'S2:3:9:1') == 1


class TestEditCommands:
    """edit_* commands."""

    def test_toggle_repair(self, data_file):
        run(data_file, 'add_pipe', '--name', 'Main', '--length', '12.5', '--diameter', '500')

        assert run(data_file, 'edit_pipe', '--id', '1', '--toggle-repair') == 0
        assert load(data_file).get_pipe(1).under_repair is True

    def test_overwrite_pipe(self, data_file):
        run(data_file, 'add_pipe', '--name', 'Main', '--length', '12.5', '--diameter', '500')

        assert run(data_file, 'edit_pipe', '--id', '1', '--name', 'Trunk', '--length', '3', '--diameter', '300') == 0
        assert load(data_file).get_pipe(1).name == 'Trunk'

    def test_edit_unknown_pipe(self, data_file, capsys):
        assert run(data_file, 'edit_pipe', '--id', '5', '--toggle-repair') == 1

        assert "not found" in capsys.readouterr().err

    def test_workshop_boundary_is_not_an_error(self, data_file, capsys):
        run(data_file, 'add_station', '--name', 'CS1', '--total', '1', '--active', '0', '--class', '1')

        assert run(data_file, 'edit_station', '--id', '1', '--stop-workshop') == 0
        assert "Operation not possible" in capsys.readouterr().out

        assert run(data_file, 'edit_station', '--id', '1', '--start-workshop') == 0
        assert load(data_file).get_station(1).active_workshops == 1

    def test_overwrite_station_clamps(self, data_file):
        run(data_file, 'add_station', '--name', 'CS1', '--total', '5', '--active', '5', '--class', '1')

        assert run(data_file, 'edit_station', '--id', '1', '--name', 'CS1', '--total', '2', '--class', '1') == 0
        assert load(data_file).get_station(1).active_workshops == 2


class TestQueryAndDeleteCommands:
    """view, search_* and delete_* commands."""

    @pytest.fixture(autouse=True)
    def seeded(self, data_file):
        run(data_file, 'add_pipes', '--item', 'Main:12.5:500', '--item', 'Branch:2:100')
        run(data_file, 'add_stations', '--item', 'CS1:4:4:1', '--item', 'CS2:4:1:2')
        run(data_file, 'edit_pipe', '--id', '2', '--toggle-repair')

    def test_view_json(self, data_file, capsys):
        capsys.readouterr()
        assert run(data_file, 'view', '--format', 'json') == 0

        out = capsys.readouterr().out
        assert '"Main"' in out
        assert '"CS2"' in out

    def test_search_pipes_by_repair(self, data_file, capsys):
        capsys.readouterr()
        run(data_file, 'search_pipes', '--repair', 'yes', '--format', 'csv')

        lines = capsys.readouterr().out.strip().splitlines()
        assert len(lines) == 2
        assert lines[1].startswith("2,Branch")

    def test_search_stations_by_percent(self, data_file, capsys):
        capsys.readouterr()
        run(data_file, 'search_stations', '--compare', '>', '--percent', '0', '--format', 'csv')

        lines = capsys.readouterr().out.strip().splitlines()
        assert [line.split(',')[1] for line in lines[1:]] == ['CS2']

    def test_delete_with_warning(self, data_file, capsys):
        capsys.readouterr()
        assert run(data_file, 'delete_pipes', '--ids', '1,9') == 0

        out = capsys.readouterr().out
        assert "Warning: ID 9 does not exist" in out
        assert "Deleted 1. Remaining: 1" in out
        assert load(data_file).pipes.ids() == [2]

    def test_delete_all_stations(self, data_file):
        assert run(data_file, 'delete_stations', '--ids', 'ALL') == 0

        assert load(data_file).stations.is_empty()


class TestFileCommands:
    """save and load commands."""

    def test_save_copy_and_load_back(self, data_file, data_dir):
        run(data_file, 'add_pipe', '--name', 'Main', '--length', '12.5', '--diameter', '500')
        backup = str(data_dir / 'backup')

        assert run(data_file, 'save', '--output', backup) == 0
        run(data_file, 'delete_pipes', '--ids', 'all')
        assert run(data_file, 'load', '--input', backup) == 0

        assert load(data_file).get_pipe(1).name == 'Main'

    def test_load_malformed_file(self, data_file, data_dir, capsys):
        bad = data_dir / 'bad.txt'
        bad.write_text("nothing useful\n", encoding='utf-8')

        assert run(data_file, 'load', '--input', str(bad)) == 1
        assert "PIPES" in capsys.readouterr().err

    def test_load_missing_file(self, data_file, data_dir):
        assert run(data_file, 'load', '--input', str(data_dir / 'missing.txt')) == 1

    def test_load_restores_over_corrupt_data_file(self, data_file, data_dir, capsys):
        run(data_file, 'add_pipe', '--name', 'Main', '--length', '12.5', '--diameter', '500')
        backup = str(data_dir / 'backup.txt')
        run(data_file, 'save', '--output', backup)
        with open(data_file, 'w', encoding='utf-8') as f:
            f.write("garbage\n")

        assert run(data_file, 'load', '--input', backup) == 0

        assert "Loaded pipes: 1" in capsys.readouterr().out
        assert load(data_file).get_pipe(1).name == 'Main'


class TestConfiguration:
    """Argument defaults and logging setup."""

    def test_data_file_from_environment(self, monkeypatch):
        monkeypatch.setenv('PIPELINE_DATA_FILE', 'from_env.txt')

        assert build_parser().parse_args(['view']).data_file == 'from_env.txt'

    def test_log_file_records_actions(self, data_file, data_dir):
        log_path = data_dir / 'actions.log'
        root = logging.getLogger()
        handlers_before = list(root.handlers)
        level_before = root.level
        root.setLevel(logging.INFO)
        try:
            main(['add_pipe', '--data-file', data_file, '--log-file', str(log_path),
                  '--name', 'Main', '--length', '1', '--diameter', '100'])
        finally:
            for handler in root.handlers:
                if handler not in handlers_before:
                    root.removeHandler(handler)
                    handler.close()
            root.setLevel(level_before)

        content = log_path.read_text(encoding='utf-8')
        assert "Command: add_pipe" in content
        assert "Added pipe 1 (Main)" in content
