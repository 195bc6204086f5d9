#!/usr/bin/env python3

import pytest
from pathlib import Path

from pipeline_inventory.models import InventoryModel
from pipeline_inventory.storage import TextFileStorage, TextInventoryCodec, FormatError, resolve_filename


LEGACY_TEXT = """PIPES 1
4
Old line
2.5
300
0
STATIONS 1
9
Old CS
3
5
1
"""


class TestTextInventoryCodec:
    """Test encoding and decoding of the text format."""

    def test_encode_layout(self, model):
        model.add_pipe("Main", 12.5, 500)
        model.toggle_repair(1)
        model.add_station("CS1", 5, 3, 2)

        assert TextInventoryCodec.encode(model).splitlines() == [
            "NEXT_PIPE_ID 2",
            "NEXT_STATION_ID 2",
            "PIPES 1",
            "1", "Main", "12.5", "500", "1",
            "STATIONS 1",
            "1", "CS1", "5", "3", "2",
        ]

    def test_encode_empty(self, model):
        assert TextInventoryCodec.encode(model) == (
            "NEXT_PIPE_ID 1\nNEXT_STATION_ID 1\nPIPES 0\nSTATIONS 0\n"
        )

    def test_round_trip(self, populated_model):
        """Decoding the encoded store gives back the same records and counters."""
        populated_model.delete_by_ids([1], is_pipe=True)
        populated_model.stop_workshop(1)

        restored = TextInventoryCodec.decode(TextInventoryCodec.encode(populated_model))

        assert restored == populated_model
        assert restored.next_pipe_id == 4
        assert restored.next_station_id == 4

    def test_round_trip_keeps_names_with_spaces_and_unicode(self, model):
        model.add_pipe("  Nord Stream: seg 2  ", 1234.5678, 1420)
        model.add_station("КС Северная", 10, 7, 1)

        restored = TextInventoryCodec.decode(TextInventoryCodec.encode(model))

        assert restored.get_pipe(1).name == "  Nord Stream: seg 2  "
        assert restored.get_pipe(1).length == 1234.5678
        assert restored.get_station(1).name == "КС Северная"

    @pytest.mark.parametrize("name", [
        "A\x0bB", "A\x0cB", "A\x1cB", "A\x1dB", "A\x1eB", "A\x85B", "A\u2028B", "A\u2029B",
    ])
    def test_round_trip_names_with_unicode_separators(self, model, name):
        """Only \\n ends a line, other separators stay inside the name."""
        model.add_pipe(name, 1.0, 100)
        model.add_station(name, 2, 1, 1)

        restored = TextInventoryCodec.decode(TextInventoryCodec.encode(model))

        assert restored == model
        assert restored.get_pipe(1).name == name
        assert restored.get_station(1).name == name

    def test_decode_crlf_line_endings(self):
        text = "NEXT_PIPE_ID 2\r\nNEXT_STATION_ID 1\r\nPIPES 1\r\n1\r\nMain\r\n2.5\r\n300\r\n0\r\nSTATIONS 0\r\n"

        pipe = TextInventoryCodec.decode(text).get_pipe(1)

        assert (pipe.name, pipe.length) == ("Main", 2.5)

    def test_legacy_file_without_counters(self):
        restored = TextInventoryCodec.decode(LEGACY_TEXT)

        pipe = restored.get_pipe(4)
        assert (pipe.name, pipe.length, pipe.diameter, pipe.under_repair) == ("Old line", 2.5, 300, False)
        # counters start at 1 and are raised past the loaded ids
        assert restored.next_pipe_id == 5
        assert restored.next_station_id == 10

    def test_loaded_station_is_clamped(self):
        station = TextInventoryCodec.decode(LEGACY_TEXT).get_station(9)

        assert station.total_workshops == 3
        assert station.active_workshops == 3

    def test_counter_lower_than_ids_is_raised(self):
        text = "NEXT_PIPE_ID 1\nNEXT_STATION_ID 1\nPIPES 1\n7\nP\n1.0\n100\n1\nSTATIONS 0\n"
        restored = TextInventoryCodec.decode(text)

        assert restored.next_pipe_id == 8
        assert restored.get_pipe(7).under_repair is True

    def test_blank_lines_between_values_are_skipped(self):
        text = "NEXT_PIPE_ID 3\n\nNEXT_STATION_ID 1\nPIPES 1\n2\nP\n\n1.5\n100\n0\n\nSTATIONS 0\n\n"
        restored = TextInventoryCodec.decode(text)

        assert restored.get_pipe(2).length == 1.5
        assert restored.next_pipe_id == 3

    @pytest.mark.parametrize("text,message", [
        ("", "PIPES"),
        ("garbage\n", "PIPES"),
        ("NEXT_PIPE_ID 2\nNEXT_STATION_ID 1\nPIPE 0\nSTATIONS 0\n", "PIPES"),
        ("NEXT_PIPE_ID 1\nNEXT_STATION_ID 1\nPIPES x\nSTATIONS 0\n", "PIPES count"),
        ("NEXT_PIPE_ID 1\nNEXT_STATION_ID 1\nPIPES 0\n", "STATIONS"),
        ("NEXT_PIPE_ID 1\nNEXT_STATION_ID 1\nPIPES 0\nSTATION 0\n", "STATIONS"),
        ("NEXT_PIPE_ID 1\nPIPES 0\nSTATIONS 0\n", "NEXT_STATION_ID"),
        ("NEXT_PIPE_ID one\nNEXT_STATION_ID 1\nPIPES 0\nSTATIONS 0\n", "not an integer"),
    ])
    def test_malformed_markers(self, text, message):
        with pytest.raises(FormatError) as exc_info:
            TextInventoryCodec.decode(text)

        assert message in str(exc_info.value)

    def test_malformed_record(self):
        text = "PIPES 1\n1\nP\nlong\n100\n0\nSTATIONS 0\n"

        with pytest.raises(FormatError) as exc_info:
            TextInventoryCodec.decode(text)

        assert exc_info.value.line_number == 4
        assert "pipe length" in str(exc_info.value)

    def test_bad_repair_flag(self):
        with pytest.raises(FormatError):
            TextInventoryCodec.decode("PIPES 1\n1\nP\n1.0\n100\nyes\nSTATIONS 0\n")

    def test_truncated_records(self):
        with pytest.raises(FormatError) as exc_info:
            TextInventoryCodec.decode("PIPES 2\n1\nP\n1.0\n100\n0\n")

        assert "unexpected end of data" in str(exc_info.value)

    @pytest.mark.parametrize("record,field", [
        ("1\nP\n-5.0\n100\n0\n", "length"),
        ("1\nP\n1.0\n0\n0\n", "diameter"),
        ("1\n   \n1.0\n100\n0\n", "name"),
    ])
    def test_invalid_pipe_record(self, record, field):
        text = f"NEXT_PIPE_ID 2\nNEXT_STATION_ID 1\nPIPES 1\n{record}STATIONS 0\n"

        with pytest.raises(FormatError) as exc_info:
            TextInventoryCodec.decode(text)

        assert exc_info.value.line_number == 4
        assert field in str(exc_info.value)

    def test_invalid_station_record(self):
        text = "PIPES 0\nSTATIONS 1\n\n3\nCS\n2\n1\n0\n"

        with pytest.raises(FormatError) as exc_info:
            TextInventoryCodec.decode(text)

        assert exc_info.value.line_number == 4
        assert "station_class" in str(exc_info.value)


class TestTextFileStorage:
    """Test file-backed storage."""

    def test_resolve_filename(self):
        assert resolve_filename("data") == Path("data.txt")
        assert resolve_filename("data.inv") == Path("data.inv")
        assert resolve_filename("dir/data") == Path("dir/data.txt")

    def test_save_and_load(self, data_dir):
        """Worked example: a repaired pipe survives a save/load cycle."""
        model = InventoryModel()
        assert model.add_pipe("Main", 12.5, 500) == 1
        model.toggle_repair(1)

        storage = TextFileStorage()
        written = storage.save(model, str(data_dir / "x.txt"))
        restored = storage.load(written)

        pipe = restored.get_pipe(1)
        assert (pipe.id, pipe.name, pipe.length, pipe.diameter, pipe.under_repair) == (1, "Main", 12.5, 500, True)

    def test_save_appends_extension(self, data_dir, populated_model):
        storage = TextFileStorage()
        written = storage.save(populated_model, str(data_dir / "network"))

        assert written.endswith("network.txt")
        assert (data_dir / "network.txt").exists()
        assert storage.exists(str(data_dir / "network"))
        assert storage.load(str(data_dir / "network")) == populated_model

    def test_load_into_replaces_contents(self, data_dir, populated_model):
        storage = TextFileStorage()
        other = InventoryModel()
        other.add_station("Only", 1, 0, 1)
        path = storage.save(other, str(data_dir / "other.txt"))

        storage.load_into(populated_model, path)

        assert populated_model.pipes.is_empty()
        assert populated_model.stations.ids() == [1]

    def test_failed_load_leaves_model_untouched(self, data_dir, populated_model):
        bad = data_dir / "bad.txt"
        bad.write_text("NEXT_PIPE_ID 1\nNEXT_STATION_ID 1\nPIPES 0\n", encoding="utf-8")
        before = TextInventoryCodec.encode(populated_model)

        with pytest.raises(FormatError):
            TextFileStorage().load_into(populated_model, str(bad))

        assert TextInventoryCodec.encode(populated_model) == before

    def test_missing_file(self, data_dir):
        with pytest.raises(OSError):
            TextFileStorage().load(str(data_dir / "missing.txt"))

    def test_unwritable_target(self, data_dir, model):
        with pytest.raises(OSError):
            TextFileStorage().save(model, str(data_dir / "no_such_dir" / "x.txt"))
