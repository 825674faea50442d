"""
Unit tests for the resume checkpoint store.
"""

from pathlib import Path

import pytest

from location_seed.batch.checkpoint import CheckpointStore, tracker_path_for
from location_seed.core.errors import CheckpointIOError


@pytest.mark.unit
class TestTrackerPath:
    """Tests for tracker file naming"""

    def test_extension_is_replaced(self):
        assert tracker_path_for("data/places.csv") == Path("data/places_last_id_tracker.csv")

    def test_relative_dot_path(self):
        assert tracker_path_for("./places.csv") == Path("places_last_id_tracker.csv")

    def test_name_without_extension(self):
        assert tracker_path_for("data/places") == Path("data/places_tracker.csv")

    def test_same_input_same_tracker(self):
        assert tracker_path_for("/srv/in/places.csv") == tracker_path_for("/srv/in/places.csv")


@pytest.mark.unit
class TestCheckpointStore:
    """Tests for CheckpointStore"""

    def test_missing_file_means_no_checkpoint(self, tmp_path):
        store = CheckpointStore(tmp_path / "places_last_id_tracker.csv")

        assert store.load() is None

    def test_save_then_load(self, tmp_path):
        store = CheckpointStore(tmp_path / "tracker.csv")

        store.save("ID-0042")

        assert store.load() == "ID-0042"
        assert (tmp_path / "tracker.csv").read_text() == "ID-0042"

    def test_save_overwrites_previous_value(self, tmp_path):
        store = CheckpointStore(tmp_path / "tracker.csv")

        store.save("a-very-long-identifier")
        store.save("b")

        assert store.load() == "b"
        assert (tmp_path / "tracker.csv").read_text() == "b"

    def test_no_temporary_files_left_behind(self, tmp_path):
        store = CheckpointStore(tmp_path / "tracker.csv")

        store.save("1")
        store.save("2")

        assert [p.name for p in tmp_path.iterdir()] == ["tracker.csv"]

    def test_surrounding_whitespace_is_ignored(self, tmp_path):
        path = tmp_path / "tracker.csv"
        path.write_text("  17\n")

        assert CheckpointStore(path).load() == "17"

    def test_empty_file_means_no_checkpoint(self, tmp_path):
        path = tmp_path / "tracker.csv"
        path.write_text("")

        assert CheckpointStore(path).load() is None

    def test_unreadable_tracker_raises(self, tmp_path):
        # A directory where the file should be cannot be read
        path = tmp_path / "tracker.csv"
        path.mkdir()

        with pytest.raises(CheckpointIOError):
            CheckpointStore(path).load()

    def test_unwritable_location_raises(self, tmp_path):
        store = CheckpointStore(tmp_path / "missing-dir" / "tracker.csv")

        with pytest.raises(CheckpointIOError) as exc_info:
            store.save("1")

        assert "tracker.csv" in str(exc_info.value)

    def test_clear(self, tmp_path):
        store = CheckpointStore(tmp_path / "tracker.csv")
        store.save("5")

        assert store.clear() is True
        assert store.load() is None
        assert store.clear() is False
