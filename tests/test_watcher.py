"""Tests for translating file system events into detector calls."""

import threading
from unittest.mock import Mock, patch

import pytest
from watchdog.events import (
    DirCreatedEvent,
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
)

from ffsync.exceptions import FFSyncPolicyError
from ffsync.models import CodeType
from ffsync.sync.detector import load_change_detector
from ffsync.sync.watcher import ProjectEventHandler, watch_project

from conftest import write_file

ACTION = "lib/custom_code/actions/fetch_data.dart"


@pytest.fixture
def detector(tmp_path):
    """Mock detector rooted in a temporary directory."""
    return Mock(root=tmp_path)


@pytest.fixture
def handler(detector):
    return ProjectEventHandler(detector)


class TestProjectEventHandler:
    """Tests for ProjectEventHandler with a mock detector."""

    def test_created(self, handler, detector):
        path = detector.root / ACTION
        handler.on_created(FileCreatedEvent(str(path)))
        detector.add_file.assert_called_once_with(path)

    def test_modified(self, handler, detector):
        path = detector.root / "pubspec.yaml"
        handler.on_modified(FileModifiedEvent(str(path)))
        detector.update_file.assert_called_once_with(path)

    def test_deleted(self, handler, detector):
        path = detector.root / ACTION
        handler.on_deleted(FileDeletedEvent(str(path)))
        detector.delete_file.assert_called_once_with(path)

    def test_directory_events_ignored(self, handler, detector):
        handler.on_created(DirCreatedEvent(str(detector.root / "lib/custom_code/helpers")))
        detector.add_file.assert_not_called()

    @pytest.mark.parametrize(
        "relative",
        ["lib/custom_code/actions/index.dart", "lib/main.dart", ".vscode/file_map.json"],
    )
    def test_untracked_paths_ignored(self, handler, detector, relative):
        handler.on_modified(FileModifiedEvent(str(detector.root / relative)))
        detector.update_file.assert_not_called()

    def test_move_within_tracked_roots(self, handler, detector):
        src = detector.root / ACTION
        dest = detector.root / "lib/custom_code/actions/load_data.dart"
        handler.on_moved(FileMovedEvent(str(src), str(dest)))
        detector.rename_file.assert_called_once_with(src, dest)
        detector.update_file.assert_called_once_with(dest)

    def test_move_between_categories(self, handler, detector):
        """Test that a move into another category is a delete and an add."""
        src = detector.root / ACTION
        dest = detector.root / "lib/custom_code/widgets/fetch_data.dart"
        handler.on_moved(FileMovedEvent(str(src), str(dest)))
        detector.rename_file.assert_not_called()
        detector.delete_file.assert_called_once_with(src)
        detector.add_file.assert_called_once_with(dest)

    def test_move_of_unknown_file_adds_it(self, handler, detector):
        detector.rename_file.return_value = None
        src = detector.root / ACTION
        dest = detector.root / "lib/custom_code/actions/load_data.dart"
        handler.on_moved(FileMovedEvent(str(src), str(dest)))
        detector.add_file.assert_called_once_with(dest)

    def test_save_through_temporary_file(self, handler, detector):
        src = detector.root / "lib/custom_code/actions/.fetch_data.dart.tmp"
        dest = detector.root / ACTION
        handler.on_moved(FileMovedEvent(str(src), str(dest)))
        detector.add_file.assert_called_once_with(dest)
        detector.rename_file.assert_not_called()

    def test_move_out_of_tracked_roots(self, handler, detector):
        src = detector.root / ACTION
        handler.on_moved(FileMovedEvent(str(src), str(detector.root / "backup.dart")))
        detector.delete_file.assert_called_once_with(src)

    def test_policy_error_logged(self, handler, detector, caplog):
        detector.delete_file.side_effect = FFSyncPolicyError("Cannot delete")
        path = detector.root / "lib/flutter_flow/custom_functions.dart"
        handler.on_deleted(FileDeletedEvent(str(path)))
        assert "Cannot delete" in caplog.text

    def test_vanished_file_ignored(self, handler, detector):
        detector.update_file.side_effect = FileNotFoundError()
        handler.on_modified(FileModifiedEvent(str(detector.root / ACTION)))


class TestWithDetector:
    """Tests driving a real change detector."""

    def test_created_file_tracked(self, project):
        detector = load_change_detector(project)
        handler = ProjectEventHandler(detector)
        path = write_file(project, "lib/custom_code/actions/send_email.dart", "void sendEmail() {}\n")

        handler.on_created(FileCreatedEvent(str(path)))

        assert detector.file_map["send_email.dart"].new_identifier_name == "sendEmail"

    def test_action_moved_to_widgets(self, project):
        detector = load_change_detector(project)
        handler = ProjectEventHandler(detector)
        src = project / ACTION
        dest = project / "lib/custom_code/widgets/fetch_data.dart"
        dest.write_bytes(src.read_bytes())
        src.unlink()

        handler.on_moved(FileMovedEvent(str(src), str(dest)))

        record = detector.file_map["fetch_data.dart"]
        assert record.type == CodeType.WIDGET
        assert not record.is_deleted
        assert detector.indexes.exports(CodeType.ACTION, "fetch_data.dart") == []
        assert detector.indexes.exports(CodeType.WIDGET, "fetch_data.dart") == ["FetchData"]

    def test_index_rewrite_not_tracked(self, project):
        detector = load_change_detector(project)
        handler = ProjectEventHandler(detector)
        index = project / "lib/custom_code/actions/index.dart"
        handler.on_created(FileCreatedEvent(str(index)))
        assert "index.dart" not in detector.file_map


class TestWatchProject:
    """Tests for watch_project."""

    def test_stops_on_event(self, tmp_path):
        stop = threading.Event()
        stop.set()
        with patch("ffsync.sync.watcher.Observer") as mock_observer_class:
            observer = mock_observer_class.return_value
            observer.is_alive.return_value = True
            watch_project(tmp_path, Mock(root=tmp_path), stop_event=stop)
        observer.schedule.assert_called_once()
        observer.start.assert_called_once()
        observer.stop.assert_called_once()
        observer.join.assert_called_once()

    def test_stops_on_keyboard_interrupt(self, tmp_path):
        with patch("ffsync.sync.watcher.Observer") as mock_observer_class:
            observer = mock_observer_class.return_value
            observer.is_alive.side_effect = KeyboardInterrupt
            watch_project(tmp_path, Mock(root=tmp_path))
        observer.stop.assert_called_once()
