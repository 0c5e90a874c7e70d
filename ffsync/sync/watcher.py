"""File system watching for a FlutterFlow project.

Forwards watchdog events under ``lib/`` and for ``pubspec.yaml`` to a
:class:`~ffsync.sync.detector.ChangeDetector`.
"""

import logging
import threading
import time
from pathlib import Path
from typing import Callable, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from ..exceptions import FFSyncError
from ..layout import index_path, path_to_code_type
from ..models import CodeType
from .detector import ChangeDetector

logger = logging.getLogger(__name__)


class ProjectEventHandler(FileSystemEventHandler):
    """Maps watchdog events onto change detector calls.

    Directory events, the index documents and untracked paths are ignored.
    Events arrive on the observer thread and are applied one at a time.
    """

    def __init__(self, detector: ChangeDetector, root: Optional[Path] = None):
        super().__init__()
        self.detector = detector
        self.root = root or detector.root
        self._lock = threading.Lock()
        self._ignored = {
            index_path(self.root, CodeType.ACTION).resolve(),
            index_path(self.root, CodeType.WIDGET).resolve(),
        }

    def _is_relevant(self, path: Path) -> bool:
        if path.resolve() in self._ignored:
            return False
        return path_to_code_type(self.root, path) is not None

    def _apply(self, action: Callable[[], object], description: str) -> None:
        with self._lock:
            try:
                action()
            except FFSyncError as e:
                logger.error(f"Failed to handle {description}: {e}")
            except FileNotFoundError:
                # Gone again before it could be read; the delete event follows
                logger.debug(f"File vanished while handling {description}")

    def on_created(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        path = Path(str(event.src_path))
        if self._is_relevant(path):
            self._apply(lambda: self.detector.add_file(path), f"creation of {path}")

    def on_modified(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        path = Path(str(event.src_path))
        if self._is_relevant(path):
            self._apply(lambda: self.detector.update_file(path), f"change of {path}")

    def on_deleted(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        path = Path(str(event.src_path))
        if self._is_relevant(path):
            self._apply(lambda: self.detector.delete_file(path), f"deletion of {path}")

    def on_moved(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        src = Path(str(event.src_path))
        dest = Path(str(event.dest_path))
        src_tracked = self._is_relevant(src)
        dest_tracked = self._is_relevant(dest)

        if src_tracked and not dest_tracked:
            self._apply(lambda: self.detector.delete_file(src), f"move of {src}")
        elif dest_tracked and not src_tracked:
            # Editors that save through a temporary file
            self._apply(lambda: self.detector.add_file(dest), f"move to {dest}")
        elif src_tracked and dest_tracked:
            self._apply(lambda: self._move(src, dest), f"move of {src} to {dest}")

    def _move(self, src: Path, dest: Path) -> None:
        if path_to_code_type(self.root, src) != path_to_code_type(self.root, dest):
            # Records never change category
            self.detector.delete_file(src)
            self.detector.add_file(dest)
            return
        if self.detector.rename_file(src, dest) is None:
            self.detector.add_file(dest)
        else:
            self.detector.update_file(dest)


def start_observer(root: Path, detector: ChangeDetector):
    """Start watching a project in a background thread.

    Returns:
        The running watchdog observer; call ``stop()`` and ``join()`` on it
    """
    observer = Observer()
    observer.schedule(ProjectEventHandler(detector, root), str(root), recursive=True)
    observer.start()
    logger.info(f"Watching {root}")
    return observer


def watch_project(
    root: Path,
    detector: ChangeDetector,
    stop_event: Optional[threading.Event] = None,
) -> None:
    """Watch a project until interrupted or ``stop_event`` is set."""
    observer = start_observer(root, detector)
    try:
        while observer.is_alive():
            if stop_event is not None and stop_event.is_set():
                break
            time.sleep(0.5)
    except KeyboardInterrupt:
        logger.info("Stopping watcher")
    finally:
        observer.stop()
        observer.join()
