"""
extbuild watch mode - partial rebuilds on file changes.

The watcher:

1. Holds a per-project PID lock so only one watcher runs per project
2. Observes the source and static roots recursively (watchdog)
3. Sequences each change through the WatchDebouncer
4. Runs every sequenced event as an independent partial build on a thread
   pool; builds for different files may overlap, and a newer event for the
   same file never cancels a running build

Architecture:
    watchdog Observer -> BuildEventHandler -> WatchDebouncer
                                                   |
                                                   v
                             ThreadPoolExecutor -> BuildOrchestrator.run_partial
                                                   |
                                                   v
                                            HotReloadNotifier
"""

import logging
import os
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Callable, List, Optional

import psutil
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from extbuild.build.orchestrator import BuildOrchestrator, BuildResult
from extbuild.watch.debouncer import WatchDebouncer, WatchEvent


class WatchLockError(Exception):
    """Raised when another watcher already owns the project."""
    pass


class WatchLock:
    """PID file lock for one watcher per project.

    A lock file whose PID is no longer alive is treated as stale and
    replaced.
    """

    def __init__(self, pid_file: Path):
        self.pid_file = Path(pid_file)
        self._held = False

    def read_pid(self) -> int | None:
        """PID recorded in the lock file, or None if absent or unreadable."""
        try:
            return int(self.pid_file.read_text().strip())
        except (OSError, ValueError):
            return None

    def acquire(self) -> None:
        """
        Take the lock.

        Raises:
            WatchLockError: If a live process holds it
        """
        existing_pid = self.read_pid()
        if existing_pid is not None and existing_pid != os.getpid():
            if psutil.pid_exists(existing_pid):
                raise WatchLockError(f"Another watcher is already running with PID {existing_pid}")
            logging.info(f"Removing stale watch lock for PID {existing_pid}")

        self.pid_file.parent.mkdir(parents=True, exist_ok=True)
        self.pid_file.write_text(str(os.getpid()))
        self._held = True

    def release(self) -> None:
        """Drop the lock if this process holds it."""
        if not self._held:
            return
        if self.read_pid() == os.getpid():
            self.pid_file.unlink(missing_ok=True)
        self._held = False


class BuildEventHandler(FileSystemEventHandler):
    """Feeds file change events from watchdog into the debouncer."""

    def __init__(self, debouncer: WatchDebouncer, dispatch: Callable[[WatchEvent], object]):
        super().__init__()
        self.debouncer = debouncer
        self.dispatch = dispatch

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._handle(event.src_path)

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._handle(event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        # Editors that save via rename report the final name as dest_path
        if not event.is_directory:
            self._handle(event.dest_path)

    def _handle(self, raw_path: str | bytes) -> None:
        path = Path(os.fsdecode(raw_path))
        watch_event = self.debouncer.on_fs_event(path)
        if watch_event is not None:
            logging.debug(f"Change detected: {watch_event.path} #{watch_event.sequence}")
            self.dispatch(watch_event)


class Watcher:
    """Runs partial builds for filesystem changes until stopped."""

    def __init__(
        self,
        orchestrator: BuildOrchestrator,
        debouncer: WatchDebouncer,
        watch_dirs: List[Path],
        workers: int = 4,
        observer_factory: Callable[[], Observer] = Observer,
    ):
        """
        Args:
            orchestrator: Orchestrator running the partial builds
            debouncer: Sequencer for raw change events
            watch_dirs: Directories to observe recursively
            workers: Maximum concurrent partial builds
            observer_factory: watchdog observer constructor
        """
        self.orchestrator = orchestrator
        self.debouncer = debouncer
        self.watch_dirs = [Path(d) for d in watch_dirs]
        self.workers = workers
        self.observer_factory = observer_factory
        self.handler = BuildEventHandler(debouncer, self.dispatch)
        self._executor: Optional[ThreadPoolExecutor] = None
        self._observer: Optional[Observer] = None
        self._stopped = threading.Event()

    def dispatch(self, event: WatchEvent) -> Future[BuildResult]:
        """Submit a partial build for a sequenced event."""
        if self._executor is None:
            raise RuntimeError("Watcher is not running")
        future = self._executor.submit(self.orchestrator.run_partial, event.path, event.sequence)
        future.add_done_callback(self._log_failure)
        return future

    @staticmethod
    def _log_failure(future: Future) -> None:
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logging.error(f"Partial build raised {type(error).__name__}: {error}", exc_info=error)

    def start(self) -> None:
        """Start the build pool and the filesystem observer."""
        self._stopped.clear()
        self._executor = ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="extbuild-partial")
        self._observer = self.observer_factory()

        scheduled = 0
        for directory in self.watch_dirs:
            if not directory.is_dir():
                logging.warning(f"Not watching missing directory {directory}")
                continue
            self._observer.schedule(self.handler, str(directory), recursive=True)
            scheduled += 1

        self._observer.start()
        logging.info(f"Watching {scheduled} director{'y' if scheduled == 1 else 'ies'}")

    def stop(self) -> None:
        """Stop observing and wait for in-flight builds to finish."""
        self._stopped.set()
        if self._observer is not None:
            self._observer.stop()
            self._observer.join()
            self._observer = None
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
        logging.info("Watcher stopped")

    def run_forever(self, poll_interval: float = 1.0) -> None:
        """Block until stop() is called or the process is interrupted."""
        while not self._stopped.is_set():
            time.sleep(poll_interval)
