"""
Watch event sequencing.

Turns raw filesystem change notifications into WatchEvents carrying a
per-path repeat counter: the counter restarts at 0 whenever the changed path
differs from the previous one and goes up by one for each repeat of the same
path. There is no time window; every raw event yields its own build.

Example:
    A, A, B, A  ->  0, 1, 0, 0
"""

import fnmatch
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Union

DEFAULT_SUPPRESSED = ("build.ts", "builder.ts", "extbuild.ini")


@dataclass(frozen=True)
class WatchEvent:
    """A sequenced change to one path."""

    path: Path
    sequence: int


def next_sequence(previous_path: Optional[Path], previous_counter: int, new_path: Path) -> int:
    """Counter for new_path given the previous path and counter."""
    if previous_path is not None and previous_path == new_path:
        return previous_counter + 1
    return 0


class WatchDebouncer:
    """Thread-safe per-path repeat counter for watch events.

    Paths whose file name matches one of the suppressed patterns (the build
    tooling's own files) are dropped without touching the counter, so that
    editing the tooling never triggers a rebuild loop.
    """

    def __init__(self, suppressed: Iterable[str] = DEFAULT_SUPPRESSED):
        self.suppressed = tuple(suppressed)
        self.last_path: Optional[Path] = None
        self.counter = 0
        self._lock = threading.Lock()

    def is_suppressed(self, path: Path) -> bool:
        return any(fnmatch.fnmatch(path.name, pattern) for pattern in self.suppressed)

    def on_fs_event(self, path: Union[str, Path]) -> Optional[WatchEvent]:
        """
        Sequence one raw change event.

        Args:
            path: Changed path as reported by the watcher

        Returns:
            WatchEvent, or None for suppressed paths
        """
        path = Path(path)
        if self.is_suppressed(path):
            return None

        with self._lock:
            self.counter = next_sequence(self.last_path, self.counter, path)
            self.last_path = path
            return WatchEvent(path=path, sequence=self.counter)
