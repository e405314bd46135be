"""
Hot reload status lines.

Prints one line per finished partial build. The first rebuild of a path
starts a new line; repeat rebuilds of the same path (sequence > 0) return
the cursor and clear the line so that a file saved over and over does not
scroll the terminal. Every line carries its sequence number.
"""

import sys
import threading
import time
from pathlib import Path
from typing import Optional, TextIO, Union

from extbuild.cli_utils import ErrorFormatter

CLEAR_LINE = "\r\x1b[2K"


def format_message(
    output_path: Union[str, Path],
    sequence: int,
    timestamp: float,
    success: bool = True,
    color: bool = False,
) -> str:
    """Format a hot reload status line (no cursor control, no newline)."""
    clock = time.strftime("%H:%M:%S", time.localtime(timestamp))
    if success:
        mark, verb, tint = "✓", "Reloaded", ErrorFormatter.GREEN
    else:
        mark, verb, tint = "✗", "Failed", ErrorFormatter.RED
    if color:
        mark = f"{tint}{mark}{ErrorFormatter.RESET}"
    return f"[{clock}] {mark} {verb} {Path(output_path).as_posix()} #{sequence}"


class HotReloadNotifier:
    """Writes hot reload status lines to a terminal stream."""

    def __init__(self, stream: Optional[TextIO] = None, color: Optional[bool] = None):
        """
        Args:
            stream: Output stream (default: sys.stdout)
            color: Use ANSI colours (default: when stream is a TTY)
        """
        self.stream = stream if stream is not None else sys.stdout
        if color is None:
            color = bool(getattr(self.stream, "isatty", lambda: False)())
        self.color = color
        self._lock = threading.Lock()
        self._line_open = False

    def notify(
        self,
        output_path: Union[str, Path],
        sequence: int,
        timestamp: Optional[float] = None,
        success: bool = True,
    ) -> str:
        """
        Write the status line for one partial build.

        Args:
            output_path: Output (or source) path the build produced
            sequence: Per-path repeat counter from the debouncer
            timestamp: Completion time (default: now)
            success: Whether the partial build succeeded

        Returns:
            The message that was written
        """
        if timestamp is None:
            timestamp = time.time()
        message = format_message(output_path, sequence, timestamp, success, self.color)

        with self._lock:
            if sequence == 0:
                prefix = "\n" if self._line_open else ""
            else:
                prefix = CLEAR_LINE
            self.stream.write(prefix + message)
            self.stream.flush()
            self._line_open = True

        return message

    def end_line(self) -> None:
        """Terminate the open status line so other output starts on a fresh one."""
        with self._lock:
            if self._line_open:
                self.stream.write("\n")
                self.stream.flush()
                self._line_open = False

    def close(self) -> None:
        self.end_line()
