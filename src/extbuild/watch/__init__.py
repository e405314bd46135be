"""
extbuild watch mode.

Sequences filesystem changes into partial builds and reports each one on a
single, in-place updated terminal line.
"""

from extbuild.watch.debouncer import WatchDebouncer, WatchEvent, next_sequence
from extbuild.watch.notifier import HotReloadNotifier, format_message

__all__ = [
    "HotReloadNotifier",
    "WatchDebouncer",
    "WatchEvent",
    "format_message",
    "next_sequence",
]
