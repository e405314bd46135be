"""Persistent build state for extbuild."""

from .cache import Cache
from .style_usage_cache import StyleUsageCache

__all__ = [
    "Cache",
    "StyleUsageCache",
]
