"""
Source file classification.

Maps a source path to the build action it needs. Classification looks only at
the file extension and at whether the path sits under the static-assets
directory, so it never touches the filesystem.

Rules (first match wins):
1. Style source (.scss, .sass, .css)       -> STYLE
2. Script source (.ts, .tsx, .js, ...)     -> SCRIPT
3. Markup (.html, .htm)                    -> MARKUP
4. Anything under the static-assets root   -> STATIC_ASSET
5. Everything else                         -> UNKNOWN
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path, PurePath
from typing import Union

STYLE_EXTENSIONS = frozenset({".scss", ".sass", ".css"})
SCRIPT_EXTENSIONS = frozenset({".ts", ".tsx", ".js", ".jsx", ".mts", ".cts", ".mjs", ".cjs"})
MARKUP_EXTENSIONS = frozenset({".html", ".htm"})

DEFAULT_STATIC_DIR = Path("public")


class ActionKind(Enum):
    """Build action required for a source file."""

    SCRIPT = "script"
    MARKUP = "markup"
    STYLE = "style"
    STATIC_ASSET = "static_asset"
    UNKNOWN = "unknown"


def is_under(path: Union[str, PurePath], root: Union[str, PurePath]) -> bool:
    """Check whether path is rooted under root (lexically, no resolving)."""
    path_parts = PurePath(path).parts
    root_parts = PurePath(root).parts
    if not root_parts or len(path_parts) <= len(root_parts):
        return False
    return path_parts[: len(root_parts)] == root_parts


def classify(path: Union[str, PurePath], static_dir: Union[str, PurePath] = DEFAULT_STATIC_DIR) -> ActionKind:
    """
    Classify a source path into an ActionKind.

    Args:
        path: Source path, relative to the project root or absolute
        static_dir: Static-assets root, in the same form as path

    Returns:
        The ActionKind for the path. Never raises.
    """
    suffix = PurePath(path).suffix.lower()

    if suffix in STYLE_EXTENSIONS:
        return ActionKind.STYLE
    if suffix in SCRIPT_EXTENSIONS:
        return ActionKind.SCRIPT
    if suffix in MARKUP_EXTENSIONS:
        return ActionKind.MARKUP
    if is_under(path, static_dir):
        return ActionKind.STATIC_ASSET
    return ActionKind.UNKNOWN


@dataclass(frozen=True)
class SourceFile:
    """A source path together with its classification."""

    path: Path
    kind: ActionKind = field(compare=False)

    @classmethod
    def from_path(cls, path: Union[str, PurePath], static_dir: Union[str, PurePath] = DEFAULT_STATIC_DIR) -> "SourceFile":
        """Classify path and wrap it."""
        return cls(path=Path(path), kind=classify(path, static_dir))
