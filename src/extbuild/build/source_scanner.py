"""
Source file discovery.

This module walks the project's source and static-assets roots and returns
every file the build should consider. The orchestrator uses it for the full
build input set and to find every stylesheet when a style cascade is needed.
"""

import os
from pathlib import Path
from typing import Iterable, List, Optional

from .classifier import ActionKind, classify

EXCLUDED_DIRS = frozenset({"node_modules", "__pycache__"})


class SourceScanner:
    """
    Scans source roots for build inputs.

    Hidden files and directories, node_modules and __pycache__ are skipped.
    Results are sorted so that repeated scans of an unchanged tree return the
    same list.
    """

    def __init__(self, roots: Iterable[Path], static_dir: Path):
        """
        Initialize source scanner.

        Args:
            roots: Directories to scan (typically src/ and public/)
            static_dir: Static-assets root, used for classification
        """
        self.roots = [Path(root) for root in roots]
        self.static_dir = Path(static_dir)

    def scan(self) -> List[Path]:
        """
        Scan all roots.

        Returns:
            Sorted list of file paths; missing roots are skipped
        """
        found = set()
        for root in self.roots:
            if not root.is_dir():
                continue
            for dirpath, dirnames, filenames in os.walk(root):
                dirnames[:] = [
                    d for d in dirnames if not d.startswith(".") and d not in EXCLUDED_DIRS
                ]
                for filename in filenames:
                    if filename.startswith("."):
                        continue
                    found.add(Path(dirpath) / filename)
        return sorted(found)

    def scan_kind(self, kind: ActionKind, paths: Optional[List[Path]] = None) -> List[Path]:
        """
        List files of one kind.

        Args:
            kind: ActionKind to keep
            paths: Pre-scanned paths, or None to scan now

        Returns:
            Sorted paths that classify as kind
        """
        if paths is None:
            paths = self.scan()
        return [path for path in paths if classify(path, self.static_dir) == kind]
