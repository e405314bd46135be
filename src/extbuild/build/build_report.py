"""Build report utilities for extbuild.

This module scans the output tree after a full build and formats the
artifact size table printed at the end of the build.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

# Debug artifacts that stay on disk but are left out of the summary
EXCLUDED_SUFFIXES = (".map", ".metafile.json")


@dataclass
class BuildReportEntry:
    """One artifact in the output tree."""

    output_path: Path
    size_bytes: int


def format_size(size_bytes: int) -> str:
    """Format a byte count as B, KB or MB."""
    if size_bytes < 1024:
        return f"{size_bytes} B"
    if size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.2f} KB"
    return f"{size_bytes / 1024 / 1024:.2f} MB"


class BuildReport:
    """Utility class for summarizing and printing output tree sizes."""

    @staticmethod
    def is_excluded(path: Path) -> bool:
        """Check whether an artifact is a debug/source-map artifact."""
        return path.name.endswith(EXCLUDED_SUFFIXES)

    @staticmethod
    def summarize(output_root: Path) -> List[BuildReportEntry]:
        """
        Scan the output tree and list artifacts by size.

        Traversal is a sorted walk, so ties on size keep a stable order
        within and across runs.

        Args:
            output_root: Root of the output tree

        Returns:
            Entries sorted by size descending, debug artifacts excluded
        """
        output_root = Path(output_root)
        entries: List[BuildReportEntry] = []
        if not output_root.is_dir():
            return entries

        for dirpath, dirnames, filenames in os.walk(output_root):
            dirnames.sort()
            for filename in sorted(filenames):
                path = Path(dirpath) / filename
                if BuildReport.is_excluded(path):
                    continue
                entries.append(BuildReportEntry(output_path=path, size_bytes=path.stat().st_size))

        entries.sort(key=lambda entry: entry.size_bytes, reverse=True)
        return entries

    @staticmethod
    def render(
        entries: List[BuildReportEntry],
        output_root: Path,
        module_count: int,
        build_time: float,
        archive_path: Optional[Path] = None,
    ) -> str:
        """
        Render the build summary.

        Args:
            entries: Entries from summarize()
            output_root: Root the entry paths are shown relative to
            module_count: Number of modules bundled
            build_time: Total build time in seconds
            archive_path: Packaged archive, if one was produced

        Returns:
            Multi-line summary text
        """
        lines = [f"Bundled {module_count} modules"]
        if entries:
            width = max(len(BuildReport._display_path(entry.output_path, output_root)) for entry in entries)
            for entry in entries:
                name = BuildReport._display_path(entry.output_path, output_root)
                lines.append(f"  {name:<{width}}  {format_size(entry.size_bytes):>10}")
        lines.append(f"Build time: {build_time:.2f}s")
        if archive_path is not None and archive_path.exists():
            lines.append(f"Packaged {archive_path.name}: {format_size(archive_path.stat().st_size)}")
        return "\n".join(lines)

    @staticmethod
    def print_report(
        entries: List[BuildReportEntry],
        output_root: Path,
        module_count: int,
        build_time: float,
        archive_path: Optional[Path] = None,
    ) -> None:
        print(BuildReport.render(entries, output_root, module_count, build_time, archive_path))

    @staticmethod
    def _display_path(path: Path, output_root: Path) -> str:
        try:
            return path.relative_to(output_root).as_posix()
        except ValueError:
            return str(path)
