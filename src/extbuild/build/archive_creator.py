"""Archive Creator.

This module packages a finished output tree into a zip archive suitable for
uploading to an extension store.

Design:
    - Stores paths relative to the output root
    - Leaves out source maps
    - Writes to a temporary file and renames, so a failed run never leaves a
      truncated archive behind
"""

import zipfile
from pathlib import Path

from .build_report import format_size


class ArchiveError(Exception):
    """Raised when archive creation fails."""
    pass


class ArchiveCreator:
    """Creates release archives from an output tree."""

    def __init__(self, show_progress: bool = True):
        """Initialize archive creator.

        Args:
            show_progress: Whether to print the created archive size
        """
        self.show_progress = show_progress

    def create_archive(self, output_root: Path, archive_path: Path) -> Path:
        """Zip the output tree.

        Args:
            output_root: Output tree to package
            archive_path: Path for the .zip file

        Returns:
            Path to the archive

        Raises:
            ArchiveError: If the tree is missing or empty, or writing fails
        """
        output_root = Path(output_root)
        if not output_root.is_dir():
            raise ArchiveError(f"Output directory not found: {output_root}")

        files = sorted(
            path for path in output_root.rglob("*") if path.is_file() and path.suffix != ".map"
        )
        if not files:
            raise ArchiveError(f"No files to package in {output_root}")

        archive_path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = archive_path.with_suffix(".zip.tmp")

        try:
            with zipfile.ZipFile(temp_path, "w", compression=zipfile.ZIP_DEFLATED) as archive:
                for path in files:
                    archive.write(path, path.relative_to(output_root).as_posix())
            temp_path.replace(archive_path)
        except KeyboardInterrupt:
            temp_path.unlink(missing_ok=True)
            raise
        except (OSError, zipfile.BadZipFile) as e:
            temp_path.unlink(missing_ok=True)
            raise ArchiveError(f"Failed to create archive {archive_path.name}: {e}") from e

        if self.show_progress:
            print(f"✓ Created {archive_path.name} from {len(files)} files ({format_size(archive_path.stat().st_size)})")

        return archive_path
