"""Asset Copier.

This module copies static assets and markup into the output tree.

Design:
    - Static assets keep their structure relative to the static root
      (public/icons/logo.png -> dist/icons/logo.png)
    - Markup keeps its structure relative to the source root and has its
      script/style references rewritten to the compiled outputs
      (<script src="popup/index.tsx"> -> <script src="popup/index.js">)
    - Stylesheet references point at <out_dir>/<stem>.css, where the style
      compiler writes them
"""

import os
import re
import shutil
from pathlib import Path
from typing import List

from tqdm import tqdm

from .classifier import SCRIPT_EXTENSIONS, STYLE_EXTENSIONS, is_under

REFERENCE_PATTERN = re.compile(
    r"""(?P<attr>\b(?:src|href)\s*=\s*)(?P<quote>["'])(?P<ref>[^"'?#]+?)(?P<ext>\.[A-Za-z]+)(?P=quote)"""
)


class AssetCopyError(Exception):
    """Raised when copying into the output tree fails."""
    pass


class AssetCopier:
    """Copies static and markup files into the output root.

    This class handles:
    - Mapping source paths to destination paths
    - Copying static files verbatim (with metadata)
    - Rewriting markup references to compiled outputs
    """

    def __init__(self, src_dir: Path, static_dir: Path, out_dir: Path, show_progress: bool = True):
        """Initialize asset copier.

        Args:
            src_dir: Source root (markup destinations are relative to it)
            static_dir: Static-assets root
            out_dir: Output root
            show_progress: Whether to show a progress bar for bulk copies
        """
        self.src_dir = Path(src_dir)
        self.static_dir = Path(static_dir)
        self.out_dir = Path(out_dir)
        self.show_progress = show_progress

    def destination_for(self, source_path: Path) -> Path:
        """Map a source path into the output tree.

        Paths under the static root or the source root keep their relative
        structure; anything else lands at the top of the output root.
        """
        source_path = Path(source_path)
        for root in (self.static_dir, self.src_dir):
            if is_under(source_path, root):
                return self.out_dir / source_path.relative_to(root)
        return self.out_dir / source_path.name

    def copy_static(self, source_path: Path) -> Path:
        """Copy one static file.

        Returns:
            Destination path

        Raises:
            AssetCopyError: If the copy fails
        """
        destination = self.destination_for(source_path)
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(source_path, destination)
        except OSError as e:
            raise AssetCopyError(f"Failed to copy {source_path} -> {destination}: {e}") from e
        return destination

    def copy_static_many(self, source_paths: List[Path]) -> List[Path]:
        """Copy static files, showing progress for the whole batch."""
        copied = []
        for source_path in tqdm(
            source_paths,
            desc="Copying static assets",
            unit="file",
            disable=not self.show_progress or not source_paths,
            leave=False,
        ):
            copied.append(self.copy_static(source_path))
        return copied

    def rewrite_markup(self, content: str, destination: Path) -> str:
        """Point script and style references at compiled outputs.

        Args:
            content: Markup text
            destination: Where the markup is written (for relative style paths)

        Returns:
            Rewritten markup
        """

        def replace(match: "re.Match[str]") -> str:
            ext = match.group("ext").lower()
            ref = match.group("ref")
            if "://" in ref or ref.startswith("//"):
                return match.group(0)
            if ext in SCRIPT_EXTENSIONS:
                new_ref = f"{ref}.js"
            elif ext in STYLE_EXTENSIONS:
                stem = Path(ref).name
                target = self.out_dir / f"{stem}.css"
                new_ref = Path(os.path.relpath(target, destination.parent)).as_posix()
            else:
                return match.group(0)
            quote = match.group("quote")
            return f"{match.group('attr')}{quote}{new_ref}{quote}"

        return REFERENCE_PATTERN.sub(replace, content)

    def copy_markup(self, source_path: Path) -> Path:
        """Copy one markup file, rewriting its references.

        Returns:
            Destination path

        Raises:
            AssetCopyError: If reading or writing fails
        """
        destination = self.destination_for(source_path)
        try:
            content = Path(source_path).read_text(encoding="utf-8")
            destination.parent.mkdir(parents=True, exist_ok=True)
            destination.write_text(self.rewrite_markup(content, destination), encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise AssetCopyError(f"Failed to copy markup {source_path} -> {destination}: {e}") from e
        return destination

    def copy_markup_many(self, source_paths: List[Path]) -> List[Path]:
        """Copy several markup files."""
        return [self.copy_markup(path) for path in source_paths]
