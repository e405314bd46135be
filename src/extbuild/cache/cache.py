"""Cache directory management for extbuild projects.

This module provides the on-disk layout for the state extbuild keeps between
runs: the persisted style usage record, bundler metafiles, the watcher's PID
lock and the log file.

Cache Structure:
    .extbuild/
    ├── style-usage.json        # Source path -> style class tokens
    ├── metafiles/
    │   └── esbuild_{id}.json   # Bundler metafile, removed after each run
    ├── watch.pid               # PID of the running watcher
    └── extbuild.log            # Rotating log file

The directory lives in the project by default and can be moved with the
EXTBUILD_CACHE_DIR environment variable.
"""

import os
import shutil
from pathlib import Path
from typing import Optional


class Cache:
    """Manages the extbuild cache directory structure.

    The cache can be located in the project directory (.extbuild/) or in a
    location specified by the EXTBUILD_CACHE_DIR environment variable.
    """

    def __init__(self, project_dir: Optional[Path] = None):
        """Initialize cache manager.

        Args:
            project_dir: Project directory. If None, uses current directory.
        """
        if project_dir is None:
            project_dir = Path.cwd()

        self.project_dir = Path(project_dir).resolve()

        cache_env = os.environ.get("EXTBUILD_CACHE_DIR")
        if cache_env:
            self.cache_root = Path(cache_env).resolve()
        else:
            self.cache_root = self.project_dir / ".extbuild"

    @property
    def style_usage_file(self) -> Path:
        """Persisted style class usage record."""
        return self.cache_root / "style-usage.json"

    @property
    def metafiles_dir(self) -> Path:
        """Directory for bundler metafiles."""
        return self.cache_root / "metafiles"

    @property
    def watch_pid_file(self) -> Path:
        """PID lock file of the running watcher."""
        return self.cache_root / "watch.pid"

    @property
    def log_file(self) -> Path:
        """Rotating log file."""
        return self.cache_root / "extbuild.log"

    def ensure_directories(self) -> None:
        """Create all cache directories if they don't exist."""
        for directory in [self.cache_root, self.metafiles_dir]:
            directory.mkdir(parents=True, exist_ok=True)

    def clean_build(self, out_dir: Path) -> None:
        """Remove an output tree and leftover bundler metafiles.

        Args:
            out_dir: Output directory to remove
        """
        out_dir = Path(out_dir)
        if out_dir.exists():
            shutil.rmtree(out_dir)
        if self.metafiles_dir.exists():
            shutil.rmtree(self.metafiles_dir)
