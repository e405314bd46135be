"""Script bundler backed by esbuild.

This module runs the esbuild command line to bundle script entry points.

Design:
    - Wraps subprocess.run for the esbuild command
    - Resolves esbuild from PATH or the project's node_modules/.bin
    - Reads produced artifacts and module count from an esbuild metafile
      written to the cache directory, never into the output tree
    - Markup entries are left to the markup copy step (esbuild has no
      HTML entry point support)
"""

import json
import logging
import shutil
import subprocess
import uuid
from pathlib import Path
from typing import List, Optional, Tuple

from .classifier import MARKUP_EXTENSIONS
from .compiler import CompileOptions, CompileResult, CompilerError, ICompiler


class EsbuildCompiler(ICompiler):
    """Bundles script entry points with esbuild.

    This class handles:
    - Locating the esbuild executable
    - Translating CompileOptions into esbuild flags
    - Collecting artifacts and diagnostics
    """

    def __init__(
        self,
        project_dir: Path,
        metafiles_dir: Path,
        executable: str = "esbuild",
        show_progress: bool = False,
    ):
        """Initialize the bundler.

        Args:
            project_dir: Project root, used as the esbuild working directory
            metafiles_dir: Directory for temporary metafiles
            executable: esbuild command name or path
            show_progress: Whether to print each invocation
        """
        self.project_dir = Path(project_dir)
        self.metafiles_dir = Path(metafiles_dir)
        self.executable = executable
        self.show_progress = show_progress
        self._executable_path: Optional[Path] = None

    def find_executable(self) -> Path:
        """Locate the esbuild executable.

        Returns:
            Path to esbuild

        Raises:
            CompilerError: If esbuild cannot be found
        """
        if self._executable_path is not None:
            return self._executable_path

        found = shutil.which(self.executable)
        if found:
            self._executable_path = Path(found)
            return self._executable_path

        # Project-local install (npm i -D esbuild)
        for candidate in [
            self.project_dir / "node_modules" / ".bin" / self.executable,
            self.project_dir / "node_modules" / ".bin" / f"{self.executable}.cmd",
        ]:
            if candidate.exists():
                self._executable_path = candidate
                return candidate

        raise CompilerError(
            f"Bundler not found: {self.executable}. Install esbuild or set 'bundler' in extbuild.ini."
        )

    def build_command(self, executable: Path, entry_paths: List[Path], options: CompileOptions, metafile: Path) -> List[str]:
        """Build the esbuild command line.

        Args:
            executable: esbuild path
            entry_paths: Entry points to bundle
            options: Compile options
            metafile: Where esbuild writes its metafile

        Returns:
            Command as a list of arguments
        """
        cmd = [str(executable)]
        cmd.extend(str(path) for path in entry_paths)
        cmd.extend([
            "--bundle",
            "--platform=browser",
            f"--outdir={options.out_dir}",
            f"--metafile={metafile}",
            "--log-level=warning",
        ])
        if options.root_dir is not None:
            cmd.append(f"--outbase={options.root_dir}")
        if options.sourcemap == "external":
            cmd.append("--sourcemap=external")
        if options.minify:
            cmd.append("--minify")
        for ext, mode in sorted(options.loaders.items()):
            cmd.append(f"--loader:{ext}={mode}")
        for key, value in sorted(options.defines.items()):
            cmd.append(f"--define:{key}={value}")
        return cmd

    def compile(self, entry_paths: List[Path], options: CompileOptions) -> CompileResult:
        """Bundle entry points.

        Args:
            entry_paths: Entry source files
            options: Compile options

        Returns:
            CompileResult with artifacts and module count

        Raises:
            CompilerError: If esbuild cannot be started
        """
        entries = [Path(p) for p in entry_paths if Path(p).suffix.lower() not in MARKUP_EXTENSIONS]
        if not entries:
            return CompileResult(success=True)

        executable = self.find_executable()
        self.metafiles_dir.mkdir(parents=True, exist_ok=True)
        metafile = self.metafiles_dir / f"esbuild_{uuid.uuid4().hex}.json"
        cmd = self.build_command(executable, entries, options, metafile)

        if self.show_progress:
            print(f"Bundling {len(entries)} entry point(s)...")
        logging.debug(f"Running: {' '.join(cmd)}")

        try:
            result = subprocess.run(
                cmd,
                cwd=self.project_dir,
                capture_output=True,
                text=True,
            )
        except KeyboardInterrupt:
            raise
        except OSError as e:
            raise CompilerError(f"Failed to run {executable}: {e}") from e

        try:
            diagnostics = [line for line in (result.stderr or "").splitlines() if line.strip()]
            if result.returncode != 0:
                logging.warning(f"esbuild exited with code {result.returncode}")
                return CompileResult(success=False, diagnostics=diagnostics)

            artifacts, module_count = self._read_metafile(metafile)
            return CompileResult(
                success=True,
                diagnostics=diagnostics,
                artifacts=artifacts,
                module_count=module_count,
            )
        finally:
            metafile.unlink(missing_ok=True)

    def _read_metafile(self, metafile: Path) -> Tuple[List[Path], int]:
        """Read output paths and input count from an esbuild metafile."""
        try:
            with open(metafile, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logging.warning(f"Could not read esbuild metafile {metafile}: {e}")
            return [], 0

        artifacts = [self.project_dir / output for output in sorted(data.get("outputs", {}))]
        return artifacts, len(data.get("inputs", {}))
