"""Stylesheet compiler backed by the sass command line.

Each source compiles to <out_dir>/<stem>.css, so output paths depend only on
the source's base name. All sources of one call go through a single sass
invocation using its many-to-many `input:output` form.
"""

import logging
import shutil
import subprocess
from pathlib import Path
from typing import List, Optional

from .compiler import IStyleCompiler, StyleCompileResult, StyleCompilerError


class SassCompiler(IStyleCompiler):
    """Compiles .scss/.sass/.css sources with dart-sass."""

    def __init__(
        self,
        project_dir: Path,
        out_dir: Path,
        executable: str = "sass",
        minify: bool = False,
        show_progress: bool = False,
    ):
        """Initialize the stylesheet compiler.

        Args:
            project_dir: Project root (working directory, node_modules lookup)
            out_dir: Output root for compiled CSS
            executable: sass command name or path
            minify: Emit compressed CSS
            show_progress: Whether to print each invocation
        """
        self.project_dir = Path(project_dir)
        self.out_dir = Path(out_dir)
        self.executable = executable
        self.minify = minify
        self.show_progress = show_progress
        self._executable_path: Optional[Path] = None

    def find_executable(self) -> Path:
        """Locate sass on PATH or in node_modules/.bin.

        Raises:
            StyleCompilerError: If sass cannot be found
        """
        if self._executable_path is not None:
            return self._executable_path

        found = shutil.which(self.executable)
        if found:
            self._executable_path = Path(found)
            return self._executable_path

        for candidate in [
            self.project_dir / "node_modules" / ".bin" / self.executable,
            self.project_dir / "node_modules" / ".bin" / f"{self.executable}.cmd",
        ]:
            if candidate.exists():
                self._executable_path = candidate
                return candidate

        raise StyleCompilerError(
            f"Style compiler not found: {self.executable}. Install sass or set 'style_compiler' in extbuild.ini."
        )

    def output_path_for(self, source_path: Path) -> Path:
        return self.out_dir / f"{Path(source_path).stem}.css"

    def compile(self, source_paths: List[Path]) -> StyleCompileResult:
        """Compile stylesheets.

        Args:
            source_paths: Stylesheet sources

        Returns:
            StyleCompileResult with the written outputs

        Raises:
            StyleCompilerError: If sass cannot be started
        """
        if not source_paths:
            return StyleCompileResult(success=True)

        executable = self.find_executable()
        self.out_dir.mkdir(parents=True, exist_ok=True)

        outputs = [self.output_path_for(path) for path in source_paths]
        cmd = [str(executable), "--no-source-map"]
        if self.minify:
            cmd.append("--style=compressed")
        cmd.extend(f"{source}:{output}" for source, output in zip(source_paths, outputs))

        if self.show_progress:
            print(f"Compiling {len(source_paths)} stylesheet(s)...")
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
            raise StyleCompilerError(f"Failed to run {executable}: {e}") from e

        diagnostics = [line for line in (result.stderr or "").splitlines() if line.strip()]
        if result.returncode != 0:
            logging.warning(f"sass exited with code {result.returncode}")
            return StyleCompileResult(success=False, diagnostics=diagnostics)

        return StyleCompileResult(success=True, diagnostics=diagnostics, outputs=outputs)
