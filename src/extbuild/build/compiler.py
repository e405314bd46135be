"""Abstract base classes for compilation components.

This module defines the interface for the script bundler and the stylesheet
compiler so the orchestrator can drive any implementation (esbuild, sass,
or test doubles) the same way.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional


@dataclass
class CompileOptions:
    """Options passed to the script compiler.

    Attributes:
        out_dir: Output root for compiled artifacts
        root_dir: Source root; output paths mirror entries relative to it
        sourcemap: 'none' or 'external'
        minify: Minify output (release builds)
        loaders: File extension -> loader mode table
        defines: Compile-time constant replacements
    """

    out_dir: Path
    root_dir: Optional[Path] = None
    sourcemap: str = "none"
    minify: bool = False
    loaders: Dict[str, str] = field(default_factory=dict)
    defines: Dict[str, str] = field(default_factory=dict)


@dataclass
class CompileResult:
    """Result of a script compilation."""

    success: bool
    diagnostics: List[str] = field(default_factory=list)
    artifacts: List[Path] = field(default_factory=list)
    module_count: int = 0


@dataclass
class StyleCompileResult:
    """Result of a stylesheet compilation."""

    success: bool
    diagnostics: List[str] = field(default_factory=list)
    outputs: List[Path] = field(default_factory=list)


class CompilerError(Exception):
    """Base exception for script compilation errors."""
    pass


class StyleCompilerError(Exception):
    """Base exception for stylesheet compilation errors."""
    pass


class ICompiler(ABC):
    """Interface for script/markup compilers."""

    @abstractmethod
    def compile(self, entry_paths: List[Path], options: CompileOptions) -> CompileResult:
        """Compile entry points into the output root.

        Args:
            entry_paths: Entry source files
            options: Compile options

        Returns:
            CompileResult; compiler-reported errors give success=False

        Raises:
            CompilerError: If the compiler could not be run at all
        """
        pass


class IStyleCompiler(ABC):
    """Interface for stylesheet compilers."""

    @abstractmethod
    def output_path_for(self, source_path: Path) -> Path:
        """Deterministic output path for a stylesheet source."""
        pass

    @abstractmethod
    def compile(self, source_paths: List[Path]) -> StyleCompileResult:
        """Compile stylesheets into the output root.

        Args:
            source_paths: Stylesheet sources

        Returns:
            StyleCompileResult

        Raises:
            StyleCompilerError: If the compiler could not be run at all
        """
        pass
