"""
Build system components for extbuild.

This module provides the build system implementation including:
- Source classification and discovery
- Script bundling (esbuild) and stylesheet compilation (sass)
- Static asset and markup copying
- Build orchestration, reporting and release packaging
"""

from .archive_creator import ArchiveCreator, ArchiveError
from .asset_copier import AssetCopier, AssetCopyError
from .build_report import BuildReport, BuildReportEntry
from .bundler import EsbuildCompiler
from .classifier import ActionKind, SourceFile, classify
from .compiler import (
    CompileOptions,
    CompileResult,
    CompilerError,
    ICompiler,
    IStyleCompiler,
    StyleCompileResult,
    StyleCompilerError,
)
from .orchestrator import (
    BuildOrchestrator,
    BuildOrchestratorError,
    BuildResult,
    BuildTask,
    TaskStatus,
)
from .source_scanner import SourceScanner
from .style_compiler import SassCompiler

__all__ = [
    "ActionKind",
    "ArchiveCreator",
    "ArchiveError",
    "AssetCopier",
    "AssetCopyError",
    "BuildOrchestrator",
    "BuildOrchestratorError",
    "BuildReport",
    "BuildReportEntry",
    "BuildResult",
    "BuildTask",
    "CompileOptions",
    "CompileResult",
    "CompilerError",
    "EsbuildCompiler",
    "ICompiler",
    "IStyleCompiler",
    "SassCompiler",
    "SourceFile",
    "SourceScanner",
    "StyleCompileResult",
    "StyleCompilerError",
    "TaskStatus",
    "classify",
]
