"""
Command-line interface for extbuild.

This module provides the `extbuild` CLI tool for building browser extensions.
"""

import argparse
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from extbuild import __version__
from extbuild.build import (
    ArchiveCreator,
    ArchiveError,
    BuildOrchestrator,
    BuildOrchestratorError,
    BuildReport,
    CompilerError,
    EsbuildCompiler,
    SassCompiler,
    StyleCompilerError,
)
from extbuild.cache import Cache, StyleUsageCache
from extbuild.cli_utils import ErrorFormatter, PathValidator, setup_logging
from extbuild.config import VALID_ENVS, BuildEnvironment, ProjectConfig, ProjectConfigError
from extbuild.watch import HotReloadNotifier, WatchDebouncer
from extbuild.watch.watcher import Watcher, WatchLock, WatchLockError


@dataclass
class BuildArgs:
    """Arguments for the build command."""

    project_dir: Path
    environment: Optional[str] = None
    clean: bool = False
    package: bool = True
    verbose: bool = False


@dataclass
class WatchArgs:
    """Arguments for the watch command."""

    project_dir: Path
    environment: Optional[str] = None
    verbose: bool = False


def create_orchestrator(
    config: ProjectConfig,
    environment: BuildEnvironment,
    cache: Cache,
    verbose: bool = False,
    notifier: Optional[HotReloadNotifier] = None,
) -> BuildOrchestrator:
    """Wire the orchestrator to the esbuild and sass adapters."""
    compiler = EsbuildCompiler(
        project_dir=config.project_dir,
        metafiles_dir=cache.metafiles_dir,
        executable=config.bundler,
        show_progress=verbose,
    )
    style_compiler = SassCompiler(
        project_dir=config.project_dir,
        out_dir=config.out_dir,
        executable=config.style_compiler,
        minify=environment.minify,
        show_progress=verbose,
    )
    usage_cache = StyleUsageCache(cache.style_usage_file, project_dir=config.project_dir)
    return BuildOrchestrator(
        config=config,
        environment=environment,
        compiler=compiler,
        style_compiler=style_compiler,
        usage_cache=usage_cache,
        notifier=notifier,
        verbose=verbose,
    )


def load_environment(project_dir: Path, env_name: Optional[str], watch: bool) -> Tuple[ProjectConfig, BuildEnvironment]:
    """Load extbuild.ini and resolve the environment, exiting on errors."""
    try:
        config = ProjectConfig.load(project_dir)
        environment = config.get_environment(env_name, watch=watch)
    except ProjectConfigError as e:
        ErrorFormatter.handle_config_error(e)
        raise  # handle_config_error exits
    return config, environment


def package_output(config: ProjectConfig, environment: BuildEnvironment, verbose: bool = False) -> Optional[Path]:
    """Zip the output tree into release/<out_dir>-<env>.zip.

    Returns:
        Archive path, or None for watch builds (never packaged)
    """
    if not environment.release:
        return None
    archive_path = config.project_dir / "release" / f"{config.out_dir.name}-{environment.name}.zip"
    ArchiveCreator(show_progress=verbose).create_archive(config.out_dir, archive_path)
    return archive_path


def build_command(args: BuildArgs) -> None:
    """Run a full build.

    Examples:
        extbuild build                  # Build with the default environment
        extbuild build -e prod          # Release build for prod
        extbuild build --clean          # Remove dist/ and the usage cache first
        extbuild build --no-package     # Skip the release zip
    """
    print(f"extbuild v{__version__}")
    print()

    config, environment = load_environment(args.project_dir, args.environment, watch=False)
    cache = Cache(config.project_dir)
    cache.ensure_directories()
    setup_logging(cache.log_file, args.verbose)

    try:
        orchestrator = create_orchestrator(config, environment, cache, verbose=args.verbose)

        if args.clean:
            print(f"Cleaning {config.out_dir}...")
            cache.clean_build(config.out_dir)
            orchestrator.usage_cache.reset()

        print(f"Building environment: {environment.name}...")
        result = orchestrator.run_full()

        if not result.success:
            ErrorFormatter.print_error("Build failed!", result.message)
            sys.exit(1)

        archive_path = package_output(config, environment, args.verbose) if args.package else None

        ErrorFormatter.print_success("Build successful!")
        print()
        BuildReport.print_report(
            result.report or [],
            config.out_dir,
            result.module_count,
            result.build_time,
            archive_path,
        )
        sys.exit(0)

    except (BuildOrchestratorError, CompilerError, StyleCompilerError, ArchiveError) as e:
        ErrorFormatter.print_error("Build failed!", str(e))
        sys.exit(1)
    except PermissionError as e:
        ErrorFormatter.handle_permission_error(e)
    except KeyboardInterrupt:
        ErrorFormatter.handle_keyboard_interrupt()
    except Exception as e:
        ErrorFormatter.handle_unexpected_error(e, args.verbose)


def watch_command(args: WatchArgs) -> None:
    """Build once, then rebuild changed files until interrupted.

    Examples:
        extbuild watch                  # Watch with the default environment
        extbuild watch -e stage         # Watch with stage settings
    """
    print(f"extbuild v{__version__} (watch)")
    print()

    config, environment = load_environment(args.project_dir, args.environment, watch=True)
    cache = Cache(config.project_dir)
    cache.ensure_directories()
    setup_logging(cache.log_file, args.verbose)

    lock = WatchLock(cache.watch_pid_file)
    try:
        lock.acquire()
    except WatchLockError as e:
        ErrorFormatter.print_error("Watch already running", str(e))
        sys.exit(1)

    notifier = HotReloadNotifier()
    orchestrator = create_orchestrator(config, environment, cache, verbose=args.verbose, notifier=notifier)
    watcher = Watcher(
        orchestrator,
        WatchDebouncer(config.ignore),
        [config.src_dir, config.static_dir],
        workers=config.watch_workers,
    )

    try:
        print(f"Building environment: {environment.name}...")
        try:
            result = orchestrator.run_full()
        except (BuildOrchestratorError, CompilerError, StyleCompilerError) as e:
            ErrorFormatter.print_error("Initial build failed!", str(e))
        else:
            if result.success:
                ErrorFormatter.print_success("Build successful!")
                print()
                BuildReport.print_report(result.report or [], config.out_dir, result.module_count, result.build_time)
            else:
                ErrorFormatter.print_error("Initial build failed!", result.message)

        watcher.start()
        watched = ", ".join(d.name for d in watcher.watch_dirs)
        print(f"Watching {watched} for changes. Press Ctrl+C to stop.")
        watcher.run_forever()

    except KeyboardInterrupt:
        print()
        print("Shutting down watchers...")
    finally:
        watcher.stop()
        notifier.close()
        lock.release()

    sys.exit(0)


def main() -> None:
    """extbuild - Browser extension asset builder."""
    parser = argparse.ArgumentParser(
        prog="extbuild",
        description="extbuild - Browser extension asset builder",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"extbuild {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    env_help = f"Build environment: {' | '.join(VALID_ENVS)} (default: from extbuild.ini, else dev)"

    # Build command
    build_parser = subparsers.add_parser(
        "build",
        help="Run a full build",
    )
    build_parser.add_argument(
        "project_dir",
        nargs="?",
        type=Path,
        default=Path.cwd(),
        help="Project directory (default: current directory)",
    )
    build_parser.add_argument(
        "-e",
        "--environment",
        default=None,
        help=env_help,
    )
    build_parser.add_argument(
        "-c",
        "--clean",
        action="store_true",
        help="Remove the output tree and style usage cache before building",
    )
    build_parser.add_argument(
        "--no-package",
        action="store_true",
        help="Do not create the release zip",
    )
    build_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show verbose build output",
    )

    # Watch command
    watch_parser = subparsers.add_parser(
        "watch",
        help="Build, then rebuild changed files with hot reload",
    )
    watch_parser.add_argument(
        "project_dir",
        nargs="?",
        type=Path,
        default=Path.cwd(),
        help="Project directory (default: current directory)",
    )
    watch_parser.add_argument(
        "-e",
        "--environment",
        default=None,
        help=env_help,
    )
    watch_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show verbose output",
    )

    parsed_args = parser.parse_args()

    if not parsed_args.command:
        parser.print_help()
        sys.exit(0)

    PathValidator.validate_project_dir(parsed_args.project_dir)

    if parsed_args.command == "build":
        build_command(
            BuildArgs(
                project_dir=parsed_args.project_dir,
                environment=parsed_args.environment,
                clean=parsed_args.clean,
                package=not parsed_args.no_package,
                verbose=parsed_args.verbose,
            )
        )
    elif parsed_args.command == "watch":
        watch_command(
            WatchArgs(
                project_dir=parsed_args.project_dir,
                environment=parsed_args.environment,
                verbose=parsed_args.verbose,
            )
        )


if __name__ == "__main__":
    main()
