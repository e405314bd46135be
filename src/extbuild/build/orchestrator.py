"""
Build orchestration for extbuild projects.

This module decides what to build and runs it, in one of two modes:

- Full build: classify every source, then bundle scripts, copy markup and
  compile stylesheets concurrently. Once all three have settled, copy static
  assets and scan the output tree for the size report. Any failed branch
  aborts the build before static copying and reporting.
- Partial build: rebuild one changed file. A script whose style class usage
  changed (per the StyleUsageCache) first triggers a recompile of every
  stylesheet in the source tree, then the script itself is bundled. Failures
  are caught and reported, never raised, so the watcher keeps running.

The cascade is all-or-nothing: any change in one script's class usage
recompiles every stylesheet, never a targeted subset.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Tuple, Union

from ..cache.style_usage_cache import StyleUsageCache
from ..config.project_config import BuildEnvironment, ProjectConfig
from .asset_copier import AssetCopier
from .build_report import BuildReport, BuildReportEntry
from .classifier import ActionKind, SourceFile, classify, is_under
from .compiler import CompileOptions, ICompiler, IStyleCompiler
from .source_scanner import SourceScanner


class TaskStatus(Enum):
    """Lifecycle of a build task."""

    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class BuildTask:
    """One unit of work inside a build (compile, copy, ...)."""

    task_id: str
    kind: ActionKind
    status: TaskStatus = TaskStatus.PENDING
    diagnostics: List[str] = field(default_factory=list)
    outputs: List[Path] = field(default_factory=list)


@dataclass
class BuildPlan:
    """Full build inputs partitioned by how they are built."""

    script_family: List[Path] = field(default_factory=list)
    static_scripts: List[Path] = field(default_factory=list)
    markup: List[Path] = field(default_factory=list)
    style: List[Path] = field(default_factory=list)
    static: List[Path] = field(default_factory=list)


@dataclass
class BuildResult:
    """Result of a full or partial build."""

    success: bool
    mode: str
    tasks: List[BuildTask] = field(default_factory=list)
    outputs: List[Path] = field(default_factory=list)
    report: Optional[List[BuildReportEntry]] = None
    module_count: int = 0
    build_time: float = 0.0
    message: str = ""

    @property
    def diagnostics(self) -> List[str]:
        """All task diagnostics, in task order."""
        return [line for task in self.tasks for line in task.diagnostics]


class BuildOrchestratorError(Exception):
    """Exception raised for build orchestration errors."""
    pass


TaskBody = Callable[[BuildTask], bool]


class BuildOrchestrator:
    """
    Schedules compile and copy subtasks for full and partial builds.

    Collaborators are injected so tests can substitute doubles:
    - compiler: bundles scripts (and anything unclassified)
    - style_compiler: compiles stylesheets
    - usage_cache: style class usage record shared by all builds
    - copier: static and markup copying
    - scanner: source tree discovery (for the full input set and cascades)
    - notifier: hot reload status lines for partial builds
    """

    def __init__(
        self,
        config: ProjectConfig,
        environment: BuildEnvironment,
        compiler: ICompiler,
        style_compiler: IStyleCompiler,
        usage_cache: StyleUsageCache,
        copier: Optional[AssetCopier] = None,
        scanner: Optional[SourceScanner] = None,
        notifier=None,
        verbose: bool = False,
    ):
        self.config = config
        self.environment = environment
        self.compiler = compiler
        self.style_compiler = style_compiler
        self.usage_cache = usage_cache
        self.copier = copier or AssetCopier(
            config.src_dir, config.static_dir, config.out_dir, show_progress=verbose
        )
        self.scanner = scanner or SourceScanner([config.src_dir, config.static_dir], config.static_dir)
        self.notifier = notifier
        self.verbose = verbose

    def compile_options(self, root_dir: Optional[Path] = None) -> CompileOptions:
        """Compiler options for the current environment.

        Args:
            root_dir: Root the output tree mirrors (default: the source root)
        """
        return CompileOptions(
            out_dir=self.config.out_dir,
            root_dir=root_dir or self.config.src_dir,
            sourcemap=self.environment.sourcemap,
            minify=self.environment.minify,
            loaders=dict(self.config.loaders),
            defines=dict(self.environment.defines),
        )

    def resolve(self, path: Union[str, Path]) -> Path:
        """Make a path absolute against the project root."""
        path = Path(path)
        if not path.is_absolute():
            path = self.config.project_dir / path
        return path

    def classify(self, path: Union[str, Path]) -> ActionKind:
        return classify(self.resolve(path), self.config.static_dir)

    def partition(self, paths: List[Path]) -> BuildPlan:
        """
        Partition full build inputs.

        - script_family: SCRIPT, MARKUP and UNKNOWN outside the static root
        - static_scripts: SCRIPT under the static root (public/background.ts
          is bundled to dist/background.js, as a partial build does)
        - markup: every MARKUP path
        - style: every STYLE path
        - static: everything else under the static root, copied verbatim
        """
        plan = BuildPlan()
        for path in paths:
            source = SourceFile.from_path(self.resolve(path), self.config.static_dir)
            under_static = is_under(source.path, self.config.static_dir)

            if source.kind == ActionKind.STYLE:
                plan.style.append(source.path)
            elif source.kind == ActionKind.MARKUP:
                plan.markup.append(source.path)
                if not under_static:
                    plan.script_family.append(source.path)
            elif under_static and source.kind == ActionKind.SCRIPT:
                plan.static_scripts.append(source.path)
            elif under_static:
                plan.static.append(source.path)
            else:
                plan.script_family.append(source.path)
        return plan

    # ------------------------------------------------------------------
    # Full build
    # ------------------------------------------------------------------

    def run_full(self, all_source_paths: Optional[List[Path]] = None) -> BuildResult:
        """
        Run a full build.

        Args:
            all_source_paths: Every source path, or None to scan the source roots

        Returns:
            BuildResult; success=False with report=None if any branch failed

        Raises:
            BuildOrchestratorError: If there is nothing to build
        """
        start_time = time.time()
        if all_source_paths is None:
            all_source_paths = self.scanner.scan()
        if not all_source_paths:
            raise BuildOrchestratorError(
                f"No source files found in {self.config.src_dir} or {self.config.static_dir}"
            )

        plan = self.partition(all_source_paths)
        logging.info(
            f"Full build ({self.environment.name}): {len(plan.script_family)} script-family, "
            f"{len(plan.static_scripts)} static script, "
            f"{len(plan.markup)} markup, {len(plan.style)} style, {len(plan.static)} static"
        )

        module_counts: List[int] = []
        jobs: List[Tuple[BuildTask, TaskBody]] = []
        script_entries = plan.script_family + plan.static_scripts
        if script_entries:
            jobs.append((
                BuildTask("compile-scripts", ActionKind.SCRIPT),
                lambda task: self._compile_scripts(task, script_entries, module_counts),
            ))
        if plan.markup:
            jobs.append((
                BuildTask("copy-markup", ActionKind.MARKUP),
                lambda task: self._copy_markup(task, plan.markup),
            ))
        if plan.style:
            jobs.append((
                BuildTask("compile-styles", ActionKind.STYLE),
                lambda task: self._compile_styles(task, plan.style),
            ))

        tasks = self.run_concurrently(jobs)
        module_count = sum(module_counts)

        failed = [task for task in tasks if task.status == TaskStatus.FAILED]
        if failed:
            return self._full_failure(tasks, failed, module_count, start_time)

        if plan.static:
            static_task = BuildTask("copy-static", ActionKind.STATIC_ASSET)
            self.run_task(static_task, lambda task: self._copy_static(task, plan.static))
            tasks.append(static_task)
            if static_task.status == TaskStatus.FAILED:
                return self._full_failure(tasks, [static_task], module_count, start_time)

        report: List[BuildReportEntry] = []
        try:
            report = BuildReport.summarize(self.config.out_dir)
        except OSError as e:
            logging.warning(f"Could not summarize {self.config.out_dir}: {e}")

        build_time = time.time() - start_time
        logging.info(f"Full build succeeded in {build_time:.2f}s")
        return BuildResult(
            success=True,
            mode="full",
            tasks=tasks,
            outputs=[path for task in tasks for path in task.outputs],
            report=report,
            module_count=module_count,
            build_time=build_time,
            message="Build successful",
        )

    def _full_failure(
        self, tasks: List[BuildTask], failed: List[BuildTask], module_count: int, start_time: float
    ) -> BuildResult:
        names = ", ".join(task.task_id for task in failed)
        logging.warning(f"Full build failed in: {names}")
        details = [line for task in failed for line in task.diagnostics]
        message = f"Build failed in {names}"
        if details:
            message += ":\n" + "\n".join(details)
        return BuildResult(
            success=False,
            mode="full",
            tasks=tasks,
            report=None,
            module_count=module_count,
            build_time=time.time() - start_time,
            message=message,
        )

    # ------------------------------------------------------------------
    # Partial build
    # ------------------------------------------------------------------

    def run_partial(self, changed_path: Union[str, Path], sequence: int = 0) -> BuildResult:
        """
        Rebuild a single changed file.

        Never raises for build errors; failures are logged and returned.
        Emits exactly one notifier message when a notifier is set.

        Args:
            changed_path: The changed source path
            sequence: Per-path repeat counter from the watcher

        Returns:
            BuildResult for the partial build
        """
        start_time = time.time()
        path = self.resolve(changed_path)
        kind = classify(path, self.config.static_dir)
        logging.info(f"Partial build #{sequence}: {path} ({kind.value})")

        tasks: List[BuildTask] = []
        try:
            if kind == ActionKind.STYLE:
                tasks.append(self._partial_task("compile-style", kind, lambda t: self._compile_styles(t, [path])))
            elif kind == ActionKind.SCRIPT:
                tasks.extend(self._partial_script(path))
            elif kind == ActionKind.MARKUP:
                tasks.append(self._partial_task("copy-markup", kind, lambda t: self._copy_markup(t, [path])))
            elif kind == ActionKind.STATIC_ASSET:
                tasks.append(self._partial_task("copy-static", kind, lambda t: self._copy_static(t, [path])))
            else:
                tasks.append(self._partial_task("compile-unknown", kind, lambda t: self._compile_scripts(t, [path])))
        except KeyboardInterrupt:
            raise
        except Exception as e:
            logging.warning(f"Partial build of {path} raised {type(e).__name__}: {e}", exc_info=True)
            error_task = BuildTask("partial-build", kind, TaskStatus.FAILED, [f"{type(e).__name__}: {e}"])
            tasks.append(error_task)

        success = all(task.status == TaskStatus.SUCCEEDED for task in tasks)
        outputs = [output for task in tasks for output in task.outputs]
        result = BuildResult(
            success=success,
            mode="partial",
            tasks=tasks,
            outputs=outputs,
            build_time=time.time() - start_time,
            message="Rebuilt" if success else f"Rebuild of {path.name} failed",
        )

        if not success:
            if self.notifier is not None:
                self.notifier.end_line()
            logging.error(f"Error running build for {self._display_path(path).as_posix()}:")
            for line in result.diagnostics:
                logging.error(f"  {line}")

        if self.notifier is not None:
            # The last task builds the changed file itself; cascade outputs come first
            final_outputs = tasks[-1].outputs if tasks else []
            self.notifier.notify(self._notify_path(path, final_outputs), sequence, time.time(), success=success)

        return result

    def _partial_script(self, path: Path) -> List[BuildTask]:
        """Style usage check, optional full style cascade, then the script."""
        tasks = []
        cascade: List[bool] = []

        def check_usage(task: BuildTask) -> bool:
            source_text = path.read_text(encoding="utf-8")
            tokens = StyleUsageCache.extract_tokens(source_text)
            cascade.append(self.usage_cache.has_changed(path, tokens))
            return True

        tasks.append(self._partial_task("style-usage", ActionKind.SCRIPT, check_usage))

        if cascade and cascade[0]:
            style_paths = self.scanner.scan_kind(ActionKind.STYLE)
            if style_paths:
                logging.info(f"Style class usage changed; recompiling {len(style_paths)} stylesheet(s)")
                tasks.append(self._partial_task(
                    "compile-styles", ActionKind.STYLE, lambda t: self._compile_styles(t, style_paths)
                ))

        tasks.append(self._partial_task(
            "compile-script", ActionKind.SCRIPT, lambda t: self._compile_scripts(t, [path])
        ))
        return tasks

    def _partial_task(self, task_id: str, kind: ActionKind, body: TaskBody) -> BuildTask:
        task = BuildTask(task_id, kind)
        self.run_task(task, body)
        return task

    def _notify_path(self, changed_path: Path, outputs: List[Path]) -> Path:
        """Pick the path shown in the hot reload line."""
        for output in outputs:
            if not BuildReport.is_excluded(output):
                return self._display_path(output)
        return self._display_path(changed_path)

    def _display_path(self, path: Path) -> Path:
        try:
            return path.relative_to(self.config.project_dir)
        except ValueError:
            return path

    # ------------------------------------------------------------------
    # Task execution
    # ------------------------------------------------------------------

    def run_task(self, task: BuildTask, body: TaskBody) -> BuildTask:
        """
        Run a task body, recording status and diagnostics.

        Exceptions from the body mark the task FAILED; KeyboardInterrupt
        propagates.
        """
        task.status = TaskStatus.RUNNING
        try:
            ok = body(task)
        except KeyboardInterrupt:
            raise
        except Exception as e:
            logging.warning(f"Task {task.task_id} raised {type(e).__name__}: {e}")
            task.diagnostics.append(f"{type(e).__name__}: {e}")
            ok = False
        task.status = TaskStatus.SUCCEEDED if ok else TaskStatus.FAILED
        return task

    def run_concurrently(self, jobs: List[Tuple[BuildTask, TaskBody]]) -> List[BuildTask]:
        """
        Fan out tasks on a thread pool and wait for every one to settle.

        Returns:
            The tasks, in submission order
        """
        if not jobs:
            return []

        with ThreadPoolExecutor(max_workers=len(jobs), thread_name_prefix="extbuild-task") as executor:
            futures = [executor.submit(self.run_task, task, body) for task, body in jobs]
            wait(futures)

        # run_task only lets KeyboardInterrupt escape
        for future in futures:
            future.result()
        return [task for task, _ in jobs]

    # ------------------------------------------------------------------
    # Task bodies
    # ------------------------------------------------------------------

    def _compile_scripts(self, task: BuildTask, entries: List[Path], module_counts: Optional[List[int]] = None) -> bool:
        # Entries under the static root mirror it, everything else mirrors the source root
        static_entries = [path for path in entries if is_under(path, self.config.static_dir)]
        other_entries = [path for path in entries if not is_under(path, self.config.static_dir)]

        ok = True
        for root_dir, group in ((self.config.src_dir, other_entries), (self.config.static_dir, static_entries)):
            if not group:
                continue
            result = self.compiler.compile(group, self.compile_options(root_dir))
            task.diagnostics.extend(result.diagnostics)
            task.outputs.extend(result.artifacts)
            if module_counts is not None:
                module_counts.append(result.module_count)
            ok = ok and result.success
        return ok

    def _compile_styles(self, task: BuildTask, sources: List[Path]) -> bool:
        result = self.style_compiler.compile(sources)
        task.diagnostics.extend(result.diagnostics)
        task.outputs.extend(result.outputs)
        return result.success

    def _copy_markup(self, task: BuildTask, sources: List[Path]) -> bool:
        task.outputs.extend(self.copier.copy_markup_many(sources))
        return True

    def _copy_static(self, task: BuildTask, sources: List[Path]) -> bool:
        task.outputs.extend(self.copier.copy_static_many(sources))
        return True
