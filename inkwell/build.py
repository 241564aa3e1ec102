from __future__ import annotations

import enum
import logging
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .cache import AssetStore
from .config import ProjectConfig
from .content import SourceKind, classify, output_path, render_page
from .errors import AssetLoadError, InvalidPath, OutputError, RenderError, SiteError
from .postprocess import minify
from .utils import EntryKind, walk_tree, write_bytes

logger = logging.getLogger(__name__)

MAX_WORKERS = 32


class TaskState(enum.Enum):
    WRITTEN = "written"
    SKIPPED = "skipped"
    FAILED = "failed"


class BuildState(enum.Enum):
    INITIALIZING = "initializing"
    RUNNING = "running"
    COMPLETED = "completed"


@dataclass(frozen=True)
class BuildTask:
    source: Path
    relative: Path
    kind: SourceKind


@dataclass(frozen=True)
class TaskResult:
    source: Path
    kind: SourceKind
    state: TaskState
    output: Optional[Path] = None
    error: Optional[SiteError] = None


@dataclass
class BuildReport:
    results: list[TaskResult] = field(default_factory=list)

    def _with_state(self, state: TaskState) -> list[TaskResult]:
        return [result for result in self.results if result.state is state]

    @property
    def written(self) -> list[TaskResult]:
        return self._with_state(TaskState.WRITTEN)

    @property
    def skipped(self) -> list[TaskResult]:
        return self._with_state(TaskState.SKIPPED)

    @property
    def failed(self) -> list[TaskResult]:
        return self._with_state(TaskState.FAILED)

    @property
    def ok(self) -> bool:
        return not self.failed

    def summary(self) -> list[str]:
        lines = [f"{len(self.written)} written, {len(self.skipped)} skipped, {len(self.failed)} failed."]
        for result in self.failed:
            error = result.error
            lines.append(f"{result.source}: {error.kind}: {error.message}")
        return lines


def resolve_workers(requested: Optional[int]) -> int:
    workers = requested or 0
    if workers <= 0:
        workers = os.cpu_count() or 1
    return max(1, min(workers, MAX_WORKERS))


class Builder:
    def __init__(
        self,
        project: ProjectConfig,
        store: Optional[AssetStore] = None,
        workers: Optional[int] = None,
    ) -> None:
        self.project = project
        self.store = store or AssetStore()
        self.workers = resolve_workers(workers if workers is not None else project.generation.workers)
        self.state = BuildState.INITIALIZING
        self.report: Optional[BuildReport] = None

    def _prepare(self) -> None:
        project = self.project
        self.store.theme(project.resolve_path(project.custom_theme_dir), project.syntax_theme)
        self.store.syntax_set(project.resolve_path(project.syntaxes_dir))
        try:
            project.dest_path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise OutputError(f"cannot create destination directory: {exc}", project.dest_path) from exc

    def discover(self) -> tuple[list[BuildTask], list[TaskResult]]:
        source_root = self.project.source_path
        dest_root = self.project.dest_path.resolve()
        tasks = []
        failures = []
        for path, entry_kind in walk_tree(source_root):
            error: Optional[SiteError] = None
            if entry_kind is EntryKind.CYCLE:
                error = InvalidPath("symlink cycle, entry not followed", path)
            elif entry_kind is EntryKind.UNREADABLE:
                error = AssetLoadError("cannot read directory entry", path)
            else:
                try:
                    resolved = path.resolve()
                except (OSError, RuntimeError) as exc:
                    error = InvalidPath(f"cannot resolve path: {exc}", path)
                else:
                    if resolved.is_relative_to(dest_root):
                        continue
            if error is not None:
                failures.append(TaskResult(path, SourceKind.IGNORED, TaskState.FAILED, error=error))
                continue
            tasks.append(BuildTask(path, path.relative_to(source_root), classify(path)))
        return tasks, failures

    def _read_source(self, task: BuildTask) -> bytes:
        try:
            return task.source.read_bytes()
        except OSError as exc:
            raise AssetLoadError(f"cannot read source: {exc}", task.source) from exc

    def _process(self, task: BuildTask) -> bytes:
        data = self._read_source(task)
        if task.kind is SourceKind.CSS:
            return data
        if task.kind is SourceKind.MARKDOWN:
            try:
                text = data.decode("utf-8")
            except UnicodeDecodeError as exc:
                raise AssetLoadError(f"source is not valid UTF-8: {exc}", task.source) from exc
            data = render_page(text, task.source, self.project, self.store).encode("utf-8")
        if self.project.generation.minify:
            data = minify(data)
        return data

    def run_task(self, task: BuildTask) -> TaskResult:
        if task.kind is SourceKind.IGNORED:
            return TaskResult(task.source, task.kind, TaskState.SKIPPED)
        destination = self.project.dest_path / output_path(task.relative, task.kind)
        try:
            data = self._process(task)
            try:
                write_bytes(destination, data)
            except OSError as exc:
                raise OutputError(f"cannot write output: {exc}", destination) from exc
        except SiteError as exc:
            logger.debug("failed %s: %s", task.source, exc)
            return TaskResult(task.source, task.kind, TaskState.FAILED, error=exc)
        except Exception as exc:
            error = RenderError(f"unexpected error: {exc}", task.source)
            logger.debug("failed %s", task.source, exc_info=True)
            return TaskResult(task.source, task.kind, TaskState.FAILED, error=error)
        logger.debug("wrote %s", destination)
        return TaskResult(task.source, task.kind, TaskState.WRITTEN, output=destination)

    def run(self) -> BuildReport:
        self._prepare()
        self.state = BuildState.RUNNING
        tasks, results = self.discover()
        logger.info("Building %d files with %d workers.", len(tasks), self.workers)
        with ThreadPoolExecutor(max_workers=self.workers) as executor:
            results.extend(executor.map(self.run_task, tasks))
        self.report = BuildReport(sorted(results, key=lambda r: r.source.as_posix()))
        self.state = BuildState.COMPLETED
        return self.report


def build(
    project: ProjectConfig,
    workers: Optional[int] = None,
    store: Optional[AssetStore] = None,
) -> BuildReport:
    return Builder(project, store=store, workers=workers).run()
