"""Progress reporting, separate from execution logic.

The orchestrator emits events to a ``ProgressReporter``. How those events
are rendered (log lines, progress bars, an audit database) is up to the
reporter. ``LoggingProgressReporter`` renders them as plain log lines.
"""

import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable, List, Optional

from migration.logging_config import create_logger
from migration.state import Phase
from migration.utils import describe, format_remaining

if TYPE_CHECKING:
    from migration.interfaces import Task
    from migration.model import Migration, Migrator
    from migration.state import MigrationRun

logger = create_logger(__name__)

DEFAULT_TASK_RESULT = "OK"


@dataclass
class MigratorProgress:
    """Track pushed records for one migrator.

    ``total`` is what the puller advertised and may be None (unknown) or
    simply wrong; nothing here treats a mismatch as an error.
    """

    total: Optional[int] = None
    pushed: int = 0
    steps: int = 0
    start_time: float = field(default_factory=time.monotonic)
    end_time: Optional[float] = None

    def advance(self, delta: int) -> None:
        self.pushed += delta
        self.steps += 1

    def finish(self) -> "MigratorProgress":
        self.end_time = time.monotonic()
        return self

    @property
    def duration(self) -> float:
        """Elapsed seconds since the migrator started."""
        end = self.end_time if self.end_time is not None else time.monotonic()
        return end - self.start_time

    @property
    def percent(self) -> Optional[float]:
        """Percentage complete (0-100), None when the total is unknown."""
        if not self.total:
            return None
        return min(100.0, self.pushed / self.total * 100)

    @property
    def remaining(self) -> Optional[float]:
        """Estimated seconds left, None when it cannot be estimated."""
        if not self.total or not self.pushed:
            return None
        left = max(0, self.total - self.pushed)
        return self.duration / self.pushed * left

    @property
    def count_mismatch(self) -> bool:
        """True when more records were pushed than the puller advertised."""
        return self.total is not None and self.pushed > self.total


class ProgressReporter:
    """Receive run, task and migrator events from the orchestrator.

    Every hook is a no-op here; subclasses override what they render.
    """

    def run_started(self, run: "MigrationRun", migration: "Migration") -> None:
        pass

    def task_started(self, phase: Phase, index: int, task: "Task") -> None:
        pass

    def task_finished(self, phase: Phase, index: int, task: "Task", result: str) -> None:
        pass

    def migrator_started(self, index: int, migrator: "Migrator", progress: MigratorProgress) -> None:
        pass

    def migrator_advanced(
        self, index: int, migrator: "Migrator", delta: int, progress: MigratorProgress
    ) -> None:
        pass

    def migrator_finished(self, index: int, migrator: "Migrator", progress: MigratorProgress) -> None:
        pass

    def run_completed(self, run: "MigrationRun") -> None:
        pass

    def run_failed(self, run: "MigrationRun", error: BaseException) -> None:
        pass


class CompositeProgressReporter(ProgressReporter):
    """Forward every event to several reporters, in order."""

    def __init__(self, reporters: Iterable[ProgressReporter]) -> None:
        self.reporters: List[ProgressReporter] = list(reporters)

    def run_started(self, run, migration):
        for reporter in self.reporters:
            reporter.run_started(run, migration)

    def task_started(self, phase, index, task):
        for reporter in self.reporters:
            reporter.task_started(phase, index, task)

    def task_finished(self, phase, index, task, result):
        for reporter in self.reporters:
            reporter.task_finished(phase, index, task, result)

    def migrator_started(self, index, migrator, progress):
        for reporter in self.reporters:
            reporter.migrator_started(index, migrator, progress)

    def migrator_advanced(self, index, migrator, delta, progress):
        for reporter in self.reporters:
            reporter.migrator_advanced(index, migrator, delta, progress)

    def migrator_finished(self, index, migrator, progress):
        for reporter in self.reporters:
            reporter.migrator_finished(index, migrator, progress)

    def run_completed(self, run):
        for reporter in self.reporters:
            reporter.run_completed(run)

    def run_failed(self, run, error):
        for reporter in self.reporters:
            reporter.run_failed(run, error)


class LoggingProgressReporter(ProgressReporter):
    """Render progress as plain log lines."""

    def __init__(self, log=None) -> None:
        self.log = log or logger
        self._migration = None

    def run_started(self, run, migration):
        self._migration = migration
        self.log.info(
            f'Starting "{run.migration_name}" migration: '
            f"{len(migration.migrators)} migrators"
        )

    def task_started(self, phase, index, task):
        if index == 0 and self._migration is not None:
            tasks = getattr(self._migration, phase.value)
            title = "Before tasks" if phase is Phase.BEFORE_TASKS else "After tasks"
            self.log.info(f"{title}: {len(tasks)}")
        self.log.debug(f" {describe(task)} : ...")

    def task_finished(self, phase, index, task, result):
        self.log.info(f" {describe(task)} : {result}")

    def migrator_started(self, index, migrator, progress):
        if index == 0 and self._migration is not None:
            self.log.info(f"Migrators: {len(self._migration.migrators)}")
        if progress.total is None:
            self.log.info(f'{index} - Executing "{migrator.name}" :')
        else:
            self.log.info(f'{index} - Executing "{migrator.name}" [{progress.total} items] :')

    def migrator_advanced(self, index, migrator, delta, progress):
        self.log.info(self.format_progress(progress))

    def migrator_finished(self, index, migrator, progress):
        if progress.total is not None and progress.pushed != progress.total:
            self.log.debug(
                f'"{migrator.name}" pushed {progress.pushed} items, '
                f"{progress.total} were announced"
            )
        self.log.info(
            f'"{migrator.name}" done: {progress.pushed} items in {progress.duration:.2f}s'
        )

    def run_completed(self, run):
        self.log.info("Migrated successfully !")

    def run_failed(self, run, error):
        step = run.failed_step or "run"
        self.log.error(f'Migration "{run.migration_name}" failed at {step}: {error}')

    @staticmethod
    def format_progress(progress: MigratorProgress) -> str:
        """Format a progress line, with a total and ETA when one is known."""
        if progress.total is None:
            return f"Migrated items: {progress.pushed}"

        line = f"Migrated items: {progress.pushed} / {progress.total}"
        if progress.percent is not None:
            line += f" ({progress.percent:3.0f}%)"
        remaining = progress.remaining
        line += f" [Remaining: {format_remaining(remaining) if remaining is not None else '-'}]"
        return line
