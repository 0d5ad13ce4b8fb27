"""Migration run orchestration.

Runs one migration end to end:

    before tasks -> migrators (one executor sequence each) -> after tasks

Everything runs sequentially on the calling thread. The first failure
stops the run: remaining tasks and migrators are skipped, the run moves to
FAILED with the identity of the failing step, and the original exception
is re-raised to the caller.

Example usage:
    orchestrator = Orchestrator(registry, reporter=LoggingProgressReporter())
    run = orchestrator.run("users_sync")
    assert run.state is RunState.COMPLETED
"""

from datetime import datetime
from typing import Optional

from migration.exceptions import LookupFailure
from migration.interfaces import Task
from migration.logging_config import create_logger, log_exception
from migration.model import Migration, Migrator
from migration.progress import DEFAULT_TASK_RESULT, MigratorProgress, ProgressReporter
from migration.registry import MigrationRegistry
from migration.state import FailedStep, MigrationRun, Phase, RunState, state_for
from migration.utils import describe

logger = create_logger(__name__)


class Orchestrator:
    """Drive migration runs resolved from a registry.

    Attributes:
        registry: Registry the migrations are looked up in
        reporter: Receives progress events; defaults to a silent reporter
    """

    def __init__(
        self,
        registry: MigrationRegistry,
        reporter: Optional[ProgressReporter] = None,
    ) -> None:
        self.registry = registry
        self.reporter = reporter or ProgressReporter()

    def run(self, migration_name: str) -> MigrationRun:
        """
        Resolve ``migration_name`` and run it.

        :param migration_name: Registered name of the migration
        :return: The completed run
        :raises LookupFailure: If the name is not registered; nothing runs
        """
        migration = self.registry.get(migration_name)
        if migration is None:
            logger.error(f'No migration registered with the name "{migration_name}".')
            raise LookupFailure(migration_name)

        return self.execute(migration, migration_name)

    def execute(self, migration: Migration, migration_name: str) -> MigrationRun:
        """
        Run ``migration`` and return its run record.

        The exception that stopped a failed run is re-raised unchanged; the
        run record is attached to it as ``migration_run``.
        """
        run = MigrationRun(migration_name=migration_name, started_at=datetime.now())
        self.reporter.run_started(run, migration)
        step: Optional[FailedStep] = None

        try:
            run.transition(RunState.RUNNING_BEFORE_TASKS)
            for index, task in enumerate(migration.before_tasks):
                step = FailedStep(Phase.BEFORE_TASKS, index, describe(task))
                self._run_task(run, Phase.BEFORE_TASKS, index, task)

            run.transition(RunState.RUNNING_MIGRATORS)
            for index, migrator in enumerate(migration.migrators):
                step = FailedStep(Phase.MIGRATORS, index, migrator.name)
                self._run_migrator(run, index, migrator)

            run.transition(RunState.RUNNING_AFTER_TASKS)
            for index, task in enumerate(migration.after_tasks):
                step = FailedStep(Phase.AFTER_TASKS, index, describe(task))
                self._run_task(run, Phase.AFTER_TASKS, index, task)

            run.transition(RunState.COMPLETED)

        except BaseException as e:
            run.finished_at = datetime.now()
            run.fail(step, e)
            e.migration_run = run
            log_exception(logger, e, context=f'migration "{migration_name}", step {step}')
            self.reporter.run_failed(run, e)
            raise

        run.finished_at = datetime.now()
        logger.debug(
            f'Migration "{migration_name}" completed: '
            f"{run.total_pushed} items in {run.duration:.2f}s"
        )
        self.reporter.run_completed(run)
        return run

    def _run_task(self, run: MigrationRun, phase: Phase, index: int, task: Task) -> None:
        if run.state is not state_for(phase):
            raise RuntimeError(f"Cannot run {phase.value} while {run.state.value}")

        self.reporter.task_started(phase, index, task)
        result = task.execute()
        result = DEFAULT_TASK_RESULT if result is None else str(result)
        run.task_results.append((phase, index, result))
        self.reporter.task_finished(phase, index, task, result)

    def _run_migrator(self, run: MigrationRun, index: int, migrator: Migrator) -> None:
        puller = migrator.puller
        progress = MigratorProgress(total=puller.count())
        run.pushed.append(0)
        self.reporter.migrator_started(index, migrator, progress)

        for delta in migrator.executor.execute(puller, migrator.pusher):
            progress.advance(delta)
            run.pushed[index] = progress.pushed
            self.reporter.migrator_advanced(index, migrator, delta, progress)

        progress.finish()
        if progress.count_mismatch:
            logger.debug(
                f'"{migrator.name}" announced {progress.total} items '
                f"but pushed {progress.pushed}"
            )
        self.reporter.migrator_finished(index, migrator, progress)
