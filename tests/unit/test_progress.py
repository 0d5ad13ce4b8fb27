"""Unit tests for progress tracking, reporters and run state."""

from unittest.mock import MagicMock

import pytest

from migration.model import Migration
from migration.progress import (
    CompositeProgressReporter,
    LoggingProgressReporter,
    MigratorProgress,
    ProgressReporter,
)
from migration.state import FailedStep, MigrationRun, Phase, RunState, state_for
from migration.tasks import CallableTask
from migration.utils import describe, format_remaining


# ============================================================================
# MigratorProgress Tests
# ============================================================================

@pytest.mark.unit
class TestMigratorProgress:
    """Test per-migrator progress accounting."""

    def test_advance(self):
        """Test deltas accumulate."""
        progress = MigratorProgress(total=100)

        progress.advance(40)
        progress.advance(10)

        assert progress.pushed == 50
        assert progress.steps == 2
        assert progress.percent == 50.0

    def test_unknown_total(self):
        """Test percent and remaining are unknown without a total."""
        progress = MigratorProgress()
        progress.advance(10)

        assert progress.percent is None
        assert progress.remaining is None
        assert not progress.count_mismatch

    def test_remaining_estimate(self):
        """Test the remaining time is extrapolated from elapsed time."""
        progress = MigratorProgress(total=200, pushed=50, start_time=0.0, end_time=10.0)

        assert progress.duration == 10.0
        assert progress.remaining == pytest.approx(30.0)

    def test_overshoot(self):
        """Test pushing more than announced caps percent and flags a mismatch."""
        progress = MigratorProgress(total=10, pushed=15)

        assert progress.percent == 100.0
        assert progress.remaining == 0.0
        assert progress.count_mismatch

    def test_finish_freezes_duration(self):
        """Test finish records the end time."""
        progress = MigratorProgress(start_time=5.0)

        progress.finish()

        assert progress.end_time is not None
        assert progress.duration == progress.end_time - 5.0


# ============================================================================
# Reporter Tests
# ============================================================================

@pytest.mark.unit
class TestLoggingProgressReporter:
    """Test rendering of progress events as log lines."""

    @pytest.fixture
    def log(self):
        return MagicMock()

    def test_format_progress_without_total(self):
        """Test the progress line without a known total."""
        progress = MigratorProgress(pushed=50)

        assert LoggingProgressReporter.format_progress(progress) == "Migrated items: 50"

    def test_format_progress_with_total(self):
        """Test the progress line with total, percent and remaining time."""
        progress = MigratorProgress(total=200, pushed=50, start_time=0.0, end_time=10.0)

        line = LoggingProgressReporter.format_progress(progress)

        assert line == "Migrated items: 50 / 200 ( 25%) [Remaining: 00:30 min]"

    def test_format_progress_before_first_delta(self):
        """Test the remaining time is a dash before anything was pushed."""
        progress = MigratorProgress(total=200)

        assert LoggingProgressReporter.format_progress(progress).endswith("[Remaining: -]")

    def test_headers(self, log):
        """Test section headers are logged once per section."""
        reporter = LoggingProgressReporter(log=log)
        task = CallableTask(lambda: None, name="create_schema")
        migration = Migration(before_tasks=[task, task])
        run = MigrationRun(migration_name="users_sync")

        reporter.run_started(run, migration)
        reporter.task_started(Phase.BEFORE_TASKS, 0, task)
        reporter.task_finished(Phase.BEFORE_TASKS, 0, task, "OK")
        reporter.task_started(Phase.BEFORE_TASKS, 1, task)

        messages = [c.args[0] for c in log.info.call_args_list]
        assert messages == [
            'Starting "users_sync" migration: 0 migrators',
            "Before tasks: 2",
            " create_schema : OK",
        ]

    def test_run_completed(self, log):
        """Test the success line."""
        LoggingProgressReporter(log=log).run_completed(MigrationRun(migration_name="users_sync"))

        log.info.assert_called_once_with("Migrated successfully !")

    def test_run_failed(self, log):
        """Test the failure line names the failing step."""
        run = MigrationRun(migration_name="users_sync")
        run.failed_step = FailedStep(Phase.MIGRATORS, 0, "users")

        LoggingProgressReporter(log=log).run_failed(run, RuntimeError("boom"))

        log.error.assert_called_once_with('Migration "users_sync" failed at migrators[0] users: boom')


@pytest.mark.unit
class TestCompositeProgressReporter:
    """Test event fan-out."""

    def test_forwards_to_every_reporter(self):
        """Test every reporter receives every event in order."""
        first, second = MagicMock(), MagicMock()
        reporter = CompositeProgressReporter([first, second])
        run = MigrationRun(migration_name="users_sync")

        reporter.run_started(run, Migration())
        reporter.run_completed(run)

        for mock in (first, second):
            assert [c[0] for c in mock.method_calls] == ["run_started", "run_completed"]

    def test_base_reporter_is_silent(self):
        """Test the base reporter accepts every event."""
        reporter = ProgressReporter()
        run = MigrationRun(migration_name="users_sync")

        reporter.run_started(run, Migration())
        reporter.migrator_advanced(0, None, 10, MigratorProgress())
        reporter.run_failed(run, RuntimeError())


# ============================================================================
# Run State Tests
# ============================================================================

@pytest.mark.unit
class TestMigrationRun:
    """Test the run state machine."""

    def test_initial_state(self):
        """Test a new run has not started."""
        run = MigrationRun(migration_name="users_sync")

        assert run.state is RunState.NOT_STARTED
        assert run.history == [RunState.NOT_STARTED]
        assert run.duration == 0.0

    def test_states_cannot_be_skipped(self):
        """Test a run cannot jump from NOT_STARTED to RUNNING_MIGRATORS."""
        run = MigrationRun(migration_name="users_sync")

        with pytest.raises(RuntimeError, match="Invalid run transition"):
            run.transition(RunState.RUNNING_MIGRATORS)

    def test_terminal_states_are_final(self):
        """Test nothing follows COMPLETED."""
        run = MigrationRun(migration_name="users_sync")
        for state in (
            RunState.RUNNING_BEFORE_TASKS,
            RunState.RUNNING_MIGRATORS,
            RunState.RUNNING_AFTER_TASKS,
            RunState.COMPLETED,
        ):
            run.transition(state)

        assert run.state.is_terminal
        with pytest.raises(RuntimeError):
            run.transition(RunState.FAILED)

    def test_fail(self):
        """Test fail records the step and the error."""
        run = MigrationRun(migration_name="users_sync")
        run.transition(RunState.RUNNING_BEFORE_TASKS)
        error = RuntimeError("boom")

        run.fail(FailedStep(Phase.BEFORE_TASKS, 0, "create_schema"), error)

        assert run.state is RunState.FAILED
        assert run.error is error
        assert not run.succeeded

    def test_state_for_phase(self):
        """Test each phase maps to its running state."""
        assert state_for(Phase.BEFORE_TASKS) is RunState.RUNNING_BEFORE_TASKS
        assert state_for(Phase.MIGRATORS) is RunState.RUNNING_MIGRATORS
        assert state_for(Phase.AFTER_TASKS) is RunState.RUNNING_AFTER_TASKS


# ============================================================================
# Utility Tests
# ============================================================================

@pytest.mark.unit
class TestUtils:
    """Test display helpers."""

    @pytest.mark.parametrize(
        "seconds,expected",
        [(0, "00:00 min"), (59.6, "01:00 min"), (90, "01:30 min"), (-3, "00:00 min"), (3725, "62:05 min")],
    )
    def test_format_remaining(self, seconds, expected):
        """Test remaining durations are rendered as mm:ss."""
        assert format_remaining(seconds) == expected

    def test_describe_uses_name(self):
        """Test describe prefers a string name attribute."""
        assert describe(CallableTask(lambda: None, name="create_schema")) == "create_schema"

    def test_describe_falls_back_to_class(self):
        """Test describe uses the class name when there is no name."""
        assert describe(object()) == "object"
