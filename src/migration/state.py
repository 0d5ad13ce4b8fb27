"""Run state tracking for a single migration run."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple


class RunState(str, Enum):
    """States of a migration run."""
    NOT_STARTED = "not_started"
    RUNNING_BEFORE_TASKS = "running_before_tasks"
    RUNNING_MIGRATORS = "running_migrators"
    RUNNING_AFTER_TASKS = "running_after_tasks"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (RunState.COMPLETED, RunState.FAILED)


class Phase(str, Enum):
    """Sections of a migration, in execution order."""
    BEFORE_TASKS = "before_tasks"
    MIGRATORS = "migrators"
    AFTER_TASKS = "after_tasks"


_PHASE_STATES = {
    Phase.BEFORE_TASKS: RunState.RUNNING_BEFORE_TASKS,
    Phase.MIGRATORS: RunState.RUNNING_MIGRATORS,
    Phase.AFTER_TASKS: RunState.RUNNING_AFTER_TASKS,
}

_TRANSITIONS = {
    RunState.NOT_STARTED: {RunState.RUNNING_BEFORE_TASKS},
    RunState.RUNNING_BEFORE_TASKS: {RunState.RUNNING_MIGRATORS, RunState.FAILED},
    RunState.RUNNING_MIGRATORS: {RunState.RUNNING_AFTER_TASKS, RunState.FAILED},
    RunState.RUNNING_AFTER_TASKS: {RunState.COMPLETED, RunState.FAILED},
    RunState.COMPLETED: set(),
    RunState.FAILED: set(),
}


def state_for(phase: Phase) -> RunState:
    return _PHASE_STATES[phase]


@dataclass(frozen=True)
class FailedStep:
    """Identity of the step that stopped a run."""

    phase: Phase
    index: int
    name: str

    def __str__(self) -> str:
        return f"{self.phase.value}[{self.index}] {self.name}"


@dataclass
class MigrationRun:
    """Outcome and state history of one migration run.

    Attributes:
        migration_name: Registered name of the migration being run
        state: Current state
        history: Every state the run went through, in order
        failed_step: Step that stopped the run, when it failed
        error: Exception that stopped the run, when it failed
        pushed: Records pushed per migrator index
        task_results: Result strings per (phase, index)
    """

    migration_name: str
    state: RunState = RunState.NOT_STARTED
    history: List[RunState] = field(default_factory=lambda: [RunState.NOT_STARTED])
    failed_step: Optional[FailedStep] = None
    error: Optional[BaseException] = None
    pushed: List[int] = field(default_factory=list)
    task_results: List[Tuple[Phase, int, str]] = field(default_factory=list)
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    def transition(self, new_state: RunState) -> None:
        """Move to ``new_state``, enforcing the allowed transitions.

        A run over an empty migration still passes through every running
        state on its way to COMPLETED.
        """
        if new_state not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"Invalid run transition {self.state.value} -> {new_state.value}")
        self.state = new_state
        self.history.append(new_state)

    def fail(self, step: Optional[FailedStep], error: BaseException) -> None:
        self.failed_step = step
        self.error = error
        self.transition(RunState.FAILED)

    @property
    def succeeded(self) -> bool:
        return self.state is RunState.COMPLETED

    @property
    def total_pushed(self) -> int:
        return sum(self.pushed)

    @property
    def duration(self) -> float:
        """Run duration in seconds, 0 if not started."""
        if self.started_at is None:
            return 0.0
        end = self.finished_at or datetime.now()
        return (end - self.started_at).total_seconds()
