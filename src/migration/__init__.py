"""Migration package for moving records between systems.

This package contains the execution engine (pullers, pushers, executors,
tasks and the orchestrator that sequences them), the migration registry,
progress reporting, and a few reference connectors.
"""

from migration.context import MigrationContext
from migration.exceptions import (
    ConfigurationError,
    LookupFailure,
    MigrationBaseError,
    MigrationNotFoundError,
    PullFailure,
    PushFailure,
    TaskFailure,
    WriteFailure,
)
from migration.executor import BatchExecutor
from migration.interfaces import Executor, Puller, Pusher, Task
from migration.model import Migration, Migrator
from migration.orchestrator import Orchestrator
from migration.progress import LoggingProgressReporter, MigratorProgress, ProgressReporter
from migration.registry import MigrationRegistry, load_registry
from migration.state import FailedStep, MigrationRun, Phase, RunState

__version__ = "1.0.0"

__all__ = [
    "BatchExecutor",
    "ConfigurationError",
    "Executor",
    "FailedStep",
    "LoggingProgressReporter",
    "LookupFailure",
    "Migration",
    "MigrationBaseError",
    "MigrationContext",
    "MigrationNotFoundError",
    "MigrationRegistry",
    "MigrationRun",
    "Migrator",
    "MigratorProgress",
    "Orchestrator",
    "Phase",
    "ProgressReporter",
    "PullFailure",
    "Puller",
    "PushFailure",
    "Pusher",
    "RunState",
    "Task",
    "TaskFailure",
    "WriteFailure",
    "load_registry",
]
