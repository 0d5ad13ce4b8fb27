"""Structural data model: migrators and migrations.

Both types only compose their parts. Execution logic lives in
``migration.orchestrator``.
"""

from typing import Iterable, Optional, Tuple

from migration.interfaces import Executor, Puller, Pusher, Task
from migration.utils import describe


class Migrator:
    """One pull/transform/push unit of a migration.

    Owns exactly one puller, one pusher and one executor, fixed at
    construction.
    """

    __slots__ = ("_puller", "_pusher", "_executor", "_name")

    def __init__(
        self,
        puller: Puller,
        pusher: Pusher,
        executor: Executor,
        name: Optional[str] = None,
    ) -> None:
        self._puller = puller
        self._pusher = pusher
        self._executor = executor
        self._name = name

    @property
    def puller(self) -> Puller:
        return self._puller

    @property
    def pusher(self) -> Pusher:
        return self._pusher

    @property
    def executor(self) -> Executor:
        return self._executor

    @property
    def name(self) -> str:
        """Identity used in progress reports and failure messages."""
        if self._name:
            return self._name
        return f"{describe(self._puller)} -> {describe(self._pusher)}"

    def __repr__(self) -> str:
        return f"Migrator({self.name!r})"


class Migration:
    """An ordered unit of work: before tasks, migrators, after tasks.

    The three sequences are copied into tuples at construction and never
    change afterwards. Insertion order is execution order.
    """

    __slots__ = ("_migrators", "_before_tasks", "_after_tasks")

    def __init__(
        self,
        migrators: Iterable[Migrator] = (),
        before_tasks: Iterable[Task] = (),
        after_tasks: Iterable[Task] = (),
    ) -> None:
        self._migrators: Tuple[Migrator, ...] = tuple(migrators)
        self._before_tasks: Tuple[Task, ...] = tuple(before_tasks)
        self._after_tasks: Tuple[Task, ...] = tuple(after_tasks)

    @property
    def migrators(self) -> Tuple[Migrator, ...]:
        return self._migrators

    @property
    def before_tasks(self) -> Tuple[Task, ...]:
        return self._before_tasks

    @property
    def after_tasks(self) -> Tuple[Task, ...]:
        return self._after_tasks

    def is_empty(self) -> bool:
        """Return True when there is nothing at all to run."""
        return not (self._migrators or self._before_tasks or self._after_tasks)

    def __repr__(self) -> str:
        return (
            f"Migration(before_tasks={len(self._before_tasks)}, "
            f"migrators={len(self._migrators)}, "
            f"after_tasks={len(self._after_tasks)})"
        )
