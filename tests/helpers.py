"""Test doubles for migration components.

Every double appends to a shared ``events`` list so tests can assert on
the exact order in which the orchestrator touched each component.
"""

from typing import Any, Iterable, Iterator, List, Optional

from migration.exceptions import PullFailure, PushFailure, TaskFailure
from migration.interfaces import Puller, Pusher, Task


class RecordingPuller(Puller):
    """Puller yielding ``records`` and logging count/pull/next calls."""

    def __init__(
        self,
        name: str,
        records: Iterable[Any],
        events: List[str],
        count: Optional[int] = None,
        fail_after: Optional[int] = None,
    ) -> None:
        self.name = name
        self.records = list(records)
        self.events = events
        self._count = count
        self.fail_after = fail_after
        self.pulled = 0

    def count(self) -> Optional[int]:
        self.events.append(f"{self.name}.count")
        return self._count

    def pull(self) -> Iterator[Any]:
        self.events.append(f"{self.name}.pull")
        for record in self.records:
            if self.fail_after is not None and self.pulled >= self.fail_after:
                raise PullFailure(f"{self.name}: source unreachable")
            self.pulled += 1
            yield record


class RecordingPusher(Pusher):
    """Pusher keeping every written record and logging batches."""

    def __init__(self, name: str, events: List[str], fail_on_batch: Optional[int] = None) -> None:
        self.name = name
        self.events = events
        self.fail_on_batch = fail_on_batch
        self.records: List[Any] = []
        self.batches: List[int] = []

    def push(self, record: Any) -> None:
        self.records.append(record)

    def push_batch(self, records: Iterable[Any]) -> int:
        records = list(records)
        if self.fail_on_batch is not None and len(self.batches) == self.fail_on_batch:
            self.events.append(f"{self.name}.push_failed")
            raise PushFailure(f"{self.name}: destination rejected batch")
        self.events.append(f"{self.name}.push({len(records)})")
        self.records.extend(records)
        self.batches.append(len(records))
        return len(records)


class RecordingTask(Task):
    """Task logging its execution and returning ``result``."""

    def __init__(self, name: str, events: List[str], result: Optional[str] = None, fail: bool = False) -> None:
        self.name = name
        self.events = events
        self.result = result
        self.fail = fail
        self.executed = 0

    def execute(self) -> Optional[str]:
        self.events.append(f"{self.name}.execute")
        self.executed += 1
        if self.fail:
            raise TaskFailure(f"{self.name} failed")
        return self.result
