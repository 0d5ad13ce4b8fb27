"""In-memory puller and pusher.

Handy for tests, for small lookup tables defined in code, and as a
destination when inspecting what a migration would write.
"""

from collections.abc import Sized
from typing import Any, Iterable, Iterator, List, Optional

from migration.interfaces import Puller, Pusher

_UNSET = object()


class IterablePuller(Puller):
    """Pull records from any iterable.

    The count is taken from the iterable when it has a length, unless one
    is given explicitly (pass ``count=None`` to report it as unknown).
    """

    def __init__(self, records: Iterable[Any], count: Any = _UNSET, name: Optional[str] = None) -> None:
        self.records = records
        if count is _UNSET:
            count = len(records) if isinstance(records, Sized) else None
        self._count = count
        if name:
            self.name = name

    def count(self) -> Optional[int]:
        return self._count

    def pull(self) -> Iterator[Any]:
        return iter(self.records)


class ListPusher(Pusher):
    """Append pushed records to a list.

    Attributes:
        records: Every record pushed so far, in order
        batches: Size of every ``push_batch`` call
    """

    def __init__(self, name: Optional[str] = None) -> None:
        self.records: List[Any] = []
        self.batches: List[int] = []
        if name:
            self.name = name

    def push(self, record: Any) -> None:
        self.records.append(record)

    def push_batch(self, records: Iterable[Any]) -> int:
        records = list(records)
        self.records.extend(records)
        self.batches.append(len(records))
        return len(records)
