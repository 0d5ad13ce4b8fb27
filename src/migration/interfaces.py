"""Interfaces implemented by every pluggable migration component.

A migrator is assembled from three of these (a Puller, a Pusher and an
Executor) while before/after steps implement Task.
"""

from abc import ABC, abstractmethod
from typing import Any, Iterable, Iterator, Optional


class Puller(ABC):
    """Produce records from a source.

    ``pull`` returns a lazy, finite iterator. It is consumed at most once:
    a puller is not expected to restart once consumption has begun.
    """

    @abstractmethod
    def pull(self) -> Iterator[Any]:
        """Return a lazy iterator over the source records."""

    def count(self) -> Optional[int]:
        """Return the expected number of records, or None when unknown.

        Must be free of side effects and cheap. Sources that would need a
        full scan to answer return None instead. A returned value is a best
        effort upper bound at the moment execution starts.
        """
        return None


class Pusher(ABC):
    """Write records to a destination."""

    @abstractmethod
    def push(self, record: Any) -> None:
        """Write a single record."""

    def push_batch(self, records: Iterable[Any]) -> int:
        """Write several records and return how many were actually written.

        Implementations backed by a destination with bulk writes should
        override this; the default writes one record at a time.
        """
        written = 0
        for record in records:
            self.push(record)
            written += 1
        return written


class Executor(ABC):
    """Drive the pull/transform/push loop of a single migrator."""

    @abstractmethod
    def execute(self, puller: Puller, pusher: Pusher) -> Iterator[int]:
        """Move records from ``puller`` to ``pusher``.

        Yields the number of records pushed since the previous element.
        Each element is positive; an empty source yields nothing.
        """


class Task(ABC):
    """One-shot setup or teardown step run before or after the migrators."""

    @abstractmethod
    def execute(self) -> Optional[str]:
        """Run the task and return a short result, None meaning "OK"."""
