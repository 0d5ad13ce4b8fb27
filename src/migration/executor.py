"""Batched streaming executor.

The executor binds one puller to one pusher. It reads a bounded chunk of
records, transforms it, pushes it, and only then hands the number of pushed
records back to the caller. Memory use is bounded by the batch size no
matter how large the source is.

Example usage:
    executor = BatchExecutor(batch_size=500, transform=normalize_user)

    for pushed in executor.execute(puller, pusher):
        total += pushed
"""

from itertools import islice
from typing import Any, Callable, Iterator, List, Optional

from migration import config
from migration.context import MigrationContext
from migration.exceptions import ConfigurationError, ContractViolation
from migration.interfaces import Executor, Puller, Pusher
from migration.logging_config import create_logger
from migration.utils import describe

logger = create_logger(__name__)

# Return None from a transform to drop the record
Transform = Callable[[Any], Optional[Any]]


class BatchExecutor(Executor):
    """Move records in fixed-size batches, yielding one delta per batch.

    Attributes:
        batch_size: Maximum number of records read from the puller per step
        transform: Optional per-record callable; None results are dropped
    """

    def __init__(
        self,
        batch_size: Optional[int] = None,
        transform: Optional[Transform] = None,
    ) -> None:
        if batch_size is None:
            batch_size = config.get_batch_size()
        if isinstance(batch_size, bool) or not isinstance(batch_size, int) or batch_size <= 0:
            raise ConfigurationError(f"batch_size must be a positive integer, got {batch_size!r}")

        self.batch_size = batch_size
        self.transform = transform

    @classmethod
    def from_context(
        cls, context: MigrationContext, transform: Optional[Transform] = None
    ) -> "BatchExecutor":
        """Create an executor using the ``batch_size`` option of ``context``."""
        batch_size = context.get_option("batch_size")
        if batch_size is not None:
            try:
                batch_size = int(batch_size)
            except (TypeError, ValueError):
                raise ConfigurationError(
                    f'Option "batch_size" of migration "{context.migration_name}" '
                    f"must be an integer, got {batch_size!r}"
                )
        return cls(batch_size=batch_size, transform=transform)

    def execute(self, puller: Puller, pusher: Pusher) -> Iterator[int]:
        records = iter(puller.pull())
        step = 0

        while True:
            # Pull failures propagate from here
            chunk = list(islice(records, self.batch_size))
            if not chunk:
                break
            step += 1

            batch = self._transform(chunk)
            if not batch:
                logger.debug(f"Batch {step} fully filtered by transform, nothing pushed")
                continue

            pushed = pusher.push_batch(batch)
            if pushed is None:
                pushed = len(batch)
            if pushed < 0 or pushed > len(batch):
                raise ContractViolation(
                    f"{describe(pusher)} reported {pushed} records written "
                    f"for a batch of {len(batch)}"
                )

            logger.debug(f"Batch {step}: pushed {pushed}/{len(chunk)} records")
            if pushed:
                yield pushed

    def _transform(self, chunk: List[Any]) -> List[Any]:
        if self.transform is None:
            return chunk

        batch = []
        for record in chunk:
            transformed = self.transform(record)
            if transformed is not None:
                batch.append(transformed)
        return batch

    def __repr__(self) -> str:
        return f"BatchExecutor(batch_size={self.batch_size})"
