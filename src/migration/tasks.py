"""Ready-made before/after tasks.

Example usage:
    Migration(
        before_tasks=[DuckDBStatementTask(con, SCHEMA_SQL, name="create_schema")],
        migrators=[...],
        after_tasks=[CallableTask(send_report, name="report")],
    )
"""

from typing import Callable, Iterable, Optional, Union

import duckdb

from migration.exceptions import TaskFailure
from migration.interfaces import Task
from migration.logging_config import create_logger

logger = create_logger(__name__)


class CallableTask(Task):
    """Wrap a plain function as a task.

    The function's return value becomes the task result (None means "OK").
    """

    def __init__(self, func: Callable[[], Optional[str]], name: Optional[str] = None) -> None:
        self.func = func
        self.name = name or getattr(func, "__name__", type(self).__name__)

    def execute(self) -> Optional[str]:
        result = self.func()
        return None if result is None else str(result)


class DuckDBStatementTask(Task):
    """Run one or more SQL statements on a DuckDB connection.

    Useful to create schemas and tables before the migrators run, or to
    build indexes and analyze tables afterwards.
    """

    def __init__(
        self,
        con: duckdb.DuckDBPyConnection,
        statements: Union[str, Iterable[str]],
        name: Optional[str] = None,
    ) -> None:
        self.con = con
        self.statements = [statements] if isinstance(statements, str) else list(statements)
        self.name = name or type(self).__name__

    def execute(self) -> Optional[str]:
        for index, statement in enumerate(self.statements):
            try:
                self.con.execute(statement)
            except duckdb.Error as e:
                logger.error(f"{self.name}: statement {index} failed: {e}")
                raise TaskFailure(f"{self.name}: statement {index} failed: {e}") from e

        count = len(self.statements)
        return f"{count} statement{'s' if count != 1 else ''} executed"
