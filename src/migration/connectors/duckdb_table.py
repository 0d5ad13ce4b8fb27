"""DuckDB connectors.

``DuckDBQueryPuller`` streams the rows of a query as dictionaries using
``fetchmany`` so that result sets never have to fit in memory.
``DuckDBTablePusher`` inserts dictionaries into a table with one
``executemany`` per batch.

Recognized context options (see ``from_context``):
    query        -- SELECT statement to pull from (required)
    count_query  -- statement returning a single row count (optional)
    count_parameters -- parameters of count_query (default: none)
    fetch_size   -- rows fetched per round trip (default 1000)
    table        -- destination table, optionally schema qualified (required)
    columns      -- destination columns (default: keys of the first record)
"""

from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence

import duckdb

from migration.context import MigrationContext
from migration.exceptions import ConfigurationError, PullFailure, PushFailure
from migration.interfaces import Puller, Pusher
from migration.logging_config import create_logger

logger = create_logger(__name__)

DEFAULT_FETCH_SIZE = 1000


def quote_identifier(identifier: str) -> str:
    """Quote a possibly schema-qualified identifier for DuckDB."""
    return ".".join('"' + part.replace('"', '""') + '"' for part in identifier.split("."))


class DuckDBQueryPuller(Puller):
    """Pull rows of a query as dictionaries keyed by column name."""

    def __init__(
        self,
        con: duckdb.DuckDBPyConnection,
        query: str,
        parameters: Optional[Sequence[Any]] = None,
        count_query: Optional[str] = None,
        count_parameters: Optional[Sequence[Any]] = None,
        fetch_size: int = DEFAULT_FETCH_SIZE,
        name: Optional[str] = None,
    ) -> None:
        if fetch_size <= 0:
            raise ConfigurationError(f"fetch_size must be positive, got {fetch_size}")

        self.con = con
        self.query = query
        self.parameters = list(parameters or [])
        self.count_query = count_query
        self.count_parameters = list(count_parameters or [])
        self.fetch_size = fetch_size
        self.name = name or "DuckDBQueryPuller"

    @classmethod
    def from_context(cls, context: MigrationContext, con: duckdb.DuckDBPyConnection) -> "DuckDBQueryPuller":
        query = context.get_option("query")
        if not query:
            raise ConfigurationError(
                f'Migration "{context.migration_name}" needs a "query" option'
            )
        return cls(
            con,
            query,
            parameters=context.get_option("parameters"),
            count_query=context.get_option("count_query"),
            count_parameters=context.get_option("count_parameters"),
            fetch_size=int(context.get_option("fetch_size", DEFAULT_FETCH_SIZE)),
        )

    def count(self) -> Optional[int]:
        """Run ``count_query`` with ``count_parameters`` when one was given.

        The pull parameters are never reused: both queries may bind
        different placeholders. Without a count query the count is unknown.
        """
        if not self.count_query:
            return None

        try:
            with self.con.cursor() as cursor:
                row = cursor.execute(self.count_query, self.count_parameters).fetchone()
        except duckdb.Error as e:
            logger.warning(f"{self.name}: count query failed, total unknown: {e}")
            return None
        return int(row[0]) if row else None

    def pull(self) -> Iterator[Dict[str, Any]]:
        # A dedicated cursor keeps the pending result set away from pushers
        # sharing the same connection.
        cursor = self.con.cursor()
        try:
            cursor.execute(self.query, self.parameters)
            columns = [column[0] for column in cursor.description]
        except duckdb.Error as e:
            cursor.close()
            raise PullFailure(f"{self.name}: query failed: {e}") from e

        try:
            while True:
                try:
                    rows = cursor.fetchmany(self.fetch_size)
                except duckdb.Error as e:
                    raise PullFailure(f"{self.name}: fetch failed: {e}") from e
                if not rows:
                    break
                for row in rows:
                    yield dict(zip(columns, row))
        finally:
            cursor.close()


class DuckDBTablePusher(Pusher):
    """Insert dictionaries into a DuckDB table."""

    def __init__(
        self,
        con: duckdb.DuckDBPyConnection,
        table: str,
        columns: Optional[Sequence[str]] = None,
        name: Optional[str] = None,
    ) -> None:
        self.con = con
        self.table = table
        self.columns: Optional[List[str]] = list(columns) if columns else None
        self.name = name or f"DuckDBTablePusher({table})"

    @classmethod
    def from_context(cls, context: MigrationContext, con: duckdb.DuckDBPyConnection) -> "DuckDBTablePusher":
        table = context.get_option("table")
        if not table:
            raise ConfigurationError(
                f'Migration "{context.migration_name}" needs a "table" option'
            )
        return cls(con, table, columns=context.get_option("columns"))

    def push(self, record: Dict[str, Any]) -> None:
        self.push_batch([record])

    def push_batch(self, records: Iterable[Dict[str, Any]]) -> int:
        records = list(records)
        if not records:
            return 0

        if self.columns is None:
            self.columns = list(records[0])

        try:
            rows = [[record[column] for column in self.columns] for record in records]
        except (KeyError, TypeError) as e:
            raise PushFailure(f"{self.name}: record does not match columns {self.columns}: {e}") from e

        column_list = ", ".join(quote_identifier(column) for column in self.columns)
        placeholders = ", ".join("?" for _ in self.columns)
        statement = (
            f"INSERT INTO {quote_identifier(self.table)} ({column_list}) "
            f"VALUES ({placeholders})"
        )

        try:
            self.con.executemany(statement, rows)
        except duckdb.Error as e:
            logger.error(f"{self.name}: insert of {len(rows)} rows failed: {e}")
            raise PushFailure(f"{self.name}: insert failed: {e}") from e

        return len(rows)
