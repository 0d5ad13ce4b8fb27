"""Execution tracking for migration runs.

This module records an audit trail of runs in DuckDB:
- Run information (name, status, duration, failing step)
- Step-level executions (tasks and migrators) with pushed counts

The audit trail is informational only. It is never read back to skip
steps or resume a run.
"""

import os
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

import duckdb

from migration.logging_config import create_logger
from migration.progress import ProgressReporter
from migration.state import Phase
from migration.utils import describe

logger = create_logger(__name__)


class ExecutionTracker(ProgressReporter):
    """Record migration runs and their steps in a DuckDB database.

    Attributes:
        db_path: Path to DuckDB database (``:memory:`` for a throwaway log)
        con: DuckDB connection
        run_id: Identifier of the run currently tracked
    """

    def __init__(self, db_path: str = ":memory:"):
        self.db_path = db_path
        self.con = None
        self.run_id: Optional[str] = None
        self._step_started: Optional[datetime] = None
        self._sequence = 0

        self._init_tracking_tables()

    def connect(self):
        """Establish database connection."""
        if not self.con:
            if self.db_path != ":memory:":
                db_dir = os.path.dirname(self.db_path)
                if db_dir:
                    os.makedirs(db_dir, exist_ok=True)
            self.con = duckdb.connect(self.db_path)
            logger.debug(f"Connected to tracking database: {self.db_path}")

    def disconnect(self):
        """Close database connection."""
        if self.con:
            self.con.close()
            self.con = None

    def _init_tracking_tables(self):
        """Initialize execution tracking tables if they don't exist."""
        self.connect()

        try:
            self.con.execute("CREATE SCHEMA IF NOT EXISTS _tracking")

            self.con.execute("""
                CREATE TABLE IF NOT EXISTS _tracking.migration_runs (
                    run_id VARCHAR PRIMARY KEY,
                    migration_name VARCHAR,
                    username VARCHAR,
                    start_time TIMESTAMP,
                    end_time TIMESTAMP,
                    duration_seconds DOUBLE,
                    status VARCHAR,
                    failed_step VARCHAR,
                    error_message TEXT,
                    items_pushed BIGINT
                )
            """)

            self.con.execute("""
                CREATE TABLE IF NOT EXISTS _tracking.step_executions (
                    execution_id VARCHAR PRIMARY KEY,
                    run_id VARCHAR,
                    step_sequence INTEGER,
                    phase VARCHAR,
                    step_index INTEGER,
                    step_name VARCHAR,
                    start_time TIMESTAMP,
                    end_time TIMESTAMP,
                    duration_seconds DOUBLE,
                    result VARCHAR,
                    items_announced BIGINT,
                    items_pushed BIGINT
                )
            """)

            logger.debug("Initialized execution tracking tables")

        except duckdb.Error as e:
            logger.error(f"Failed to initialize tracking tables: {e}")
            raise

    # Reporter hooks

    def run_started(self, run, migration):
        self.connect()
        self.run_id = str(uuid.uuid4())
        self._sequence = 0

        try:
            self.con.execute("""
                INSERT INTO _tracking.migration_runs (
                    run_id, migration_name, username, start_time, status
                )
                VALUES (?, ?, ?, ?, 'running')
            """, [
                self.run_id,
                run.migration_name,
                os.getenv("USER", os.getenv("USERNAME", "unknown")),
                run.started_at or datetime.now(),
            ])
            logger.debug(f"Started tracking migration run: {self.run_id}")

        except duckdb.Error as e:
            logger.error(f"Failed to start migration run tracking: {e}")

    def task_started(self, phase, index, task):
        self._step_started = datetime.now()

    def task_finished(self, phase, index, task, result):
        self._record_step(phase, index, describe(task), result=result)

    def migrator_started(self, index, migrator, progress):
        self._step_started = datetime.now()

    def migrator_finished(self, index, migrator, progress):
        self._record_step(
            Phase.MIGRATORS,
            index,
            migrator.name,
            result="OK",
            items_announced=progress.total,
            items_pushed=progress.pushed,
        )

    def run_completed(self, run):
        self._end_run(run, "success")

    def run_failed(self, run, error):
        self._end_run(run, "failure", error_message=str(error))

    # Storage

    def _record_step(
        self,
        phase: Phase,
        index: int,
        name: str,
        result: Optional[str] = None,
        items_announced: Optional[int] = None,
        items_pushed: Optional[int] = None,
    ) -> None:
        if self.run_id is None:
            return

        end_time = datetime.now()
        start_time = self._step_started or end_time
        try:
            self.con.execute("""
                INSERT INTO _tracking.step_executions (
                    execution_id, run_id, step_sequence, phase, step_index, step_name,
                    start_time, end_time, duration_seconds, result,
                    items_announced, items_pushed
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, [
                str(uuid.uuid4()),
                self.run_id,
                self._sequence,
                phase.value,
                index,
                name,
                start_time,
                end_time,
                (end_time - start_time).total_seconds(),
                result,
                items_announced,
                items_pushed,
            ])
        except duckdb.Error as e:
            logger.error(f"Failed to track step {phase.value}[{index}]: {e}")
        finally:
            self._sequence += 1
            self._step_started = None

    def _end_run(self, run, status: str, error_message: Optional[str] = None) -> None:
        if self.run_id is None:
            return

        try:
            self.con.execute("""
                UPDATE _tracking.migration_runs
                SET end_time = ?,
                    duration_seconds = ?,
                    status = ?,
                    failed_step = ?,
                    error_message = ?,
                    items_pushed = ?
                WHERE run_id = ?
            """, [
                run.finished_at or datetime.now(),
                run.duration,
                status,
                str(run.failed_step) if run.failed_step else None,
                error_message,
                run.total_pushed,
                self.run_id,
            ])

            logger.info(f"Completed migration run {self.run_id}: {status} in {run.duration:.2f}s")

        except duckdb.Error as e:
            logger.error(f"Failed to end migration run tracking: {e}")

    # Queries

    def get_run_history(self, migration_name: Optional[str] = None, limit: int = 20) -> List[Dict[str, Any]]:
        """Return the most recent runs, newest first.

        Args:
            migration_name: Only return runs of this migration
            limit: Maximum number of runs

        Returns:
            List of run dictionaries
        """
        self.connect()

        query = "SELECT * FROM _tracking.migration_runs"
        params: List[Any] = []
        if migration_name:
            query += " WHERE migration_name = ?"
            params.append(migration_name)
        query += " ORDER BY start_time DESC LIMIT ?"
        params.append(limit)

        cursor = self.con.execute(query, params)
        columns = [column[0] for column in cursor.description]
        return [dict(zip(columns, row)) for row in cursor.fetchall()]

    def get_steps(self, run_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """Return the recorded steps of a run (default: the current run), in order."""
        self.connect()

        cursor = self.con.execute(
            """
            SELECT * FROM _tracking.step_executions
            WHERE run_id = ?
            ORDER BY step_sequence
            """,
            [run_id or self.run_id],
        )
        columns = [column[0] for column in cursor.description]
        return [dict(zip(columns, row)) for row in cursor.fetchall()]
