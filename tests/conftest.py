"""Pytest configuration and shared fixtures for migration engine tests.

This module provides fixtures for:
- Environment configuration
- DuckDB database connections
- Mock AWS S3 services using moto
- Recording doubles and ready-made migrations
"""

from typing import Dict, Generator, List
from unittest.mock import MagicMock

import boto3
import duckdb
import pytest
from moto import mock_aws

from migration.executor import BatchExecutor
from migration.model import Migration, Migrator
from migration.registry import MigrationRegistry
from tests.helpers import RecordingPuller, RecordingPusher, RecordingTask


# ============================================================================
# Environment and Configuration Fixtures
# ============================================================================

@pytest.fixture(scope="session")
def test_env_vars() -> Dict[str, str]:
    """Provide test environment variables.

    Returns:
        Dictionary of environment variables for testing
    """
    return {
        "MIGRATION_BATCH_SIZE": "1000",
        "MIGRATION_LOG_LEVEL": "INFO",
        "AWS_ACCESS_KEY_ID": "testing",
        "AWS_SECRET_ACCESS_KEY": "testing",
        "AWS_SECURITY_TOKEN": "testing",
        "AWS_SESSION_TOKEN": "testing",
        "AWS_DEFAULT_REGION": "us-east-1",
    }


@pytest.fixture(scope="function")
def mock_env(test_env_vars: Dict[str, str], monkeypatch) -> None:
    """Mock environment variables for testing.

    Args:
        test_env_vars: Dictionary of test environment variables
        monkeypatch: pytest monkeypatch fixture
    """
    for key, value in test_env_vars.items():
        monkeypatch.setenv(key, value)


# ============================================================================
# DuckDB Fixtures
# ============================================================================

@pytest.fixture(scope="function")
def duckdb_connection() -> Generator[duckdb.DuckDBPyConnection, None, None]:
    """Provide an in-memory DuckDB connection for testing.

    Yields:
        DuckDB connection object
    """
    con = duckdb.connect(":memory:")
    yield con
    con.close()


@pytest.fixture(scope="function")
def duckdb_with_users(duckdb_connection: duckdb.DuckDBPyConnection) -> duckdb.DuckDBPyConnection:
    """Provide a DuckDB connection with 250 source users and an empty target.

    Args:
        duckdb_connection: Base DuckDB connection

    Returns:
        DuckDB connection with ``source.users`` and ``target.users``
    """
    duckdb_connection.execute("CREATE SCHEMA source")
    duckdb_connection.execute("CREATE SCHEMA target")
    duckdb_connection.execute(
        "CREATE TABLE source.users AS "
        "SELECT range AS id, 'user_' || range AS username FROM range(250)"
    )
    duckdb_connection.execute("CREATE TABLE target.users (id BIGINT, username VARCHAR)")
    return duckdb_connection


# ============================================================================
# AWS S3 Mocking Fixtures
# ============================================================================

@pytest.fixture(scope="function")
def aws_credentials(test_env_vars: Dict[str, str], monkeypatch):
    """Mock AWS credentials for moto.

    Args:
        test_env_vars: Test environment variables
        monkeypatch: pytest monkeypatch fixture
    """
    for key, value in test_env_vars.items():
        if key.startswith("AWS_"):
            monkeypatch.setenv(key, value)


@pytest.fixture(scope="function")
def s3_mock(aws_credentials):
    """Provide mocked S3 service using moto.

    Yields:
        Mocked AWS context
    """
    with mock_aws():
        yield


@pytest.fixture(scope="function")
def s3_client(s3_mock, test_env_vars: Dict[str, str]):
    """Provide mocked S3 client."""
    return boto3.client("s3", region_name=test_env_vars["AWS_DEFAULT_REGION"])


@pytest.fixture(scope="function")
def s3_bucket(s3_client) -> str:
    """Create a test S3 bucket.

    Returns:
        S3 bucket name
    """
    bucket_name = "test-migration-bucket"
    s3_client.create_bucket(Bucket=bucket_name)
    return bucket_name


# ============================================================================
# Migration Fixtures
# ============================================================================

@pytest.fixture(scope="function")
def events() -> List[str]:
    """Shared call log for recording doubles."""
    return []


@pytest.fixture(scope="function")
def mock_reporter():
    """Provide a mock progress reporter.

    Returns:
        MagicMock standing in for a ProgressReporter
    """
    return MagicMock()


@pytest.fixture(scope="function")
def users_sync(events: List[str]) -> Migration:
    """Provide the "users_sync" migration.

    One before task "create_schema" and one migrator moving 250 records
    in batches of 50; no after tasks.
    """
    puller = RecordingPuller("users_puller", ({"id": i} for i in range(250)), events, count=250)
    pusher = RecordingPusher("users_pusher", events)
    return Migration(
        migrators=[Migrator(puller, pusher, BatchExecutor(batch_size=50), name="users")],
        before_tasks=[RecordingTask("create_schema", events)],
    )


@pytest.fixture(scope="function")
def registry(users_sync: Migration) -> MigrationRegistry:
    """Provide a registry containing ``users_sync`` and an empty migration."""
    return MigrationRegistry([
        ("users_sync", users_sync),
        ("noop", Migration()),
    ])
