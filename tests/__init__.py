"""Test suite for the migration engine.

This package contains tests for the engine including:
- Unit tests for the executor, orchestrator, registry and CLI
- Integration tests running migrations on DuckDB and mocked S3
"""

__version__ = "1.0.0"
