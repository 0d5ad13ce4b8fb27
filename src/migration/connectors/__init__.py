"""Reference pullers and pushers.

These are pluggable implementations of the Puller and Pusher interfaces;
the engine does not depend on any of them.
"""

from migration.connectors.duckdb_table import DuckDBQueryPuller, DuckDBTablePusher
from migration.connectors.memory import IterablePuller, ListPusher
from migration.connectors.s3_objects import S3JsonLinesPuller, S3JsonLinesPusher

__all__ = [
    "DuckDBQueryPuller",
    "DuckDBTablePusher",
    "IterablePuller",
    "ListPusher",
    "S3JsonLinesPuller",
    "S3JsonLinesPusher",
]
