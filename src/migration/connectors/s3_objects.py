"""S3 connectors for JSON Lines objects.

``S3JsonLinesPuller`` reads every object under a prefix, one JSON document
per line, streaming object bodies line by line. ``S3JsonLinesPusher`` writes
each pushed batch as its own ``part-NNNNN.jsonl`` object under a prefix.

Recognized context options (see ``from_context``):
    bucket  -- S3 bucket (required)
    prefix  -- key prefix to read from or write under (required)
    count   -- advertised record count for the puller (optional)
"""

import json
import os
from typing import Any, Dict, Iterable, Iterator, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError, EndpointConnectionError

from migration.context import MigrationContext
from migration.exceptions import ConfigurationError, PullFailure, PushFailure
from migration.interfaces import Puller, Pusher
from migration.logging_config import create_logger
from migration.utils import retry

logger = create_logger(__name__)


def s3_client():
    """Create an S3 client for the configured AWS region."""
    return boto3.client("s3", region_name=os.getenv("AWS_DEFAULT_REGION", "us-east-1"))


def _require_option(context: MigrationContext, key: str) -> Any:
    value = context.get_option(key)
    if not value:
        raise ConfigurationError(f'Migration "{context.migration_name}" needs a "{key}" option')
    return value


class S3JsonLinesPuller(Puller):
    """Pull JSON documents from the ``.jsonl`` objects under a prefix.

    Objects are read in key order. S3 cannot count lines without reading
    every object, so the count is unknown unless one is supplied.
    """

    def __init__(
        self,
        bucket: str,
        prefix: str,
        client=None,
        count: Optional[int] = None,
        name: Optional[str] = None,
    ) -> None:
        self.bucket = bucket
        self.prefix = prefix
        self.client = client or s3_client()
        self._count = count
        self.name = name or f"S3JsonLinesPuller(s3://{bucket}/{prefix})"

    @classmethod
    def from_context(cls, context: MigrationContext, client=None) -> "S3JsonLinesPuller":
        count = context.get_option("count")
        return cls(
            _require_option(context, "bucket"),
            _require_option(context, "prefix"),
            client=client,
            count=int(count) if count is not None else None,
        )

    def count(self) -> Optional[int]:
        return self._count

    def list_keys(self) -> List[str]:
        """Return the ``.jsonl`` keys under the prefix, sorted."""
        keys = []
        try:
            paginator = self.client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self.bucket, Prefix=self.prefix):
                for obj in page.get("Contents", []):
                    if obj["Key"].endswith(".jsonl"):
                        keys.append(obj["Key"])
        except (ClientError, BotoCoreError) as e:
            raise PullFailure(f"{self.name}: unable to list objects: {e}") from e
        return sorted(keys)

    def pull(self) -> Iterator[Any]:
        for key in self.list_keys():
            logger.debug(f"{self.name}: reading s3://{self.bucket}/{key}")
            try:
                body = self.client.get_object(Bucket=self.bucket, Key=key)["Body"]
            except (ClientError, BotoCoreError) as e:
                raise PullFailure(f"{self.name}: unable to read {key}: {e}") from e

            # The body is closed however iteration ends
            try:
                for line_number, line in enumerate(body.iter_lines(), start=1):
                    if not line.strip():
                        continue
                    try:
                        record = json.loads(line)
                    except ValueError as e:
                        raise PullFailure(
                            f"{self.name}: invalid JSON in {key} line {line_number}: {e}"
                        ) from e
                    yield record
            finally:
                body.close()


class S3JsonLinesPusher(Pusher):
    """Write each pushed batch as one JSON Lines object."""

    def __init__(self, bucket: str, prefix: str, client=None, name: Optional[str] = None) -> None:
        self.bucket = bucket
        self.prefix = prefix.rstrip("/")
        self.client = client or s3_client()
        self.parts_written = 0
        self.name = name or f"S3JsonLinesPusher(s3://{bucket}/{self.prefix})"

    @classmethod
    def from_context(cls, context: MigrationContext, client=None) -> "S3JsonLinesPusher":
        return cls(
            _require_option(context, "bucket"),
            _require_option(context, "prefix"),
            client=client,
        )

    def push(self, record: Dict[str, Any]) -> None:
        self.push_batch([record])

    def push_batch(self, records: Iterable[Any]) -> int:
        records = list(records)
        if not records:
            return 0

        try:
            body = "".join(json.dumps(record, default=str) + "\n" for record in records)
        except (TypeError, ValueError) as e:
            raise PushFailure(f"{self.name}: unable to serialize batch: {e}") from e

        key = f"{self.prefix}/part-{self.parts_written:05d}.jsonl"
        try:
            self._put(key, body.encode("utf-8"))
        except (ClientError, BotoCoreError) as e:
            logger.error(f"{self.name}: upload of {key} failed: {e}")
            raise PushFailure(f"{self.name}: unable to write {key}: {e}") from e

        self.parts_written += 1
        return len(records)

    @retry(max_attempts=3, delay=0.5, exceptions=(EndpointConnectionError,))
    def _put(self, key: str, body: bytes) -> None:
        self.client.put_object(Bucket=self.bucket, Key=key, Body=body)
