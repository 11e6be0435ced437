"""Event log partition sources - read-only access to daily history.

Each calendar date is one partition holding one JSON event per line.
A missing or unreadable partition raises HistoryUnavailableError; the
baseline calculator treats that as "no data for this day".
"""

import logging
import os
from abc import ABC, abstractmethod
from datetime import date
from pathlib import Path
from typing import Iterator, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from riskgate.common.constants import HistoryConstants
from riskgate.common.exceptions import HistoryUnavailableError


logger = logging.getLogger(__name__)


def partition_name(day: date, pattern: str = HistoryConstants.PARTITION_FILENAME_PATTERN) -> str:
    """Partition file name for a calendar date, e.g. fds-2026-01-29.json."""
    return pattern.replace("{date}", day.strftime(HistoryConstants.DATE_FORMAT))


class PartitionSource(ABC):
    """Abstract base class for event log partition readers."""

    @abstractmethod
    def read_lines(self, day: date) -> Iterator[bytes]:
        """Yield the raw, undecoded lines of the partition for ``day``.

        Lines are decoded by the caller one at a time, so a single line of
        invalid bytes cannot abort the rest of the partition.

        Raises:
            HistoryUnavailableError: If the partition is missing or unreadable,
                including a read failure part-way through the partition.
        """


class LocalPartitionSource(PartitionSource):
    """Reads partitions from a local log directory."""

    def __init__(
        self,
        log_dir: Path,
        filename_pattern: str = HistoryConstants.PARTITION_FILENAME_PATTERN,
    ):
        self.log_dir = Path(log_dir)
        self.filename_pattern = filename_pattern

    def partition_path(self, day: date) -> Path:
        return self.log_dir / partition_name(day, self.filename_pattern)

    def read_lines(self, day: date) -> Iterator[bytes]:
        path = self.partition_path(day)
        if not path.exists():
            raise HistoryUnavailableError(
                f"Log file not found: {path}", partition=path.name
            )

        try:
            with open(path, "rb") as f:
                for line in f:
                    yield line
        except OSError as e:
            raise HistoryUnavailableError(
                f"Error reading log file: {path}", partition=path.name
            ) from e


class S3PartitionSource(PartitionSource):
    """Reads partitions stored as objects under an S3 prefix.

    Key format: {prefix}fds-YYYY-MM-DD.json
    """

    DEFAULT_REGION = "us-east-1"

    def __init__(
        self,
        bucket_name: Optional[str] = None,
        prefix: str = "fds-events/",
        region: Optional[str] = None,
        aws_profile: Optional[str] = None,
        filename_pattern: str = HistoryConstants.PARTITION_FILENAME_PATTERN,
        s3_client=None,
    ):
        self.bucket_name = bucket_name or os.environ.get("RISKGATE_EVENT_LOG_S3_BUCKET")
        if not self.bucket_name:
            raise ValueError(
                "S3 bucket name required. Set RISKGATE_EVENT_LOG_S3_BUCKET or pass bucket_name."
            )
        self.prefix = prefix
        self.region = region or os.environ.get("AWS_DEFAULT_REGION", self.DEFAULT_REGION)
        self.filename_pattern = filename_pattern

        if s3_client is not None:
            self.s3_client = s3_client
        elif aws_profile:
            session = boto3.Session(profile_name=aws_profile)
            self.s3_client = session.client("s3", region_name=self.region)
        else:
            self.s3_client = boto3.client("s3", region_name=self.region)

        logger.info(
            f"Initialized S3PartitionSource: bucket={self.bucket_name}, prefix={self.prefix}"
        )

    def object_key(self, day: date) -> str:
        return f"{self.prefix}{partition_name(day, self.filename_pattern)}"

    def read_lines(self, day: date) -> Iterator[bytes]:
        key = self.object_key(day)
        try:
            response = self.s3_client.get_object(Bucket=self.bucket_name, Key=key)
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "")
            message = (
                f"Log object not found: s3://{self.bucket_name}/{key}"
                if code in ("NoSuchKey", "404")
                else f"Error fetching log object: s3://{self.bucket_name}/{key} ({code})"
            )
            raise HistoryUnavailableError(message, partition=key) from e
        except BotoCoreError as e:
            raise HistoryUnavailableError(
                f"Error fetching log object: s3://{self.bucket_name}/{key}", partition=key
            ) from e

        body = response["Body"]
        try:
            for raw in body.iter_lines():
                yield raw
        except (BotoCoreError, OSError) as e:
            raise HistoryUnavailableError(
                f"Error reading log object: s3://{self.bucket_name}/{key}", partition=key
            ) from e
        finally:
            body.close()
