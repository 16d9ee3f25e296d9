from __future__ import annotations

import logging
from typing import Any, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .config import BADGE_CACHE_CONTROL

logger = logging.getLogger(__name__)

SVG_CONTENT_TYPE = "image/svg+xml"
HTML_CONTENT_TYPE = "text/html; charset=UTF-8"


class StorageError(Exception):
    """Raised when an object can't be written to the badge bucket."""


class BadgeStore:
    """Writes badge images and reports into an S3 bucket."""

    def __init__(self, bucket: str, client: Optional[Any] = None):
        self._bucket = bucket
        if client is None:
            try:
                client = boto3.client("s3")
            except BotoCoreError as exc:
                raise StorageError(f"Failed to create S3 client: {exc}") from exc
        self._client = client

    @property
    def bucket(self) -> str:
        return self._bucket

    def write(
        self,
        name: str,
        data: bytes,
        *,
        content_type: str,
        cache_control: str = BADGE_CACHE_CONTROL,
    ) -> None:
        logger.info("Writing %s to bucket %s", name, self._bucket)
        try:
            self._client.put_object(
                Bucket=self._bucket,
                Key=name,
                Body=data,
                ContentType=content_type,
                CacheControl=cache_control,
            )
        except (ClientError, BotoCoreError) as exc:
            raise StorageError(f"Failed to write {name} to {self._bucket}: {exc}") from exc

    def write_badge(self, trigger_id: str, svg: bytes) -> str:
        name = f"{trigger_id}.svg"
        self.write(name, svg, content_type=SVG_CONTENT_TYPE)
        return name

    def write_report(self, trigger_id: str, report: bytes) -> str:
        name = f"{trigger_id}.html"
        self.write(name, report, content_type=HTML_CONTENT_TYPE)
        return name
