"""
Backblaze B2 destination via the S3-compatible API (boto3).

``b2://<keyId>:<appKey>@<bucket>?region=us-west-004`` or
``b2://<keyId>:<appKey>@<bucket>?endpoint=https://s3.eu-central-003.backblazeb2.com``
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional
from urllib.parse import parse_qs, unquote, urlsplit

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ...exceptions import ConfigurationError, DestinationError, ObjectNotFound
from ...utils.logging import get_logger
from ..sniff import content_type_for_name
from .base import AbstractDestination

logger = get_logger(__name__)

DEFAULT_REGION = "us-west-004"
NOT_FOUND_CODES = ("NoSuchKey", "404", "NotFound")


def endpoint_for_region(region: str) -> str:
    return f"https://s3.{region}.backblazeb2.com"


class B2Destination(AbstractDestination):
    """Stores objects in one B2 bucket. Blocking boto3 calls run in a thread."""

    def __init__(self, bucket: str, client: Any):
        self.bucket = bucket
        self.client = client

    @classmethod
    async def from_url(cls, url: str, client: Optional[Any] = None, **_) -> "B2Destination":
        parts = urlsplit(url)
        bucket = parts.hostname
        key_id = unquote(parts.username or "")
        app_key = unquote(parts.password or "")
        if not bucket:
            raise ConfigurationError("b2 destination needs a bucket name")

        if client is None:
            if not key_id or not app_key:
                raise ConfigurationError("b2 destination needs keyId:appKey credentials")
            query = parse_qs(parts.query)
            region = (query.get("region") or [DEFAULT_REGION])[0]
            endpoint = (query.get("endpoint") or [endpoint_for_region(region)])[0]
            client = boto3.client(
                "s3",
                endpoint_url=endpoint,
                region_name=region,
                aws_access_key_id=key_id,
                aws_secret_access_key=app_key,
            )

        dest = cls(bucket, client)
        try:
            await asyncio.to_thread(client.head_bucket, Bucket=bucket)
        except (ClientError, BotoCoreError) as e:
            raise ConfigurationError(f"getting b2 bucket {bucket!r}: {e}") from e
        return dest

    async def _upload(self, name: str, data: bytes) -> None:
        content_type = content_type_for_name(name)
        if content_type is None:
            raise DestinationError(f"expecting a known extension for b2 upload: {name}")
        try:
            await asyncio.to_thread(
                self.client.put_object,
                Bucket=self.bucket,
                Key=name,
                Body=data,
                ContentType=content_type,
            )
        except (ClientError, BotoCoreError) as e:
            raise DestinationError(f"copying file to b2: {e}") from e

    def _get_bytes(self, name: str) -> bytes:
        obj = self.client.get_object(Bucket=self.bucket, Key=name)
        body = obj["Body"]
        try:
            return body.read()
        finally:
            body.close()

    async def _download(self, name: str) -> bytes:
        try:
            return await asyncio.to_thread(self._get_bytes, name)
        except ClientError as e:
            code = str(e.response.get("Error", {}).get("Code", ""))
            if code in NOT_FOUND_CODES:
                raise ObjectNotFound(name) from e
            raise DestinationError(f"reading {name} from b2: {e}") from e
        except BotoCoreError as e:
            raise DestinationError(f"reading {name} from b2: {e}") from e

    def describe(self) -> str:
        return f"b2 {self.bucket!r} bucket"
