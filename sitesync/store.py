"""Object store clients for sitesync.

Key classes:
- S3ObjectStore: Reads and writes objects in an S3 (or S3-compatible) bucket.
- NullObjectStore: Empty store whose uploads are logged no-ops.
- DryRunObjectStore: Reads from a real store, logs uploads without sending them.

create_store picks the right client for a configuration.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from .log import fields
from .protocols import ObjectStore, StoredObject

if TYPE_CHECKING:
    from .config import SiteConfig

logger = logging.getLogger(__name__)

CONTENT_TYPE_HTML = "text/html"
CONTENT_TYPE_CSS = "text/css"


class StoreError(Exception):
    """Error talking to the object store.

    Attributes:
        operation: Store operation that failed (list, get, put).
        key: Object key involved, if any.
        original_error: The underlying client exception.
    """

    def __init__(
        self,
        operation: str,
        message: str,
        key: str | None = None,
        original_error: Exception | None = None,
    ):
        self.operation = operation
        self.key = key
        self.original_error = original_error
        target = f" {key}" if key else ""
        super().__init__(f"{operation}{target}: {message}")


class S3ObjectStore:
    """Object store backed by an S3 bucket.

    Attributes:
        bucket: Bucket name.
        client: boto3 S3 client.
    """

    def __init__(self, bucket: str, client: Any = None, **client_kwargs: Any):
        """Initialize the store.

        Args:
            bucket: Bucket name.
            client: Optional pre-built boto3 S3 client.
            **client_kwargs: Passed to ``boto3.client("s3", ...)`` when no client
                is given (region_name, endpoint_url, config, ...).
        """
        if not bucket:
            raise ValueError("bucket name is required")
        self.bucket = bucket
        self.client = client or boto3.client("s3", **client_kwargs)

    def list_objects(self) -> list[StoredObject]:
        objects: list[StoredObject] = []
        try:
            paginator = self.client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self.bucket):
                for item in page.get("Contents", []):
                    key = item["Key"]
                    objects.append(StoredObject(key, key.endswith("/")))
        except (BotoCoreError, ClientError) as exc:
            logger.error(
                "error listing objects", extra=fields(bucket=self.bucket, error=exc)
            )
            raise StoreError("list", str(exc), original_error=exc) from exc
        return objects

    def get_object(self, key: str) -> bytes:
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=key)
            body = response["Body"]
            try:
                return body.read()
            finally:
                body.close()
        except (BotoCoreError, ClientError) as exc:
            logger.error(
                "error getting object",
                extra=fields(bucket=self.bucket, key=key, error=exc),
            )
            raise StoreError("get", str(exc), key=key, original_error=exc) from exc

    def put_object(self, key: str, content_type: str, data: bytes) -> None:
        try:
            self.client.put_object(
                Bucket=self.bucket, Key=key, Body=data, ContentType=content_type
            )
        except (BotoCoreError, ClientError) as exc:
            logger.error(
                "error uploading object",
                extra=fields(bucket=self.bucket, key=key, error=exc),
            )
            raise StoreError("put", str(exc), key=key, original_error=exc) from exc


class NullObjectStore:
    """Store used when uploads are disabled and no bucket is configured.

    The listing is always empty and uploads only log.
    """

    def list_objects(self) -> list[StoredObject]:
        return []

    def get_object(self, key: str) -> bytes:
        raise StoreError("get", "null store holds no objects", key=key)

    def put_object(self, key: str, content_type: str, data: bytes) -> None:
        logger.info(
            "upload disabled, skipping write",
            extra=fields(key=key, content_type=content_type, size=len(data)),
        )


class DryRunObjectStore:
    """Store that reads from a real store but never writes to it.

    Lets a disabled-upload run report exactly which files would be published.

    Attributes:
        inner: Store that serves reads.
    """

    def __init__(self, inner: ObjectStore):
        self.inner = inner

    def list_objects(self) -> list[StoredObject]:
        return self.inner.list_objects()

    def get_object(self, key: str) -> bytes:
        return self.inner.get_object(key)

    def put_object(self, key: str, content_type: str, data: bytes) -> None:
        logger.info(
            "dry run, skipping write",
            extra=fields(key=key, content_type=content_type, size=len(data)),
        )


def create_store(config: SiteConfig) -> ObjectStore:
    """Build the object store a configuration asks for.

    Args:
        config: Site configuration.

    Returns:
        S3ObjectStore when uploading, DryRunObjectStore when uploads are disabled
        but a bucket is set, NullObjectStore otherwise.

    Raises:
        ValueError: If uploads are enabled without a bucket.
    """
    if config.upload and not config.bucket:
        raise ValueError("a bucket is required unless uploads are disabled")
    if not config.bucket:
        return NullObjectStore()
    client_kwargs: dict[str, Any] = {
        "region_name": config.region,
        "config": BotoConfig(
            connect_timeout=config.connect_timeout,
            read_timeout=config.read_timeout,
            retries={"max_attempts": 1, "mode": "standard"},
        ),
    }
    if config.endpoint_url:
        client_kwargs["endpoint_url"] = config.endpoint_url
    s3_store = S3ObjectStore(config.bucket, **client_kwargs)
    if not config.upload:
        return DryRunObjectStore(s3_store)
    return s3_store
