"""S3-compatible object store client (Cloudflare R2)."""

from __future__ import annotations

import logging
from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from rental_sync.exceptions import ObjectStoreError
from rental_sync.storage.keys import property_prefix, sequence_number

logger = logging.getLogger(__name__)

BOTO_ERRORS = (BotoCoreError, ClientError)


class ObjectStore:
    """Bucket of property images.

    Example:
        >>> store = ObjectStore(
        ...     bucket="rental-manager-images",
        ...     endpoint_url="https://<account>.r2.cloudflarestorage.com",
        ...     access_key_id="...",
        ...     secret_access_key="...",
        ... )
        >>> store.put("properties/oak-street/image-1.jpg", data, content_type="image/jpeg")
        >>> store.erase_prefix("oak-street")
        ['properties/oak-street/image-1.jpg']
    """

    def __init__(
        self,
        bucket: str,
        endpoint_url: str | None = None,
        access_key_id: str | None = None,
        secret_access_key: str | None = None,
        public_url: str | None = None,
        timeout: float = 30.0,
        client: Any = None,
    ):
        """Initialize the object store.

        Args:
            bucket: Bucket name.
            endpoint_url: S3 API endpoint (the R2 account endpoint).
            access_key_id: Access key ID.
            secret_access_key: Secret access key.
            public_url: Base URL under which stored keys are publicly readable.
            timeout: Connect and read timeout in seconds.
            client: Pre-built boto3 S3 client (used by tests).
        """
        self.bucket = bucket
        self.public_url = public_url.rstrip("/") if public_url else None

        if client is None:
            client = boto3.client(
                "s3",
                endpoint_url=endpoint_url,
                aws_access_key_id=access_key_id,
                aws_secret_access_key=secret_access_key,
                region_name="auto",
                config=Config(connect_timeout=timeout, read_timeout=timeout),
            )
        self._client = client

    def list_keys(self, prefix: str) -> list[str]:
        """List every key under a prefix.

        Raises:
            ObjectStoreError: If the listing fails.
        """
        keys: list[str] = []
        try:
            paginator = self._client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
                keys.extend(obj["Key"] for obj in page.get("Contents", []))
        except BOTO_ERRORS as e:
            raise ObjectStoreError(f"Failed to list objects under {prefix}: {e}") from e
        return keys

    def put(self, key: str, data: bytes, content_type: str | None = None) -> None:
        """Write an object, storing its content type as metadata.

        Raises:
            ObjectStoreError: If the write fails.
        """
        kwargs: dict[str, Any] = {"Bucket": self.bucket, "Key": key, "Body": data}
        if content_type:
            kwargs["ContentType"] = content_type

        try:
            self._client.put_object(**kwargs)
        except BOTO_ERRORS as e:
            raise ObjectStoreError(f"Failed to upload {key}: {e}", key=key) from e

    def delete(self, key: str) -> None:
        """Delete one object.

        Raises:
            ObjectStoreError: If the delete fails.
        """
        try:
            self._client.delete_object(Bucket=self.bucket, Key=key)
        except BOTO_ERRORS as e:
            raise ObjectStoreError(f"Failed to delete {key}: {e}", key=key) from e

    def erase_prefix(self, slug: str) -> list[str]:
        """Delete every stored object of a property.

        Stops at the first failed delete rather than leaving a mixed
        old/new gallery behind.

        Args:
            slug: Property slug.

        Returns:
            Deleted keys.

        Raises:
            ObjectStoreError: If the listing or any delete fails.
        """
        keys = self.list_keys(property_prefix(slug))
        for key in keys:
            self.delete(key)
            logger.info(f"Deleted: {key}")
        return keys

    def gallery(self, slug: str) -> list[str]:
        """List a property's image keys in image-number order."""
        keys = [k for k in self.list_keys(property_prefix(slug)) if sequence_number(k) is not None]
        return sorted(keys, key=sequence_number)

    def url_for(self, key: str) -> str | None:
        """Public URL of a key, or None when no public base URL is configured."""
        if not self.public_url:
            return None
        return f"{self.public_url}/{key}"
