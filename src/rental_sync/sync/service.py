"""Drive-to-object-store image replication."""

from __future__ import annotations

import logging
import re
import threading
from dataclasses import dataclass, field
from typing import Any

from rental_sync.config import Settings
from rental_sync.drive import (
    CredentialResolver,
    DriveClient,
    DriveCredential,
    DriveFile,
    parse_folder_ref,
)
from rental_sync.exceptions import (
    ClientInputError,
    NotFoundError,
    ObjectStoreError,
    PartialFileError,
    UpstreamError,
)
from rental_sync.storage import ObjectStore, image_key

logger = logging.getLogger(__name__)

SLUG_PATTERN = re.compile(r"^[A-Za-z0-9._~\-]+$")


@dataclass
class SyncRequest:
    """One webhook call asking to replicate a property's images."""

    slug: str
    drive_folder_ref: str
    record_id: str | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> SyncRequest:
        """Build a request from a decoded webhook body.

        ``imageFolderUrl`` is accepted in place of ``driveFolderRef``.

        Raises:
            ClientInputError: If the payload is not a JSON object.
        """
        if not isinstance(payload, dict):
            raise ClientInputError("Request body must be a JSON object")

        folder_ref = payload.get("driveFolderRef") or payload.get("imageFolderUrl")
        return cls(
            slug=_as_str(payload.get("slug")),
            drive_folder_ref=_as_str(folder_ref),
            record_id=payload.get("recordId"),
        )

    def folder_id(self) -> str:
        """Validate the request and return the Drive folder ID.

        Raises:
            ClientInputError: If a field is missing, the slug is not URL-safe
                or the folder reference cannot be parsed.
        """
        if not self.slug or not self.drive_folder_ref:
            raise ClientInputError("Missing required fields: slug, driveFolderRef")

        if not SLUG_PATTERN.match(self.slug) or ".." in self.slug or self.slug == ".":
            raise ClientInputError(f"Invalid slug: {self.slug!r}")

        folder_id = parse_folder_ref(self.drive_folder_ref)
        if not folder_id:
            raise ClientInputError("Invalid Google Drive folder URL")
        return folder_id


@dataclass
class SyncResult:
    """Outcome of a successful sync."""

    slug: str
    record_id: str | None
    image_keys: list[str] = field(default_factory=list)
    image_urls: list[str] = field(default_factory=list)

    @property
    def image_count(self) -> int:
        return len(self.image_keys)

    def to_dict(self) -> dict[str, Any]:
        """Webhook response body."""
        body: dict[str, Any] = {
            "success": True,
            "recordId": self.record_id,
            "slug": self.slug,
            "imageCount": self.image_count,
            "images": self.image_keys,
        }
        if self.image_urls:
            body["imageUrls"] = self.image_urls
        return body


def _as_str(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


class ImageSync:
    """Replaces a property's stored images with the images of a Drive folder.

    A run lists the folder, erases everything stored under the property's
    prefix, then copies the images one at a time in name order. A file that
    fails to copy is logged and skipped; the run only fails if none could be
    stored. Erasure happens before any copy and is not undone.

    Runs for the same slug are serialized within this process. Runs in other
    processes are not coordinated.

    Example:
        >>> syncer = ImageSync(DriveClient(), store, CredentialResolver(api_key="AIza..."))
        >>> result = syncer.sync(SyncRequest(slug="oak-street", drive_folder_ref=url))
        >>> result.image_keys
        ['properties/oak-street/image-1.jpg', 'properties/oak-street/image-2.png']
    """

    def __init__(self, drive: DriveClient, store: ObjectStore, credentials: CredentialResolver):
        self.drive = drive
        self.store = store
        self.credentials = credentials
        # One lock per slug ever synced; never pruned, properties are a bounded set
        self._slug_locks: dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> ImageSync:
        """Wire Drive, the object store and credentials from settings."""
        drive = DriveClient(timeout=settings.http_timeout, max_pages=settings.drive_max_pages)
        store = ObjectStore(
            bucket=settings.r2_bucket,
            endpoint_url=settings.endpoint_url,
            access_key_id=settings.r2_access_key_id,
            secret_access_key=settings.r2_secret_access_key,
            public_url=settings.r2_public_url,
            timeout=settings.http_timeout,
        )
        credentials = CredentialResolver(
            api_key=settings.drive_api_key,
            service_account_info=settings.service_account_json,
            service_account_file=settings.service_account_file,
        )
        return cls(drive, store, credentials)

    def sync(self, request: SyncRequest) -> SyncResult:
        """Run a full replace of a property's images.

        Args:
            request: Validated or raw sync request.

        Returns:
            Stored keys, in image-number order.

        Raises:
            ClientInputError: If the request is invalid.
            CredentialsError: If no Drive credential can be produced.
            DriveAPIError: If the folder listing fails.
            NotFoundError: If the folder holds no images.
            ObjectStoreError: If the previous images cannot be erased, or a
                failed upload cannot be cleaned up.
            UpstreamError: If not a single image could be stored.
        """
        folder_id = request.folder_id()
        slug = request.slug
        logger.info(f"Syncing images for property: {slug}, folder: {folder_id}")

        credential = self.credentials.resolve()

        with self._lock_for(slug):
            images = self._list_images(folder_id, credential)
            logger.info(f"Found {len(images)} images in Drive folder")

            erased = self.store.erase_prefix(slug)
            logger.info(f"Erased {len(erased)} existing objects for {slug}")

            stored: list[str] = []
            for file in images:
                try:
                    key = self.transfer(file, slug, len(stored) + 1, credential)
                except PartialFileError as e:
                    logger.warning(f"Failed to process {file.name}: {e}")
                    continue
                stored.append(key)

        if not stored:
            raise UpstreamError("Failed to upload any images")

        urls = [url for url in (self.store.url_for(key) for key in stored) if url]
        logger.info(f"Synced {len(stored)}/{len(images)} images for {slug}")
        return SyncResult(
            slug=slug, record_id=request.record_id, image_keys=stored, image_urls=urls
        )

    def transfer(
        self, file: DriveFile, slug: str, sequence: int, credential: DriveCredential
    ) -> str:
        """Copy one Drive file into the store.

        Returns:
            The key the file was stored under.

        Raises:
            PartialFileError: If the download or the upload fails.
            ObjectStoreError: If a failed upload cannot be cleaned up.
        """
        data = self.drive.download(file.id, credential, file_name=file.name)
        key = image_key(slug, sequence, file.mime_type)

        try:
            self.store.put(key, data, content_type=file.mime_type)
        except ObjectStoreError as e:
            # The write may have landed anyway; the next file reuses this number
            self._discard(key)
            raise PartialFileError(str(e), file_name=file.name) from e

        logger.info(f"Uploaded: {key}")
        return key

    def _discard(self, key: str) -> None:
        """Remove a key whose write reported failure.

        Raises:
            ObjectStoreError: If the delete fails.
        """
        try:
            self.store.delete(key)
        except ObjectStoreError:
            logger.error(f"Failed to remove possibly written object: {key}")
            raise

    def _list_images(self, folder_id: str, credential: DriveCredential) -> list[DriveFile]:
        """List a folder's images in name order, logging skipped files."""
        images = []
        for file in self.drive.list_folder(folder_id, credential):
            if file.is_image:
                images.append(file)
            else:
                logger.info(f"Skipping non-image file: {file.name}")

        if not images:
            raise NotFoundError("No images found in Drive folder")
        return images

    def _lock_for(self, slug: str) -> threading.Lock:
        with self._registry_lock:
            return self._slug_locks.setdefault(slug, threading.Lock())
