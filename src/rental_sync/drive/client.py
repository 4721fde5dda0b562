"""Google Drive REST client for folder listing and file download."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any

import httpx

from rental_sync.drive.credentials import DriveCredential
from rental_sync.exceptions import (
    DownloadError,
    DriveAPIError,
    PaginationLimitError,
    PartialFileError,
)

logger = logging.getLogger(__name__)

# https://drive.google.com/drive/folders/<id>?usp=sharing
FOLDER_URL_PATTERN = re.compile(r"/folders/([A-Za-z0-9_\-]+)")
FOLDER_ID_PATTERN = re.compile(r"^[A-Za-z0-9_\-]{10,}$")


@dataclass
class DriveFile:
    """Represents a file inside a Drive folder."""

    id: str
    name: str
    mime_type: str

    @property
    def is_image(self) -> bool:
        """Whether the file is an image and should be replicated."""
        return self.mime_type.lower().startswith("image/")


def parse_folder_ref(ref: str | None) -> str | None:
    """Extract a Drive folder ID from a folder URL or a bare ID.

    Args:
        ref: Folder URL (``.../folders/<id>``) or the ID itself.

    Returns:
        The folder ID, or None if the reference names no folder.
    """
    if not ref:
        return None

    match = FOLDER_URL_PATTERN.search(ref)
    if match:
        return match.group(1)

    ref = ref.strip()
    if FOLDER_ID_PATTERN.match(ref):
        return ref

    return None


class DriveClient:
    """Google Drive v3 client for read-only folder replication.

    Example:
        >>> client = DriveClient()
        >>> credential = CredentialResolver(api_key="AIza...").resolve()
        >>> files = client.list_folder("1AbCdEfGhIjK", credential)
        >>> data = client.download(files[0].id, credential)
    """

    BASE_URL = "https://www.googleapis.com/drive/v3"
    LIST_FIELDS = "files(id,name,mimeType),nextPageToken"

    def __init__(
        self,
        timeout: float = 30.0,
        page_size: int = 100,
        max_pages: int = 100,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize Drive client.

        Args:
            timeout: Per-request timeout in seconds.
            page_size: Files requested per listing page.
            max_pages: Listing pages followed before giving up.
            transport: Optional httpx transport (used by tests).
        """
        self.page_size = page_size
        self.max_pages = max_pages
        self._client = httpx.Client(base_url=self.BASE_URL, timeout=timeout, transport=transport)

    def list_folder(self, folder_id: str, credential: DriveCredential) -> list[DriveFile]:
        """List every file directly inside a folder, sorted by name.

        Non-image files are kept so callers can report what they skip.

        Args:
            folder_id: Drive folder ID.
            credential: API key or bearer token.

        Returns:
            All child files ordered by name.

        Raises:
            DriveAPIError: If any page request fails.
            PaginationLimitError: If the listing exceeds ``max_pages``.
        """
        files: list[DriveFile] = []
        page_token: str | None = None
        pages = 0

        while True:
            if pages >= self.max_pages:
                raise PaginationLimitError(self.max_pages)

            params: dict[str, Any] = {
                "q": f"'{folder_id}' in parents and trashed=false",
                "fields": self.LIST_FIELDS,
                "pageSize": self.page_size,
            }
            if page_token:
                params["pageToken"] = page_token

            data = self._get_json("/files", credential, params)
            files.extend(self._parse_file(item) for item in data.get("files", []))
            pages += 1

            page_token = data.get("nextPageToken")
            if not page_token:
                break

        logger.debug(f"Listed {len(files)} files in folder {folder_id} ({pages} pages)")
        return sorted(files, key=lambda f: f.name)

    def download(
        self, file_id: str, credential: DriveCredential, file_name: str | None = None
    ) -> bytes:
        """Download a file's raw bytes.

        Args:
            file_id: Drive file ID.
            credential: API key or bearer token.
            file_name: File name, for error reporting.

        Returns:
            File content.

        Raises:
            DownloadError: If Drive answers with a non-success status.
            PartialFileError: If the request itself fails.
        """
        params = {"alt": "media", **credential.query_params()}
        try:
            response = self._client.get(
                f"/files/{file_id}", params=params, headers=credential.headers()
            )
        except httpx.HTTPError as e:
            raise PartialFileError(f"Failed to download file: {e}", file_name=file_name) from e

        if not response.is_success:
            raise DownloadError(response.status_code, file_name=file_name)

        return response.content

    def _get_json(
        self, path: str, credential: DriveCredential, params: dict[str, Any]
    ) -> dict[str, Any]:
        """Make an authenticated GET request and decode the JSON body."""
        params = {**params, **credential.query_params()}
        try:
            response = self._client.get(path, params=params, headers=credential.headers())
        except httpx.HTTPError as e:
            raise DriveAPIError(f"Drive API request failed: {e}") from e

        if not response.is_success:
            raise DriveAPIError(
                f"Drive API error: {response.status_code} - {response.text}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise DriveAPIError(f"Drive API returned invalid JSON: {e}") from e

    def _parse_file(self, data: dict) -> DriveFile:
        """Parse file from API response."""
        return DriveFile(
            id=data["id"],
            name=data.get("name", ""),
            mime_type=data.get("mimeType", ""),
        )

    def close(self):
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()
