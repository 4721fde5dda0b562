"""Image sync exceptions.

Every exception carries the HTTP status the webhook answers with, so the
entrypoint can turn any failure into a single classification.
"""

from __future__ import annotations


class SyncError(Exception):
    """Base exception for image sync errors."""

    http_status = 500


class ClientInputError(SyncError):
    """Raised when the request is missing fields or names an unusable folder."""

    http_status = 400


class AuthError(SyncError):
    """Raised when the webhook secret does not match."""

    http_status = 401


class NotFoundError(SyncError):
    """Raised when the Drive folder holds no images."""

    http_status = 404


class MethodError(SyncError):
    """Raised for HTTP methods the webhook does not serve."""

    http_status = 405


class UpstreamError(SyncError):
    """Raised when Drive, the object store or the credential setup fails."""

    pass


class CredentialsError(UpstreamError):
    """Raised when configured Drive credentials cannot produce a token."""

    pass


class CredentialsNotConfiguredError(CredentialsError):
    """Raised when neither an API key nor a service account is configured."""

    def __init__(self):
        super().__init__("Google Drive credentials not configured")


class DriveAPIError(UpstreamError):
    """Raised when a Drive listing request fails."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class PaginationLimitError(DriveAPIError):
    """Raised when a folder listing keeps returning continuation tokens."""

    def __init__(self, max_pages: int):
        self.max_pages = max_pages
        super().__init__(f"Drive pagination limit exceeded ({max_pages} pages)")


class ObjectStoreError(UpstreamError):
    """Raised when listing, writing or deleting an object fails."""

    def __init__(self, message: str, key: str | None = None):
        self.key = key
        super().__init__(message)


class PartialFileError(SyncError):
    """Raised when a single file cannot be transferred.

    The orchestrator logs and skips these; they only surface as the run's
    outcome when no file at all could be stored.
    """

    def __init__(self, message: str, file_name: str | None = None):
        self.file_name = file_name
        super().__init__(message)


class DownloadError(PartialFileError):
    """Raised when Drive refuses to serve a file's bytes."""

    def __init__(self, status_code: int | None, file_name: str | None = None):
        self.status_code = status_code
        super().__init__(f"Failed to download file: {status_code}", file_name=file_name)
