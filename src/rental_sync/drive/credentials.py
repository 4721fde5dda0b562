"""Google Drive credentials.

Two mutually exclusive modes are supported:
- A static API key (enough for folders shared as "anyone with the link")
- A service account, whose signed-JWT exchange for an OAuth2 access token
  is performed by google-auth

Example:
    >>> resolver = CredentialResolver(api_key="AIza...")
    >>> credential = resolver.resolve()
    >>> credential.is_api_key
    True
"""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import google.auth.exceptions
from google.auth.transport.requests import Request
from google.oauth2 import service_account

from rental_sync.exceptions import CredentialsError, CredentialsNotConfiguredError

logger = logging.getLogger(__name__)

DRIVE_READONLY_SCOPE = "https://www.googleapis.com/auth/drive.readonly"


@dataclass(frozen=True)
class DriveCredential:
    """An API key or bearer token accepted by the Drive API."""

    token: str

    @property
    def is_api_key(self) -> bool:
        """API keys carry no dots; OAuth2 access tokens always do."""
        return "." not in self.token

    def query_params(self) -> dict[str, str]:
        """Query parameters authenticating a request."""
        return {"key": self.token} if self.is_api_key else {}

    def headers(self) -> dict[str, str]:
        """Headers authenticating a request."""
        return {} if self.is_api_key else {"Authorization": f"Bearer {self.token}"}

    def __repr__(self) -> str:
        kind = "api_key" if self.is_api_key else "bearer"
        return f"DriveCredential({kind})"


class CredentialResolver:
    """Produces a Drive credential from configured secrets.

    An API key wins when both modes are configured. Service-account tokens
    are cached and only refreshed once google-auth reports them invalid.
    """

    def __init__(
        self,
        api_key: str | None = None,
        service_account_info: str | dict[str, Any] | None = None,
        service_account_file: str | Path | None = None,
        scopes: list[str] | None = None,
    ):
        """Initialize the resolver.

        Args:
            api_key: Static Drive API key.
            service_account_info: Service account key as JSON text or a parsed dict.
            service_account_file: Path to a service account JSON key file.
            scopes: OAuth scopes. Defaults to read-only Drive.
        """
        self.api_key = api_key
        self.service_account_info = service_account_info
        self.service_account_file = Path(service_account_file) if service_account_file else None
        self.scopes = scopes or [DRIVE_READONLY_SCOPE]
        self._credentials: service_account.Credentials | None = None
        self._lock = threading.Lock()

    @property
    def is_configured(self) -> bool:
        """Whether any credential mode is configured."""
        return bool(self.api_key or self.service_account_info or self.service_account_file)

    def resolve(self) -> DriveCredential:
        """Return a usable Drive credential.

        Raises:
            CredentialsNotConfiguredError: If no credential mode is configured.
            CredentialsError: If the service account key is invalid or the
                token exchange fails.
        """
        if self.api_key:
            return DriveCredential(self.api_key)

        if self.service_account_info or self.service_account_file:
            return DriveCredential(self._service_account_token())

        raise CredentialsNotConfiguredError()

    def _service_account_token(self) -> str:
        """Get a valid access token for the service account."""
        with self._lock:
            if self._credentials is None:
                self._credentials = self._load_service_account()

            if not self._credentials.valid:
                try:
                    self._credentials.refresh(Request())
                except google.auth.exceptions.GoogleAuthError as e:
                    raise CredentialsError(f"Service account token exchange failed: {e}") from e
                email = self._credentials.service_account_email
                logger.info(f"Service account token refreshed: {email}")

            return self._credentials.token

    def _load_service_account(self) -> service_account.Credentials:
        """Load and validate the service account key."""
        key_data = self._read_key_data()

        if key_data.get("type") != "service_account":
            raise CredentialsError(
                f"Invalid service account key: expected type 'service_account', "
                f"got '{key_data.get('type')}'"
            )

        missing = [field for field in ("client_email", "private_key") if not key_data.get(field)]
        if missing:
            raise CredentialsError(f"Invalid service account key: missing {', '.join(missing)}")

        try:
            credentials = service_account.Credentials.from_service_account_info(
                key_data, scopes=self.scopes
            )
        except ValueError as e:
            raise CredentialsError(f"Invalid service account key: {e}") from e

        logger.info(f"Service account initialized: {key_data['client_email']}")
        return credentials

    def _read_key_data(self) -> dict[str, Any]:
        """Read the service account key from JSON text, a dict or a file."""
        raw = self.service_account_info
        if raw is None:
            if not self.service_account_file.exists():
                raise CredentialsError(
                    f"Service account key file not found at {self.service_account_file}"
                )
            raw = self.service_account_file.read_text()

        if isinstance(raw, dict):
            return raw

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise CredentialsError(f"Invalid JSON in service account key: {e}") from e

        if not isinstance(data, dict):
            raise CredentialsError("Invalid service account key: expected a JSON object")
        return data
