"""Centralized configuration.

Settings come from the environment. A ``.env`` file at the repo root is
loaded on import; variables already set in the environment take precedence.

    .env
        GOOGLE_DRIVE_API_KEY          - Drive API key (public folders)
        GOOGLE_SERVICE_ACCOUNT_JSON   - or: service account key JSON
        GOOGLE_SERVICE_ACCOUNT_FILE   - or: path to service account key file
        WEBHOOK_SECRET                - shared secret for X-Webhook-Secret
        R2_ACCOUNT_ID, R2_ACCESS_KEY_ID, R2_SECRET_ACCESS_KEY, R2_BUCKET_NAME
        R2_ENDPOINT_URL               - overrides the endpoint derived from R2_ACCOUNT_ID
        R2_PUBLIC_URL                 - public base URL of the bucket
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

# __file__ is src/rental_sync/config.py, so 3 levels up
REPO_ROOT = Path(__file__).parent.parent.parent
ENV_FILE = REPO_ROOT / ".env"

DEFAULT_BUCKET = "rental-manager-images"


def _load_env_file(env_path: Path) -> dict[str, str]:
    """Load environment variables from a file.

    Args:
        env_path: Path to .env file.

    Returns:
        Dictionary of loaded variables.
    """
    loaded = {}
    if not env_path.exists():
        return loaded

    with open(env_path) as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" not in line:
                continue

            key, _, value = line.partition("=")
            key = key.strip()
            value = value.strip()

            # Remove surrounding quotes
            if (value.startswith('"') and value.endswith('"')) or (
                value.startswith("'") and value.endswith("'")
            ):
                value = value[1:-1]

            # Only set if not already in environment (env vars take precedence)
            if key and key not in os.environ:
                os.environ[key] = value
                loaded[key] = value

    return loaded


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {value!r}") from e


def _env_float(name: str, default: float) -> float:
    value = os.environ.get(name)
    if not value:
        return default
    try:
        return float(value)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {value!r}") from e


@dataclass
class Settings:
    """Runtime settings for the sync service."""

    drive_api_key: str | None = None
    service_account_json: str | None = None
    service_account_file: str | None = None
    webhook_secret: str | None = None
    r2_account_id: str | None = None
    r2_access_key_id: str | None = None
    r2_secret_access_key: str | None = None
    r2_bucket: str = DEFAULT_BUCKET
    r2_endpoint_url: str | None = None
    r2_public_url: str | None = None
    drive_max_pages: int = 100
    http_timeout: float = 30.0
    host: str = "0.0.0.0"
    port: int = 8080

    @classmethod
    def from_env(cls) -> Settings:
        """Read settings from environment variables."""
        env = os.environ.get
        return cls(
            drive_api_key=env("GOOGLE_DRIVE_API_KEY") or None,
            service_account_json=env("GOOGLE_SERVICE_ACCOUNT_JSON") or None,
            service_account_file=env("GOOGLE_SERVICE_ACCOUNT_FILE") or None,
            webhook_secret=env("WEBHOOK_SECRET") or env("AIRTABLE_WEBHOOK_SECRET") or None,
            r2_account_id=env("R2_ACCOUNT_ID") or None,
            r2_access_key_id=env("R2_ACCESS_KEY_ID") or None,
            r2_secret_access_key=env("R2_SECRET_ACCESS_KEY") or None,
            r2_bucket=env("R2_BUCKET_NAME") or DEFAULT_BUCKET,
            r2_endpoint_url=env("R2_ENDPOINT_URL") or None,
            r2_public_url=env("R2_PUBLIC_URL") or None,
            drive_max_pages=_env_int("DRIVE_MAX_PAGES", 100),
            http_timeout=_env_float("HTTP_TIMEOUT", 30.0),
            host=env("HOST") or "0.0.0.0",
            port=_env_int("PORT", 8080),
        )

    @property
    def endpoint_url(self) -> str | None:
        """S3 endpoint: explicit URL, else derived from the R2 account ID."""
        if self.r2_endpoint_url:
            return self.r2_endpoint_url
        if self.r2_account_id:
            return f"https://{self.r2_account_id}.r2.cloudflarestorage.com"
        return None


def get_credential_status(settings: Settings | None = None) -> dict:
    """Get status of all configured credentials.

    Returns:
        Dictionary with credential status.
    """
    settings = settings or Settings.from_env()
    return {
        "repo_root": str(REPO_ROOT),
        "env_file": ENV_FILE.exists(),
        "drive": {
            "api_key": bool(settings.drive_api_key),
            "service_account": bool(settings.service_account_json or settings.service_account_file),
        },
        "webhook": {
            "secret": bool(settings.webhook_secret),
        },
        "storage": {
            "endpoint": bool(settings.endpoint_url),
            "access_key": bool(settings.r2_access_key_id and settings.r2_secret_access_key),
            "bucket": settings.r2_bucket,
            "public_url": bool(settings.r2_public_url),
        },
    }


# Auto-load .env from repo root on import
_loaded = _load_env_file(ENV_FILE)
