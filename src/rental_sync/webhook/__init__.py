"""HTTP webhook that triggers image syncs.

Usage:
    uvicorn --factory rental_sync.webhook:create_app

    # or
    rental-sync serve --port 8080
"""

from __future__ import annotations

from rental_sync.webhook.app import create_app

__all__ = ["create_app"]
