"""Webhook entrypoint for image sync.

POST /sync-images (or /) with ``{recordId, slug, driveFolderRef}`` and, when
a secret is configured, an ``X-Webhook-Secret`` header.
"""

from __future__ import annotations

import asyncio
import hmac
import json
import logging

from fastapi import FastAPI, Header, Request
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from rental_sync.config import Settings
from rental_sync.exceptions import AuthError, ClientInputError, MethodError, SyncError
from rental_sync.sync import ImageSync, SyncRequest

logger = logging.getLogger(__name__)

SECRET_HEADER = "X-Webhook-Secret"

CORS_HEADERS = {"Access-Control-Allow-Origin": "*"}
PREFLIGHT_HEADERS = {
    **CORS_HEADERS,
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": f"Content-Type, {SECRET_HEADER}",
}


def error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code, headers=CORS_HEADERS)


def create_app(settings: Settings | None = None, syncer: ImageSync | None = None) -> FastAPI:
    """Build the webhook application.

    Args:
        settings: Runtime settings. Read from the environment if None.
        syncer: Sync service. Built from settings if None.

    Returns:
        FastAPI application.
    """
    settings = settings or Settings.from_env()
    syncer = syncer or ImageSync.from_settings(settings)
    secret = settings.webhook_secret

    app = FastAPI(
        title="Rental Image Sync",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        redirect_slashes=False,
    )

    @app.middleware("http")
    async def method_gate(request: Request, call_next):
        if request.method == "OPTIONS":
            return Response(status_code=204, headers=PREFLIGHT_HEADERS)
        if request.method != "POST":
            return error_response("Method not allowed", MethodError.http_status)
        return await call_next(request)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return error_response("Not found", 404)
        if exc.status_code == 405:
            return error_response("Method not allowed", 405)
        return error_response(str(exc.detail), exc.status_code)

    @app.post("/")
    @app.post("/sync-images")
    async def sync_images(
        request: Request,
        x_webhook_secret: str | None = Header(None),
    ):
        """Replace a property's stored images with its Drive folder's images."""
        try:
            # Authenticate before the body is touched. Header values arrive
            # decoded as latin-1, so recover the raw bytes before comparing.
            if secret and not hmac.compare_digest(
                (x_webhook_secret or "").encode("latin-1"), secret.encode()
            ):
                raise AuthError("Unauthorized")

            body = await request.body()
            try:
                payload = json.loads(body or b"null")
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                raise ClientInputError(f"Invalid JSON body: {e}") from e

            sync_request = SyncRequest.from_payload(payload)
            result = await asyncio.to_thread(syncer.sync, sync_request)

        except SyncError as e:
            if e.http_status >= 500:
                logger.error(f"Sync failed: {e}")
            else:
                logger.info(f"Sync rejected ({e.http_status}): {e}")
            return error_response(str(e), e.http_status)

        except Exception as e:
            logger.exception("Error syncing images")
            return error_response(str(e) or "Unknown error", 500)

        return JSONResponse(result.to_dict(), headers=CORS_HEADERS)

    return app
