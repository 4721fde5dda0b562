"""Tests for the webhook entrypoint."""

from unittest.mock import MagicMock

import pytest
from conftest import FOLDER_URL, drive_file
from fastapi.testclient import TestClient

from rental_sync.config import Settings
from rental_sync.drive import CredentialResolver
from rental_sync.sync import ImageSync
from rental_sync.webhook import create_app

SECRET = "s3cret-value"
BODY = {"recordId": "rec123", "slug": "oak", "driveFolderRef": FOLDER_URL}


@pytest.fixture
def client(syncer):
    return TestClient(create_app(Settings(webhook_secret=SECRET), syncer=syncer))


@pytest.fixture
def open_client(syncer):
    """Client for an app with no shared secret configured."""
    return TestClient(create_app(Settings(), syncer=syncer))


def post(client, path="/sync-images", json=BODY, secret=SECRET, **kwargs):
    headers = {"X-Webhook-Secret": secret} if secret is not None else {}
    return client.post(path, json=json, headers=headers, **kwargs)


class TestRouting:
    """Test method and path dispatch."""

    def test_preflight(self, client):
        """Should answer OPTIONS with CORS headers and no body."""
        response = client.options("/sync-images")
        assert response.status_code == 204
        assert response.content == b""
        assert response.headers["Access-Control-Allow-Origin"] == "*"
        assert response.headers["Access-Control-Allow-Methods"] == "POST, OPTIONS"
        assert "X-Webhook-Secret" in response.headers["Access-Control-Allow-Headers"]

    @pytest.mark.parametrize("method", ["GET", "PUT", "DELETE", "PATCH"])
    def test_other_methods_not_allowed(self, client, method):
        response = client.request(method, "/sync-images")
        assert response.status_code == 405
        assert response.json() == {"error": "Method not allowed"}

    @pytest.mark.parametrize("path", ["/somewhere-else", "/sync-images/", "/sync-images/x"])
    def test_unknown_path(self, client, drive_api, path):
        """Should answer 404 rather than redirect, trailing slash included."""
        response = post(client, path, follow_redirects=False)
        assert response.status_code == 404
        assert response.json() == {"error": "Not found"}
        assert response.headers["Access-Control-Allow-Origin"] == "*"
        assert drive_api.requests == []

    def test_root_path_also_syncs(self, client, drive_api):
        drive_api.files = [drive_file("f1", "a.jpg")]
        response = post(client, "/")
        assert response.status_code == 200


class TestSecret:
    """Test the shared-secret check."""

    def test_missing_secret_makes_no_calls(self, client, drive_api, s3):
        """Should reject before touching Drive or the store."""
        drive_api.files = [drive_file("f1", "a.jpg")]

        response = post(client, secret=None)

        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}
        assert drive_api.requests == []
        assert s3.calls == []

    def test_wrong_secret(self, client, drive_api):
        response = post(client, secret="guess")
        assert response.status_code == 401
        assert drive_api.requests == []

    def test_secret_checked_before_body(self, client):
        """Should answer 401, not 400, to a malformed body without the secret."""
        response = client.post("/sync-images", content=b"{not json")
        assert response.status_code == 401

    def test_non_ascii_secret(self, syncer, drive_api):
        """Should match a secret sent as raw UTF-8 header bytes."""
        client = TestClient(create_app(Settings(webhook_secret="clé-secrète"), syncer=syncer))
        drive_api.files = [drive_file("f1", "a.jpg")]

        response = post(client, secret="clé-secrète".encode())
        assert response.status_code == 200

        response = post(client, secret="cle-secrete")
        assert response.status_code == 401

    def test_no_secret_configured(self, open_client, drive_api):
        drive_api.files = [drive_file("f1", "a.jpg")]
        response = post(open_client, secret=None)
        assert response.status_code == 200


class TestSyncEndpoint:
    """Test request handling and response mapping."""

    def test_success(self, client, drive_api, s3):
        drive_api.files = [
            drive_file("f2", "b.png", "image/png"),
            drive_file("f1", "a.jpg"),
            drive_file("f3", "c.txt", "text/plain"),
        ]

        response = post(client)

        assert response.status_code == 200
        assert response.headers["Access-Control-Allow-Origin"] == "*"
        assert response.json() == {
            "success": True,
            "recordId": "rec123",
            "slug": "oak",
            "imageCount": 2,
            "images": ["properties/oak/image-1.jpg", "properties/oak/image-2.png"],
        }

    def test_legacy_field_name(self, client, drive_api):
        drive_api.files = [drive_file("f1", "a.jpg")]
        response = post(client, json={"slug": "oak", "imageFolderUrl": FOLDER_URL})
        assert response.status_code == 200
        assert response.json()["recordId"] is None

    def test_malformed_json(self, client):
        response = client.post(
            "/sync-images", content=b"{not json", headers={"X-Webhook-Secret": SECRET}
        )
        assert response.status_code == 400
        assert "error" in response.json()

    def test_missing_fields(self, client, drive_api):
        response = post(client, json={"recordId": "rec123", "slug": "oak"})
        assert response.status_code == 400
        assert response.json() == {"error": "Missing required fields: slug, driveFolderRef"}
        assert drive_api.requests == []

    def test_invalid_folder_url(self, client):
        response = post(client, json={**BODY, "driveFolderRef": "https://example.com/x"})
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid Google Drive folder URL"}

    def test_no_images(self, client, drive_api):
        drive_api.files = [drive_file("f1", "a.pdf", "application/pdf")]
        response = post(client)
        assert response.status_code == 404
        assert response.json() == {"error": "No images found in Drive folder"}

    def test_credentials_not_configured(self, drive, store):
        syncer = ImageSync(drive, store, CredentialResolver())
        client = TestClient(create_app(Settings(), syncer=syncer))

        response = post(client)

        assert response.status_code == 500
        assert response.json() == {"error": "Google Drive credentials not configured"}

    def test_drive_error(self, client, drive_api):
        drive_api.list_status = 500
        response = post(client)
        assert response.status_code == 500
        assert response.json()["error"].startswith("Drive API error: 500")

    def test_all_transfers_failed(self, client, drive_api):
        drive_api.files = [drive_file("f1", "a.jpg")]
        drive_api.fail_downloads.add("f1")
        response = post(client)
        assert response.status_code == 500
        assert response.json() == {"error": "Failed to upload any images"}

    def test_unexpected_error(self):
        syncer = MagicMock(spec=ImageSync)
        syncer.sync.side_effect = RuntimeError("disk on fire")
        client = TestClient(create_app(Settings(), syncer=syncer))

        response = post(client)

        assert response.status_code == 500
        assert response.json() == {"error": "disk on fire"}
