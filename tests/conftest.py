"""Shared fixtures: in-memory Drive API and S3 bucket behind the real clients."""

import httpx
import pytest
from botocore.exceptions import ClientError

from rental_sync.drive import CredentialResolver, DriveClient
from rental_sync.storage import ObjectStore
from rental_sync.sync import ImageSync

FOLDER_ID = "1AbCdEfGhIjKlMnOp"
FOLDER_URL = f"https://drive.google.com/drive/folders/{FOLDER_ID}?usp=sharing"


def drive_file(file_id, name, mime_type="image/jpeg", content=None):
    """A file as served by the fake Drive API."""
    return {
        "id": file_id,
        "name": name,
        "mimeType": mime_type,
        "content": content if content is not None else f"bytes-of-{name}".encode(),
    }


def client_error(operation):
    return ClientError({"Error": {"Code": "InternalError", "Message": "boom"}}, operation)


class FakeDriveAPI:
    """Serves folder listings and file content like Drive v3."""

    def __init__(self, files=None, page_size=2):
        self.files = list(files or [])
        self.page_size = page_size
        self.list_status = 200
        self.fail_list_from = 0
        self.fail_downloads: set[str] = set()
        self.endless_pages = False
        self.requests: list[httpx.Request] = []

    @property
    def list_calls(self):
        return [r for r in self.requests if r.url.path == "/drive/v3/files"]

    @property
    def download_calls(self):
        return [r for r in self.requests if r.url.params.get("alt") == "media"]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if request.url.path == "/drive/v3/files":
            start = int(request.url.params.get("pageToken") or 0)
            if self.list_status != 200 and start >= self.fail_list_from:
                return httpx.Response(self.list_status, text="backend error")

            page = self.files[start : start + self.page_size]
            body = {
                "files": [{k: f[k] for k in ("id", "name", "mimeType")} for f in page],
            }
            if self.endless_pages or start + self.page_size < len(self.files):
                body["nextPageToken"] = str(start + self.page_size)
            return httpx.Response(200, json=body)

        file_id = request.url.path.rsplit("/", 1)[-1]
        if file_id in self.fail_downloads:
            return httpx.Response(403, text="forbidden")
        for f in self.files:
            if f["id"] == file_id:
                return httpx.Response(200, content=f["content"])
        return httpx.Response(404, text="not found")


class _Paginator:
    def __init__(self, s3):
        self._s3 = s3

    def paginate(self, Bucket, Prefix):
        self._s3.calls.append(("list", Prefix))
        if self._s3.fail_list:
            raise client_error("ListObjectsV2")

        keys = sorted(k for k in self._s3.objects if k.startswith(Prefix))
        if not keys:
            yield {"KeyCount": 0}
            return
        for i in range(0, len(keys), 2):
            yield {"Contents": [{"Key": k} for k in keys[i : i + 2]]}


class FakeS3Client:
    """Just enough of a boto3 S3 client for ObjectStore."""

    def __init__(self):
        self.objects: dict[str, tuple[bytes, str | None]] = {}
        self.fail_list = False
        self.fail_put: set[str] = set()
        self.lost_ack_put: set[str] = set()
        self.fail_delete: set[str] = set()
        self.calls: list[tuple[str, str]] = []

    def get_paginator(self, name):
        assert name == "list_objects_v2"
        return _Paginator(self)

    def put_object(self, Bucket, Key, Body, ContentType=None):
        self.calls.append(("put", Key))
        if Key in self.fail_put:
            # one-shot, so a retry of the same key succeeds
            self.fail_put.discard(Key)
            raise client_error("PutObject")
        self.objects[Key] = (Body, ContentType)
        if Key in self.lost_ack_put:
            # stored, but the caller sees an error
            self.lost_ack_put.discard(Key)
            raise client_error("PutObject")

    def delete_object(self, Bucket, Key):
        self.calls.append(("delete", Key))
        if Key in self.fail_delete:
            raise client_error("DeleteObject")
        self.objects.pop(Key, None)

    def calls_of(self, kind):
        return [key for op, key in self.calls if op == kind]


@pytest.fixture
def drive_api():
    return FakeDriveAPI()


@pytest.fixture
def s3():
    return FakeS3Client()


@pytest.fixture
def drive(drive_api):
    client = DriveClient(transport=httpx.MockTransport(drive_api.handler))
    yield client
    client.close()


@pytest.fixture
def store(s3):
    return ObjectStore(bucket="test-bucket", client=s3)


@pytest.fixture
def credentials():
    return CredentialResolver(api_key="test-api-key")


@pytest.fixture
def syncer(drive, store, credentials):
    return ImageSync(drive, store, credentials)
