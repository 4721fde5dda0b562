"""Google Drive access for image replication.

Read-only: folders are listed and file bytes downloaded, nothing is written
back to Drive.

Usage:
    from rental_sync.drive import CredentialResolver, DriveClient, parse_folder_ref

    folder_id = parse_folder_ref("https://drive.google.com/drive/folders/1AbCdEfGhIjK")
    credential = CredentialResolver(api_key="AIza...").resolve()

    with DriveClient() as client:
        for file in client.list_folder(folder_id, credential):
            if file.is_image:
                data = client.download(file.id, credential)
"""

from __future__ import annotations

from rental_sync.drive.client import DriveClient, DriveFile, parse_folder_ref
from rental_sync.drive.credentials import CredentialResolver, DriveCredential

__all__ = [
    "CredentialResolver",
    "DriveClient",
    "DriveCredential",
    "DriveFile",
    "parse_folder_ref",
]
