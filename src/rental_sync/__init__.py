"""Replicates property images from Google Drive folders into an object store."""

from rental_sync.exceptions import (
    AuthError,
    ClientInputError,
    NotFoundError,
    PartialFileError,
    SyncError,
    UpstreamError,
)
from rental_sync.sync import ImageSync, SyncRequest, SyncResult

__all__ = [
    "ImageSync",
    "SyncRequest",
    "SyncResult",
    "SyncError",
    "ClientInputError",
    "AuthError",
    "NotFoundError",
    "UpstreamError",
    "PartialFileError",
]
