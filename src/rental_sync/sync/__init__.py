"""Property image sync.

Usage:
    from rental_sync.sync import ImageSync, SyncRequest

    syncer = ImageSync(drive, store, credentials)
    result = syncer.sync(SyncRequest(slug="oak-street", drive_folder_ref=folder_url))
    print(result.image_count)
"""

from __future__ import annotations

from rental_sync.sync.service import ImageSync, SyncRequest, SyncResult

__all__ = ["ImageSync", "SyncRequest", "SyncResult"]
