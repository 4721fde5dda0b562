"""Durable storage for property images.

Usage:
    from rental_sync.storage import ObjectStore, image_key

    store = ObjectStore(bucket="rental-manager-images", endpoint_url="https://...")
    store.put(image_key("oak-street", 1, "image/png"), data, content_type="image/png")
    store.gallery("oak-street")
"""

from __future__ import annotations

from rental_sync.storage.client import ObjectStore
from rental_sync.storage.keys import (
    extension_for_mime,
    image_key,
    property_prefix,
    sequence_number,
)

__all__ = [
    "ObjectStore",
    "extension_for_mime",
    "image_key",
    "property_prefix",
    "sequence_number",
]
