"""Object key scheme for property images.

Images for a property live under ``properties/{slug}/`` and are named
``image-{n}.{ext}``, numbered from 1 in Drive name order.
"""

from __future__ import annotations

import re

DEFAULT_EXTENSION = "jpg"

MIME_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
    "image/svg+xml": "svg",
    "image/bmp": "bmp",
}

IMAGE_KEY_PATTERN = re.compile(r"/image-(\d+)\.[A-Za-z0-9]+$")


def extension_for_mime(mime_type: str | None) -> str:
    """Map a content type to a file extension, defaulting to ``jpg``."""
    return MIME_EXTENSIONS.get((mime_type or "").lower(), DEFAULT_EXTENSION)


def property_prefix(slug: str) -> str:
    return f"properties/{slug}/"


def image_key(slug: str, sequence: int, mime_type: str | None) -> str:
    """Build the object key for the ``sequence``-th image of a property."""
    return f"{property_prefix(slug)}image-{sequence}.{extension_for_mime(mime_type)}"


def sequence_number(key: str) -> int | None:
    """Recover the image number from a stored key, or None for foreign keys."""
    match = IMAGE_KEY_PATTERN.search(key)
    return int(match.group(1)) if match else None
