# apps/backend/bookster/exporters/covers.py
"""Resolve a cover reference to JPEG bytes. Remote URLs are never fetched."""
from __future__ import annotations

import base64
import binascii
import logging
from io import BytesIO
from pathlib import Path
from typing import Optional

from PIL import Image, UnidentifiedImageError

from .. import storage

logger = logging.getLogger(__name__)


def _read_data_url(url: str) -> Optional[bytes]:
    header, _, payload = url.partition(",")
    if not payload:
        return None
    try:
        if ";base64" in header:
            return base64.b64decode(payload, validate=False)
        return payload.encode("utf-8")
    except (binascii.Error, ValueError):
        logger.warning("Cover data URL is not valid base64")
        return None


def _read_upload(ref: str) -> Optional[bytes]:
    rel = ref.split("?", 1)[0].lstrip("/")
    if rel.startswith("uploads/"):
        rel = rel[len("uploads/"):]
    if not rel:
        return None

    root = Path(storage.UPLOADS_DIR).resolve()
    target = (root / rel).resolve()
    # no path traversal outside UPLOADS_DIR
    if root != target and root not in target.parents:
        logger.warning("Cover path escapes the uploads directory: %s", ref)
        return None
    if not target.is_file():
        logger.warning("Cover file not found: %s", target)
        return None
    return target.read_bytes()


def load_cover_bytes(ref: Optional[str]) -> Optional[bytes]:
    """Raw bytes behind a cover reference, or None."""
    ref = (ref or "").strip()
    if not ref:
        return None
    if ref.startswith("data:"):
        return _read_data_url(ref)
    if ref.lower().startswith(("http://", "https://", "//")):
        return None
    return _read_upload(ref)


def to_jpeg(raw: bytes, quality: int = 90) -> Optional[bytes]:
    try:
        with Image.open(BytesIO(raw)) as img:
            img.load()
            rgb = img.convert("RGB")
    except (UnidentifiedImageError, OSError) as exc:
        logger.warning("Cover image unreadable, skipping it: %s", exc)
        return None
    buf = BytesIO()
    rgb.save(buf, format="JPEG", quality=quality)
    return buf.getvalue()


def resolve_cover_jpeg(ref: Optional[str]) -> Optional[bytes]:
    raw = load_cover_bytes(ref)
    if not raw:
        return None
    return to_jpeg(raw)


def cover_data_url(ref: Optional[str]) -> Optional[str]:
    """Inline form of a local cover, for renderers that cannot read the uploads dir."""
    jpeg = resolve_cover_jpeg(ref)
    if jpeg is None:
        return None
    return "data:image/jpeg;base64," + base64.b64encode(jpeg).decode("ascii")


def browser_cover_src(ref: Optional[str]) -> Optional[str]:
    """
    Image source override for HTML a browser renders: None keeps a remote URL
    as-is, local covers are inlined, "" drops a local cover that cannot be read.
    """
    if not ref or ref.startswith(("http://", "https://")):
        return None
    return cover_data_url(ref) or ""
