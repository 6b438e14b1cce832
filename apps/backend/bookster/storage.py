# apps/backend/bookster/storage.py
from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from .settings import get_settings

logger = logging.getLogger(__name__)

_settings = get_settings()

# Persistent root (override with env STORAGE_ROOT / EXPORTS_DIR / UPLOADS_DIR)
BASE_DIR = Path(_settings.storage_root).resolve()

EXPORTS_DIR = Path(_settings.exports_dir).resolve() if _settings.exports_dir else BASE_DIR / "exports"
UPLOADS_DIR = Path(_settings.uploads_dir).resolve() if _settings.uploads_dir else BASE_DIR / "uploads"
ADMIN_DIR = BASE_DIR / "admin"


def ensure_dirs() -> None:
    BASE_DIR.mkdir(parents=True, exist_ok=True)
    EXPORTS_DIR.mkdir(parents=True, exist_ok=True)
    UPLOADS_DIR.mkdir(parents=True, exist_ok=True)
    ADMIN_DIR.mkdir(parents=True, exist_ok=True)


def file_path(relative: str) -> Path:
    """Path of a file under the storage root (e.g. "admin/users.json")."""
    return BASE_DIR / relative


def write_bytes_atomic(path: Path, data: bytes) -> None:
    """
    Write `data` to `path` so that readers see either the old file or the
    complete new one: temp file in the same directory, then rename.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def load_json(path: Path, default: Any) -> Any:
    """Read a JSON document; a missing or corrupt file yields `default`."""
    if not path.exists():
        return default
    try:
        return json.loads(path.read_text(encoding="utf-8") or "null") or default
    except json.JSONDecodeError:
        logger.warning("Corrupt JSON in %s, ignoring it", path)
        return default


def save_json(path: Path, data: Any) -> None:
    write_bytes_atomic(
        path,
        json.dumps(data, ensure_ascii=False, indent=2).encode("utf-8"),
    )
