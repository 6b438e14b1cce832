# apps/backend/bookster/admin_configs.py
"""Key/value store for admin-editable settings (prompt templates)."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from . import storage

PROMPT_BOOK_OUTLINE = "prompt_book_outline"
PROMPT_CHAPTER_GENERATION = "prompt_chapter_generation"


def _configs_path():
    return storage.file_path("admin/configs.json")


def _load() -> Dict[str, Dict[str, Any]]:
    data = storage.load_json(_configs_path(), {})
    return data if isinstance(data, dict) else {}


def get_admin_config(key: str) -> Optional[Dict[str, Any]]:
    return _load().get(key)


def set_admin_config(key: str, value: Any) -> Dict[str, Any]:
    configs = _load()
    entry = {
        "configKey": key,
        "configValue": value,
        "updatedAt": datetime.now(timezone.utc).isoformat(),
    }
    configs[key] = entry
    storage.save_json(_configs_path(), configs)
    return entry


def list_admin_configs() -> List[Dict[str, Any]]:
    configs = _load()
    return [configs[k] for k in sorted(configs)]
