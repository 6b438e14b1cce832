# apps/backend/bookster/users.py
from __future__ import annotations

import logging
import secrets
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from . import storage
from .plans import UNLIMITED_CREDITS, credits_for_plan, normalize_plan

logger = logging.getLogger(__name__)

# In-memory "DB"
USERS: Dict[str, Dict[str, Any]] = {}         # key: user_id
USERS_BY_KEY: Dict[str, Dict[str, Any]] = {}  # key: api_key -> user

# sync handlers run in a threadpool: every mutation + save + usage append holds this
_USERS_LOCK = threading.RLock()

ROLE_ADMIN = "admin"
ROLE_USER = "user"


def _users_path():
    return storage.file_path("admin/users.json")


def _usage_path():
    return storage.file_path("admin/credit_usage.json")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _rebuild_indexes() -> None:
    """Rebuild USERS_BY_KEY from USERS."""
    USERS_BY_KEY.clear()
    for u in USERS.values():
        k = (u.get("api_key") or "").strip()
        if k:
            USERS_BY_KEY[k] = u


def load_users() -> None:
    """Load users from disk into USERS / USERS_BY_KEY."""
    data = storage.load_json(_users_path(), {})
    with _USERS_LOCK:
        USERS.clear()
        if isinstance(data, dict):
            USERS.update(data)
        _rebuild_indexes()


def save_users() -> None:
    """Write USERS to disk (atomic)."""
    with _USERS_LOCK:
        storage.save_json(_users_path(), USERS)


def get_user(user_id: str) -> Optional[Dict[str, Any]]:
    return USERS.get(user_id)


def get_user_by_api_key(api_key: str) -> Optional[Dict[str, Any]]:
    if not api_key:
        return None
    return USERS_BY_KEY.get(api_key.strip())


def list_users() -> List[Dict[str, Any]]:
    with _USERS_LOCK:
        return list(USERS.values())


def is_admin(user: Dict[str, Any]) -> bool:
    return user.get("role") == ROLE_ADMIN


def public_view(user: Dict[str, Any]) -> Dict[str, Any]:
    """User without api_key, for admin responses."""
    return {k: v for k, v in user.items() if k != "api_key"}


def create_user(
    *,
    username: str,
    email: str,
    role: str = ROLE_USER,
    plan: Optional[str] = None,
    credits: Optional[int] = None,
    api_key: Optional[str] = None,
) -> Dict[str, Any]:
    plan_code = normalize_plan(plan or ("admin" if role == ROLE_ADMIN else "free"))
    user = {
        "id": f"u_{secrets.token_hex(6)}",
        "username": username,
        "email": email,
        "role": role,
        "plan": plan_code,
        "credits": credits if credits is not None else credits_for_plan(plan_code),
        "status": "active",
        "api_key": api_key or secrets.token_urlsafe(24),
        "created_at": _now(),
        "credits_reset_at": _now(),
    }
    with _USERS_LOCK:
        for u in USERS.values():
            if u.get("email") == email:
                raise ValueError("Email already registered")
            if u.get("username") == username:
                raise ValueError("Username already taken")
        if user["api_key"] in USERS_BY_KEY:
            raise ValueError("api_key already in use")
        USERS[user["id"]] = user
        _rebuild_indexes()
        save_users()
    return user


_UPDATABLE = {"username", "email", "role", "plan", "credits", "status"}


def update_user(user_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    with _USERS_LOCK:
        user = USERS.get(user_id)
        if not user:
            return None
        for key, value in updates.items():
            if key not in _UPDATABLE or value is None:
                continue
            user[key] = normalize_plan(value) if key == "plan" else value
        save_users()
        return user


def delete_user(user_id: str) -> bool:
    with _USERS_LOCK:
        if USERS.pop(user_id, None) is None:
            return False
        _rebuild_indexes()
        save_users()
        return True


def has_credits(user: Dict[str, Any], amount: int = 1) -> bool:
    return is_admin(user) or int(user.get("credits") or 0) >= amount


def deduct_credits(user_id: str, amount: int, action: str, book_id: Optional[str] = None) -> bool:
    """Charge credits and log the usage; False when the balance is too low."""
    with _USERS_LOCK:
        user = USERS.get(user_id)
        if not user or int(user.get("credits") or 0) < amount:
            return False
        user["credits"] = int(user["credits"]) - amount
        save_users()
        log_credit_usage(user_id, amount, action, book_id=book_id, remaining=user["credits"])
        return True


def reset_monthly_credits(user_id: str) -> Optional[Dict[str, Any]]:
    with _USERS_LOCK:
        user = USERS.get(user_id)
        if not user:
            return None
        user["credits"] = UNLIMITED_CREDITS if is_admin(user) else credits_for_plan(user.get("plan"))
        user["credits_reset_at"] = _now()
        save_users()
        return user


def log_credit_usage(user_id: str, amount: int, action: str, *, book_id: Optional[str], remaining: int) -> None:
    with _USERS_LOCK:
        entries = storage.load_json(_usage_path(), [])
        entries.append({
            "user_id": user_id,
            "action": action,
            "credits_used": amount,
            "book_id": book_id,
            "remaining_credits": remaining,
            "created_at": _now(),
        })
        storage.save_json(_usage_path(), entries)


def credit_usage_for(user_id: str) -> List[Dict[str, Any]]:
    entries = storage.load_json(_usage_path(), [])
    return sorted(
        (e for e in entries if e.get("user_id") == user_id),
        key=lambda e: e.get("created_at") or "",
        reverse=True,
    )


def seed_demo_users() -> None:
    """
    Seed a couple of sample accounts.
    - admin: can use /admin/*
    - user: FREE plan
    """
    if USERS:
        return
    logger.info("Seeding demo users")
    create_user(username="owner", email="owner@bookster.local", role=ROLE_ADMIN, api_key="demo_key_owner")
    create_user(username="demo", email="demo@bookster.local", role=ROLE_USER, api_key="demo_key_user")
