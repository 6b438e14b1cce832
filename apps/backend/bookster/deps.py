# apps/backend/bookster/deps.py
from __future__ import annotations
from typing import Any, Dict

from fastapi import Depends, Header, HTTPException

from .plans import ACTIVE_STATUSES
from .settings import get_settings
from .users import USERS_BY_KEY, get_user_by_api_key, has_credits, is_admin, seed_demo_users


def _demo_user() -> Dict[str, Any]:
    # make sure a demo user exists in memory
    if not USERS_BY_KEY:
        seed_demo_users()
    return USERS_BY_KEY["demo_key_owner"]


def get_current_user(x_api_key: str | None = Header(default=None)) -> Dict[str, Any]:
    """
    - With ALLOW_OPEN_API=1 and no key, returns the demo owner.
    - Otherwise a valid x-api-key is required.
    """
    if not x_api_key:
        if get_settings().allow_open_api:
            return _demo_user()
        raise HTTPException(status_code=401, detail="API key required")

    user = get_user_by_api_key(x_api_key)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid API key")

    if user.get("status") not in ACTIVE_STATUSES:
        raise HTTPException(status_code=403, detail=f"User not active: {user.get('status')}")

    return user


def get_admin(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    if not is_admin(user):
        raise HTTPException(status_code=403, detail="Admin access required")
    return user


def require_credits(user: Dict[str, Any], amount: int = 1, action: str = "AI generation") -> None:
    if not has_credits(user, amount):
        raise HTTPException(
            status_code=402,
            detail={
                "error": f"Insufficient credits for {action}",
                "required": amount,
                "available": int(user.get("credits") or 0),
            },
        )
