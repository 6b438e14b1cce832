# apps/backend/bookster/routers/admin.py
from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException

from .. import admin_configs
from ..deps import get_admin
from ..models import AdminConfigIn, UserCreateIn, UserUpdateIn
from ..users import (
    create_user,
    credit_usage_for,
    delete_user,
    get_user,
    list_users,
    public_view,
    reset_monthly_credits,
    update_user,
)

router = APIRouter(prefix="/admin")


# ----- Prompt configs -----

@router.get("/configs", summary="List Configs")
def admin_list_configs(_: Dict[str, Any] = Depends(get_admin)) -> Dict[str, Any]:
    return {"items": admin_configs.list_admin_configs()}


@router.post("/configs", summary="Upsert Config")
def admin_set_config(payload: AdminConfigIn = Body(...), _: Dict[str, Any] = Depends(get_admin)) -> Dict[str, Any]:
    """
    payload atteso:
    {
      "configKey": "prompt_book_outline",
      "configValue": {"prompt": "... {title} ... {numberOfChapters} ..."}
    }
    """
    entry = admin_configs.set_admin_config(payload.config_key, payload.config_value)
    return {"ok": True, "config": entry}


# ----- Users -----

@router.get("/users", summary="List Users")
def admin_list_users(_: Dict[str, Any] = Depends(get_admin)) -> Dict[str, Any]:
    return {"items": [public_view(u) for u in list_users()]}


@router.post("/users", summary="Create User", status_code=201)
def admin_create_user(payload: UserCreateIn = Body(...), _: Dict[str, Any] = Depends(get_admin)) -> Dict[str, Any]:
    try:
        user = create_user(**payload.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))
    # the api key is only shown on creation
    return {"ok": True, "user": user}


@router.put("/users/{user_id}", summary="Update User")
def admin_update_user(
    user_id: str,
    payload: UserUpdateIn = Body(...),
    _: Dict[str, Any] = Depends(get_admin),
) -> Dict[str, Any]:
    user = update_user(user_id, payload.model_dump(exclude_none=True))
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return {"ok": True, "user": public_view(user)}


@router.delete("/users/{user_id}", summary="Delete User")
def admin_delete_user(user_id: str, admin: Dict[str, Any] = Depends(get_admin)) -> Dict[str, Any]:
    if user_id == admin.get("id"):
        raise HTTPException(status_code=400, detail="Cannot delete your own account")
    if not delete_user(user_id):
        raise HTTPException(status_code=404, detail="User not found")
    return {"ok": True}


@router.post("/users/{user_id}/reset-credits", summary="Reset Monthly Credits")
def admin_reset_credits(user_id: str, _: Dict[str, Any] = Depends(get_admin)) -> Dict[str, Any]:
    user = reset_monthly_credits(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return {"ok": True, "user": public_view(user)}


@router.get("/users/{user_id}/credit-usage", summary="Credit Usage")
def admin_credit_usage(user_id: str, _: Dict[str, Any] = Depends(get_admin)) -> Dict[str, Any]:
    if not get_user(user_id):
        raise HTTPException(status_code=404, detail="User not found")
    return {"items": credit_usage_for(user_id)}
