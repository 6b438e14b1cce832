# apps/backend/bookster/routers/export.py
from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException
from fastapi.responses import FileResponse, HTMLResponse

from .. import exporters
from ..deps import get_current_user
from ..exporters import ExportInputError, RenderError
from ..exporters.covers import browser_cover_src
from ..exporters.html import render_flipbook_preview
from ..models import BookData, ExportOut, ExportRequest

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/export/{fmt}", response_model=ExportOut, response_model_by_alias=True)
def export_book(
    fmt: str,
    payload: ExportRequest = Body(...),
    user: Dict[str, Any] = Depends(get_current_user),
):
    try:
        result = exporters.export_book(fmt, payload.book(), payload.options.resolve())
    except ExportInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RenderError as e:
        logger.error("Export %s failed for user %s: %s", fmt, user.get("id"), e)
        raise HTTPException(status_code=500, detail=f"Failed to export book as {fmt}")

    if result.fallback:
        message = "PDF rendering is unavailable; a printable HTML file was generated instead"
    else:
        message = f"Book exported as {result.format}"

    return ExportOut(
        download_url=f"/api/download/{result.file_name}",
        file_name=result.file_name,
        download_name=result.download_name,
        format=result.format,
        fallback=result.fallback,
        message=message,
    )


@router.get("/download/{file_name}")
def download_export(file_name: str):
    found = exporters.resolve_export(file_name)
    if not found:
        raise HTTPException(status_code=404, detail="File not found")
    path, download_name = found
    return FileResponse(
        path,
        media_type=exporters.media_type_for(file_name),
        filename=download_name,
    )


@router.post("/flipbook-preview", response_class=HTMLResponse)
def flipbook_preview(
    book: BookData = Body(...),
    user: Dict[str, Any] = Depends(get_current_user),
):
    try:
        exporters.validate_book(book)
    except ExportInputError as e:
        logger.info("Flipbook preview rejected: %s", e)
        return HTMLResponse("<h1>Error: Invalid book data</h1>", status_code=400)
    html = render_flipbook_preview(book, cover_src=browser_cover_src(book.cover_image_url))
    return HTMLResponse(html.decode("utf-8"))
