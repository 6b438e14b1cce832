# apps/backend/bookster/exporters/__init__.py
"""
Export pipeline: BookData + ExportOptions → one file in the export dir.

    parse_format("PDF")                       -> "pdf"
    render_book(fmt, book, options)           -> RenderedExport (pure)
    export_book(fmt, book, options)           -> ExportResult (writes file + sidecar)

On-disk names are `<uuid>.<ext>`; the human name lives in `<uuid>.<ext>.json`.
"""
from __future__ import annotations

import logging
import re
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Optional

from .. import storage
from ..models import BookData, ExportOptions
from .docx import render_docx
from .epub import render_epub
from .errors import ExportInputError, RenderError
from .html import render_html, render_printable_html
from .markdown import render_markdown
from .pdf import render_pdf
from .text import sanitize_title

logger = logging.getLogger(__name__)

FORMATS = ("pdf", "epub", "docx", "markdown", "html")

EXTENSIONS: Dict[str, str] = {
    "pdf": "pdf",
    "epub": "epub",
    "docx": "docx",
    "markdown": "md",
    "html": "html",
}

MEDIA_TYPES: Dict[str, str] = {
    ".pdf": "application/pdf",
    ".html": "text/html",
    ".md": "text/markdown",
    ".epub": "application/epub+zip",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}

RENDERERS: Dict[str, Callable[[BookData, ExportOptions], bytes]] = {
    "epub": render_epub,
    "docx": render_docx,
    "markdown": render_markdown,
    "html": render_html,
}

SIDECAR_SUFFIX = ".json"
_SAFE_FILE_NAME = re.compile(r"[0-9a-f]{32}\.(pdf|epub|docx|md|html)")


@dataclass(frozen=True)
class RenderedExport:
    format: str
    extension: str
    data: bytes
    fallback: bool = False


@dataclass(frozen=True)
class ExportResult:
    file_name: str
    download_name: str
    format: str
    media_type: str
    fallback: bool = False


def parse_format(token: Optional[str]) -> str:
    fmt = (token or "").strip().lower()
    if fmt not in FORMATS:
        raise ExportInputError("format", f"Unsupported export format: {token!r} (expected one of {', '.join(FORMATS)})")
    return fmt


def validate_book(book: BookData) -> None:
    if not (book.title or "").strip():
        raise ExportInputError("title", "Missing book title: title is required")
    if not book.chapters:
        raise ExportInputError("chapters", "No chapters: chapters must contain at least one chapter")


def media_type_for(file_name: str) -> str:
    return MEDIA_TYPES.get(Path(file_name).suffix.lower(), "application/octet-stream")


def render_book(fmt: str, book: BookData, options: ExportOptions) -> RenderedExport:
    fmt = parse_format(fmt)
    validate_book(book)

    if fmt == "pdf":
        try:
            return RenderedExport("pdf", "pdf", render_pdf(book, options))
        except RenderError as exc:
            logger.warning("PDF rendering unavailable, falling back to printable HTML: %s", exc)
            return RenderedExport("pdf", "html", render_printable_html(book, options), fallback=True)

    try:
        data = RENDERERS[fmt](book, options)
    except (ExportInputError, RenderError):
        raise
    except (ValueError, KeyError, OSError) as exc:
        raise RenderError(f"{fmt} export failed: {exc}") from exc
    return RenderedExport(fmt, EXTENSIONS[fmt], data)


def download_name_for(book: BookData, rendered: RenderedExport) -> str:
    stem = sanitize_title(book.title)
    if rendered.fallback:
        return f"{stem}_printable.html"
    return f"{stem}.{rendered.extension}"


def export_book(fmt: str, book: BookData, options: ExportOptions, export_dir: Optional[Path] = None) -> ExportResult:
    rendered = render_book(fmt, book, options)

    target_dir = Path(export_dir) if export_dir is not None else storage.EXPORTS_DIR
    file_name = f"{uuid.uuid4().hex}.{rendered.extension}"
    download_name = download_name_for(book, rendered)

    storage.write_bytes_atomic(target_dir / file_name, rendered.data)
    storage.save_json(
        target_dir / (file_name + SIDECAR_SUFFIX),
        {"downloadName": download_name, "format": rendered.format, "fallback": rendered.fallback},
    )
    logger.info("Exported %r as %s (%s)", book.title, file_name, rendered.format)

    return ExportResult(
        file_name=file_name,
        download_name=download_name,
        format=rendered.format,
        media_type=media_type_for(file_name),
        fallback=rendered.fallback,
    )


def is_safe_file_name(file_name: str) -> bool:
    return bool(_SAFE_FILE_NAME.fullmatch(file_name or ""))


def resolve_export(file_name: str, export_dir: Optional[Path] = None):
    """(path, download_name) of a stored export, or None when unknown/unsafe."""
    if not is_safe_file_name(file_name):
        return None
    target_dir = Path(export_dir) if export_dir is not None else storage.EXPORTS_DIR
    path = target_dir / file_name
    if not path.is_file():
        return None
    meta = storage.load_json(target_dir / (file_name + SIDECAR_SUFFIX), {})
    return path, meta.get("downloadName") or file_name


__all__ = [
    "ExportInputError",
    "ExportResult",
    "FORMATS",
    "RenderError",
    "RenderedExport",
    "export_book",
    "media_type_for",
    "parse_format",
    "render_book",
    "resolve_export",
    "validate_book",
]
