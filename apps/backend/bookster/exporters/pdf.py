# apps/backend/bookster/exporters/pdf.py
"""
PDF through headless Chromium (Playwright, sync API).

The whole render (launch, load, settle, print) shares one deadline of
PDF_RENDER_TIMEOUT_SECONDS; the settle delay is PDF_SETTLE_MS capped by
what is left. Anything that goes wrong surfaces as RenderError and the
dispatcher switches to the printable HTML.

`page.pdf()` takes no timeout: the deadline is checked just before the
capture starts, and the capture itself is bounded only by Chromium. The sync
API objects belong to the thread that made them, so nothing closes the
browser from outside while it prints.

Output is not byte-stable: Chromium stamps a creation date in the PDF.
"""
from __future__ import annotations

import logging
import os
import time
from typing import List

from ..models import BookData, ExportOptions
from ..settings import get_settings
from .covers import browser_cover_src
from .errors import RenderError
from .html import render_html

logger = logging.getLogger(__name__)

CHROMIUM_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--disable-extensions",
    "--disable-background-networking",
    "--disable-default-apps",
    "--disable-sync",
    "--disable-translate",
    "--no-first-run",
    "--no-default-browser-check",
    "--password-store=basic",
    "--use-mock-keychain",
]

KNOWN_EXECUTABLES = [
    "/usr/bin/chromium",
    "/usr/bin/chromium-browser",
    "/usr/bin/google-chrome",
    "/opt/google/chrome/chrome",
    "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
]

_FOOTER_TEMPLATE = (
    '<div style="width:100%;font-size:9px;text-align:center;color:#6b7280;">'
    '<span class="pageNumber"></span></div>'
)


class _Deadline:
    def __init__(self, seconds: float):
        self._end = time.monotonic() + max(0.0, seconds)

    def remaining_ms(self) -> float:
        left = (self._end - time.monotonic()) * 1000.0
        if left <= 0:
            raise RenderError("PDF rendering timed out")
        return left


def candidate_executables(configured: str = "") -> List[str]:
    """Executables worth trying after the bundled Chromium, existing ones only."""
    paths = ([configured] if configured else []) + KNOWN_EXECUTABLES
    seen: List[str] = []
    for p in paths:
        if p not in seen and os.path.isfile(p):
            seen.append(p)
    return seen


def _launch(playwright, deadline: _Deadline, configured: str):
    from playwright.sync_api import Error as PlaywrightError

    try:
        return playwright.chromium.launch(headless=True, args=CHROMIUM_ARGS, timeout=deadline.remaining_ms())
    except PlaywrightError as exc:
        logger.warning("Bundled Chromium unavailable (%s), trying system browsers", exc)

    for path in candidate_executables(configured):
        try:
            return playwright.chromium.launch(
                headless=True,
                executable_path=path,
                args=CHROMIUM_ARGS,
                timeout=deadline.remaining_ms(),
            )
        except PlaywrightError as exc:
            logger.warning("Could not launch %s: %s", path, exc)
    raise RenderError("No suitable Chrome/Chromium installation found")


def print_html_to_pdf(html: str, *, page_numbers: bool, timeout_seconds: float, settle_ms: int,
                      executable_path: str = "") -> bytes:
    from playwright.sync_api import Error as PlaywrightError
    from playwright.sync_api import sync_playwright

    deadline = _Deadline(timeout_seconds)
    try:
        with sync_playwright() as p:
            browser = _launch(p, deadline, executable_path)
            try:
                page = browser.new_page(viewport={"width": 1200, "height": 1600})
                page.set_default_timeout(deadline.remaining_ms())
                page.set_content(html, wait_until="networkidle", timeout=deadline.remaining_ms())
                page.wait_for_timeout(min(float(settle_ms), deadline.remaining_ms()))
                deadline.remaining_ms()  # last check before the unbounded capture
                pdf_kwargs = dict(
                    format="A4",
                    print_background=True,
                    margin={"top": "1in", "bottom": "1in", "left": "1in", "right": "1in"},
                )
                if page_numbers:
                    pdf_kwargs.update(
                        display_header_footer=True,
                        header_template="<div></div>",
                        footer_template=_FOOTER_TEMPLATE,
                    )
                return page.pdf(**pdf_kwargs)
            finally:
                browser.close()
    except PlaywrightError as exc:
        raise RenderError(f"PDF rendering failed: {exc}") from exc


def render_pdf(book: BookData, options: ExportOptions) -> bytes:
    s = get_settings()
    # the browser cannot read UPLOADS_DIR, so local covers go inline
    cover_src = browser_cover_src(book.cover_image_url) if options.include_cover else None
    html = render_html(book, options, cover_src=cover_src).decode("utf-8")
    return print_html_to_pdf(
        html,
        page_numbers=options.include_page_numbers,
        timeout_seconds=s.pdf_render_timeout_seconds,
        settle_ms=s.pdf_settle_ms,
        executable_path=s.chrome_executable_path,
    )
