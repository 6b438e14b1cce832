# apps/backend/bookster/exporters/markdown.py
from __future__ import annotations

from typing import List

from ..models import BookData, ExportOptions
from .text import chapter_blocks, chapter_heading, slugify


def render_markdown(book: BookData, options: ExportOptions) -> bytes:
    lines: List[str] = [f"# {book.title}", ""]
    if book.subtitle:
        lines += [f"## {book.subtitle}", ""]
    if book.author:
        lines += [f"**Author:** {book.author}", ""]
    if book.description:
        lines += [f"**Description:** {book.description}", ""]
    lines += ["---", ""]

    if options.include_table_of_contents:
        lines += ["## Table of Contents", ""]
        for i, ch in enumerate(book.chapters):
            lines.append(f"{i + 1}. [{ch.title}](#chapter-{i + 1}-{slugify(ch.title)})")
        lines += ["", "---", ""]

    for i, ch in enumerate(book.chapters):
        lines += [f"## {chapter_heading(i, ch.title)}", ""]
        for block in chapter_blocks(ch.content, ch.title):
            lines += [f"### {block.text}" if block.is_heading else block.text, ""]
        lines += ["---", ""]

    return "\n".join(lines).encode("utf-8")
