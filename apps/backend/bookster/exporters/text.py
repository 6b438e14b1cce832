"""Text normalisation shared by every export format."""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional

from ..models import BookData

_CURLY_QUOTES = str.maketrans({"‘": "'", "’": "'", "“": '"', "”": '"'})
_HEADING_PREFIX = re.compile(r"^#{1,6} ")

# only the first few lines can hold an echoed title
_TITLE_SCAN_LINES = 5


def normalize_quotes(text: str) -> str:
    return text.translate(_CURLY_QUOTES)


def _is_title_line(line: str, title: str) -> bool:
    candidate = normalize_quotes(line.strip())
    if candidate == title:
        return True
    match = _HEADING_PREFIX.match(candidate)
    return bool(match) and candidate[match.end():] == title


def strip_duplicate_leading_title(content: str, chapter_title: str) -> str:
    """
    Drop a copy of the chapter title echoed at the top of the content.

    Only a contiguous prefix is removed: title lines (plain or as a Markdown
    heading) plus the blank lines after them, looking at the first five
    lines at most.
    """
    if not content or not chapter_title or not chapter_title.strip():
        return content

    title = normalize_quotes(chapter_title.strip())
    lines = content.split("\n")
    drop = 0
    matched = False
    for i, line in enumerate(lines[:_TITLE_SCAN_LINES]):
        if _is_title_line(line, title):
            matched = True
        elif line.strip():
            break
        drop = i + 1

    if not matched:
        return content
    return "\n".join(lines[drop:]).strip()


@dataclass(frozen=True)
class Block:
    text: str
    is_heading: bool = False


def is_subheading(paragraph: str) -> bool:
    # rule tied to one prompt style: "The <something> Changes ..." blocks are headings
    return paragraph.startswith("The ") and "Changes" in paragraph


def split_paragraphs(content: str) -> List[Block]:
    blocks: List[Block] = []
    for raw in (content or "").split("\n\n"):
        text = raw.strip()
        if text:
            blocks.append(Block(text=text, is_heading=is_subheading(text)))
    return blocks


def chapter_blocks(content: str, chapter_title: str) -> List[Block]:
    return split_paragraphs(strip_duplicate_leading_title(xml_safe(content), xml_safe(chapter_title)))


# XML 1.0 Char range: no C0 controls besides tab/LF/CR, no surrogates, no U+FFFE/U+FFFF
_XML_ILLEGAL = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")


def xml_safe(text: Optional[str]) -> Optional[str]:
    if not text:
        return text
    return _XML_ILLEGAL.sub("", text)


def clean_book(book: BookData) -> BookData:
    """Copy of `book` whose text fields can go into an XML document as-is."""
    return book.model_copy(update={
        "title": xml_safe(book.title),
        "subtitle": xml_safe(book.subtitle),
        "author": xml_safe(book.author),
        "description": xml_safe(book.description),
        "language": xml_safe(book.language),
        "chapters": [
            ch.model_copy(update={"title": xml_safe(ch.title), "content": xml_safe(ch.content)})
            for ch in book.chapters
        ],
    })


def chapter_heading(index: int, title: str) -> str:
    return f"Chapter {index + 1}: {title}"


def slugify(title: str) -> str:
    return re.sub(r"[^a-z0-9]", "-", (title or "").lower())


def sanitize_title(title: str) -> str:
    """Human file-name stem: every non-alphanumeric char becomes '_'."""
    return re.sub(r"[^a-zA-Z0-9]", "_", (title or "").strip()) or "book"
