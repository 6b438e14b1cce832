# apps/backend/bookster/parsing.py
"""
Chapter list out of free-form model text.

Strategies run in order and the first that yields at least one chapter wins:
fenced block, every balanced array in turn, `[{...}]` regex, greedy `[...]`
regex, then chapter headings in plain text. Every JSON candidate gets one
repair attempt (trailing commas, smart quotes) before it is discarded.
"""
from __future__ import annotations

import json
import logging
import re
from typing import Any, Callable, Iterable, Iterator, List, Optional

from .models import Chapter

logger = logging.getLogger(__name__)


class ChapterParseError(ValueError):
    pass


_FENCED = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)
_ARRAY_OF_OBJECTS = re.compile(r"\[\s*\{[\s\S]*\}\s*\]")
_GREEDY_ARRAY = re.compile(r"\[[\s\S]*\]")
_DOUBLE_QUOTES = ('"', "\u201c", "\u201d")
# a quote followed by one of these (or the end) closes the string
_AFTER_STRING = (",", ":", "}", "]", "")
_CHAPTER_HEADING = re.compile(
    r"^\s*(?:#{1,6}\s*)?(?:\*\*)?Chapter\s+(\d+)\s*[:.\-–—]\s*(.+?)(?:\*\*)?\s*$",
    re.IGNORECASE,
)


# ----- JSON candidates -----

def fenced_block(text: str) -> Optional[str]:
    m = _FENCED.search(text)
    return m.group(1).strip() if m else None


def balanced_arrays(text: str) -> Iterator[str]:
    """Every [...] span whose brackets balance, left to right, ignoring brackets inside strings."""
    start = text.find("[")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for i in range(start, len(text)):
            ch = text[i]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
                continue
            if ch == '"':
                in_string = True
            elif ch == "[":
                depth += 1
            elif ch == "]":
                depth -= 1
                if depth == 0:
                    yield text[start:i + 1]
                    break
        start = text.find("[", start + 1)


def array_of_objects(text: str) -> Optional[str]:
    m = _ARRAY_OF_OBJECTS.search(text)
    return m.group(0) if m else None


def greedy_array(text: str) -> Optional[str]:
    m = _GREEDY_ARRAY.search(text)
    return m.group(0) if m else None


def _next_significant(text: str, i: int) -> str:
    while i < len(text) and text[i].isspace():
        i += 1
    return text[i] if i < len(text) else ""


def repair_json(candidate: str) -> str:
    """
    One pass over almost-JSON: curly double quotes become delimiters where they
    open or close a string, any quote inside a string that is not followed by
    `, : } ]` gets escaped, and trailing commas before `}`/`]` are dropped.
    """
    out: List[str] = []
    in_string = False
    escaped = False
    for i, ch in enumerate(candidate):
        if in_string:
            if escaped:
                escaped = False
                out.append(ch)
            elif ch == "\\":
                escaped = True
                out.append(ch)
            elif ch in _DOUBLE_QUOTES:
                if _next_significant(candidate, i + 1) in _AFTER_STRING:
                    in_string = False
                    out.append('"')
                else:
                    out.append('\\"')
            else:
                out.append(ch)
        elif ch in _DOUBLE_QUOTES:
            in_string = True
            out.append('"')
        elif ch == "," and _next_significant(candidate, i + 1) in ("}", "]"):
            continue
        else:
            out.append(ch)
    return "".join(out)


def load_json_candidate(candidate: Optional[str]) -> Optional[Any]:
    if not candidate:
        return None
    for attempt in (candidate, repair_json(candidate)):
        try:
            return json.loads(attempt)
        except json.JSONDecodeError:
            continue
    return None


# ----- coercion -----

def coerce_chapters(items: Any) -> List[Chapter]:
    if isinstance(items, dict):
        items = items.get("chapters")
    if not isinstance(items, list):
        return []
    chapters: List[Chapter] = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            continue
        raw_id = item.get("id")
        chapters.append(
            Chapter(
                id=str(raw_id) if raw_id not in (None, "") else str(index + 1),
                title=str(item.get("title") or ""),
                content=str(item.get("content") or ""),
                is_expanded=not chapters,
            )
        )
    return chapters


# ----- strategies -----

Strategy = Callable[[str, int], List[Chapter]]


def _json_strategy(extract: Callable[[str], Optional[str]]) -> Strategy:
    def run(text: str, limit: int) -> List[Chapter]:
        return coerce_chapters(load_json_candidate(extract(text)))

    run.__name__ = extract.__name__
    return run


def balanced_arrays_strategy(text: str, limit: int) -> List[Chapter]:
    # prose like "[draft v2]" can precede the real array; keep scanning
    for candidate in balanced_arrays(text):
        chapters = coerce_chapters(load_json_candidate(candidate))
        if chapters:
            return chapters
    return []


def headings_strategy(text: str, limit: int) -> List[Chapter]:
    chapters: List[Chapter] = []
    for line in text.splitlines():
        m = _CHAPTER_HEADING.match(line)
        if not m:
            continue
        title = m.group(2).strip().strip("*").strip()
        if not title:
            continue
        chapters.append(
            Chapter(id=str(len(chapters) + 1), title=title, content="", is_expanded=not chapters)
        )
        if len(chapters) >= limit:
            break
    return chapters


STRATEGIES: List[Strategy] = [
    _json_strategy(fenced_block),
    balanced_arrays_strategy,
    _json_strategy(array_of_objects),
    _json_strategy(greedy_array),
    headings_strategy,
]


def extract_chapters(text: str, expected: int = 5, strategies: Optional[Iterable[Strategy]] = None) -> List[Chapter]:
    text = text or ""
    for strategy in strategies or STRATEGIES:
        chapters = strategy(text, expected)
        if chapters:
            logger.debug("Chapters parsed with %s (%d)", strategy.__name__, len(chapters))
            return chapters
    raise ChapterParseError("Could not parse chapter data from AI response")
