# apps/backend/bookster/ai.py
from __future__ import annotations

import logging
import re
from typing import Any, Callable, Dict, List, Mapping, Optional

from .admin_configs import get_admin_config
from .models import BookDetails, Chapter
from .parsing import ChapterParseError, extract_chapters
from .settings import get_settings

logger = logging.getLogger(__name__)

Complete = Callable[[str, int], str]
ConfigGet = Callable[[str], Optional[Dict[str, Any]]]

DEFAULT_CHAPTER_COUNT = 5

BOOK_OUTLINE_FALLBACK = """You are a professional author and content creator. Create a comprehensive outline and content for an e-book with the following details:

Book Title: {title}
Subtitle: {subtitle}
Description: {description}
Target Audience: {targetAudience}
Tone & Style: {toneStyle}
Mission: {mission}
Author: {author}

Please generate {numberOfChapters} chapters for this e-book. For each chapter, provide:
1. A compelling chapter title
2. Detailed content (2-3 paragraphs minimum per chapter)
3. Include practical advice, real-world examples, and actionable strategies
4. Maintain consistency with the specified tone and target audience

Format your response as a JSON array where each chapter has:
- id: string (numbered 1, 2, 3, etc.)
- title: string (the chapter title)
- content: string (the full chapter content with proper formatting)

Make sure the content is professional, engaging, and provides real value to the target audience."""

CHAPTER_GENERATION_FALLBACK = """You are a professional author. Regenerate content for a chapter titled "{chapterTitle}" for an e-book about "{title}".

Book context:
- Target Audience: {targetAudience}
- Tone & Style: {toneStyle}
- Mission: {mission}

Create engaging, practical content for this chapter that includes:
- Real-world examples and scenarios
- Actionable strategies and tips
- Professional insights relevant to the topic
- Content that matches the specified tone and audience

Provide 3-4 well-structured paragraphs with subheadings where appropriate."""

FALLBACK_PROMPTS = {
    "book_outline": BOOK_OUTLINE_FALLBACK,
    "chapter_generation": CHAPTER_GENERATION_FALLBACK,
}

# provider messages for exhausted credits or quota; these switch to demo mode
CREDIT_EXHAUSTED_MARKERS = (
    "credit balance is too low",
    "insufficient_quota",
    "exceeded your current quota",
)


class GenerationError(RuntimeError):
    pass


def render_prompt(template: str, variables: Mapping[str, Any]) -> str:
    """Replace `{key}` for every known key in one pass; other braces stay as they are."""
    if not variables:
        return template
    pattern = re.compile("|".join(re.escape("{" + key + "}") for key in variables))

    def _value(m: "re.Match[str]") -> str:
        value = variables[m.group(0)[1:-1]]
        return "" if value is None or value == "" else str(value)

    return pattern.sub(_value, template)


def load_prompt_template(kind: str, config_get: Optional[ConfigGet] = None) -> str:
    """Admin override for `prompt_<kind>` when present and well-formed, else the built-in prompt."""
    fallback = FALLBACK_PROMPTS[kind]
    getter = config_get or get_admin_config
    try:
        entry = getter(f"prompt_{kind}")
    except Exception as e:
        logger.warning("Failed to load %s prompt, using fallback: %r", kind, e)
        return fallback

    if isinstance(entry, dict):
        value = entry.get("configValue")
        if isinstance(value, dict) and isinstance(value.get("prompt"), str):
            return value["prompt"]
    return fallback


def is_credit_exhausted(error: BaseException) -> bool:
    text = str(error).lower()
    return any(marker in text for marker in CREDIT_EXHAUSTED_MARKERS)


def complete_text(prompt: str, max_tokens: int) -> str:
    """Single-turn chat completion with the configured OpenAI model."""
    s = get_settings()
    if not s.openai_api_key:
        raise GenerationError("OPENAI_API_KEY is not configured")

    from openai import OpenAI

    client = OpenAI(api_key=s.openai_api_key)
    resp = client.chat.completions.create(
        model=s.openai_model,
        max_tokens=int(max_tokens),
        messages=[{"role": "user", "content": prompt}],
        timeout=s.ai_timeout_seconds,
    )
    return (resp.choices[0].message.content or "").strip()


# ----- demo content -----

def demo_chapters(details: BookDetails) -> List[Chapter]:
    count = details.number_of_chapters or DEFAULT_CHAPTER_COUNT
    audience = details.target_audience or "your readers"
    return [
        Chapter(
            id=str(k),
            title=f"Demo Chapter {k}: {details.title}",
            content=(
                f"This is placeholder content for chapter {k} of \"{details.title}\".\n\n"
                f"It was generated in demo mode because the AI provider has no credit left. "
                f"Real content for {audience} will appear here once credits are restored."
            ),
            is_expanded=k == 1,
        )
        for k in range(1, count + 1)
    ]


def demo_chapter_content(chapter_title: str, details: BookDetails) -> str:
    audience = details.target_audience or "your readers"
    return (
        f"[Demo content] {chapter_title}\n\n"
        f"This chapter of \"{details.title}\" was regenerated in demo mode because the AI provider "
        f"has no credit left. Once credits are restored it will contain practical guidance, "
        f"examples and strategies written for {audience}."
    )


# ----- entry points -----

def generate_chapters(
    details: BookDetails,
    *,
    complete: Optional[Complete] = None,
    config_get: Optional[ConfigGet] = None,
) -> List[Chapter]:
    s = get_settings()
    count = details.number_of_chapters or DEFAULT_CHAPTER_COUNT
    prompt = render_prompt(
        load_prompt_template("book_outline", config_get),
        {
            "title": details.title,
            "subtitle": details.subtitle or "N/A",
            "description": details.description,
            "targetAudience": details.target_audience,
            "toneStyle": details.tone_style,
            "mission": details.mission,
            "author": details.author,
            "numberOfChapters": count,
        },
    )

    try:
        text = (complete or complete_text)(prompt, s.outline_max_tokens)
        return extract_chapters(text, expected=count)
    except (ChapterParseError, GenerationError) as e:
        logger.error("Error generating chapters: %s", e)
        raise GenerationError("Failed to generate chapters. Please try again.") from e
    except Exception as e:
        if is_credit_exhausted(e):
            logger.warning("AI credits exhausted, returning %d demo chapters", count)
            return demo_chapters(details)
        logger.error("Error generating chapters: %r", e)
        raise GenerationError("Failed to generate chapters. Please try again.") from e


def regenerate_chapter(
    chapter_title: str,
    details: BookDetails,
    *,
    complete: Optional[Complete] = None,
    config_get: Optional[ConfigGet] = None,
) -> str:
    s = get_settings()
    prompt = render_prompt(
        load_prompt_template("chapter_generation", config_get),
        {
            "title": details.title,
            "targetAudience": details.target_audience,
            "description": details.description,
            "toneStyle": details.tone_style,
            "mission": details.mission,
            "chapterNumber": "",
            "chapterTitle": chapter_title,
        },
    )

    try:
        return (complete or complete_text)(prompt, s.chapter_max_tokens)
    except GenerationError as e:
        logger.error("Error regenerating chapter: %s", e)
        raise GenerationError("Failed to regenerate chapter. Please try again.") from e
    except Exception as e:
        if is_credit_exhausted(e):
            logger.warning("AI credits exhausted, returning demo content for %r", chapter_title)
            return demo_chapter_content(chapter_title, details)
        logger.error("Error regenerating chapter: %r", e)
        raise GenerationError("Failed to regenerate chapter. Please try again.") from e
