"""Typography/color presets applied by every renderer."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

from ..models import CustomTheme


@dataclass(frozen=True)
class TemplateStyle:
    font_family: str
    font_size: str
    line_height: str
    text_color: str
    background_color: str
    accent_color: str
    margin_bottom: str


DEFAULT_TEMPLATE = "original"

TEMPLATE_STYLES: Dict[str, TemplateStyle] = {
    "original": TemplateStyle(
        font_family="serif",
        font_size="16px",
        line_height="1.6",
        text_color="#1f2937",
        background_color="#ffffff",
        accent_color="#3b82f6",
        margin_bottom="1.5rem",
    ),
    "modern": TemplateStyle(
        font_family="sans-serif",
        font_size="17px",
        line_height="1.7",
        text_color="#0f172a",
        background_color="#f8fafc",
        accent_color="#8b5cf6",
        margin_bottom="1.5rem",
    ),
    "creative": TemplateStyle(
        font_family="serif",
        font_size="16px",
        line_height="1.8",
        text_color="#92400e",
        background_color="#fef3c7",
        accent_color="#f59e0b",
        margin_bottom="1.75rem",
    ),
    "classic": TemplateStyle(
        font_family="serif",
        font_size="15px",
        line_height="1.65",
        text_color="#374151",
        background_color="#fefefe",
        accent_color="#6b7280",
        margin_bottom="1.25rem",
    ),
    "business": TemplateStyle(
        font_family="sans-serif",
        font_size="16px",
        line_height="1.6",
        text_color="#1e293b",
        background_color="#f1f5f9",
        accent_color="#0ea5e9",
        margin_bottom="1.25rem",
    ),
    "academic": TemplateStyle(
        font_family="serif",
        font_size="14px",
        line_height="1.75",
        text_color="#111827",
        background_color="#ffffff",
        accent_color="#059669",
        margin_bottom="1rem",
    ),
}


def resolve_template_style(template_id: Optional[str], custom_theme: Optional[CustomTheme] = None) -> TemplateStyle:
    if custom_theme is not None:
        return TemplateStyle(
            font_family=custom_theme.font_family,
            font_size=custom_theme.font_size,
            line_height=custom_theme.line_height,
            text_color=custom_theme.text_color,
            background_color=custom_theme.background_color,
            accent_color=custom_theme.accent_color,
            margin_bottom=custom_theme.margin_bottom,
        )
    return TEMPLATE_STYLES.get((template_id or "").strip().lower(), TEMPLATE_STYLES[DEFAULT_TEMPLATE])
