"""Template presets and the custom theme override."""
import pytest

from bookster.exporters.styles import TEMPLATE_STYLES, resolve_template_style
from bookster.models import CustomTheme


@pytest.mark.parametrize("template_id", ["original", "modern", "creative", "classic", "business", "academic"])
def test_every_preset_resolves_to_itself(template_id: str) -> None:
    assert resolve_template_style(template_id) is TEMPLATE_STYLES[template_id]


@pytest.mark.parametrize("template_id", ["nonexistent", "", None])
def test_unknown_template_falls_back_to_original(template_id) -> None:
    assert resolve_template_style(template_id) == resolve_template_style("original")


def test_preset_values() -> None:
    modern = resolve_template_style("modern")
    assert modern.font_family == "sans-serif"
    assert modern.font_size == "17px"
    assert modern.accent_color == "#8b5cf6"


def test_custom_theme_replaces_preset() -> None:
    theme = CustomTheme(background_color="#000000", text_color="#ffffff", accent_color="#ff0000")
    style = resolve_template_style("academic", theme)
    assert style.background_color == "#000000"
    assert style.text_color == "#ffffff"
    assert style.accent_color == "#ff0000"


def test_styles_are_immutable() -> None:
    with pytest.raises(AttributeError):
        resolve_template_style("original").font_size = "99px"
