# apps/backend/bookster/exporters/html.py
"""Standalone HTML document, plus the printable variant used when PDF fails."""
from __future__ import annotations

from html import escape
from typing import List, Optional

from ..models import BookData, ExportOptions
from .styles import TemplateStyle, resolve_template_style
from .text import chapter_blocks, chapter_heading, clean_book


def _css(style: TemplateStyle) -> str:
    return f"""
    body {{
      font-family: {style.font_family};
      font-size: {style.font_size};
      line-height: {style.line_height};
      color: {style.text_color};
      background-color: {style.background_color};
      max-width: 800px;
      margin: 0 auto;
      padding: 2rem;
    }}
    p {{ margin-bottom: {style.margin_bottom}; }}
    h1, h2, h3, h4 {{ color: {style.accent_color}; }}
    .cover-page {{ text-align: center; padding: 4rem 0; }}
    .cover-page img {{ max-width: 60%; max-height: 500px; margin-bottom: 2rem; }}
    .cover-title {{ font-size: 2.5em; margin-bottom: 0.5rem; }}
    .cover-subtitle {{ font-size: 1.5em; font-weight: normal; }}
    .cover-author {{ font-size: 1.2em; font-style: italic; }}
    .toc {{ padding: 2rem 0; }}
    .toc ul {{ list-style: none; padding: 0; }}
    .toc li {{ display: flex; justify-content: space-between; border-bottom: 1px dotted {style.accent_color}; padding: 0.4rem 0; }}
    .chapter {{ padding: 2rem 0; }}
    .chapter-title {{ border-bottom: 2px solid {style.accent_color}; padding-bottom: 0.5rem; }}
    @media print {{
      body {{ max-width: none; padding: 0; }}
      .cover-page, .toc {{ page-break-after: always; }}
      .chapter {{ page-break-before: always; }}
      .no-print {{ display: none; }}
    }}
    """


def _cover_section(book: BookData, cover_src: Optional[str]) -> str:
    parts = ['<div class="cover-page">']
    if cover_src:
        parts.append(f'<img src="{escape(cover_src)}" alt="Book cover">')
    parts.append(f'<h1 class="cover-title">{escape(book.title)}</h1>')
    if book.subtitle:
        parts.append(f'<h2 class="cover-subtitle">{escape(book.subtitle)}</h2>')
    if book.author:
        parts.append(f'<p class="cover-author">by {escape(book.author)}</p>')
    if book.description:
        parts.append(f'<p class="cover-description">{escape(book.description)}</p>')
    parts.append("</div>")
    return "\n".join(parts)


def _toc_section(book: BookData) -> str:
    items = [
        f'<li><span>{escape(chapter_heading(i, ch.title))}</span><span>{i + 3}</span></li>'
        for i, ch in enumerate(book.chapters)
    ]
    return (
        '<div class="toc">\n<h2>Table of Contents</h2>\n<ul>\n'
        + "\n".join(items)
        + "\n</ul>\n</div>"
    )


def _chapter_sections(book: BookData) -> List[str]:
    out: List[str] = []
    for i, ch in enumerate(book.chapters):
        body = []
        for block in chapter_blocks(ch.content, ch.title):
            if block.is_heading:
                body.append(f"<h4>{escape(block.text)}</h4>")
            else:
                body.append(f"<p>{escape(block.text)}</p>")
        out.append(
            f'<div class="chapter" id="chapter-{i + 1}">\n'
            f'<h1 class="chapter-title">{escape(chapter_heading(i, ch.title))}</h1>\n'
            + "\n".join(body)
            + "\n</div>"
        )
    return out


def _document(book: BookData, options: ExportOptions, *, banner: str = "", cover_src: Optional[str] = None) -> str:
    book = clean_book(book)
    style = resolve_template_style(book.selected_template, book.custom_theme)
    sections: List[str] = []
    if banner:
        sections.append(banner)
    if options.include_cover:
        sections.append(_cover_section(book, cover_src if cover_src is not None else book.cover_image_url))
    if options.include_table_of_contents:
        sections.append(_toc_section(book))
    sections.extend(_chapter_sections(book))

    return (
        "<!DOCTYPE html>\n"
        f'<html lang="{escape(book.language)}">\n'
        "<head>\n"
        '<meta charset="UTF-8">\n'
        '<meta name="viewport" content="width=device-width, initial-scale=1.0">\n'
        f"<title>{escape(book.title)}</title>\n"
        f"<style>{_css(style)}</style>\n"
        "</head>\n"
        "<body>\n"
        + "\n".join(sections)
        + "\n</body>\n</html>\n"
    )


def render_html(book: BookData, options: ExportOptions, *, cover_src: Optional[str] = None) -> bytes:
    """`cover_src` overrides the image source (the PDF path inlines it)."""
    return _document(book, options, cover_src=cover_src).encode("utf-8")


_PRINT_BANNER = """<div class="print-instructions no-print" style="background:#fff7ed;border:1px solid #fdba74;padding:1rem;margin-bottom:2rem;">
<h3>Save this book as PDF</h3>
<ol>
<li>Press Ctrl+P (Cmd+P on Mac) to open the print dialog.</li>
<li>Choose "Save as PDF" as the destination.</li>
<li>Enable "Background graphics" to keep the template colors.</li>
<li>Click "Save".</li>
</ol>
</div>"""


def render_printable_html(book: BookData, options: ExportOptions) -> bytes:
    return _document(book, options, banner=_PRINT_BANNER).encode("utf-8")


# ----- flipbook preview -----

_FLIPBOOK_CSS = """
    body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; margin: 0; padding: 20px;
           background: linear-gradient(135deg, #667eea 0%, #764ba2 100%); min-height: 100vh; }
    .flipbook-container { max-width: 1200px; margin: 0 auto; background: white; border-radius: 16px;
                          box-shadow: 0 20px 40px rgba(0,0,0,0.1); overflow: hidden; }
    .flipbook-header { background: linear-gradient(135deg, #4facfe 0%, #00f2fe 100%); color: white; padding: 30px; text-align: center; }
    .flipbook-title { font-size: 2.5rem; font-weight: bold; margin-bottom: 10px; }
    .flipbook-author { font-size: 1.2rem; opacity: 0.9; }
    .flipbook-content { padding: 40px; }
    .cover-section { text-align: center; margin-bottom: 40px; }
    .cover-image { max-width: 300px; max-height: 400px; border-radius: 12px; box-shadow: 0 8px 24px rgba(0,0,0,0.15); margin-bottom: 20px; }
    .chapter { margin-bottom: 40px; padding: 30px; background: #f8f9fa; border-radius: 12px; border-left: 4px solid #4facfe; }
    .chapter-title { font-size: 1.8rem; font-weight: bold; color: #2d3748; margin-bottom: 20px; }
    .chapter-content { line-height: 1.7; color: #4a5568; }
    .chapter-content p { margin-bottom: 16px; }
    .flipbook-note { background: #e3f2fd; border: 1px solid #bbdefb; border-radius: 8px; padding: 20px; margin: 30px 0;
                     text-align: center; color: #1565c0; }
"""

_EMPTY_CHAPTER = "<p><em>Chapter content will appear here...</em></p>"


def render_flipbook_preview(book: BookData, *, cover_src: Optional[str] = None) -> bytes:
    """
    Single-page reader preview: header card, optional cover with description,
    then every chapter as a card. Template and export options do not apply.
    """
    book = clean_book(book)
    cover_src = cover_src if cover_src is not None else book.cover_image_url

    header = [f'<h1 class="flipbook-title">{escape(book.title)}</h1>']
    if book.subtitle:
        header.append(f'<p class="flipbook-subtitle">{escape(book.subtitle)}</p>')
    header.append(f'<p class="flipbook-author">by {escape(book.author)}</p>')

    content = ['<div class="flipbook-note">Interactive Flipbook Preview - This shows how your book will look to readers</div>']
    if cover_src:
        content.append(
            '<div class="cover-section">\n'
            f'<img src="{escape(cover_src)}" alt="Book Cover" class="cover-image">\n'
            f"<p><strong>Description:</strong> {escape(book.description)}</p>\n"
            "</div>"
        )
    for i, ch in enumerate(book.chapters):
        paragraphs = [f"<p>{escape(block.text)}</p>" for block in chapter_blocks(ch.content, ch.title)]
        content.append(
            '<div class="chapter">\n'
            f'<h2 class="chapter-title">{escape(chapter_heading(i, ch.title))}</h2>\n'
            f'<div class="chapter-content">{"".join(paragraphs) or _EMPTY_CHAPTER}</div>\n'
            "</div>"
        )

    return (
        "<!DOCTYPE html>\n"
        f'<html lang="{escape(book.language)}">\n'
        "<head>\n"
        '<meta charset="UTF-8">\n'
        '<meta name="viewport" content="width=device-width, initial-scale=1.0">\n'
        f"<title>Flipbook Preview - {escape(book.title)}</title>\n"
        f"<style>{_FLIPBOOK_CSS}</style>\n"
        "</head>\n"
        "<body>\n"
        '<div class="flipbook-container">\n'
        '<div class="flipbook-header">\n' + "\n".join(header) + "\n</div>\n"
        '<div class="flipbook-content">\n' + "\n".join(content) + "\n</div>\n"
        "</div>\n"
        "</body>\n</html>\n"
    ).encode("utf-8")
