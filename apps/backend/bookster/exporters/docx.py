# apps/backend/bookster/exporters/docx.py
from __future__ import annotations

import re
from datetime import datetime
from io import BytesIO
from typing import Optional

from ..models import BookData, ExportOptions
from .archive import repack
from .covers import resolve_cover_jpeg
from .styles import TemplateStyle, resolve_template_style
from .text import chapter_blocks, chapter_heading, clean_book

# fixed sizes per role (pt)
TITLE_PT = 18
SUBTITLE_PT = 14
AUTHOR_PT = 12
TOC_HEADING_PT = 16
TOC_ENTRY_PT = 10
CHAPTER_HEADING_PT = 14
SUBHEADING_PT = 12
BODY_PT = 10

_FIXED_TIMESTAMP = datetime(2000, 1, 1, 0, 0, 0)
_HEX_COLOR = re.compile(r"^#?([0-9a-fA-F]{6})$")


def _font_name(style: TemplateStyle) -> str:
    family = style.font_family.lower()
    if "sans" in family:
        return "Arial"
    if "mono" in family:
        return "Courier New"
    return "Georgia"


def _accent_rgb(style: TemplateStyle):
    from docx.shared import RGBColor

    match = _HEX_COLOR.match(style.accent_color.strip())
    return RGBColor.from_string(match.group(1).upper()) if match else None


def _style_runs(paragraph, *, size: int, font: str, bold: bool = False, color=None) -> None:
    from docx.shared import Pt

    for run in paragraph.runs:
        run.font.size = Pt(size)
        run.font.name = font
        run.bold = bold
        if color is not None:
            run.font.color.rgb = color


def _add_page_number_footer(section) -> None:
    from docx.enum.text import WD_ALIGN_PARAGRAPH
    from docx.oxml import OxmlElement
    from docx.oxml.ns import qn

    footer = section.footer
    footer.is_linked_to_previous = False
    footer_para = footer.paragraphs[0] if footer.paragraphs else footer.add_paragraph()
    footer_para.alignment = WD_ALIGN_PARAGRAPH.CENTER

    run = footer_para.add_run()
    fld_char1 = OxmlElement("w:fldChar")
    fld_char1.set(qn("w:fldCharType"), "begin")
    run._r.append(fld_char1)

    run2 = footer_para.add_run()
    instr = OxmlElement("w:instrText")
    instr.set(qn("xml:space"), "preserve")
    instr.text = " PAGE "
    run2._r.append(instr)

    run3 = footer_para.add_run()
    fld_char2 = OxmlElement("w:fldChar")
    fld_char2.set(qn("w:fldCharType"), "end")
    run3._r.append(fld_char2)


def _add_cover(doc, book: BookData, font: str, accent, cover_jpeg: Optional[bytes]) -> None:
    from docx.enum.text import WD_ALIGN_PARAGRAPH
    from docx.shared import Inches

    title_p = doc.add_heading(book.title, level=0)
    title_p.alignment = WD_ALIGN_PARAGRAPH.CENTER
    _style_runs(title_p, size=TITLE_PT, font=font, bold=True, color=accent)

    if book.subtitle:
        sub_p = doc.add_paragraph(book.subtitle)
        sub_p.alignment = WD_ALIGN_PARAGRAPH.CENTER
        _style_runs(sub_p, size=SUBTITLE_PT, font=font)

    if book.author:
        author_p = doc.add_paragraph(f"by {book.author}")
        author_p.alignment = WD_ALIGN_PARAGRAPH.CENTER
        _style_runs(author_p, size=AUTHOR_PT, font=font)

    if cover_jpeg:
        doc.add_picture(BytesIO(cover_jpeg), width=Inches(4))
        doc.paragraphs[-1].alignment = WD_ALIGN_PARAGRAPH.CENTER

    doc.add_page_break()


def _add_toc(doc, book: BookData, font: str, accent) -> None:
    h = doc.add_heading("Table of Contents", level=1)
    _style_runs(h, size=TOC_HEADING_PT, font=font, bold=True, color=accent)
    for i, ch in enumerate(book.chapters):
        p = doc.add_paragraph(chapter_heading(i, ch.title))
        _style_runs(p, size=TOC_ENTRY_PT, font=font)
    doc.add_page_break()


def render_docx(book: BookData, options: ExportOptions) -> bytes:
    book = clean_book(book)
    from docx import Document

    style = resolve_template_style(book.selected_template, book.custom_theme)
    font = _font_name(style)
    accent = _accent_rgb(style)

    doc = Document()
    section = doc.sections[0]
    if options.include_page_numbers:
        _add_page_number_footer(section)

    if options.include_cover:
        cover_jpeg = resolve_cover_jpeg(book.cover_image_url)
        _add_cover(doc, book, font, accent, cover_jpeg)

    if options.include_table_of_contents:
        _add_toc(doc, book, font, accent)

    for i, ch in enumerate(book.chapters):
        h = doc.add_heading(chapter_heading(i, ch.title), level=1)
        _style_runs(h, size=CHAPTER_HEADING_PT, font=font, bold=True, color=accent)
        if i > 0:
            h.paragraph_format.page_break_before = True

        for block in chapter_blocks(ch.content, ch.title):
            if block.is_heading:
                sub = doc.add_heading(block.text, level=2)
                _style_runs(sub, size=SUBHEADING_PT, font=font, bold=True, color=accent)
            else:
                p = doc.add_paragraph(block.text)
                _style_runs(p, size=BODY_PT, font=font)

    props = doc.core_properties
    props.title = book.title
    props.author = book.author
    props.language = book.language
    props.created = _FIXED_TIMESTAMP
    props.modified = _FIXED_TIMESTAMP
    props.last_printed = _FIXED_TIMESTAMP
    props.revision = 1

    buf = BytesIO()
    doc.save(buf)
    return repack(buf.getvalue())
