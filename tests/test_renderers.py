"""HTML, Markdown, EPUB and DOCX renderers: structure, ordering, determinism."""
import itertools
import re
from io import BytesIO
from zipfile import ZIP_STORED, ZipFile

import pytest
from docx import Document

from bookster.exporters.docx import render_docx
from bookster.exporters.epub import render_epub
from bookster.exporters.html import render_flipbook_preview, render_html, render_printable_html
from bookster.exporters.markdown import render_markdown
from bookster.models import BookData, Chapter


def _docx_texts(data: bytes):
    return [p.text for p in Document(BytesIO(data)).paragraphs]


def _footer_xml(doc) -> str:
    return "".join(p._p.xml for p in doc.sections[0].footer.paragraphs)


def _epub_text(data: bytes) -> str:
    with ZipFile(BytesIO(data)) as zf:
        return "\n".join(zf.read(n).decode("utf-8") for n in zf.namelist() if n.endswith(".xhtml"))


def _three_chapter_book(order) -> BookData:
    chapters = {
        "a": Chapter(id="a", title="Alpha", content="First."),
        "b": Chapter(id="b", title="Bravo", content="Second."),
        "c": Chapter(id="c", title="Charlie", content="Third."),
    }
    return BookData(title="Order Test", chapters=[chapters[k] for k in order])


# ----- determinism -----

@pytest.mark.parametrize("render", [render_html, render_markdown, render_epub, render_docx])
def test_rendering_twice_gives_identical_bytes(render, book, all_options) -> None:
    assert render(book, all_options) == render(book, all_options)


# ----- duplicate title -----

def test_duplicate_title_appears_once_in_every_format(all_options) -> None:
    book = BookData(title="Dup", chapters=[Chapter(id="1", title="My Chapter", content="My Chapter\n\nBody text.")])

    html = render_html(book, all_options).decode()
    assert html.count("<h1") - html.count('class="cover-title"') == 1
    assert "<p>My Chapter</p>" not in html

    md = render_markdown(book, all_options).decode()
    assert [line for line in md.splitlines() if "My Chapter" in line and line.startswith("#")] == [
        "## Chapter 1: My Chapter"
    ]

    epub = _epub_text(render_epub(book, all_options))
    assert "<p>My Chapter</p>" not in epub

    paragraphs = _docx_texts(render_docx(book, all_options))
    assert "My Chapter" not in paragraphs
    assert paragraphs.count("Chapter 1: My Chapter") == 2  # TOC entry + heading


# ----- sub-heading rule -----

def test_subheading_rule_across_formats(book, all_options) -> None:
    html = render_html(book, all_options).decode()
    assert "<h4>The Major Changes Ahead</h4>" in html
    assert "<p>The weather was nice.</p>" in html

    md = render_markdown(book, all_options).decode()
    assert "### The Major Changes Ahead" in md.splitlines()
    assert "The weather was nice." in md.splitlines()

    epub = _epub_text(render_epub(book, all_options))
    assert "<h3>The Major Changes Ahead</h3>" in epub
    assert "<p>The weather was nice.</p>" in epub

    doc = Document(BytesIO(render_docx(book, all_options)))
    styles = {p.text: p.style.name for p in doc.paragraphs}
    assert styles["The Major Changes Ahead"] == "Heading 2"
    assert styles["The weather was nice."] == "Normal"


# ----- ordering -----

@pytest.mark.parametrize("order", list(itertools.permutations("abc")))
def test_chapter_order_is_preserved_everywhere(order, all_options) -> None:
    book = _three_chapter_book(order)
    titles = [c.title for c in book.chapters]

    html = render_html(book, all_options).decode()
    toc_html = html[html.index('class="toc"'):]
    assert [t for t in re.findall(r"Chapter \d+: (\w+)</span>", toc_html)] == titles
    assert re.findall(r'<h1 class="chapter-title">Chapter \d+: (\w+)</h1>', html) == titles

    md = render_markdown(book, all_options).decode()
    assert re.findall(r"^\d+\. \[(\w+)\]", md, re.M) == titles
    assert re.findall(r"^## Chapter \d+: (\w+)$", md, re.M) == titles

    with ZipFile(BytesIO(render_epub(book, all_options))) as zf:
        opf = zf.read("OEBPS/content.opf").decode()
        ncx = zf.read("OEBPS/toc.ncx").decode()
        spine = re.findall(r'<itemref idref="([^"]+)"/>', opf)
        assert spine == ["cover", "toc", "chapter1", "chapter2", "chapter3"]
        chapter_titles = [
            re.search(r"<h1>Chapter \d+: (\w+)</h1>", zf.read(f"OEBPS/{doc_id}.xhtml").decode()).group(1)
            for doc_id in spine[2:]
        ]
        assert chapter_titles == titles
        assert re.findall(r'playOrder="(\d+)"', ncx) == ["1", "2", "3", "4", "5"]

    headings = [
        p.text
        for p in Document(BytesIO(render_docx(book, all_options))).paragraphs
        if p.style.name == "Heading 1" and p.text.startswith("Chapter")
    ]
    assert headings == [f"Chapter {i + 1}: {t}" for i, t in enumerate(titles)]


# ----- HTML -----

def test_html_structure(book, all_options) -> None:
    book = book.model_copy(update={"cover_image_url": "https://cdn.example.com/cover.png", "language": "Italiano (IT)"})
    html = render_html(book, all_options).decode()
    assert html.startswith("<!DOCTYPE html>")
    assert '<html lang="Italiano (IT)">' in html
    assert '<img src="https://cdn.example.com/cover.png"' in html
    assert '<h1 class="cover-title">Remote Work Playbook</h1>' in html
    assert "by Jane Doe" in html
    assert "<span>3</span>" in html and "<span>5</span>" in html
    assert "page-break-before: always" in html
    assert "#8b5cf6" in html  # modern accent


def test_html_escapes_text(all_options) -> None:
    book = BookData(title="<Tags> & Co", chapters=[Chapter(id="1", title="A < B", content="x > y & z")])
    html = render_html(book, all_options).decode()
    assert "&lt;Tags&gt; &amp; Co" in html
    assert "<p>x &gt; y &amp; z</p>" in html
    assert "<Tags>" not in html


def test_html_options_off(book, bare_options) -> None:
    html = render_html(book, bare_options).decode()
    assert "cover-page" not in html.split("<body>")[1]
    assert 'class="toc"' not in html


def test_printable_html_has_banner_and_same_content(book, all_options) -> None:
    printable = render_printable_html(book, all_options).decode()
    assert 'class="print-instructions no-print"' in printable
    assert "Save as PDF" in printable
    assert '<h1 class="chapter-title">Chapter 2: Staying Focused</h1>' in printable
    assert "print-instructions" not in render_html(book, all_options).decode()


def test_flipbook_preview_lists_every_chapter(book) -> None:
    empty = book.model_copy(update={"chapters": book.chapters + [Chapter(id="9", title="Soon", content="")]})
    html = render_flipbook_preview(empty).decode()
    assert html.count('<div class="chapter">') == len(empty.chapters)
    assert "<p><em>Chapter content will appear here...</em></p>" in html
    assert '<p class="flipbook-author">by Jane Doe</p>' in html
    assert '<div class="cover-section">' not in html


# ----- Markdown -----

def test_markdown_end_to_end_scenario(all_options) -> None:
    book = BookData(
        title="Test",
        chapters=[Chapter(id="1", title="Intro", content="Intro\n\nHello world.")],
        selected_template="modern",
    )
    md = render_markdown(book, all_options).decode()
    lines = md.splitlines()
    assert md.startswith("# Test")
    assert "## Chapter 1: Intro" in lines
    assert [line for line in lines if line.startswith("#") and "Intro" in line] == ["## Chapter 1: Intro"]
    assert lines.count("Intro") == 0
    assert "Hello world." in lines


def test_markdown_header_and_toc(book, all_options) -> None:
    lines = render_markdown(book, all_options).decode().splitlines()
    assert lines[:8] == [
        "# Remote Work Playbook",
        "",
        "## Thriving away from the office",
        "",
        "**Author:** Jane Doe",
        "",
        "**Description:** A practical guide for distributed teams.",
        "",
    ]
    assert "## Table of Contents" in lines
    assert "1. [Getting Started](#chapter-1-getting-started)" in lines


def test_markdown_without_toc(book, bare_options) -> None:
    assert "## Table of Contents" not in render_markdown(book, bare_options).decode()


# ----- EPUB -----

def test_epub_container_layout(book, all_options) -> None:
    with ZipFile(BytesIO(render_epub(book, all_options))) as zf:
        infos = zf.infolist()
        assert infos[0].filename == "mimetype"
        assert infos[0].compress_type == ZIP_STORED
        assert zf.read("mimetype") == b"application/epub+zip"
        names = set(zf.namelist())
        assert {
            "META-INF/container.xml",
            "OEBPS/content.opf",
            "OEBPS/toc.ncx",
            "OEBPS/style.css",
            "OEBPS/cover.xhtml",
            "OEBPS/toc.xhtml",
            "OEBPS/chapter1.xhtml",
            "OEBPS/chapter3.xhtml",
        } <= names
        assert "OEBPS/cover.jpg" not in names
        assert "DTD XHTML 1.1" in zf.read("OEBPS/chapter1.xhtml").decode()
        opf = zf.read("OEBPS/content.opf").decode()
        assert '<meta name="cover"' not in opf
        assert "<dc:language>English (EN)</dc:language>" in opf
        assert "font-family: sans-serif" in zf.read("OEBPS/style.css").decode()


def test_epub_options_off_drops_cover_and_toc(book, bare_options) -> None:
    with ZipFile(BytesIO(render_epub(book, bare_options))) as zf:
        names = set(zf.namelist())
        opf = zf.read("OEBPS/content.opf").decode()
    assert "OEBPS/cover.xhtml" not in names
    assert "OEBPS/toc.xhtml" not in names
    assert re.findall(r'<itemref idref="([^"]+)"/>', opf) == ["chapter1", "chapter2", "chapter3"]


# ----- DOCX -----

def test_docx_sections(book, all_options) -> None:
    doc = Document(BytesIO(render_docx(book, all_options)))
    texts = [p.text for p in doc.paragraphs]
    assert texts[0] == "Remote Work Playbook"
    assert "by Jane Doe" in texts
    assert "Table of Contents" in texts

    chapter_heads = [p for p in doc.paragraphs if p.style.name == "Heading 1" and p.text.startswith("Chapter")]
    assert chapter_heads[0].paragraph_format.page_break_before is not True
    assert all(p.paragraph_format.page_break_before for p in chapter_heads[1:])
    assert chapter_heads[0].runs[0].font.size.pt == 14

    assert "PAGE" in _footer_xml(doc)


def test_docx_without_page_numbers_or_front_matter(book, bare_options) -> None:
    doc = Document(BytesIO(render_docx(book, bare_options)))
    texts = [p.text for p in doc.paragraphs]
    assert texts[0] == "Chapter 1: Getting Started"
    assert "Table of Contents" not in texts
    assert "PAGE" not in _footer_xml(doc)


# ----- control characters -----

def _book_with_control_chars() -> BookData:
    return BookData(
        title="Form\x0cFeed",
        author="Nul\x00Author",
        description="Bell\x07 here",
        chapters=[Chapter(id="1", title="Page\x0c One", content="Before\x0cafter.\n\nTab\tand\x1b escape.")],
    )


def test_epub_strips_xml_illegal_characters(all_options) -> None:
    from xml.dom import minidom

    with ZipFile(BytesIO(render_epub(_book_with_control_chars(), all_options))) as zf:
        for name in zf.namelist():
            if name.endswith((".xhtml", ".opf", ".ncx")):
                minidom.parseString(zf.read(name))
        chapter = zf.read("OEBPS/chapter1.xhtml").decode()
        opf = zf.read("OEBPS/content.opf").decode()
    assert "<p>Beforeafter.</p>" in chapter
    assert "<p>Tab\tand escape.</p>" in chapter
    assert "<dc:title>FormFeed</dc:title>" in opf


def test_docx_strips_xml_illegal_characters(all_options) -> None:
    doc = Document(BytesIO(render_docx(_book_with_control_chars(), all_options)))
    texts = [p.text for p in doc.paragraphs]
    assert "FormFeed" in texts
    assert "Chapter 1: Page One" in texts
    assert "Beforeafter." in texts
    assert doc.core_properties.author == "NulAuthor"


def test_html_strips_xml_illegal_characters(all_options) -> None:
    html = render_html(_book_with_control_chars(), all_options).decode()
    assert "\x0c" not in html and "\x00" not in html
    assert "<p>Beforeafter.</p>" in html
