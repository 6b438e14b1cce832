# apps/backend/bookster/exporters/epub.py
"""
EPUB 2 container built by hand.

Layout:
    mimetype                  (stored, first entry)
    META-INF/container.xml
    OEBPS/content.opf         manifest + spine
    OEBPS/toc.ncx             navMap, playOrder cover=1, toc=2, chapters=3..
    OEBPS/style.css
    OEBPS/cover.xhtml         optional
    OEBPS/toc.xhtml           optional
    OEBPS/chapterN.xhtml      one per chapter, 1-based
    OEBPS/cover.jpg           only when the cover reference resolves locally
"""
from __future__ import annotations

import uuid
from html import escape
from io import BytesIO
from typing import List, Optional, Tuple
from zipfile import ZipFile

from ..models import BookData, ExportOptions
from .archive import write_entry
from .covers import resolve_cover_jpeg
from .styles import TemplateStyle, resolve_template_style
from .text import chapter_blocks, chapter_heading, clean_book

_XHTML_HEAD = (
    '<?xml version="1.0" encoding="UTF-8"?>\n'
    '<!DOCTYPE html PUBLIC "-//W3C//DTD XHTML 1.1//EN" "http://www.w3.org/TR/xhtml11/DTD/xhtml11.dtd">\n'
    '<html xmlns="http://www.w3.org/1999/xhtml">\n'
    "<head>\n"
    "<title>{title}</title>\n"
    '<link rel="stylesheet" type="text/css" href="style.css"/>\n'
    "</head>\n"
    "<body>\n"
)
_XHTML_TAIL = "</body>\n</html>\n"

_CONTAINER_XML = """<?xml version="1.0" encoding="UTF-8"?>
<container version="1.0" xmlns="urn:oasis:names:tc:opendocument:xmlns:container">
  <rootfiles>
    <rootfile full-path="OEBPS/content.opf" media-type="application/oebps-package+xml"/>
  </rootfiles>
</container>
"""


def _x(text: Optional[str]) -> str:
    return escape(text or "", quote=True)


def book_identifier(book: BookData) -> str:
    """Stable urn for the same title+author."""
    return "urn:uuid:" + str(uuid.uuid5(uuid.NAMESPACE_URL, f"bookster:{book.title}:{book.author}"))


def _xhtml(title: str, body: str) -> str:
    return _XHTML_HEAD.format(title=_x(title)) + body + _XHTML_TAIL


def _style_css(style: TemplateStyle) -> str:
    return (
        "body {\n"
        f"  font-family: {style.font_family};\n"
        f"  font-size: {style.font_size};\n"
        f"  line-height: {style.line_height};\n"
        f"  color: {style.text_color};\n"
        f"  background-color: {style.background_color};\n"
        "  margin: 1em;\n"
        "}\n"
        f"p {{ margin-bottom: {style.margin_bottom}; text-align: justify; }}\n"
        f"h1, h2, h3, h4 {{ color: {style.accent_color}; }}\n"
        ".cover { text-align: center; margin-top: 3em; }\n"
        ".cover img { max-width: 100%; }\n"
        ".toc ol { list-style: none; padding: 0; }\n"
    )


def _cover_xhtml(book: BookData, has_image: bool) -> str:
    body = ['<div class="cover">']
    if has_image:
        body.append('<img src="cover.jpg" alt="Cover"/>')
    body.append(f"<h1>{_x(book.title)}</h1>")
    if book.subtitle:
        body.append(f"<h2>{_x(book.subtitle)}</h2>")
    if book.author:
        body.append(f"<p>by {_x(book.author)}</p>")
    if book.description:
        body.append(f"<p>{_x(book.description)}</p>")
    body.append("</div>\n")
    return _xhtml(book.title, "\n".join(body))


def _toc_xhtml(book: BookData) -> str:
    items = [
        f'<li><a href="chapter{i + 1}.xhtml">{_x(chapter_heading(i, ch.title))}</a></li>'
        for i, ch in enumerate(book.chapters)
    ]
    body = '<div class="toc">\n<h1>Table of Contents</h1>\n<ol>\n' + "\n".join(items) + "\n</ol>\n</div>\n"
    return _xhtml("Table of Contents", body)


def _chapter_xhtml(index: int, title: str, content: str) -> str:
    heading = chapter_heading(index, title)
    body = [f"<h1>{_x(heading)}</h1>"]
    for block in chapter_blocks(content, title):
        tag = "h3" if block.is_heading else "p"
        body.append(f"<{tag}>{_x(block.text)}</{tag}>")
    return _xhtml(heading, "\n".join(body) + "\n")


def _documents(book: BookData, options: ExportOptions) -> List[Tuple[str, str, str]]:
    """(id, href, nav label) in reading order."""
    docs: List[Tuple[str, str, str]] = []
    if options.include_cover:
        docs.append(("cover", "cover.xhtml", "Cover"))
    if options.include_table_of_contents:
        docs.append(("toc", "toc.xhtml", "Table of Contents"))
    for i, ch in enumerate(book.chapters):
        docs.append((f"chapter{i + 1}", f"chapter{i + 1}.xhtml", chapter_heading(i, ch.title)))
    return docs


def _content_opf(book: BookData, docs: List[Tuple[str, str, str]], has_image: bool) -> str:
    manifest = [
        '<item id="ncx" href="toc.ncx" media-type="application/x-dtbncx+xml"/>',
        '<item id="style" href="style.css" media-type="text/css"/>',
    ]
    if has_image:
        manifest.append('<item id="cover-image" href="cover.jpg" media-type="image/jpeg"/>')
    manifest += [f'<item id="{doc_id}" href="{href}" media-type="application/xhtml+xml"/>' for doc_id, href, _ in docs]
    spine = [f'<itemref idref="{doc_id}"/>' for doc_id, _, _ in docs]

    meta = [
        f"<dc:title>{_x(book.title)}</dc:title>",
        f"<dc:creator opf:role=\"aut\">{_x(book.author)}</dc:creator>",
        f"<dc:language>{_x(book.language)}</dc:language>",
        f'<dc:identifier id="BookId">{book_identifier(book)}</dc:identifier>',
    ]
    if book.description:
        meta.append(f"<dc:description>{_x(book.description)}</dc:description>")
    if has_image:
        meta.append('<meta name="cover" content="cover-image"/>')

    guide = ""
    if any(doc_id == "cover" for doc_id, _, _ in docs):
        guide = '\n  <guide>\n    <reference type="cover" title="Cover" href="cover.xhtml"/>\n  </guide>'

    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<package xmlns="http://www.idpf.org/2007/opf" unique-identifier="BookId" version="2.0">\n'
        '  <metadata xmlns:dc="http://purl.org/dc/elements/1.1/" xmlns:opf="http://www.idpf.org/2007/opf">\n    '
        + "\n    ".join(meta)
        + "\n  </metadata>\n  <manifest>\n    "
        + "\n    ".join(manifest)
        + '\n  </manifest>\n  <spine toc="ncx">\n    '
        + "\n    ".join(spine)
        + "\n  </spine>"
        + guide
        + "\n</package>\n"
    )


def _toc_ncx(book: BookData, docs: List[Tuple[str, str, str]]) -> str:
    points = []
    # playOrder follows the spine, without gaps
    for order, (doc_id, href, label) in enumerate(docs, start=1):
        points.append(
            f'    <navPoint id="navpoint-{doc_id}" playOrder="{order}">\n'
            f"      <navLabel><text>{_x(label)}</text></navLabel>\n"
            f'      <content src="{href}"/>\n'
            "    </navPoint>"
        )
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<!DOCTYPE ncx PUBLIC "-//NISO//DTD ncx 2005-1//EN" "http://www.daisy.org/z3986/2005/ncx-2005-1.dtd">\n'
        '<ncx xmlns="http://www.daisy.org/z3986/2005/ncx/" version="2005-1">\n'
        "  <head>\n"
        f'    <meta name="dtb:uid" content="{book_identifier(book)}"/>\n'
        '    <meta name="dtb:depth" content="1"/>\n'
        '    <meta name="dtb:totalPageCount" content="0"/>\n'
        '    <meta name="dtb:maxPageNumber" content="0"/>\n'
        "  </head>\n"
        f"  <docTitle><text>{_x(book.title)}</text></docTitle>\n"
        "  <navMap>\n"
        + "\n".join(points)
        + "\n  </navMap>\n</ncx>\n"
    )


def render_epub(book: BookData, options: ExportOptions) -> bytes:
    book = clean_book(book)
    style = resolve_template_style(book.selected_template, book.custom_theme)
    cover_jpeg = resolve_cover_jpeg(book.cover_image_url) if options.include_cover else None
    docs = _documents(book, options)

    buf = BytesIO()
    with ZipFile(buf, "w") as zf:
        write_entry(zf, "mimetype", "application/epub+zip", stored=True)
        write_entry(zf, "META-INF/container.xml", _CONTAINER_XML)
        write_entry(zf, "OEBPS/content.opf", _content_opf(book, docs, cover_jpeg is not None))
        write_entry(zf, "OEBPS/toc.ncx", _toc_ncx(book, docs))
        write_entry(zf, "OEBPS/style.css", _style_css(style))
        if cover_jpeg is not None:
            write_entry(zf, "OEBPS/cover.jpg", cover_jpeg)
        if options.include_cover:
            write_entry(zf, "OEBPS/cover.xhtml", _cover_xhtml(book, cover_jpeg is not None))
        if options.include_table_of_contents:
            write_entry(zf, "OEBPS/toc.xhtml", _toc_xhtml(book))
        for i, ch in enumerate(book.chapters):
            write_entry(zf, f"OEBPS/chapter{i + 1}.xhtml", _chapter_xhtml(i, ch.title, ch.content))
    return buf.getvalue()
