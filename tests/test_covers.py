"""Cover references: data URLs, uploaded files, remote URLs, junk."""
import base64
from io import BytesIO
from zipfile import ZipFile

from docx import Document
from PIL import Image

from bookster import storage
from bookster.exporters.covers import browser_cover_src, load_cover_bytes, resolve_cover_jpeg
from bookster.exporters.docx import render_docx
from bookster.exporters.epub import render_epub


def _png_bytes() -> bytes:
    buf = BytesIO()
    Image.new("RGBA", (8, 12), (255, 0, 0, 128)).save(buf, format="PNG")
    return buf.getvalue()


def _data_url() -> str:
    return "data:image/png;base64," + base64.b64encode(_png_bytes()).decode()


def test_data_url_is_decoded_to_jpeg() -> None:
    jpeg = resolve_cover_jpeg(_data_url())
    assert jpeg[:2] == b"\xff\xd8"
    assert Image.open(BytesIO(jpeg)).size == (8, 12)


def test_uploaded_file_is_read_from_uploads_dir() -> None:
    (storage.UPLOADS_DIR / "cover.png").write_bytes(_png_bytes())
    assert resolve_cover_jpeg("/uploads/cover.png") is not None
    assert resolve_cover_jpeg("cover.png") is not None


def test_path_outside_uploads_is_refused() -> None:
    (storage.BASE_DIR / "secret.png").write_bytes(_png_bytes())
    assert load_cover_bytes("/uploads/../secret.png") is None


def test_remote_urls_are_not_fetched() -> None:
    assert load_cover_bytes("https://example.com/cover.png") is None
    assert load_cover_bytes("http://example.com/cover.png") is None


def test_unreadable_image_is_skipped() -> None:
    bogus = "data:image/png;base64," + base64.b64encode(b"not an image").decode()
    assert resolve_cover_jpeg(bogus) is None
    assert resolve_cover_jpeg("/uploads/missing.png") is None
    assert resolve_cover_jpeg(None) is None


def test_browser_cover_src() -> None:
    assert browser_cover_src("https://example.com/cover.png") is None
    assert browser_cover_src(None) is None
    assert browser_cover_src("/uploads/missing.png") == ""
    assert browser_cover_src(_data_url()).startswith("data:image/jpeg;base64,")


def test_epub_embeds_resolvable_cover(book, all_options) -> None:
    book = book.model_copy(update={"cover_image_url": _data_url()})
    with ZipFile(BytesIO(render_epub(book, all_options))) as zf:
        assert "OEBPS/cover.jpg" in zf.namelist()
        opf = zf.read("OEBPS/content.opf").decode()
        assert '<meta name="cover" content="cover-image"/>' in opf
        assert '<img src="cover.jpg"' in zf.read("OEBPS/cover.xhtml").decode()


def test_docx_embeds_resolvable_cover(book, all_options) -> None:
    book = book.model_copy(update={"cover_image_url": _data_url()})
    doc = Document(BytesIO(render_docx(book, all_options)))
    assert len(doc.inline_shapes) == 1
