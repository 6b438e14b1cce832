# apps/backend/bookster/exporters/archive.py
"""Zip helpers with fixed timestamps so the same book gives the same bytes."""
from __future__ import annotations

from io import BytesIO
from zipfile import ZIP_DEFLATED, ZIP_STORED, ZipFile, ZipInfo

FIXED_DATE_TIME = (1980, 1, 1, 0, 0, 0)


def write_entry(zf: ZipFile, name: str, data, *, stored: bool = False) -> None:
    info = ZipInfo(name, date_time=FIXED_DATE_TIME)
    info.compress_type = ZIP_STORED if stored else ZIP_DEFLATED
    info.external_attr = 0o644 << 16
    if isinstance(data, str):
        data = data.encode("utf-8")
    zf.writestr(info, data)


def repack(data: bytes) -> bytes:
    """Rewrite every entry of a zip with the fixed timestamp, same order."""
    out = BytesIO()
    with ZipFile(BytesIO(data)) as src, ZipFile(out, "w") as dst:
        for item in src.infolist():
            write_entry(dst, item.filename, src.read(item.filename), stored=item.compress_type == ZIP_STORED)
    return out.getvalue()
