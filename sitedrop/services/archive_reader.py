"""
Archive reader: turns an uploaded file into the list of entries to store.

A single HTML document always becomes ``index.html``; a ZIP archive yields one
entry per file in archive order, with posix-normalized relative paths.
"""
from __future__ import annotations

import logging
import zipfile
import zlib
from io import BytesIO

from sitedrop.errors import CorruptArchive, FileTooLarge, UnsupportedFormat
from sitedrop.models import ArchiveEntry, UploadKind
from sitedrop.services.content_types import classify
from sitedrop.utils import format_file_size

logger = logging.getLogger(__name__)

SINGLE_DOCUMENT_PATH = "index.html"


def detect_kind(filename: str) -> UploadKind:
    name = filename.lower()
    if name.endswith((".html", ".htm")):
        return UploadKind.SINGLE_DOCUMENT
    if name.endswith(".zip"):
        return UploadKind.ARCHIVE
    raise UnsupportedFormat("Please upload an HTML file or ZIP archive")


def check_size(size: int, limit: int) -> None:
    if size > limit:
        raise FileTooLarge(f"File is too large. Maximum size is {format_file_size(limit)}")


def normalize_path(name: str) -> str:
    path = name.replace("\\", "/")
    while path.startswith(("./", "/")):
        path = path[2:] if path.startswith("./") else path[1:]
    return path


def read(data: bytes, kind: UploadKind) -> list[ArchiveEntry]:
    if kind is UploadKind.SINGLE_DOCUMENT:
        return [ArchiveEntry(SINGLE_DOCUMENT_PATH, data, "text/html")]
    if kind is UploadKind.ARCHIVE:
        return _read_zip(data)
    raise UnsupportedFormat(f"Unsupported upload kind: {kind!r}")


def _read_zip(data: bytes) -> list[ArchiveEntry]:
    try:
        zf = zipfile.ZipFile(BytesIO(data))
    except (zipfile.BadZipFile, zipfile.LargeZipFile, ValueError) as exc:
        raise CorruptArchive(f"Could not open ZIP archive: {exc}") from exc

    entries: list[ArchiveEntry] = []
    seen: set[str] = set()
    with zf:
        for info in zf.infolist():
            if info.is_dir():
                continue
            path = normalize_path(info.filename)
            if not path or path.endswith("/"):
                continue
            if ".." in path.split("/"):
                raise CorruptArchive(f"Unsafe path in archive: {info.filename}")
            if path in seen:
                logger.warning("Duplicate archive entry skipped: %s", path)
                continue
            try:
                content = zf.read(info)
            except (zipfile.BadZipFile, zlib.error, NotImplementedError, RuntimeError) as exc:
                raise CorruptArchive(f"Could not extract {path}: {exc}") from exc
            seen.add(path)
            entries.append(ArchiveEntry(path, content, classify(path)))

    logger.info("Read %d entries from archive", len(entries))
    return entries
