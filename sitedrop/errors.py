"""Error kinds raised by the packaging, storage and viewing pipelines."""
from __future__ import annotations


class SiteDropError(Exception):
    """Base class; the message is safe to show to the uploader."""


class UnsupportedFormat(SiteDropError):
    pass


class FileTooLarge(SiteDropError):
    pass


class CorruptArchive(SiteDropError):
    pass


class NoEntryPoint(SiteDropError):
    pass


class StorageError(SiteDropError):
    """A file could not be written to (or read from) object storage."""


class PersistenceError(SiteDropError):
    """The site record could not be created, e.g. the slug already exists."""


class NotFound(SiteDropError):
    pass


class RenderTargetMissing(SiteDropError):
    pass


# Errors caused by the upload itself rather than by a backend
INPUT_ERRORS = (UnsupportedFormat, FileTooLarge, CorruptArchive, NoEntryPoint)
