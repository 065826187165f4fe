"""
Publisher — upload and view pipelines.

Upload: size check → kind → entries → main page → one ``put_file`` per entry
→ site record. View: record → main page bytes → rewrite.

Nothing is retried and nothing is rolled back: files stored before a failure
stay in storage.
"""
from __future__ import annotations

import logging
from typing import Callable

from sitedrop.config import Settings, settings
from sitedrop.errors import NotFound, SiteDropError
from sitedrop.models import PublishResult, SiteRecord, UploadKind, UploadSession
from sitedrop.services import archive_reader, rewriter
from sitedrop.services.entry_point import select_main
from sitedrop.storage.base import StorageProvider

logger = logging.getLogger(__name__)


class ProgressTracker:
    """Percent-complete reporter that never goes backwards.

    100 is only reported by :meth:`finish`, i.e. after every file is stored.
    """

    def __init__(self, total: int, callback: Callable[[int], None] | None = None):
        self.total = max(total, 1)
        self.done = 0
        self.percent = 0
        self._callback = callback

    def _emit(self, percent: int) -> None:
        if percent < self.percent:
            return
        self.percent = percent
        if self._callback is not None:
            self._callback(percent)

    def advance(self) -> None:
        self.done = min(self.done + 1, self.total)
        # Kept below 100 until finish()
        self._emit(min(self.done * 100 // self.total, 99))

    def finish(self) -> None:
        self.done = self.total
        self._emit(100)


def site_url(slug: str, config: Settings | None = None) -> str:
    return f"{(config or settings).site_base}/site/{slug}"


async def publish_site(
    session: UploadSession,
    storage: StorageProvider,
    config: Settings | None = None,
) -> PublishResult:
    config = config or settings
    archive_reader.check_size(session.size, config.max_upload_bytes)
    kind = archive_reader.detect_kind(session.filename)

    entries = archive_reader.read(session.data, kind)
    main_file = select_main(entries) if kind is UploadKind.ARCHIVE else archive_reader.SINGLE_DOCUMENT_PATH

    logger.info("Uploading %d files for %s (main: %s)", len(entries), session.slug, main_file)
    progress = ProgressTracker(len(entries), session.on_progress)
    try:
        for entry in entries:
            await storage.put_file(session.slug, entry.path, entry.content, entry.content_type)
            session.stored_paths.append(entry.path)
            progress.advance()

        record = await storage.create_record(
            slug=session.slug,
            main_file=main_file,
            file_count=len(entries),
            total_size=session.size,
        )
    except SiteDropError:
        if session.stored_paths:
            logger.warning(
                "Upload of %s failed after storing %d files; they are left in place",
                session.slug,
                len(session.stored_paths),
            )
        raise

    progress.finish()
    logger.info("Published site %s", session.slug)
    return PublishResult(record=record, url=site_url(session.slug, config))


async def load_site(slug: str, storage: StorageProvider) -> tuple[SiteRecord, str]:
    """Fetch a site's main page and return it rewritten for viewing."""
    record = await storage.get_record(slug)
    if record is None:
        raise NotFound(f"No site with slug {slug}")

    raw = await storage.get_file(slug, record.main_file)
    document = raw.decode("utf-8", errors="replace")
    return record, rewriter.rewrite(document, storage.asset_base(slug))
