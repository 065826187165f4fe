"""
Local disk storage: files under ``<base>/<slug>/``, records under
``<base>/_records/<slug>.json``. Assets are served back by the app at
``/files/<slug>/<path>``.
"""
from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path

from sitedrop.config import settings
from sitedrop.errors import NotFound, PersistenceError, StorageError
from sitedrop.models import SiteRecord
from sitedrop.storage.base import StorageProvider, storage_key

RECORDS_DIR = "_records"


class LocalStorageProvider(StorageProvider):
    name = "local"

    def __init__(self, base_dir: str | Path | None = None, public_base_url: str | None = None):
        self.base = Path(base_dir or settings.base_storage_dir)
        self.public_base_url = (public_base_url or settings.site_base).rstrip("/")

    @property
    def storage_root(self) -> str:
        return f"{self.public_base_url}/files"

    def _file_path(self, slug: str, path: str) -> Path:
        target = (self.base / storage_key(slug, path)).resolve()
        if not target.is_relative_to((self.base / slug).resolve()):
            raise NotFound(f"{slug}/{path}")
        return target

    def _record_path(self, slug: str) -> Path:
        return self.base / RECORDS_DIR / f"{slug}.json"

    async def ensure_bucket(self) -> None:
        (self.base / RECORDS_DIR).mkdir(parents=True, exist_ok=True)

    async def put_file(self, slug: str, path: str, data: bytes, content_type: str) -> str:
        try:
            target = self._file_path(slug, path)
        except NotFound as exc:
            raise StorageError(f"Invalid path: {path}") from exc
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with target.open("xb") as fh:
                fh.write(data)
        except FileExistsError as exc:
            raise StorageError(f"The resource already exists: {storage_key(slug, path)}") from exc
        except OSError as exc:
            raise StorageError(str(exc)) from exc
        return f"{self.asset_base(slug)}{path}"

    async def get_file(self, slug: str, path: str) -> bytes:
        target = self._file_path(slug, path)
        if not target.is_file():
            raise NotFound(storage_key(slug, path))
        return target.read_bytes()

    async def create_record(self, slug: str, main_file: str, file_count: int, total_size: int) -> SiteRecord:
        record = SiteRecord(
            slug=slug,
            main_file=main_file,
            file_count=file_count,
            total_size=total_size,
            created_at=datetime.now(UTC),
        )
        record_path = self._record_path(slug)
        try:
            record_path.parent.mkdir(parents=True, exist_ok=True)
            with record_path.open("x", encoding="utf-8") as fh:
                json.dump(record.to_row(), fh, indent=2)
        except FileExistsError as exc:
            raise PersistenceError(f'duplicate key value violates unique constraint "sites_slug_key": {slug}') from exc
        except OSError as exc:
            raise PersistenceError(str(exc)) from exc
        return record

    async def get_record(self, slug: str) -> SiteRecord | None:
        record_path = self._record_path(slug)
        if not record_path.is_file():
            return None
        return SiteRecord.from_row(json.loads(record_path.read_text(encoding="utf-8")))
