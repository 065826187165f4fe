from __future__ import annotations

from abc import ABC, abstractmethod

from sitedrop.models import SiteRecord


def storage_key(slug: str, path: str) -> str:
    return f"{slug}/{path}"


class StorageProvider(ABC):
    """Where site files and site records live.

    Files are stored under ``<slug>/<relative path>``; records are keyed by
    slug and must be rejected when the slug already exists.
    """

    name: str

    @property
    @abstractmethod
    def storage_root(self) -> str:
        """Public URL prefix that stored keys are reachable under."""

    def asset_base(self, slug: str) -> str:
        return f"{self.storage_root.rstrip('/')}/{slug}/"

    async def ensure_bucket(self) -> None:
        """Create the backing bucket/directory if it does not exist yet."""

    @abstractmethod
    async def put_file(self, slug: str, path: str, data: bytes, content_type: str) -> str:
        raise NotImplementedError

    @abstractmethod
    async def get_file(self, slug: str, path: str) -> bytes:
        raise NotImplementedError

    @abstractmethod
    async def create_record(self, slug: str, main_file: str, file_count: int, total_size: int) -> SiteRecord:
        raise NotImplementedError

    @abstractmethod
    async def get_record(self, slug: str) -> SiteRecord | None:
        raise NotImplementedError
