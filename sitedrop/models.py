from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable


class UploadKind(enum.Enum):
    SINGLE_DOCUMENT = "single_document"
    ARCHIVE = "archive"


@dataclass(frozen=True)
class ArchiveEntry:
    path: str                   # posix-style, no leading slash
    content: bytes
    content_type: str

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class SiteRecord:
    slug: str
    main_file: str
    file_count: int
    total_size: int
    created_at: datetime

    @classmethod
    def from_row(cls, row: dict) -> SiteRecord:
        created = row.get("created_at")
        if isinstance(created, str):
            created = datetime.fromisoformat(created.replace("Z", "+00:00"))
        return cls(
            slug=row["slug"],
            main_file=row.get("main_file") or "index.html",
            file_count=int(row.get("file_count") or 1),
            total_size=int(row.get("total_size") or 0),
            created_at=created,
        )

    def to_row(self) -> dict:
        return {
            "slug": self.slug,
            "main_file": self.main_file,
            "file_count": self.file_count,
            "total_size": self.total_size,
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class UploadSession:
    """Everything one upload request needs; nothing is kept between requests."""

    filename: str
    data: bytes
    slug: str
    on_progress: Callable[[int], None] | None = None
    stored_paths: list[str] = field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class PublishResult:
    record: SiteRecord
    url: str                    # /site/{slug} on the public origin

    def to_dict(self) -> dict:
        return {**self.record.to_row(), "url": self.url}
