"""
Supabase storage: site files go to Supabase Storage, site records to the
``sites`` table through PostgREST.
"""
from __future__ import annotations

import logging
from datetime import UTC, datetime

import httpx

from sitedrop.config import Settings, settings
from sitedrop.errors import NotFound, PersistenceError, StorageError
from sitedrop.models import SiteRecord
from sitedrop.storage.base import StorageProvider, storage_key

logger = logging.getLogger(__name__)


def _error_message(res: httpx.Response) -> str:
    try:
        payload = res.json()
    except ValueError:
        return res.text or f"HTTP {res.status_code}"
    if isinstance(payload, dict):
        return str(payload.get("message") or payload.get("error") or payload)
    return str(payload)


class SupabaseClient:
    """Minimal async Supabase client (Storage + PostgREST)."""

    def __init__(self, config: Settings | None = None, transport: httpx.AsyncBaseTransport | None = None):
        config = config or settings
        self.base = config.supabase_url.rstrip("/")
        self.key = config.supabase_key
        self.bucket = config.supabase_bucket
        self.timeout = config.request_timeout
        self._transport = transport
        self._headers = {
            "apikey": self.key,
            "Authorization": f"Bearer {self.key}",
        }

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    def _storage_url(self, path: str) -> str:
        return f"{self.base}/storage/v1/object/{self.bucket}/{path}"

    def _public_url(self, path: str) -> str:
        return f"{self.base}/storage/v1/object/public/{self.bucket}/{path}"

    def _rest_url(self, table: str) -> str:
        return f"{self.base}/rest/v1/{table}"

    @property
    def public_root(self) -> str:
        return f"{self.base}/storage/v1/object/public/{self.bucket}"

    async def upload(self, remote_path: str, data: bytes, content_type: str = "application/octet-stream") -> str:
        """Upload bytes without overwriting, return public URL."""
        headers = {**self._headers, "Content-Type": content_type, "x-upsert": "false"}
        try:
            async with self._client() as client:
                res = await client.post(self._storage_url(remote_path), headers=headers, content=data)
        except httpx.HTTPError as exc:
            raise StorageError(f"Upload of {remote_path} failed: {exc}") from exc
        if res.status_code not in (200, 201):
            raise StorageError(_error_message(res))
        return self._public_url(remote_path)

    async def download(self, remote_path: str) -> bytes:
        try:
            async with self._client() as client:
                res = await client.get(self._storage_url(remote_path), headers=self._headers)
        except httpx.HTTPError as exc:
            raise StorageError(f"Download of {remote_path} failed: {exc}") from exc
        # Storage answers 400 "Object not found" as well as 404
        if res.status_code in (400, 404):
            raise NotFound(remote_path)
        if res.status_code != 200:
            raise StorageError(_error_message(res))
        return res.content

    async def list_buckets(self) -> list[dict]:
        async with self._client() as client:
            res = await client.get(f"{self.base}/storage/v1/bucket", headers=self._headers)
            res.raise_for_status()
            return res.json()

    async def create_bucket(self, name: str, public: bool = True, file_size_limit: int | None = None) -> dict:
        body: dict = {"id": name, "name": name, "public": public}
        if file_size_limit:
            body["file_size_limit"] = file_size_limit
        async with self._client() as client:
            res = await client.post(f"{self.base}/storage/v1/bucket", headers=self._headers, json=body)
            res.raise_for_status()
            return res.json()

    async def ensure_bucket(self, file_size_limit: int | None = None) -> bool:
        """Create the public bucket if missing; True when it was created."""
        buckets = await self.list_buckets()
        if any(b.get("name") == self.bucket for b in buckets):
            return False
        await self.create_bucket(self.bucket, public=True, file_size_limit=file_size_limit)
        return True

    async def insert(self, table: str, row: dict) -> dict:
        headers = {
            **self._headers,
            "Content-Type": "application/json",
            "Prefer": "return=representation",
        }
        try:
            async with self._client() as client:
                res = await client.post(self._rest_url(table), headers=headers, json=row)
        except httpx.HTTPError as exc:
            raise PersistenceError(f"Insert into {table} failed: {exc}") from exc
        if res.status_code not in (200, 201):
            raise PersistenceError(_error_message(res))
        rows = res.json()
        return rows[0] if rows else {}

    async def select(self, table: str, filters: dict | None = None) -> list[dict]:
        params = {}
        if filters:
            for k, v in filters.items():
                params[k] = f"eq.{v}"
        async with self._client() as client:
            headers = {**self._headers, "Accept": "application/json"}
            res = await client.get(self._rest_url(table), headers=headers, params=params)
            res.raise_for_status()
            return res.json()


class SupabaseStorageProvider(StorageProvider):
    name = "supabase"

    def __init__(self, client: SupabaseClient | None = None, config: Settings | None = None):
        self.config = config or settings
        self.client = client or SupabaseClient(self.config)

    @property
    def storage_root(self) -> str:
        return self.client.public_root

    async def ensure_bucket(self) -> None:
        try:
            if await self.client.ensure_bucket(self.config.max_upload_bytes):
                logger.info("Created storage bucket %s", self.client.bucket)
        except httpx.HTTPError as exc:
            logger.warning("Bucket setup failed: %s", exc)

    async def put_file(self, slug: str, path: str, data: bytes, content_type: str) -> str:
        return await self.client.upload(storage_key(slug, path), data, content_type)

    async def get_file(self, slug: str, path: str) -> bytes:
        return await self.client.download(storage_key(slug, path))

    async def create_record(self, slug: str, main_file: str, file_count: int, total_size: int) -> SiteRecord:
        row = await self.client.insert(
            self.config.sites_table,
            {
                "slug": slug,
                "main_file": main_file,
                "file_count": file_count,
                "total_size": total_size,
            },
        )
        defaults = {
            "slug": slug,
            "main_file": main_file,
            "file_count": file_count,
            "total_size": total_size,
            "created_at": datetime.now(UTC).isoformat(),
        }
        return SiteRecord.from_row({**defaults, **row})

    async def get_record(self, slug: str) -> SiteRecord | None:
        try:
            rows = await self.client.select(self.config.sites_table, {"slug": slug})
        except httpx.HTTPError as exc:
            raise StorageError(f"Lookup of site {slug} failed: {exc}") from exc
        return SiteRecord.from_row(rows[0]) if rows else None


_provider: SupabaseStorageProvider | None = None


def get_supabase() -> SupabaseStorageProvider | None:
    if not settings.supabase_url or not settings.supabase_key:
        return None
    global _provider
    if _provider is None:
        _provider = SupabaseStorageProvider()
    return _provider
