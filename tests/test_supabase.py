import asyncio
import json

import httpx
import pytest

from sitedrop.config import Settings
from sitedrop.errors import NotFound, PersistenceError, StorageError
from sitedrop.storage.supabase import SupabaseClient, SupabaseStorageProvider

CONFIG = Settings(supabase_url="https://proj.supabase.co/", supabase_key="anon-key", supabase_bucket="sites")


def _provider(handler):
    client = SupabaseClient(CONFIG, transport=httpx.MockTransport(handler))
    return SupabaseStorageProvider(client=client, config=CONFIG)


def test_asset_base():
    provider = _provider(lambda request: httpx.Response(200))
    assert provider.asset_base("abcd1234") == "https://proj.supabase.co/storage/v1/object/public/sites/abcd1234/"


def test_put_file_does_not_upsert():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"Key": "sites/abcd1234/css/a.css"})

    url = asyncio.run(_provider(handler).put_file("abcd1234", "css/a.css", b"a{}", "text/css"))

    request = seen[0]
    assert request.method == "POST"
    assert request.url.path == "/storage/v1/object/sites/abcd1234/css/a.css"
    assert request.headers["x-upsert"] == "false"
    assert request.headers["content-type"] == "text/css"
    assert request.headers["authorization"] == "Bearer anon-key"
    assert request.content == b"a{}"
    assert url == "https://proj.supabase.co/storage/v1/object/public/sites/abcd1234/css/a.css"


def test_put_file_error_is_surfaced_verbatim():
    def handler(request):
        return httpx.Response(400, json={"statusCode": "409", "error": "Duplicate", "message": "The resource already exists"})

    with pytest.raises(StorageError, match="The resource already exists"):
        asyncio.run(_provider(handler).put_file("abcd1234", "index.html", b"x", "text/html"))


def test_transport_failure_is_storage_error():
    def handler(request):
        raise httpx.ConnectError("boom", request=request)

    with pytest.raises(StorageError):
        asyncio.run(_provider(handler).put_file("abcd1234", "index.html", b"x", "text/html"))


def test_create_record():
    def handler(request):
        body = json.loads(request.content)
        assert request.url.path == "/rest/v1/sites"
        assert request.headers["prefer"] == "return=representation"
        assert body == {"slug": "abcd1234", "main_file": "index.html", "file_count": 3, "total_size": 99}
        return httpx.Response(201, json=[{**body, "id": "x", "created_at": "2026-10-19T10:00:00.123456+00:00"}])

    record = asyncio.run(_provider(handler).create_record("abcd1234", "index.html", 3, 99))
    assert record.file_count == 3
    assert record.created_at.year == 2026


def test_duplicate_slug_is_persistence_error():
    def handler(request):
        return httpx.Response(
            409,
            json={"code": "23505", "message": 'duplicate key value violates unique constraint "sites_slug_key"'},
        )

    with pytest.raises(PersistenceError, match="duplicate key"):
        asyncio.run(_provider(handler).create_record("abcd1234", "index.html", 1, 1))


def test_get_record():
    def handler(request):
        assert request.url.params["slug"] == "eq.abcd1234"
        return httpx.Response(
            200,
            json=[{"slug": "abcd1234", "main_file": "site/index.html", "file_count": 4,
                   "total_size": 1000, "created_at": "2026-10-19T10:00:00Z"}],
        )

    record = asyncio.run(_provider(handler).get_record("abcd1234"))
    assert record.main_file == "site/index.html"
    assert record.total_size == 1000


def test_get_record_missing():
    assert asyncio.run(_provider(lambda request: httpx.Response(200, json=[])).get_record("abcd1234")) is None


def test_get_file():
    def handler(request):
        assert request.url.path == "/storage/v1/object/sites/abcd1234/index.html"
        return httpx.Response(200, content=b"<p>hi</p>")

    assert asyncio.run(_provider(handler).get_file("abcd1234", "index.html")) == b"<p>hi</p>"


def test_get_file_not_found():
    def handler(request):
        return httpx.Response(400, json={"error": "not_found", "message": "Object not found"})

    with pytest.raises(NotFound):
        asyncio.run(_provider(handler).get_file("abcd1234", "index.html"))


def test_ensure_bucket_creates_missing_bucket():
    created = []

    def handler(request):
        if request.method == "GET":
            return httpx.Response(200, json=[{"id": "other", "name": "other"}])
        created.append(json.loads(request.content))
        return httpx.Response(200, json={"name": "sites"})

    asyncio.run(_provider(handler).ensure_bucket())
    assert created == [{"id": "sites", "name": "sites", "public": True, "file_size_limit": 25 * 1024 * 1024}]


def test_ensure_bucket_keeps_existing_bucket():
    def handler(request):
        assert request.method == "GET"
        return httpx.Response(200, json=[{"id": "sites", "name": "sites"}])

    asyncio.run(_provider(handler).ensure_bucket())


def test_get_record_outage_is_storage_error():
    def handler(request):
        return httpx.Response(503, json={"message": "upstream unavailable"})

    with pytest.raises(StorageError):
        asyncio.run(_provider(handler).get_record("abcd1234"))
