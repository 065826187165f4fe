from __future__ import annotations

import logging
from pathlib import Path

from fastapi import Depends, FastAPI, File, Request, UploadFile
from fastapi.responses import HTMLResponse, JSONResponse, Response
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from sitedrop.config import settings
from sitedrop.errors import INPUT_ERRORS, SiteDropError
from sitedrop.models import UploadSession
from sitedrop.services import renderer
from sitedrop.services.content_types import classify
from sitedrop.services.publisher import load_site, publish_site
from sitedrop.storage.base import StorageProvider
from sitedrop.storage.local import LocalStorageProvider
from sitedrop.storage.supabase import get_supabase
from sitedrop.utils import format_file_size, generate_slug, is_valid_slug

logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).parent
app = FastAPI(title=settings.app_name)
app.mount("/static", StaticFiles(directory=BASE_DIR / "static"), name="static")
templates = Jinja2Templates(directory=BASE_DIR / "templates")
FILE_HEADERS = {"Access-Control-Allow-Origin": "*"}

_local: LocalStorageProvider | None = None


def get_storage() -> StorageProvider:
    if settings.use_supabase:
        sb = get_supabase()
        if sb:
            return sb
        logger.warning("Supabase selected but not configured, using local storage")
    global _local
    if _local is None:
        _local = LocalStorageProvider()
    return _local


@app.on_event("startup")
async def startup():
    storage = get_storage()
    await storage.ensure_bucket()
    logger.info("Storage backend: %s (%s)", storage.name, storage.storage_root)


def _status_for(exc: SiteDropError) -> int:
    return 400 if isinstance(exc, INPUT_ERRORS) else 502


def _log_upload_error(filename: str | None, exc: SiteDropError) -> None:
    if isinstance(exc, INPUT_ERRORS):
        logger.info("Upload of %s rejected: %s", filename, exc)
    else:
        logger.exception("Upload failed for %s", filename)


async def _publish(upload: UploadFile, storage: StorageProvider):
    # One byte past the limit is enough for the size check to reject it
    data = await upload.read(settings.max_upload_bytes + 1)
    session = UploadSession(
        filename=upload.filename or "",
        data=data,
        slug=generate_slug(settings.slug_length),
        on_progress=lambda pct: logger.debug("Upload progress: %d%%", pct),
    )
    return await publish_site(session, storage)


@app.get("/", response_class=HTMLResponse)
async def index(request: Request):
    return templates.TemplateResponse(
        request,
        "index.html",
        {"result": None, "error": None, "max_size": format_file_size(settings.max_upload_bytes)},
    )


@app.post("/upload", response_class=HTMLResponse)
async def upload_site(
    request: Request,
    file: UploadFile = File(...),
    storage: StorageProvider = Depends(get_storage),
):
    context = {"result": None, "error": None, "max_size": format_file_size(settings.max_upload_bytes)}
    try:
        context["result"] = await _publish(file, storage)
    except SiteDropError as exc:
        _log_upload_error(file.filename, exc)
        context["error"] = str(exc) or "Upload failed. Please try again."
        return templates.TemplateResponse(request, "index.html", context, status_code=_status_for(exc))
    return templates.TemplateResponse(request, "index.html", context)


@app.post("/api/sites")
async def create_site(file: UploadFile = File(...), storage: StorageProvider = Depends(get_storage)):
    try:
        result = await _publish(file, storage)
    except SiteDropError as exc:
        _log_upload_error(file.filename, exc)
        return JSONResponse({"error": str(exc)}, status_code=_status_for(exc))
    return JSONResponse(result.to_dict(), status_code=201)


@app.get("/api/sites/{slug}")
async def get_site(slug: str, storage: StorageProvider = Depends(get_storage)):
    try:
        record = await storage.get_record(slug) if is_valid_slug(slug, settings.slug_length) else None
    except SiteDropError as exc:
        logger.warning("Cannot look up site %s: %s", slug, exc)
        return JSONResponse({"error": str(exc)}, status_code=502)
    if record is None:
        return JSONResponse({"error": "Site not found"}, status_code=404)
    return JSONResponse(record.to_row())


def _not_found(request: Request) -> HTMLResponse:
    return templates.TemplateResponse(request, "not_found.html", {}, status_code=404)


@app.get("/site/{slug}", response_class=HTMLResponse)
async def view_site(request: Request, slug: str, storage: StorageProvider = Depends(get_storage)):
    """Show a hosted site inside the viewer page."""
    if not is_valid_slug(slug, settings.slug_length):
        return _not_found(request)
    try:
        record, document = await load_site(slug, storage)
        title = Path(record.main_file).stem or "Hosted Site"
        host = templates.get_template("site.html").render(title=title)
        page = renderer.render(document, host, title=title)
    except SiteDropError as exc:
        # Wrong slug and broken site look the same to the visitor
        logger.warning("Cannot show site %s: %s", slug, exc)
        return _not_found(request)
    return HTMLResponse(page)


@app.get("/files/{slug}/{path:path}")
async def site_file(slug: str, path: str, storage: StorageProvider = Depends(get_storage)):
    """Serve stored files; the asset base of the local backend points here."""
    if not is_valid_slug(slug, settings.slug_length):
        return Response(status_code=404)
    try:
        data = await storage.get_file(slug, path)
    except SiteDropError:
        return Response(status_code=404)
    # The viewer frame has an opaque origin, fonts and module scripts need CORS
    return Response(content=data, media_type=classify(path), headers=FILE_HEADERS)
