import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Depends, Form, Request
from fastapi.responses import JSONResponse, PlainTextResponse, RedirectResponse

import config
import pages
from db import init_models
from errors import InvalidURLError, StorageError, UnknownCodeError
from schemas import ShortenRequest, ShortenResponse, MappingInfo
from store import SQLURLStore, URLStore, build_store
from validation import validate_url

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("url_shortener")

# Paths that are never treated as short codes.
RESERVED_PATHS = {"favicon.ico", "robots.txt"}


@asynccontextmanager
async def lifespan(app: FastAPI):
    store = build_store()
    if isinstance(store, SQLURLStore):
        # Failing here aborts startup.
        await init_models()
    app.state.store = store
    logger.info(f"Store ready: backend={config.STORE_BACKEND}, policy={config.CODE_POLICY}")
    yield
    await store.close()

app = FastAPI(title="URL Shortener Service", description="Shortens URLs, redirects short codes and counts hits.",
              lifespan=lifespan)


def get_store(request: Request) -> URLStore:
    return request.app.state.store


@app.exception_handler(StorageError)
async def storage_exception_handler(request: Request, exc: StorageError):
    logger.error(f"Storage error at {request.url}: {exc}")
    return JSONResponse(status_code=500, content={"detail": "Storage unavailable."})


@app.get("/")
def home(request: Request):
    return pages.home_page(request)

@app.get("/health")
def health_check():
    logger.info("Health check endpoint called.")
    return {"status": "ok"}

@app.post("/shorten")
async def shorten(request: Request, url: Optional[str] = Form(None), store: URLStore = Depends(get_store)):
    long_url = (url or "").strip()
    logger.info(f"Shorten called with url={long_url}")
    if not long_url:
        return pages.home_page(request, error="URL is required", status_code=400)

    try:
        validated = validate_url(long_url)
    except InvalidURLError as exc:
        logger.info(f"Rejected url={long_url}: {exc}")
        return pages.home_page(request, error=f"Invalid URL: {exc}", status_code=400)

    try:
        code = await store.set(validated)
    except StorageError as exc:
        logger.error(f"Shorten failed for url={validated}: {exc}")
        return pages.home_page(request, error="Error creating short URL", status_code=500)

    short_url = config.short_url(code)
    logger.info(f"Shortened url={validated} to {short_url}")
    return pages.result_page(request, long_url, short_url)

@app.api_route("/shorten", methods=["GET", "HEAD", "PUT", "PATCH", "DELETE", "OPTIONS"])
def shorten_wrong_method():
    return PlainTextResponse("Method not allowed", status_code=405)

@app.get("/stats", response_class=PlainTextResponse)
async def stats(code: Optional[str] = None, store: URLStore = Depends(get_store)):
    if not code:
        return PlainTextResponse("Short code is required", status_code=400)
    try:
        hits = await store.get_stats(code)
    except UnknownCodeError:
        logger.info(f"Stats requested for unknown code={code}")
        return PlainTextResponse("Short URL not found", status_code=404)
    except StorageError as exc:
        logger.error(f"Stats failed for code={code}: {exc}")
        return PlainTextResponse("Could not find URL", status_code=500)
    return f"Short URL /{code} has been accessed {hits} times"

@app.post("/api/shorten", response_model=ShortenResponse)
async def api_shorten(req: ShortenRequest, store: URLStore = Depends(get_store)):
    logger.info(f"Shorten API called with url={req.url}")
    code = await store.set(req.url)
    info = await store.describe(code)
    return ShortenResponse(code=code, url=info.url, short_url=config.short_url(code), created_at=info.created_at)

@app.get("/api/stats/{code}", response_model=MappingInfo)
async def api_stats(code: str, store: URLStore = Depends(get_store)):
    logger.info(f"Metadata API called with code={code}")
    try:
        return await store.describe(code)
    except UnknownCodeError:
        logger.info(f"Metadata lookup failed: code={code} not found")
        raise HTTPException(status_code=404, detail="Short URL not found.")

# Catch-all, keep last.
@app.get("/{short_code:path}")
async def redirect(request: Request, short_code: str, store: URLStore = Depends(get_store)):
    if short_code in RESERVED_PATHS:
        return PlainTextResponse("Not Found", status_code=404)
    try:
        long_url = await store.get(short_code)
    except StorageError as exc:
        logger.error(f"Redirect failed for code={short_code}: {exc}")
        return pages.home_page(request, error="Could not find URL", status_code=500)
    if long_url is None:
        logger.info(f"Redirect failed: code={short_code} not found")
        return pages.home_page(request, error="Short URL not found", status_code=404)
    logger.info(f"Redirecting to url={long_url} for code={short_code}")
    return RedirectResponse(long_url, status_code=302)
