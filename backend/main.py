"""FastAPI application for the dynamic watermark service."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import httpx
from fastapi import Depends, FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, ConfigDict, Field

from config import (
    DEFAULT_WATERMARK_TEXT,
    FONT_PATH,
    HOST,
    HTTP_CONNECT_TIMEOUT,
    HTTP_POOL_MAX_IDLE,
    HTTP_REQUEST_TIMEOUT,
    LOG_LEVEL,
    MAX_FILE_SIZE_BYTES,
    PORT,
    WATERMARK,
    WORKERS,
    StorageSettings,
    WatermarkConfig,
)
from errors import DecodeError, EncodeError, FontError, StorageError, WatermarkError
from fonts import FontProvider, resolve_font_path
from storage import download_object, extract_url_params, send_processed_image
from watermark import add_watermark

logger = logging.getLogger(__name__)
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

_STATUS_CODES: dict[type[WatermarkError], int] = {
    DecodeError: 400,
    FontError: 503,
    EncodeError: 500,
    StorageError: 502,
}


def _status_for(error: WatermarkError) -> int:
    for cls, status in _STATUS_CODES.items():
        if isinstance(error, cls):
            return status
    return 500


def _build_http_client() -> httpx.AsyncClient:
    """Shared client for the storage endpoint (pooled, with timeouts)."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(HTTP_REQUEST_TIMEOUT, connect=HTTP_CONNECT_TIMEOUT),
        limits=httpx.Limits(max_keepalive_connections=HTTP_POOL_MAX_IDLE),
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Load settings and the font, open the HTTP client."""
    storage = StorageSettings.from_env()
    logger.info("Storage endpoint %s", storage.endpoint)

    fonts = FontProvider(resolve_font_path(FONT_PATH))
    fonts.load()

    client = _build_http_client()
    app.state.storage = storage
    app.state.fonts = fonts
    app.state.watermark_config = WATERMARK
    app.state.http_client = client
    try:
        yield
    finally:
        await client.aclose()


app = FastAPI(
    title="Dynamic Watermark",
    description="Tiled text watermarks for images served from object storage",
    version="1.0.0",
    lifespan=lifespan,
)


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------

def get_fonts(request: Request) -> FontProvider:
    return request.app.state.fonts


def get_watermark_config(request: Request) -> WatermarkConfig:
    return request.app.state.watermark_config


def get_storage(request: Request) -> StorageSettings:
    return request.app.state.storage


def get_http_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.http_client


# ---------------------------------------------------------------------------
# Object lambda payload
# ---------------------------------------------------------------------------

class ObjectContext(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    input_s3_url: str = Field(alias="inputS3Url")
    output_route: str = Field(alias="outputRoute")
    output_token: str = Field(alias="outputToken")


class UserRequest(BaseModel):
    url: str
    headers: dict[str, list[str]] = Field(default_factory=dict)


class GenerateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    get_object_context: ObjectContext = Field(alias="getObjectContext")
    user_request: UserRequest = Field(alias="userRequest")
    user_identity: dict = Field(default_factory=dict, alias="userIdentity")
    protocol_version: str = Field(default="", alias="protocolVersion")


class GenerateResponse(BaseModel):
    status: str
    message: str


def _error_response(prefix: str, error: WatermarkError) -> JSONResponse:
    message = f"{prefix}: {error.describe()}"
    logger.error(message)
    return JSONResponse(
        GenerateResponse(status="error", message=message).model_dump(),
        status_code=_status_for(error),
    )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@app.get("/health/")
async def health(fonts: FontProvider = Depends(get_fonts)) -> dict:
    """Health check endpoint."""
    return {"status": "ok", "service": "dynamic-watermark", "font_loaded": fonts.loaded}


@app.post("/generate/")
async def generate(
    payload: GenerateRequest,
    fonts: FontProvider = Depends(get_fonts),
    config: WatermarkConfig = Depends(get_watermark_config),
    storage: StorageSettings = Depends(get_storage),
    client: httpx.AsyncClient = Depends(get_http_client),
) -> JSONResponse:
    """Watermark a storage object with the caller's ``usercode``.

    Downloads ``inputS3Url``, draws the tiled watermark and posts the JPEG
    back to the storage endpoint under ``outputRoute``.
    """
    context = payload.get_object_context
    logger.info("Received watermarking request: %s", context.input_s3_url)

    params = extract_url_params(payload.user_request.url)
    text = params.get("usercode", DEFAULT_WATERMARK_TEXT)

    try:
        image_bytes = await download_object(client, context.input_s3_url)
    except StorageError as e:
        return _error_response("Failed to download image", e)

    try:
        result = await run_in_threadpool(add_watermark, image_bytes, text, fonts, config)
    except WatermarkError as e:
        return _error_response("Failed to add watermark", e)

    try:
        await send_processed_image(
            client, storage.endpoint, context.output_route, context.output_token, result,
        )
    except StorageError as e:
        return _error_response("Failed to send processed image", e)

    logger.info("Successfully processed and returned watermarked image")
    return JSONResponse(
        GenerateResponse(status="success", message="Image successfully watermarked").model_dump()
    )


@app.post("/api/watermark")
async def watermark_upload(
    file: UploadFile = File(...),
    text: str = Form(""),
    fonts: FontProvider = Depends(get_fonts),
    config: WatermarkConfig = Depends(get_watermark_config),
) -> Response:
    """Watermark an uploaded image and return the JPEG directly.

    Empty *text* returns the upload unchanged.
    """
    content = await file.read()
    if len(content) > MAX_FILE_SIZE_BYTES:
        raise HTTPException(status_code=413, detail=f"File too large. Max {MAX_FILE_SIZE_BYTES // (1024*1024)}MB")

    try:
        result = await run_in_threadpool(add_watermark, content, text, fonts, config)
    except WatermarkError as e:
        logger.error("Watermarking %s failed: %s", file.filename, e.describe())
        raise HTTPException(status_code=_status_for(e), detail=e.describe())

    if not text:
        return Response(result, media_type=file.content_type or "application/octet-stream")
    return Response(result, media_type="image/jpeg")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host=HOST, port=PORT, workers=WORKERS or None)
