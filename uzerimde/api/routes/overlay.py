"""
2D overlay endpoint.

Takes a photo and the selected garments, estimates body landmarks, places
each garment's overlay sprite, composites the result and stores it as a
JPEG that is served back under /api/processed-images.
"""

from __future__ import annotations

import asyncio
import io
import json
import logging
import time

import httpx
from fastapi import APIRouter, Depends, File, Form, Header, HTTPException, UploadFile
from fastapi.responses import FileResponse, JSONResponse
from PIL import Image, UnidentifiedImageError
from pydantic import TypeAdapter, ValidationError

from uzerimde.api.deps import get_http_client
from uzerimde.config import config
from uzerimde.core.compositor import composite, encode_jpeg
from uzerimde.core.landmark_detection import LandmarkEstimationError, detect_landmarks
from uzerimde.core.placement import position_items
from uzerimde.gateways import RemoteServiceError
from uzerimde.models.schemas import ClothingItem, OverlayResponse
from uzerimde.storage.asset_store import (
    AssetNotFoundError,
    fetch_asset,
    get_result_path,
    public_url,
    safe_name,
    save_result,
)

logger = logging.getLogger(__name__)
router = APIRouter()

PROCESSED_ROUTE = "/api/processed-images"

_ITEMS = TypeAdapter(list[ClothingItem])


def _failure(status_code: int, message: str) -> JSONResponse:
    body = OverlayResponse(success=False, message=message, result_url="")
    return JSONResponse(status_code=status_code, content=body.model_dump(by_alias=True, exclude_none=True))


async def _load_sprites(refs: set[str], client: httpx.AsyncClient) -> dict[str, Image.Image]:
    """Fetch overlay sprites concurrently; unavailable ones are left out."""

    async def load(ref: str) -> tuple[str, Image.Image | None]:
        try:
            data = await fetch_asset(ref, client)
            sprite = Image.open(io.BytesIO(data))
            sprite.load()
            return ref, sprite
        except (AssetNotFoundError, RemoteServiceError, UnidentifiedImageError, OSError) as exc:
            logger.warning("Overlay %s could not be loaded: %s", ref, exc)
            return ref, None

    loaded = await asyncio.gather(*(load(ref) for ref in refs))
    return {ref: sprite for ref, sprite in loaded if sprite is not None}


@router.post(
    "/overlay2d",
    response_model=OverlayResponse,
    response_model_exclude_none=True,
    responses={400: {"model": OverlayResponse}, 413: {"model": OverlayResponse}, 500: {"model": OverlayResponse}},
)
async def overlay_2d(
    image: UploadFile | None = File(None),
    selected_items: str | None = Form(None, alias="selectedItems"),
    x_user_id: str | None = Header(None),
    client: httpx.AsyncClient = Depends(get_http_client),
):
    """Composite the selected garments onto an uploaded photo."""

    if image is None:
        return _failure(400, "No image file provided")
    if not selected_items:
        return _failure(400, "No clothing items selected")

    try:
        items = _ITEMS.validate_python(json.loads(selected_items))
    except (ValueError, ValidationError):
        return _failure(400, "Invalid clothing items")

    content = await image.read()
    max_bytes = config.storage.max_upload_size_mb * 1024 * 1024
    if len(content) > max_bytes:
        return _failure(413, f"File too large ({len(content)} bytes). Max: {max_bytes} bytes.")

    try:
        landmarks, _ = detect_landmarks(content)
    except LandmarkEstimationError:
        logger.exception("Error detecting body landmarks")
        return _failure(500, "Error processing body detection")

    # Server-side rendering draws at natural size, so no display rescale.
    positioned = position_items(landmarks, items)
    sprites = await _load_sprites({p.item.overlay for p in positioned if p.item.overlay}, client)

    try:
        with Image.open(io.BytesIO(content)) as photo:
            rendered = await asyncio.to_thread(composite, photo, positioned, sprites.get)
        user_id = safe_name(x_user_id or "")
        filename = f"overlay_{user_id}_{int(time.time() * 1000)}.jpg"
        save_result(filename, encode_jpeg(rendered))
    except (OSError, ValueError):
        logger.exception("Error processing image overlay")
        return _failure(500, "Error processing image overlay")

    return OverlayResponse(
        success=True,
        result_url=public_url(PROCESSED_ROUTE, filename),
        landmarks=landmarks,
        items=positioned,
    )


@router.get("/processed-images/{filename}")
async def processed_image(filename: str):
    path = get_result_path(filename)
    if path is None:
        raise HTTPException(404, f"Image '{filename}' not found")
    return FileResponse(path, media_type="image/jpeg")
