"""
Avatar generation endpoint.

Accepts a photo (multipart ``image``) and an optional ``gender``; returns the
URL of a full-body 3D avatar.
"""

from __future__ import annotations

import logging
import time

from fastapi import APIRouter, Depends, File, Form, Header, UploadFile
from fastapi.responses import JSONResponse

from uzerimde.api.deps import get_gateways
from uzerimde.config import config
from uzerimde.gateways import Gateways, RemoteServiceError
from uzerimde.models.schemas import AvatarResponse
from uzerimde.storage.asset_store import safe_name

logger = logging.getLogger(__name__)
router = APIRouter()


def _failure(status_code: int, message: str) -> JSONResponse:
    body = AvatarResponse(success=False, message=message, avatar_url="")
    return JSONResponse(status_code=status_code, content=body.model_dump(by_alias=True, exclude_none=True))


@router.post(
    "/generateAvatar",
    response_model=AvatarResponse,
    response_model_exclude_none=True,
    responses={400: {"model": AvatarResponse}, 413: {"model": AvatarResponse}, 500: {"model": AvatarResponse}},
)
async def generate_avatar(
    image: UploadFile | None = File(None),
    gender: str | None = Form(None),
    x_user_id: str | None = Header(None),
    gateways: Gateways = Depends(get_gateways),
):
    """Generate a 3D avatar from an uploaded photo."""

    if image is None:
        return _failure(400, "No image file provided")

    content = await image.read()
    max_bytes = config.storage.max_upload_size_mb * 1024 * 1024
    if len(content) > max_bytes:
        return _failure(413, f"File too large ({len(content)} bytes). Max: {max_bytes} bytes.")

    user_id = safe_name(x_user_id or "", fallback=f"user_{int(time.time() * 1000)}")

    try:
        avatar_url = await gateways.avatar.generate(
            content,
            filename=image.filename or "user-image.jpg",
            content_type=image.content_type or "image/jpeg",
            gender=gender or "neutral",
        )
    except RemoteServiceError:
        logger.exception("Error calling avatar API for user %s", user_id)
        return _failure(500, "Error generating avatar with external API")

    avatar_id = f"avatar_{user_id}_{int(time.time() * 1000)}"
    logger.info("Generated avatar %s for user %s", avatar_id, user_id)

    return AvatarResponse(success=True, avatar_url=avatar_url, avatar_id=avatar_id)
