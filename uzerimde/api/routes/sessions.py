"""
Try-on session endpoints.

The user's photo lives in a server-side session from upload until reset.
Selection changes and display-size changes re-derive the whole overlay.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile

from uzerimde.api.deps import get_gateways
from uzerimde.config import config
from uzerimde.core.catalog import get_item
from uzerimde.core.compositor import render_layers
from uzerimde.core.landmark_detection import LandmarkEstimationError, scale_landmarks
from uzerimde.core.placement import position_items
from uzerimde.gateways import Gateways, RemoteServiceError
from uzerimde.models.schemas import (
    ErrorResponse,
    OverlayView,
    SelectionRequest,
    SessionResponse,
    normalize_category,
)
from uzerimde.storage.session_store import TryOnSession, sessions

logger = logging.getLogger(__name__)
router = APIRouter()


def _require(session_id: str) -> TryOnSession:
    session = sessions.get(session_id)
    if session is None:
        raise HTTPException(404, f"Session '{session_id}' not found")
    return session


async def _read_image(image: UploadFile | None) -> bytes:
    if image is None:
        raise HTTPException(400, "No image file provided")
    content = await image.read()
    max_bytes = config.storage.max_upload_size_mb * 1024 * 1024
    if len(content) > max_bytes:
        raise HTTPException(413, f"File too large ({len(content)} bytes). Max: {max_bytes} bytes.")
    return content


def _view(session: TryOnSession) -> SessionResponse:
    return SessionResponse(
        session_id=session.session_id,
        width=session.width,
        height=session.height,
        landmarks=session.landmarks,
        selection=session.selection.items(),
        avatar_url=session.avatar_url,
        image_generation=session.image_generation,
    )


@router.post(
    "",
    status_code=201,
    response_model=SessionResponse,
    response_model_exclude_none=True,
    responses={400: {"model": ErrorResponse}, 413: {"model": ErrorResponse}},
)
async def create_session(image: UploadFile | None = File(None)):
    """Start a session from an uploaded photo."""
    content = await _read_image(image)
    try:
        session = sessions.create(content, image.content_type or "image/jpeg")
    except LandmarkEstimationError as exc:
        raise HTTPException(400, str(exc)) from exc
    return _view(session)


@router.get("/{session_id}", response_model=SessionResponse, response_model_exclude_none=True,
            responses={404: {"model": ErrorResponse}})
async def get_session(session_id: str):
    return _view(_require(session_id))


@router.delete("/{session_id}", status_code=204, responses={404: {"model": ErrorResponse}})
async def delete_session(session_id: str):
    """Explicit reset: forget the photo, selection and avatar."""
    if not sessions.delete(session_id):
        raise HTTPException(404, f"Session '{session_id}' not found")


@router.put(
    "/{session_id}/image",
    response_model=SessionResponse,
    response_model_exclude_none=True,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def replace_image(session_id: str, image: UploadFile | None = File(None)):
    session = _require(session_id)
    content = await _read_image(image)
    try:
        sessions.replace_image(session, content, image.content_type or "image/jpeg")
    except LandmarkEstimationError as exc:
        raise HTTPException(400, str(exc)) from exc
    return _view(session)


@router.post(
    "/{session_id}/selection",
    response_model=SessionResponse,
    response_model_exclude_none=True,
    responses={404: {"model": ErrorResponse}},
)
async def select_item(session_id: str, req: SelectionRequest):
    session = _require(session_id)
    item = get_item(req.item_id)
    if item is None:
        raise HTTPException(404, f"Item '{req.item_id}' not found")
    session.selection = session.selection.select(item)
    return _view(session)


@router.delete(
    "/{session_id}/selection/{category}",
    response_model=SessionResponse,
    response_model_exclude_none=True,
    responses={404: {"model": ErrorResponse}},
)
async def remove_item(session_id: str, category: str):
    session = _require(session_id)
    session.selection = session.selection.remove(normalize_category(category))
    return _view(session)


@router.get(
    "/{session_id}/overlay",
    response_model=OverlayView,
    response_model_exclude_none=True,
    responses={404: {"model": ErrorResponse}},
)
async def overlay_view(
    session_id: str,
    display_width: int | None = Query(None, alias="displayWidth", gt=0),
    display_height: int | None = Query(None, alias="displayHeight", gt=0),
):
    """Overlay placement for the photo as displayed at the given size."""
    session = _require(session_id)
    width = display_width or session.width
    height = display_height or session.height

    landmarks = scale_landmarks(session.landmarks, (session.width, session.height), (width, height))
    positioned = position_items(landmarks, session.selection.items())

    return OverlayView(
        display_width=width,
        display_height=height,
        landmarks=landmarks,
        items=positioned,
        layers=render_layers(positioned),
    )


@router.post(
    "/{session_id}/avatar",
    response_model=SessionResponse,
    response_model_exclude_none=True,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def generate_session_avatar(
    session_id: str,
    gender: str | None = Form(None),
    gateways: Gateways = Depends(get_gateways),
):
    """
    Generate an avatar from the session photo.  The result is dropped (409) if
    the photo changes or a later avatar request starts before it arrives.
    """
    session = _require(session_id)
    ticket = sessions.begin_avatar(session)

    try:
        avatar_url = await gateways.avatar.generate(
            session.image, content_type=session.content_type, gender=gender or "neutral",
        )
    except RemoteServiceError as exc:
        logger.exception("Error generating avatar for session %s", session_id)
        raise HTTPException(500, "Error generating avatar with external API") from exc

    if not sessions.commit_avatar(session, ticket, avatar_url):
        raise HTTPException(409, "Session photo changed or a newer avatar request started")
    return _view(session)
