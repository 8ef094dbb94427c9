"""
3D scene endpoint.

Composes the avatar with the selected clothing models, picks the animation
clip for the requested mode and returns the viewer setup together with the
URL of the composed GLB.
"""

from __future__ import annotations

import asyncio
import logging
import time

import httpx
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse

from uzerimde.api.deps import get_http_client
from uzerimde.core.scene import compose_scene, light_rig, orbit_camera, select_animation_clip
from uzerimde.gateways import RemoteServiceError
from uzerimde.models.schemas import ErrorResponse, SceneRequest, SceneResponse
from uzerimde.storage.asset_store import (
    AssetNotFoundError,
    fetch_asset,
    get_result_path,
    public_url,
    save_result,
)

logger = logging.getLogger(__name__)
router = APIRouter()

SCENE_ROUTE = "/api/scene/files"


@router.post(
    "",
    response_model=SceneResponse,
    responses={404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def build_scene(req: SceneRequest, client: httpx.AsyncClient = Depends(get_http_client)):
    """Compose avatar and clothing into one GLB and describe how to view it."""

    try:
        avatar_data = await fetch_asset(req.avatar_url, client)
    except AssetNotFoundError as exc:
        raise HTTPException(404, f"Avatar '{req.avatar_url}' not found") from exc
    except RemoteServiceError as exc:
        logger.exception("Error fetching avatar %s", req.avatar_url)
        raise HTTPException(500, "Error loading avatar model") from exc

    async def fetch(ref: str) -> bytes:
        return await fetch_asset(ref, client)

    t0 = time.perf_counter()
    try:
        composed = await compose_scene(avatar_data, req.clothing_items, fetch, avatar_ref=req.avatar_url)
        glb = await asyncio.to_thread(composed.export_glb)
    except Exception as exc:
        logger.exception("Scene composition failed for avatar %s", req.avatar_url)
        raise HTTPException(500, "Error composing 3D scene") from exc

    filename = f"scene_{int(time.time() * 1000)}.glb"
    save_result(filename, glb)
    logger.info("Scene %s composed in %.2f s", filename, time.perf_counter() - t0)

    return SceneResponse(
        scene_url=public_url(SCENE_ROUTE, filename),
        camera=orbit_camera(req.zoom, req.rotation),
        lights=light_rig(),
        animation_clip=select_animation_clip(composed.animation_clips, req.animation_mode),
        available_clips=composed.animation_clips,
        clothing_nodes=composed.clothing_nodes,
        failed_items=composed.failed_items,
    )


@router.get("/files/{filename}")
async def scene_file(filename: str):
    path = get_result_path(filename)
    if path is None or path.suffix != ".glb":
        raise HTTPException(404, f"Scene '{filename}' not found")
    return FileResponse(path, media_type="model/gltf-binary")
