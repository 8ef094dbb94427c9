"""
3D avatar scene composition.

The avatar GLB is loaded into a trimesh Scene and each clothing model is
parented into it as plain geometry under a ``clothing_<id>`` node.  There is
no skinning or IK: garments do not deform with the avatar skeleton.

Clothing models load concurrently; each is added as soon as its own load
completes, so their order in the scene graph is completion order.  A model
that fails to load is logged and left out.

Animation clips are not evaluated here, only chosen by name:
  1. first hit from the mode's preferred-name table,
  2. else first clip whose name contains the mode's search term,
  3. else the first clip available.
"""

from __future__ import annotations

import asyncio
import io
import json
import logging
import math
import struct
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Awaitable, Callable, Sequence
from urllib.parse import urlparse

import trimesh

from uzerimde.config import config
from uzerimde.models.schemas import AnimationMode, CameraSpec, LightSpec, SceneClothingItem

logger = logging.getLogger(__name__)

scfg = config.scene


# ── Animation clips ────────────────────────────────────────────────────

PREFERRED_CLIPS: dict[AnimationMode, tuple[str, ...]] = {
    AnimationMode.idle: ("Idle", "idle_breathing", "idle", "breathing"),
    AnimationMode.walking: ("Walking", "walk", "walk_forward", "strolling"),
    AnimationMode.turning: ("Turning", "turn", "turn_90", "rotate"),
}

SEARCH_TERMS: dict[AnimationMode, str] = {
    AnimationMode.idle: "idle",
    AnimationMode.walking: "walk",
    AnimationMode.turning: "turn",
}


def select_animation_clip(available: Sequence[str], mode: AnimationMode) -> str | None:
    if not available:
        return None

    names = set(available)
    for preferred in PREFERRED_CLIPS[mode]:
        if preferred in names:
            return preferred

    term = SEARCH_TERMS[mode]
    for name in available:
        if term in name.lower():
            return name

    return available[0]


_GLB_MAGIC = b"glTF"
_CHUNK_JSON = 0x4E4F534A


def read_gltf_json(data: bytes) -> dict:
    """The glTF JSON document of a .glb (binary) or .gltf (text) asset."""
    if data[:4] == _GLB_MAGIC:
        if len(data) < 20:
            raise ValueError("Truncated GLB header")
        chunk_length, chunk_type = struct.unpack_from("<II", data, 12)
        if chunk_type != _CHUNK_JSON:
            raise ValueError("GLB first chunk is not JSON")
        return json.loads(data[20:20 + chunk_length])
    return json.loads(data)


def animation_names(data: bytes) -> list[str]:
    try:
        doc = read_gltf_json(data)
    except (ValueError, UnicodeDecodeError) as exc:
        logger.debug("No glTF JSON found in asset: %s", exc)
        return []
    return [
        anim.get("name") or f"animation_{i}"
        for i, anim in enumerate(doc.get("animations", []))
    ]


# ── Camera and lights ──────────────────────────────────────────────────

def orbit_camera(zoom: float | None = None, rotation: float = 0.0) -> CameraSpec:
    """Camera orbiting the avatar at distance ``zoom``, ``rotation`` radians."""
    zoom = zoom or scfg.default_zoom
    return CameraSpec(
        position=(math.sin(rotation) * zoom, scfg.camera_height, math.cos(rotation) * zoom),
        look_at=scfg.look_at,
        fov=scfg.fov,
    )


def light_rig() -> list[LightSpec]:
    return [
        LightSpec(kind="ambient", intensity=scfg.ambient_intensity),
        LightSpec(
            kind="directional",
            intensity=scfg.key_light_intensity,
            position=scfg.key_light_position,
            cast_shadow=True,
        ),
        LightSpec(
            kind="directional",
            intensity=scfg.fill_light_intensity,
            position=scfg.fill_light_position,
            cast_shadow=True,
        ),
        LightSpec(
            kind="spot",
            intensity=scfg.spot_light_intensity,
            position=scfg.spot_light_position,
            angle=scfg.spot_light_angle,
            penumbra=scfg.spot_light_penumbra,
            cast_shadow=True,
        ),
    ]


# ── Scene graph ────────────────────────────────────────────────────────

def mesh_file_type(ref: str = "", data: bytes | None = None) -> str:
    """
    "gltf" or "glb" for a model, from the reference's suffix, else from the
    bytes themselves (GLB magic, or a JSON document for text glTF).
    """
    suffix = PurePosixPath(urlparse(ref).path).suffix.lower()
    if suffix in (".gltf", ".glb"):
        return suffix[1:]
    if data is not None and data[:4] != _GLB_MAGIC and data.lstrip()[:1] == b"{":
        return "gltf"
    return "glb"


def load_scene(data: bytes, file_type: str | None = None) -> trimesh.Scene:
    file_type = file_type or mesh_file_type(data=data)
    return trimesh.load(io.BytesIO(data), file_type=file_type, force="scene")



def attach_clothing(scene: trimesh.Scene, clothing: trimesh.Scene, item_id: str) -> list[str]:
    """Parent every geometry node of ``clothing`` into ``scene``; returns node names."""
    nodes = list(clothing.graph.nodes_geometry)
    added: list[str] = []

    for i, node in enumerate(nodes):
        transform, geom_name = clothing.graph[node]
        node_name = f"clothing_{item_id}" if len(nodes) == 1 else f"clothing_{item_id}_{i}"
        scene.add_geometry(
            clothing.geometry[geom_name].copy(),
            node_name=node_name,
            geom_name=node_name,
            transform=transform,
        )
        added.append(node_name)

    return added


@dataclass
class ComposedScene:
    scene: trimesh.Scene
    clothing_nodes: list[str] = field(default_factory=list)
    failed_items: list[str] = field(default_factory=list)
    animation_clips: list[str] = field(default_factory=list)

    def export_glb(self) -> bytes:
        return self.scene.export(file_type="glb")


Fetcher = Callable[[str], Awaitable[bytes]]


async def _load_clothing(item: SceneClothingItem, fetch: Fetcher) -> trimesh.Scene | None:
    try:
        data = await fetch(item.model_url)
        return await asyncio.to_thread(load_scene, data, mesh_file_type(item.model_url, data))
    except Exception:
        logger.exception("Error loading clothing model %s (item %s)", item.model_url, item.id)
        return None


async def compose_scene(
    avatar_data: bytes,
    clothing_items: Sequence[SceneClothingItem],
    fetch: Fetcher,
    avatar_ref: str = "",
) -> ComposedScene:
    """Avatar plus clothing models, each attached as its load completes."""
    avatar_type = mesh_file_type(avatar_ref, avatar_data)
    composed = ComposedScene(
        scene=await asyncio.to_thread(load_scene, avatar_data, avatar_type),
        animation_clips=animation_names(avatar_data),
    )

    async def load(item: SceneClothingItem) -> tuple[SceneClothingItem, trimesh.Scene | None]:
        return item, await _load_clothing(item, fetch)

    for next_done in asyncio.as_completed([load(item) for item in clothing_items]):
        item, clothing = await next_done
        if clothing is None:
            composed.failed_items.append(item.id)
            continue
        composed.clothing_nodes.extend(attach_clothing(composed.scene, clothing, item.id))

    logger.info(
        "Composed scene: %d clothing nodes, %d failed items",
        len(composed.clothing_nodes), len(composed.failed_items),
    )
    return composed
