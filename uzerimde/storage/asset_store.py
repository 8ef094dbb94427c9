"""
Asset access and processed-result storage.

Assets (overlay sprites, avatar and clothing GLBs) are referenced either by
absolute http(s) URL or by a site path such as ``/images/overlays/x.png``,
which resolves under ``storage.asset_dir``.  Rendered results are written to
the local result directory and served back by the API; in production swap
this for an object store with public URLs.
"""

from __future__ import annotations

import asyncio
import logging
import re
from pathlib import Path

import httpx

from uzerimde.config import config
from uzerimde.gateways.base import RemoteServiceError

logger = logging.getLogger(__name__)

_SAFE_NAME = re.compile(r"^[A-Za-z0-9_-][A-Za-z0-9._-]*$")


class AssetNotFoundError(FileNotFoundError):
    """A site-relative asset does not exist under the asset directory."""


def is_remote(ref: str) -> bool:
    return ref.startswith(("http://", "https://"))


def local_asset_path(ref: str) -> Path:
    root = config.storage.asset_dir.resolve()
    path = (root / ref.lstrip("/")).resolve()
    if root != path and root not in path.parents:
        raise AssetNotFoundError(f"Asset path escapes the asset directory: {ref}")
    return path


async def fetch_asset(ref: str, client: httpx.AsyncClient) -> bytes:
    """Bytes of an asset, from the network or the asset directory."""
    if is_remote(ref):
        try:
            response = await client.get(ref)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise RemoteServiceError("asset-host", f"GET {ref} failed", exc) from exc
        return response.content

    path = local_asset_path(ref)
    if not path.is_file():
        raise AssetNotFoundError(f"Asset not found: {ref}")
    return await asyncio.to_thread(path.read_bytes)


# ── Results ────────────────────────────────────────────────────────────

def safe_name(value: str, fallback: str = "anonymous") -> str:
    cleaned = re.sub(r"[^A-Za-z0-9_-]", "", value)
    return cleaned or fallback


def save_result(filename: str, content: bytes) -> Path:
    """Persist a rendered result.  Returns the saved path."""
    if not _SAFE_NAME.match(filename):
        raise ValueError(f"Invalid result filename: {filename!r}")
    dest = config.storage.result_dir / filename
    dest.parent.mkdir(parents=True, exist_ok=True)
    dest.write_bytes(content)
    logger.info("Saved result: %s (%d bytes)", dest, len(content))
    return dest


def get_result_path(filename: str) -> Path | None:
    if not _SAFE_NAME.match(filename):
        return None
    path = config.storage.result_dir / filename
    return path if path.is_file() else None


def public_url(route: str, filename: str) -> str:
    return f"{config.storage.public_base_url.rstrip('/')}{route}/{filename}"
