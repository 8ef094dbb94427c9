"""
Shared test fixtures.
"""

import base64
import io
import json
import struct
import sys
from pathlib import Path

import httpx
import pytest
import trimesh
from PIL import Image

# Ensure project root is on path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from uzerimde.config import config
from uzerimde.services.try_on import jobs
from uzerimde.storage.session_store import sessions


# ── Builders ───────────────────────────────────────────────────────────

def make_image(width: int, height: int, fmt: str = "JPEG", color=(255, 255, 255)) -> bytes:
    mode = "RGBA" if fmt == "PNG" else "RGB"
    if mode == "RGBA" and len(color) == 3:
        color = (*color, 255)
    buf = io.BytesIO()
    Image.new(mode, (width, height), color).save(buf, format=fmt)
    return buf.getvalue()


def make_glb(extents=(0.5, 1.8, 0.3)) -> bytes:
    return trimesh.Scene(trimesh.creation.box(extents=extents)).export(file_type="glb")


def glb_with_json(doc: dict) -> bytes:
    """Minimal GLB container holding only a JSON chunk."""
    body = json.dumps(doc).encode()
    body += b" " * (-len(body) % 4)
    header = struct.pack("<4sII", b"glTF", 2, 12 + 8 + len(body))
    return header + struct.pack("<II", len(body), 0x4E4F534A) + body


def gltf_triangle(size: float = 1.0) -> bytes:
    """Text .gltf holding one triangle, buffer embedded as a data URI."""
    positions = struct.pack("<9f", 0, 0, 0, size, 0, 0, 0, size, 0)
    indices = struct.pack("<3H", 0, 1, 2) + b"\x00\x00"
    buffer = positions + indices
    doc = {
        "asset": {"version": "2.0"},
        "scene": 0,
        "scenes": [{"nodes": [0]}],
        "nodes": [{"mesh": 0}],
        "meshes": [{"primitives": [{"attributes": {"POSITION": 0}, "indices": 1}]}],
        "buffers": [{
            "byteLength": len(buffer),
            "uri": "data:application/octet-stream;base64," + base64.b64encode(buffer).decode(),
        }],
        "bufferViews": [
            {"buffer": 0, "byteOffset": 0, "byteLength": len(positions)},
            {"buffer": 0, "byteOffset": len(positions), "byteLength": 6},
        ],
        "accessors": [
            {"bufferView": 0, "componentType": 5126, "count": 3, "type": "VEC3",
             "min": [0, 0, 0], "max": [size, size, 0]},
            {"bufferView": 1, "componentType": 5123, "count": 3, "type": "SCALAR"},
        ],
    }
    return json.dumps(doc).encode()


class FakeWeb:
    """httpx.MockTransport handler: canned responses keyed by (method, url)."""

    def __init__(self):
        self.routes = {}
        self.requests: list[httpx.Request] = []

    def add(self, method: str, url: str, status: int = 200, json=None, content: bytes | None = None):
        def respond(request: httpx.Request) -> httpx.Response:
            if json is not None:
                return httpx.Response(status, json=json)
            return httpx.Response(status, content=content or b"")
        self.routes[(method, url)] = respond

    def add_handler(self, method: str, url: str, handler):
        self.routes[(method, url)] = handler

    def calls(self, method: str, url: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and str(r.url) == url]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get((request.method, str(request.url)))
        if handler is None:
            return httpx.Response(404, json={"error": "not found"})
        return handler(request)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


# ── Fixtures ───────────────────────────────────────────────────────────

@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Simulated providers without delay; storage under tmp_path; empty registries."""
    monkeypatch.setattr(config.providers, "simulate", True)
    monkeypatch.setattr(config.providers, "simulated_delay_s", 0.0)
    monkeypatch.setattr(config.storage, "asset_dir", tmp_path / "public")
    monkeypatch.setattr(config.storage, "result_dir", tmp_path / "results")
    (tmp_path / "public").mkdir()
    sessions.clear()
    jobs.clear()
    yield
    sessions.clear()
    jobs.clear()


@pytest.fixture
def asset_dir() -> Path:
    return config.storage.asset_dir


@pytest.fixture
def photo() -> bytes:
    """Plain 300×600 JPEG portrait."""
    return make_image(300, 600)


@pytest.fixture
def tshirt_overlay(asset_dir) -> str:
    """Red 150×150 sprite at the catalog t-shirt's overlay path."""
    ref = "/images/overlays/blue-vneck-tshirt-overlay.png"
    path = asset_dir / ref.lstrip("/")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(make_image(150, 150, "PNG", (255, 0, 0)))
    return ref


@pytest.fixture
def web() -> FakeWeb:
    return FakeWeb()


@pytest.fixture
def client(web):
    from fastapi.testclient import TestClient

    from uzerimde.api.deps import get_http_client
    from uzerimde.main import app

    http_client = web.client()
    app.dependency_overrides[get_http_client] = lambda: http_client
    yield TestClient(app)
    app.dependency_overrides.clear()
