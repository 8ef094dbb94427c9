"""
API tests for try-on sessions: photo lifecycle, selection, display-scaled
overlay and stale avatar results.
"""

import asyncio

import pytest
from fastapi import HTTPException
from PIL import Image

from conftest import make_image
from uzerimde.api.deps import get_gateways
from uzerimde.api.routes.sessions import generate_session_avatar
from uzerimde.config import config
from uzerimde.gateways import Gateways
from uzerimde.main import app
from uzerimde.storage.session_store import sessions


def upload(photo):
    return {"image": ("me.jpg", photo, "image/jpeg")}


@pytest.fixture
def session_id(client, photo):
    resp = client.post("/api/sessions", files=upload(photo))
    assert resp.status_code == 201
    return resp.json()["sessionId"]


class TestLifecycle:

    def test_create(self, client, photo):
        body = client.post("/api/sessions", files=upload(photo)).json()
        assert (body["width"], body["height"]) == (300, 600)
        assert body["imageGeneration"] == 0
        assert body["selection"] == []
        assert body["landmarks"]["shoulders"]["left"] == {"x": 120.0, "y": 132.0}
        assert body["landmarks"]["ankles"]["right"] == {"x": 165.0, "y": 570.0}

    def test_create_requires_image(self, client):
        assert client.post("/api/sessions").status_code == 400

    def test_create_rejects_unreadable_image(self, client):
        assert client.post("/api/sessions", files=upload(b"garbage")).status_code == 400

    def test_create_rejects_oversized_pixel_count(self, client, photo, monkeypatch):
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)
        assert client.post("/api/sessions", files=upload(photo)).status_code == 400


    def test_replace_image(self, client, session_id):
        resp = client.put(f"/api/sessions/{session_id}/image", files=upload(make_image(500, 1000)))
        body = resp.json()
        assert (body["width"], body["height"]) == (500, 1000)
        assert body["imageGeneration"] == 1
        assert body["landmarks"]["chest"] == {"x": 250.0, "y": 300.0}

    def test_delete(self, client, session_id):
        assert client.delete(f"/api/sessions/{session_id}").status_code == 204
        assert client.get(f"/api/sessions/{session_id}").status_code == 404
        assert client.delete(f"/api/sessions/{session_id}").status_code == 404


class TestSelection:

    def select(self, client, session_id, item_id):
        return client.post(f"/api/sessions/{session_id}/selection", json={"itemId": item_id})

    def test_full_outfit_replaces_separates(self, client, session_id):
        self.select(client, session_id, 1)
        self.select(client, session_id, 3)
        body = self.select(client, session_id, "full-1").json()
        assert [i["id"] for i in body["selection"]] == ["full-1"]

    def test_separate_replaces_full_outfit(self, client, session_id):
        self.select(client, session_id, 4)
        self.select(client, session_id, 2)
        body = self.select(client, session_id, 5).json()
        assert [i["id"] for i in body["selection"]] == ["2", "5"]

    def test_remove_by_alias(self, client, session_id):
        self.select(client, session_id, 1)
        self.select(client, session_id, 3)
        body = client.delete(f"/api/sessions/{session_id}/selection/bottoms").json()
        assert [i["id"] for i in body["selection"]] == ["1"]

    def test_unknown_item(self, client, session_id):
        assert self.select(client, session_id, 999).status_code == 404

    def test_unknown_session(self, client):
        assert self.select(client, "nope", 1).status_code == 404


class TestOverlayView:

    def test_natural_size(self, client, session_id):
        client.post(f"/api/sessions/{session_id}/selection", json={"itemId": 1})
        body = client.get(f"/api/sessions/{session_id}/overlay").json()
        assert (body["displayWidth"], body["displayHeight"]) == (300, 600)
        [p] = body["items"]
        assert p["position"] == {"x": 150.0, "y": 180.0}
        assert p["scale"] == pytest.approx(0.4)

    def test_display_scaling(self, client, session_id):
        client.post(f"/api/sessions/{session_id}/selection", json={"itemId": 1})
        client.post(f"/api/sessions/{session_id}/selection", json={"itemId": 3})
        body = client.get(
            f"/api/sessions/{session_id}/overlay",
            params={"displayWidth": 150, "displayHeight": 300},
        ).json()
        assert body["landmarks"]["chest"] == {"x": 75.0, "y": 90.0}
        top = next(p for p in body["items"] if p["item"]["id"] == "1")
        assert top["scale"] == pytest.approx(0.2)
        assert [l["itemId"] for l in body["layers"]] == ["3", "1"]
        assert body["layers"][1]["transform"] == "translate(-50%, -50%) scale(0.2) rotate(0deg)"

    def test_empty_selection(self, client, session_id):
        body = client.get(f"/api/sessions/{session_id}/overlay").json()
        assert body["items"] == [] and body["layers"] == []

    def test_invalid_display_size(self, client, session_id):
        resp = client.get(f"/api/sessions/{session_id}/overlay", params={"displayWidth": 0})
        assert resp.status_code == 400


class TestSessionAvatar:

    def test_avatar_committed(self, client, session_id):
        resp = client.post(f"/api/sessions/{session_id}/avatar", data={"gender": "female"})
        assert resp.status_code == 200
        assert resp.json()["avatarUrl"] == config.avatar.female_model_url

    def test_stale_avatar_discarded(self, client, session_id):
        class PhotoSwappingAvatar:
            """Replaces the session photo while 'generating'."""

            async def generate(self, image, filename="user-image.jpg", content_type="image/jpeg", gender=None):
                sessions.replace_image(sessions.get(session_id), make_image(200, 200))
                return "https://cdn.test/stale.glb"

        app.dependency_overrides[get_gateways] = lambda: Gateways(
            avatar=PhotoSwappingAvatar(), clothing=None, sizing=None,
        )
        resp = client.post(f"/api/sessions/{session_id}/avatar")
        assert resp.status_code == 409

        body = client.get(f"/api/sessions/{session_id}").json()
        assert "avatarUrl" not in body
        assert body["imageGeneration"] == 1

    def test_superseded_request_discarded(self, session_id):
        class GenderedAvatar:
            """The female model takes longer than the male one."""

            async def generate(self, image, filename="user-image.jpg", content_type="image/jpeg", gender=None):
                if gender == "female":
                    await asyncio.sleep(0.05)
                return f"https://cdn.test/{gender}.glb"

        gateways = Gateways(avatar=GenderedAvatar(), clothing=None, sizing=None)

        async def female_then_male():
            return await asyncio.gather(
                generate_session_avatar(session_id, gender="female", gateways=gateways),
                generate_session_avatar(session_id, gender="male", gateways=gateways),
                return_exceptions=True,
            )

        older, newer = asyncio.run(female_then_male())
        assert isinstance(older, HTTPException) and older.status_code == 409
        assert newer.avatar_url == "https://cdn.test/male.glb"
        assert sessions.get(session_id).avatar_url == "https://cdn.test/male.glb"

    def test_new_photo_drops_avatar(self, client, session_id):
        client.post(f"/api/sessions/{session_id}/avatar")
        body = client.put(f"/api/sessions/{session_id}/image", files=upload(make_image(100, 100))).json()
        assert "avatarUrl" not in body

    def test_provider_failure(self, client, web, session_id, monkeypatch):
        monkeypatch.setattr(config.providers, "simulate", False)
        web.add("POST", f"{config.providers.avaturn_base_url}/v1/generate", status=500, json={})
        assert client.post(f"/api/sessions/{session_id}/avatar").status_code == 500
