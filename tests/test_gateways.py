"""
Tests for provider gateways (real ones against httpx.MockTransport, and the
simulated stand-ins).
"""

import asyncio
import inspect
import json

import httpx
import pytest

from conftest import FakeWeb
from uzerimde.config import config
from uzerimde.gateways import (
    AvatarGateway,
    AvatarProvider,
    ClothingGateway,
    ClothingProvider,
    RemoteServiceError,
    SimulatedAvatarGateway,
    SimulatedClothingGateway,
    SimulatedSizingGateway,
    SizingGateway,
    SizingProvider,
    build_gateways,
)
from uzerimde.gateways.simulated import FIXTURE_MEASUREMENTS
from uzerimde.models.schemas import TryOnClothingItem

AVATURN = "https://avatar.test"
FASHN = "https://fashn.test"
SIZER = "https://sizer.test"


def call(web, make_gateway, method, *args, **kwargs):
    """Run one gateway method on a client backed by ``web``."""

    async def go():
        async with web.client() as client:
            gateway = make_gateway(client)
            return await getattr(gateway, method)(*args, **kwargs)

    return asyncio.run(go())


def avatar(client):
    return AvatarGateway(client, AVATURN + "/", "avk")


def clothing(client):
    return ClothingGateway(client, FASHN, "fk")


def sizing(client):
    return SizingGateway(client, SIZER, "sk")


class TestAvatarGateway:

    def test_generate_uploads_multipart(self, web):
        web.add("POST", f"{AVATURN}/v1/generate", json={"avatarUrl": "https://cdn/a.glb"})
        url = call(web, avatar, "generate", b"JPEGDATA", filename="me.jpg", gender="female")

        assert url == "https://cdn/a.glb"
        [req] = web.requests
        assert req.headers["authorization"] == "Bearer avk"
        assert req.headers["content-type"].startswith("multipart/form-data")
        body = req.read()
        assert b'name="image"' in body and b"JPEGDATA" in body
        assert b"female" not in body

    def test_http_error_is_wrapped_without_retry(self, web):
        web.add("POST", f"{AVATURN}/v1/generate", status=503, json={"error": "busy"})
        with pytest.raises(RemoteServiceError) as info:
            call(web, avatar, "generate", b"x")
        assert info.value.provider == "avaturn"
        assert isinstance(info.value.cause, httpx.HTTPStatusError)
        assert len(web.requests) == 1

    def test_transport_error(self, web):
        def boom(request):
            raise httpx.ConnectError("refused", request=request)

        web.add_handler("POST", f"{AVATURN}/v1/generate", boom)
        with pytest.raises(RemoteServiceError) as info:
            call(web, avatar, "generate", b"x")
        assert isinstance(info.value.cause, httpx.ConnectError)

    def test_malformed_json(self, web):
        web.add("POST", f"{AVATURN}/v1/generate", content=b"<html>")
        with pytest.raises(RemoteServiceError):
            call(web, avatar, "generate", b"x")

    def test_missing_field(self, web):
        web.add("POST", f"{AVATURN}/v1/generate", json={"id": 1})
        with pytest.raises(RemoteServiceError, match="avatarUrl"):
            call(web, avatar, "generate", b"x")

    def test_status_and_customize(self, web):
        web.add("GET", f"{AVATURN}/v1/status/j1", json={"status": "done"})
        web.add("POST", f"{AVATURN}/v1/customize", json={"avatarUrl": "https://cdn/b.glb"})
        assert call(web, avatar, "status", "j1") == {"status": "done"}
        assert call(web, avatar, "customize", "https://cdn/a.glb", {"hair": "short"}) == "https://cdn/b.glb"
        sent = json.loads(web.calls("POST", f"{AVATURN}/v1/customize")[0].read())
        assert sent == {"avatarUrl": "https://cdn/a.glb", "customizations": {"hair": "short"}}


class TestClothingGateway:

    def test_try_on_payload(self, web):
        web.add("POST", f"{FASHN}/v1/try-on", json={"resultUrl": "https://cdn/c.glb"})
        items = [TryOnClothingItem(id=7, category="tops", image_url="https://shop/7.png")]
        assert call(web, clothing, "try_on", "https://cdn/a.glb", items) == "https://cdn/c.glb"

        [req] = web.requests
        assert req.headers["authorization"] == "Bearer fk"
        assert json.loads(req.read()) == {
            "avatarUrl": "https://cdn/a.glb",
            "clothingItems": [{"id": "7", "imageUrl": "https://shop/7.png", "category": "upper"}],
        }

    def test_analyze(self, web):
        web.add("POST", f"{FASHN}/v1/analyze", json={"category": "tops", "colors": ["blue"]})
        assert call(web, clothing, "analyze", "https://shop/1.png")["colors"] == ["blue"]
        assert json.loads(web.requests[0].read()) == {"imageUrl": "https://shop/1.png"}

    def test_recommend_validates_items(self, web):
        web.add("POST", f"{FASHN}/v1/recommend", json={"recommendations": [
            {"id": 1, "name": "Tee", "category": "tops", "imageUrl": "https://shop/1.png"},
        ]})
        [item] = call(web, clothing, "recommend", {"style": "casual"})
        assert (item.id, item.category, item.image_url) == ("1", "upper", "https://shop/1.png")

    def test_recommend_malformed(self, web):
        web.add("POST", f"{FASHN}/v1/recommend", json={"recommendations": [{"id": 1}]})
        with pytest.raises(RemoteServiceError):
            call(web, clothing, "recommend", {})


class TestSizingGateway:

    def test_measurements(self, web):
        web.add("POST", f"{SIZER}/v1/measurements", json={"measurements": {"chest": 99, "armLength": 60}})
        m = call(web, sizing, "measurements", b"img")
        assert m.chest == 99 and m.arm_length == 60

    def test_recommendation_payload(self, web):
        web.add("POST", f"{SIZER}/v1/recommendations", json={"recommendation": {
            "upperSize": "L", "lowerSize": "34", "shoeSize": "43", "fit": "regular", "confidence": 0.8,
        }})
        rec = call(web, sizing, "recommendation", FIXTURE_MEASUREMENTS, "p1")
        assert (rec.upper_size, rec.lower_size, rec.shoe_size) == ("L", "34", "43")
        sent = json.loads(web.requests[0].read())
        assert sent["productId"] == "p1"
        assert sent["measurements"]["chest"] == 95
        assert "neckCircumference" not in sent["measurements"]

    def test_batch(self, web):
        web.add("POST", f"{SIZER}/v1/batch-recommendations", json={"recommendations": {
            "p1": {"upperSize": "M"}, "p2": {"lowerSize": "32"},
        }})
        recs = call(web, sizing, "batch_recommendations", FIXTURE_MEASUREMENTS, ["p1", "p2"])
        assert recs["p1"].upper_size == "M" and recs["p2"].lower_size == "32"

    def test_invalid_confidence_rejected(self, web):
        web.add("POST", f"{SIZER}/v1/recommendations", json={"recommendation": {"confidence": 7}})
        with pytest.raises(RemoteServiceError):
            call(web, sizing, "recommendation", FIXTURE_MEASUREMENTS, "p1")


class TestSimulated:

    def test_avatar_by_gender(self):
        gw = SimulatedAvatarGateway()
        assert asyncio.run(gw.generate(b"x", gender="female")) == config.avatar.female_model_url
        assert asyncio.run(gw.generate(b"x", gender="male")) == config.avatar.male_model_url
        assert asyncio.run(gw.generate(b"x")) == config.avatar.male_model_url

    def test_clothed_avatar_url(self):
        url = asyncio.run(SimulatedClothingGateway().try_on("/models/avatars/standard-male-fullbody.glb", []))
        assert url.startswith("https://example.com/clothed-avatars/standard-male-fullbody-")
        assert url.endswith(".glb")

    def test_sizing_fixture(self):
        gw = SimulatedSizingGateway()
        m = asyncio.run(gw.measurements(b"x"))
        assert m == FIXTURE_MEASUREMENTS
        rec = asyncio.run(gw.recommendation(m, "p1"))
        assert (rec.upper_size, rec.lower_size) == ("M", "32")


class TestBuildGateways:

    def test_simulated_by_default(self):
        gw = build_gateways(FakeWeb().client())
        assert isinstance(gw.avatar, SimulatedAvatarGateway)

    def test_real_when_simulation_off(self, monkeypatch):
        monkeypatch.setattr(config.providers, "simulate", False)
        monkeypatch.setattr(config.providers, "avaturn_api_key", "secret")
        gw = build_gateways(FakeWeb().client())
        assert isinstance(gw.avatar, AvatarGateway)
        assert isinstance(gw.clothing, ClothingGateway)
        assert isinstance(gw.sizing, SizingGateway)
        assert gw.avatar.api_key == "secret"


class TestProviderInterfaces:

    @pytest.mark.parametrize("protocol, implementations", [
        (AvatarProvider, [AvatarGateway, SimulatedAvatarGateway]),
        (ClothingProvider, [ClothingGateway, SimulatedClothingGateway]),
        (SizingProvider, [SizingGateway, SimulatedSizingGateway]),
    ])
    def test_real_and_simulated_share_signatures(self, protocol, implementations):
        methods = [
            name for name, member in vars(protocol).items()
            if inspect.iscoroutinefunction(member)
        ]
        assert methods
        for cls in implementations:
            for name in methods:
                expected = list(inspect.signature(getattr(protocol, name)).parameters)
                assert list(inspect.signature(getattr(cls, name)).parameters) == expected, (cls, name)

    def test_built_gateways_satisfy_interfaces(self, monkeypatch):
        for simulate in (True, False):
            monkeypatch.setattr(config.providers, "simulate", simulate)
            gw = build_gateways(FakeWeb().client())
            assert isinstance(gw.avatar, AvatarProvider)
            assert isinstance(gw.clothing, ClothingProvider)
            assert isinstance(gw.sizing, SizingProvider)
