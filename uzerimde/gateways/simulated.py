"""
Stand-ins for the hosted providers, used while ``providers.simulate`` is on.

Same method signatures as the real gateways.  Avatar generation waits the
configured delay and hands back a fixture model; size recommendations are
computed locally from the built-in charts.
"""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import PurePosixPath
from typing import Any, Sequence
from urllib.parse import urlparse

from uzerimde.config import config
from uzerimde.core.catalog import list_items
from uzerimde.core.size_recommendation import recommend_sizes
from uzerimde.models.schemas import (
    BodyMeasurements,
    ClothingItem,
    SizeRecommendation,
    TryOnClothingItem,
)

logger = logging.getLogger(__name__)

FIXTURE_MEASUREMENTS = BodyMeasurements(
    height=175,
    chest=95,
    waist=82,
    hips=98,
    shoulders=45,
    inseam=82,
)


async def _delay() -> None:
    if config.providers.simulated_delay_s > 0:
        await asyncio.sleep(config.providers.simulated_delay_s)


class SimulatedAvatarGateway:
    provider = "avaturn-simulated"

    async def generate(
        self,
        image: bytes,
        filename: str = "user-image.jpg",
        content_type: str = "image/jpeg",
        gender: str | None = None,
    ) -> str:
        await _delay()
        if gender == "female":
            return config.avatar.female_model_url
        return config.avatar.male_model_url

    async def status(self, job_id: str) -> dict:
        return {"jobId": job_id, "status": "completed"}

    async def customize(self, avatar_url: str, customizations: dict[str, Any]) -> str:
        await _delay()
        return avatar_url


class SimulatedClothingGateway:
    provider = "fashn-simulated"

    async def try_on(self, avatar_url: str, items: Sequence[TryOnClothingItem]) -> str:
        await _delay()
        stem = PurePosixPath(urlparse(avatar_url).path).stem or "avatar"
        avatar_id = f"{stem}-{int(time.time() * 1000)}"
        logger.info("Simulated try-on of %d items on %s", len(items), avatar_url)
        return config.avatar.clothed_url_template.format(avatar_id=avatar_id)

    async def analyze(self, image_url: str) -> dict:
        return {"imageUrl": image_url, "category": None, "attributes": {}}

    async def recommend(self, preferences: dict[str, Any]) -> list[ClothingItem]:
        category = preferences.get("category")
        return list_items(category)


class SimulatedSizingGateway:
    provider = "sizer-simulated"

    async def measurements(
        self,
        image: bytes,
        filename: str = "user-image.jpg",
        content_type: str = "image/jpeg",
    ) -> BodyMeasurements:
        await _delay()
        return FIXTURE_MEASUREMENTS.model_copy()

    async def recommendation(self, measurements: BodyMeasurements, product_id: str) -> SizeRecommendation:
        return recommend_sizes(measurements)

    async def batch_recommendations(
        self,
        measurements: BodyMeasurements,
        product_ids: Sequence[str],
    ) -> dict[str, SizeRecommendation]:
        return {pid: recommend_sizes(measurements) for pid in product_ids}
