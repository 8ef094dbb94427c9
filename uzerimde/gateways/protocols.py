"""
Interfaces every avatar, clothing and sizing provider implements, hosted
or simulated.
"""

from __future__ import annotations

from typing import Any, Protocol, Sequence, runtime_checkable

from uzerimde.models.schemas import (
    BodyMeasurements,
    ClothingItem,
    SizeRecommendation,
    TryOnClothingItem,
)


@runtime_checkable
class AvatarProvider(Protocol):
    provider: str

    async def generate(
        self,
        image: bytes,
        filename: str = "user-image.jpg",
        content_type: str = "image/jpeg",
        gender: str | None = None,
    ) -> str:
        """Avatar model URL for a photo."""

    async def status(self, job_id: str) -> dict: ...

    async def customize(self, avatar_url: str, customizations: dict[str, Any]) -> str: ...


@runtime_checkable
class ClothingProvider(Protocol):
    provider: str

    async def try_on(self, avatar_url: str, items: Sequence[TryOnClothingItem]) -> str:
        """URL of the avatar dressed in ``items``."""

    async def analyze(self, image_url: str) -> dict: ...

    async def recommend(self, preferences: dict[str, Any]) -> list[ClothingItem]: ...


@runtime_checkable
class SizingProvider(Protocol):
    provider: str

    async def measurements(
        self,
        image: bytes,
        filename: str = "user-image.jpg",
        content_type: str = "image/jpeg",
    ) -> BodyMeasurements: ...

    async def recommendation(self, measurements: BodyMeasurements, product_id: str) -> SizeRecommendation: ...

    async def batch_recommendations(
        self,
        measurements: BodyMeasurements,
        product_ids: Sequence[str],
    ) -> dict[str, SizeRecommendation]: ...
