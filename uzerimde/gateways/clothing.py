"""
Clothing fit provider (FASHN AI).

  POST /v1/try-on      {avatarUrl, clothingItems: [{id, imageUrl, category}]} → {resultUrl}
  POST /v1/analyze     {imageUrl}                                             → details
  POST /v1/recommend   {preferences}                                          → {recommendations}
"""

from __future__ import annotations

from typing import Any, Sequence

from pydantic import TypeAdapter, ValidationError

from uzerimde.gateways.base import ProviderGateway, RemoteServiceError
from uzerimde.models.schemas import ClothingItem, TryOnClothingItem

_ITEMS = TypeAdapter(list[ClothingItem])


class ClothingGateway(ProviderGateway):
    provider = "fashn"

    async def try_on(self, avatar_url: str, items: Sequence[TryOnClothingItem]) -> str:
        """Dress the avatar; returns the URL of the clothed avatar."""
        payload = await self._post(
            "/v1/try-on",
            json={
                "avatarUrl": avatar_url,
                "clothingItems": [
                    {"id": item.id, "imageUrl": item.image_url, "category": item.category}
                    for item in items
                ],
            },
        )
        return self._field(payload, "resultUrl")

    async def analyze(self, image_url: str) -> dict:
        return await self._post("/v1/analyze", json={"imageUrl": image_url})

    async def recommend(self, preferences: dict[str, Any]) -> list[ClothingItem]:
        payload = await self._post("/v1/recommend", json={"preferences": preferences})
        try:
            return _ITEMS.validate_python(self._field(payload, "recommendations"))
        except ValidationError as exc:
            raise RemoteServiceError(self.provider, "malformed recommendations", exc) from exc
