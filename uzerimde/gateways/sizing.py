"""
Body measurement and size provider (Sizer).

  POST /v1/measurements            multipart ``image``           → {measurements}
  POST /v1/recommendations         {measurements, productId}     → {recommendation}
  POST /v1/batch-recommendations   {measurements, productIds}    → {recommendations}
"""

from __future__ import annotations

from typing import Sequence

from pydantic import TypeAdapter, ValidationError

from uzerimde.gateways.base import ProviderGateway, RemoteServiceError
from uzerimde.models.schemas import BodyMeasurements, SizeRecommendation

_BATCH = TypeAdapter(dict[str, SizeRecommendation])


class SizingGateway(ProviderGateway):
    provider = "sizer"

    def _wire(self, measurements: BodyMeasurements) -> dict:
        return measurements.model_dump(by_alias=True, exclude_none=True)

    async def measurements(
        self,
        image: bytes,
        filename: str = "user-image.jpg",
        content_type: str = "image/jpeg",
    ) -> BodyMeasurements:
        payload = await self._post(
            "/v1/measurements",
            files={"image": (filename, image, content_type)},
        )
        try:
            return BodyMeasurements.model_validate(self._field(payload, "measurements"))
        except ValidationError as exc:
            raise RemoteServiceError(self.provider, "malformed measurements", exc) from exc

    async def recommendation(self, measurements: BodyMeasurements, product_id: str) -> SizeRecommendation:
        payload = await self._post(
            "/v1/recommendations",
            json={"measurements": self._wire(measurements), "productId": product_id},
        )
        try:
            return SizeRecommendation.model_validate(self._field(payload, "recommendation"))
        except ValidationError as exc:
            raise RemoteServiceError(self.provider, "malformed recommendation", exc) from exc

    async def batch_recommendations(
        self,
        measurements: BodyMeasurements,
        product_ids: Sequence[str],
    ) -> dict[str, SizeRecommendation]:
        payload = await self._post(
            "/v1/batch-recommendations",
            json={"measurements": self._wire(measurements), "productIds": list(product_ids)},
        )
        try:
            return _BATCH.validate_python(self._field(payload, "recommendations"))
        except ValidationError as exc:
            raise RemoteServiceError(self.provider, "malformed recommendations", exc) from exc
