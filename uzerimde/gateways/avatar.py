"""
Avatar generation provider (Avaturn).

  POST /v1/generate         multipart ``image``             → {avatarUrl}
  GET  /v1/status/{jobId}                                   → job status
  POST /v1/customize        {avatarUrl, customizations}     → {avatarUrl}
"""

from __future__ import annotations

from typing import Any

from uzerimde.gateways.base import ProviderGateway


class AvatarGateway(ProviderGateway):
    provider = "avaturn"

    async def generate(
        self,
        image: bytes,
        filename: str = "user-image.jpg",
        content_type: str = "image/jpeg",
        gender: str | None = None,
    ) -> str:
        """
        Generate a 3D avatar from a photo; returns the avatar URL.

        ``gender`` is not part of the provider's request and is not sent;
        only the simulated provider uses it.
        """
        payload = await self._post(
            "/v1/generate",
            files={"image": (filename, image, content_type)},
        )
        return self._field(payload, "avatarUrl")

    async def status(self, job_id: str) -> dict:
        return await self._get(f"/v1/status/{job_id}")

    async def customize(self, avatar_url: str, customizations: dict[str, Any]) -> str:
        payload = await self._post(
            "/v1/customize",
            json={"avatarUrl": avatar_url, "customizations": customizations},
        )
        return self._field(payload, "avatarUrl")
