"""
Common plumbing for provider gateways.

A gateway issues exactly one request per call: no retries, no backoff, and
the shared client's timeout.  Every failure (transport, HTTP status,
undecodable or incomplete payload) becomes a RemoteServiceError that keeps
the original exception as ``cause``.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class RemoteServiceError(Exception):
    """A call to an external provider failed."""

    def __init__(self, provider: str, message: str, cause: BaseException | None = None):
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.message = message
        self.cause = cause


class ProviderGateway:
    """Bearer-authenticated JSON API on a fixed base URL."""

    provider = "provider"

    def __init__(self, client: httpx.AsyncClient, base_url: str, api_key: str):
        self.client = client
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict:
        url = f"{self.base_url}{path}"
        try:
            response = await self.client.request(method, url, headers=self._headers(), **kwargs)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as exc:
            logger.error("%s %s %s failed: %s", self.provider, method, path, exc)
            raise RemoteServiceError(self.provider, f"{method} {path} failed", exc) from exc
        except ValueError as exc:
            logger.error("%s %s %s returned a non-JSON body", self.provider, method, path)
            raise RemoteServiceError(self.provider, f"{method} {path} returned malformed JSON", exc) from exc

        if not isinstance(payload, dict):
            raise RemoteServiceError(self.provider, f"{method} {path} returned {type(payload).__name__}, expected object")
        return payload

    async def _post(self, path: str, **kwargs: Any) -> dict:
        return await self._request("POST", path, **kwargs)

    async def _get(self, path: str, **kwargs: Any) -> dict:
        return await self._request("GET", path, **kwargs)

    def _field(self, payload: dict, key: str) -> Any:
        if key not in payload:
            raise RemoteServiceError(self.provider, f"response is missing '{key}'")
        return payload[key]
