"""
Shared request dependencies.

One AsyncClient lives for the whole application (created at startup), so
background tasks can keep using it after the response has gone out.
"""

from __future__ import annotations

import httpx
from fastapi import Depends, Request

from uzerimde.config import config
from uzerimde.gateways import Gateways, build_gateways


def new_http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=config.providers.http_timeout_s)


def get_http_client(request: Request) -> httpx.AsyncClient:
    client = getattr(request.app.state, "http_client", None)
    if client is None:
        client = request.app.state.http_client = new_http_client()
    return client


def get_gateways(client: httpx.AsyncClient = Depends(get_http_client)) -> Gateways:
    return build_gateways(client)
