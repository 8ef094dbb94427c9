"""
Partner integration endpoints.

POST /try-on answers 202 with a request id immediately and runs the
pipeline as a background task; the outcome is pushed to the partner's
callback URL and can be polled via GET /status.
"""

from __future__ import annotations

import logging

import httpx
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query

from uzerimde.api.deps import get_gateways, get_http_client
from uzerimde.gateways import Gateways
from uzerimde.models.schemas import ErrorResponse, TryOnRequest, TryOnStatus
from uzerimde.services.try_on import jobs, run_try_on

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post(
    "/try-on",
    status_code=202,
    response_model=TryOnStatus,
    response_model_exclude_none=True,
    responses={400: {"model": ErrorResponse}},
)
async def start_try_on(
    req: TryOnRequest,
    background_tasks: BackgroundTasks,
    gateways: Gateways = Depends(get_gateways),
    client: httpx.AsyncClient = Depends(get_http_client),
):
    """Accept a try-on request and process it asynchronously."""

    job = jobs.create()
    background_tasks.add_task(run_try_on, job.request_id, req, gateways, client)

    logger.info(
        "Try-on %s accepted: %d items, callback=%s",
        job.request_id, len(req.clothing_items), req.callback_url or "-",
    )
    return job.model_copy(update={"progress": None})


@router.get(
    "/status",
    response_model=TryOnStatus,
    response_model_exclude_none=True,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def try_on_status(request_id: str | None = Query(None, alias="requestId")):
    """Current state of a try-on request."""

    if not request_id:
        raise HTTPException(400, "Missing or invalid request ID")

    job = jobs.get(request_id)
    if job is None:
        raise HTTPException(404, f"Try-on request '{request_id}' not found")
    return job
