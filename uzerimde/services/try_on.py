"""
E-commerce try-on pipeline.

The partner receives a 202 straight away; this module then runs in the
background:

  fetch user image → generate avatar → [measure body] → [size each item]
  → dress avatar → record result → POST result to callbackUrl (once)

Any failure ends the job as ``failed``.  Nothing is retried: the callback
is attempted exactly once, with either the result or the failure, and a
callback delivery error is only logged.  Progress is kept in the in-memory
job registry for the status endpoint.
"""

from __future__ import annotations

import logging
import secrets
import time

import httpx

from uzerimde.config import config
from uzerimde.gateways import Gateways
from uzerimde.models.schemas import (
    BodyMeasurements,
    JobStatus,
    SizeRecommendation,
    TryOnRequest,
    TryOnStatus,
)
from uzerimde.storage.asset_store import fetch_asset

logger = logging.getLogger(__name__)

# Progress reported once each stage has finished.
STAGE_PROGRESS = {
    "accepted": 0,
    "image": 10,
    "avatar": 40,
    "measurements": 60,
    "sizing": 75,
    "clothing": 95,
}


class JobRegistry:
    """
    Current state of try-on requests seen by this process.  Finished jobs are
    kept for ``storage.job_ttl_s`` and at most ``storage.max_jobs`` are held;
    jobs still processing are never dropped.
    """

    def __init__(self):
        self._jobs: dict[str, TryOnStatus] = {}
        self._created: dict[str, float] = {}

    def __len__(self) -> int:
        return len(self._jobs)

    def create(self, now: float | None = None) -> TryOnStatus:
        now = time.time() if now is None else now
        self.evict(now)
        request_id = f"tryon-{int(now * 1000)}-{secrets.token_hex(4)}"
        job = TryOnStatus(
            request_id=request_id,
            status=JobStatus.processing,
            message="Processing try-on request",
            progress=STAGE_PROGRESS["accepted"],
        )
        self._jobs[request_id] = job
        self._created[request_id] = now
        return job

    def advance(self, request_id: str, stage: str) -> None:
        job = self._jobs[request_id]
        self._jobs[request_id] = job.model_copy(update={"progress": STAGE_PROGRESS[stage]})

    def finish(self, result: TryOnStatus) -> None:
        self._jobs[result.request_id] = result
        self._created.setdefault(result.request_id, time.time())

    def get(self, request_id: str) -> TryOnStatus | None:
        return self._jobs.get(request_id)

    def evict(self, now: float | None = None) -> int:
        """Drop expired finished jobs, then the oldest finished ones over the cap."""
        now = time.time() if now is None else now
        ttl = config.storage.job_ttl_s
        finished = sorted(
            (rid for rid, job in self._jobs.items() if job.status != JobStatus.processing),
            key=self._created.__getitem__,
        )
        doomed = [rid for rid in finished if now - self._created[rid] > ttl]

        over = len(self._jobs) - len(doomed) - max(config.storage.max_jobs - 1, 0)
        if over > 0:
            doomed += [rid for rid in finished if rid not in doomed][:over]

        for rid in doomed:
            del self._jobs[rid]
            del self._created[rid]
        if doomed:
            logger.info("Evicted %d finished job(s), %d left", len(doomed), len(self._jobs))
        return len(doomed)

    def clear(self) -> None:
        self._jobs.clear()
        self._created.clear()


jobs = JobRegistry()


def wire_payload(status: TryOnStatus) -> dict:
    return status.model_dump(mode="json", by_alias=True, exclude_none=True)


async def notify_callback(client: httpx.AsyncClient, callback_url: str, result: TryOnStatus) -> None:
    """Single delivery attempt; failures are logged, never raised."""
    try:
        response = await client.post(callback_url, json=wire_payload(result))
        response.raise_for_status()
        logger.info("Notified %s of %s (%s)", callback_url, result.request_id, result.status.value)
    except httpx.HTTPError as exc:
        logger.error("Error notifying callback URL %s for %s: %s", callback_url, result.request_id, exc)


async def _execute(
    request_id: str,
    req: TryOnRequest,
    gateways: Gateways,
    client: httpx.AsyncClient,
) -> TryOnStatus:
    image = await fetch_asset(req.user_image_url, client)
    jobs.advance(request_id, "image")

    avatar_url = await gateways.avatar.generate(image)
    jobs.advance(request_id, "avatar")

    measurements: BodyMeasurements | None = None
    if req.include_body_measurements:
        measurements = await gateways.sizing.measurements(image)
        jobs.advance(request_id, "measurements")

    recommendations: dict[str, SizeRecommendation] = {}
    if req.include_size_recommendations and measurements is not None:
        for item in req.clothing_items:
            recommendations[item.id] = await gateways.sizing.recommendation(measurements, item.id)
        jobs.advance(request_id, "sizing")

    clothed_avatar_url = await gateways.clothing.try_on(avatar_url, req.clothing_items)
    jobs.advance(request_id, "clothing")

    return TryOnStatus(
        request_id=request_id,
        status=JobStatus.completed,
        message="Try-on completed successfully",
        avatar_url=avatar_url,
        clothed_avatar_url=clothed_avatar_url,
        body_measurements=measurements if req.include_body_measurements else None,
        size_recommendations=recommendations if req.include_size_recommendations else None,
        progress=100,
    )


async def run_try_on(
    request_id: str,
    req: TryOnRequest,
    gateways: Gateways,
    client: httpx.AsyncClient,
) -> TryOnStatus:
    t0 = time.perf_counter()

    try:
        result = await _execute(request_id, req, gateways, client)
    except Exception as exc:
        logger.exception("Error processing try-on request %s", request_id)
        result = TryOnStatus(
            request_id=request_id,
            status=JobStatus.failed,
            message="Error processing try-on request",
            error=str(exc),
        )

    jobs.finish(result)
    logger.info(
        "Try-on %s %s in %.2f s", request_id, result.status.value, time.perf_counter() - t0,
    )

    if req.callback_url:
        await notify_callback(client, req.callback_url, result)
    elif result.status == JobStatus.failed:
        logger.warning("Try-on %s failed with no callback URL to notify", request_id)

    return result
