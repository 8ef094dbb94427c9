"""
Uzerimde FastAPI application.

Endpoints:
  POST /api/generateAvatar                3D avatar from a photo
  POST /api/overlay2d                     composite garments onto a photo
  GET  /api/processed-images/{name}       rendered overlay images
  POST /api/integration/try-on            async partner try-on (202 + callback)
  GET  /api/integration/status            partner try-on status
  GET  /api/catalog                       clothing catalog
  POST /api/sessions ...                  session-scoped photo, selection, overlay
  POST /api/scene                         composed 3D avatar scene
  GET  /health                            health check
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from uzerimde.api.deps import new_http_client
from uzerimde.api.routes import avatar, catalog, integration, overlay, scene, sessions
from uzerimde.config import config
from uzerimde.models.schemas import HealthResponse

logging.basicConfig(
    level=logging.DEBUG if config.debug else logging.INFO,
    format="%(asctime)s  %(name)-30s  %(levelname)-7s  %(message)s",
)

app = FastAPI(
    title=config.app_name,
    version=config.version,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "status": "failed",
            "message": "Missing or invalid required parameters",
            "detail": jsonable_encoder(exc.errors()),
        },
    )


# ── Route registration ─────────────────────────────────────────────────

app.include_router(avatar.router, prefix="/api", tags=["avatar"])
app.include_router(overlay.router, prefix="/api", tags=["overlay"])
app.include_router(integration.router, prefix="/api/integration", tags=["integration"])
app.include_router(catalog.router, prefix="/api/catalog", tags=["catalog"])
app.include_router(sessions.router, prefix="/api/sessions", tags=["sessions"])
app.include_router(scene.router, prefix="/api/scene", tags=["scene"])


@app.get("/health", response_model=HealthResponse)
async def health():
    return HealthResponse(status="ok", version=config.version)


@app.on_event("startup")
async def startup():
    config.storage.result_dir.mkdir(parents=True, exist_ok=True)
    app.state.http_client = new_http_client()
    logging.getLogger(__name__).info("%s %s started", config.app_name, config.version)


@app.on_event("shutdown")
async def shutdown():
    client = getattr(app.state, "http_client", None)
    if client is not None:
        await client.aclose()
