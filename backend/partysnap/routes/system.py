from __future__ import annotations
from fastapi import APIRouter, Request
from datetime import datetime, timezone
from partysnap.config import settings

router = APIRouter(tags=["system"])

@router.get("/health")
async def health(request: Request):
    return {
        "status": "ok",
        "env": settings.environment,
        "time": datetime.now(timezone.utc).isoformat(),
        "request_id": request.headers.get("x-request-id") or request.state.request_id,
    }

@router.get("/version")
async def version():
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "git_sha": settings.git_sha,
        "build": "docker",
    }

@router.get("/config")
async def public_config():
    # What guest/host clients need to size uploads and validate codes locally
    return {
        "app": settings.app_display_name,
        "join_code_length": settings.join_code_length,
        "max_upload_bytes": settings.max_upload_bytes,
        "compression_quality": settings.compression_quality,
        "compression_max_width": settings.compression_max_width,
    }
