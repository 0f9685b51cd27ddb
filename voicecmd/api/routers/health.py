"""Health and metrics endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from ...session import VoicePipeline
from ..deps.auth import get_api_key, get_pipeline
from ..schemas import HealthResponse

router = APIRouter()


@router.get("/healthz", response_model=HealthResponse)
async def healthz(
    _: str = Depends(get_api_key),
    pipeline: VoicePipeline = Depends(get_pipeline),
):
    status = pipeline.get_status()
    return HealthResponse(ok=True, backend=status.backend_kind)


@router.get("/metrics")
async def metrics_endpoint(_: str = Depends(get_api_key)) -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
