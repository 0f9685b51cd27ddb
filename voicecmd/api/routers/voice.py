"""Voice pipeline endpoints: status, text interpretation and audio recognition."""

from __future__ import annotations

import asyncio
import io

import soundfile as sf
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status

from ...audio.types import AudioSegment
from ...errors import BackendUnavailable
from ...session import VoicePipeline
from ...settings import VoiceSettings
from ..deps.auth import get_api_key, get_app_settings, get_pipeline
from ..schemas import (
    IntentPayload,
    InterpretRequest,
    InterpretResponse,
    RecognizeResponse,
    StatusResponse,
)

router = APIRouter(prefix="/v1/voice", tags=["voice"])


@router.get("/status", response_model=StatusResponse)
async def voice_status(
    _: str = Depends(get_api_key),
    pipeline: VoicePipeline = Depends(get_pipeline),
):
    return StatusResponse(**pipeline.get_status().to_dict())


@router.post("/interpret", response_model=InterpretResponse)
async def interpret_transcript(
    payload: InterpretRequest,
    _: str = Depends(get_api_key),
    pipeline: VoicePipeline = Depends(get_pipeline),
):
    outcome = pipeline.interpret(payload.transcript, payload.confidence)
    return InterpretResponse(
        transcript=payload.transcript,
        confidence=payload.confidence,
        intent=IntentPayload.from_outcome(outcome),
    )


@router.post("/recognize", response_model=RecognizeResponse)
async def recognize_audio(
    file: UploadFile = File(...),
    _: str = Depends(get_api_key),
    pipeline: VoicePipeline = Depends(get_pipeline),
    settings: VoiceSettings = Depends(get_app_settings),
):
    segment = _read_segment(await file.read(), settings)
    try:
        future = pipeline.request(segment)
    except BackendUnavailable as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))
    result = await asyncio.wrap_future(future)
    if result is None:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Recognition produced no transcript")
    outcome = pipeline.interpret(result.transcript, result.confidence)
    backend = pipeline.backend
    return RecognizeResponse(
        transcript=result.transcript,
        confidence=result.confidence,
        intent=IntentPayload.from_outcome(outcome),
        backend=backend.kind if backend is not None else "unknown",
        duration=segment.duration,
        mean_amplitude=segment.mean_amplitude,
    )


def _read_segment(raw: bytes, settings: VoiceSettings) -> AudioSegment:
    try:
        samples, sample_rate = sf.read(io.BytesIO(raw), dtype="int16")
    except Exception as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=f"Unreadable audio: {exc}")
    if sample_rate != settings.sample_rate:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Expected {settings.sample_rate} Hz audio, got {sample_rate} Hz",
        )
    channels = 1 if samples.ndim == 1 else int(samples.shape[1])
    data = samples.astype("<i2", copy=False).tobytes()
    if len(data) < settings.min_segment_bytes:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Audio too short")
    return AudioSegment.from_pcm("upload", data, sample_rate, channels=channels)
