"""API key guard shared by all routes."""

from __future__ import annotations

from fastapi import Depends, Header, HTTPException, Request, status

from ...session import VoicePipeline
from ...settings import VoiceSettings


def get_app_settings(request: Request) -> VoiceSettings:
    return request.app.state.settings


def get_pipeline(request: Request) -> VoicePipeline:
    return request.app.state.pipeline


def get_api_key(
    x_api_key: str | None = Header(default=None),
    settings: VoiceSettings = Depends(get_app_settings),
) -> str:
    if not settings.api_keys:
        return ""
    if not x_api_key or x_api_key not in settings.api_keys:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or missing API key")
    return x_api_key
