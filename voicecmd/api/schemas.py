"""Pydantic schemas for API contracts."""

from __future__ import annotations

from typing import Any, Dict

from pydantic import BaseModel, Field


class InterpretRequest(BaseModel):
    transcript: str
    confidence: int = Field(ge=0, le=100)


class IntentPayload(BaseModel):
    kind: str
    query: str | None = None
    direction: str | None = None
    level: int | None = None
    raw: str | None = None

    @classmethod
    def from_outcome(cls, outcome: Any) -> "IntentPayload":
        data: Dict[str, Any] = outcome.to_dict()
        return cls(
            kind=data["kind"],
            query=data.get("query"),
            direction=data.get("direction"),
            level=data.get("level"),
            raw=data.get("raw"),
        )


class InterpretResponse(BaseModel):
    transcript: str
    confidence: int
    intent: IntentPayload


class RecognizeResponse(InterpretResponse):
    backend: str
    duration: float = 0.0
    mean_amplitude: float = 0.0


class StatusResponse(BaseModel):
    active: bool
    backend_kind: str | None = None
    session_count: int = 0
    model_path: str | None = None


class HealthResponse(BaseModel):
    ok: bool
    backend: str | None = None
