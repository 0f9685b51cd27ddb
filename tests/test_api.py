import io

import numpy as np
import pytest
import soundfile as sf
from fastapi.testclient import TestClient

from voicecmd.api.app import create_app
from voicecmd.settings import VoiceSettings


def _wav(samples: int = 15_000, amplitude: int = 3000, sample_rate: int = 16_000) -> bytes:
    t = np.arange(samples)
    tone = (np.sin(2 * np.pi * 220 * t / sample_rate) * amplitude).astype(np.int16)
    buffer = io.BytesIO()
    sf.write(buffer, tone, sample_rate, format="WAV", subtype="PCM_16")
    return buffer.getvalue()


def _settings(tmp_path, **overrides) -> VoiceSettings:
    values = dict(
        model_dir=str(tmp_path / "models"),
        disabled_backends=["model"],
        api_keys=["test-key"],
        simulated_delay_sec=0,
        log_level="WARNING",
    )
    values.update(overrides)
    return VoiceSettings(**values)


@pytest.fixture()
def api_client(tmp_path):
    app = create_app(_settings(tmp_path))
    with TestClient(app) as client:
        yield client


def _auth_headers():
    return {"X-API-Key": "test-key"}


def test_auth_required(api_client):
    resp = api_client.get("/v1/voice/status")
    assert resp.status_code == 401


def test_health_ok(api_client):
    resp = api_client.get("/healthz", headers=_auth_headers())
    assert resp.status_code == 200
    assert resp.json() == {"ok": True, "backend": "pattern"}


def test_status_reports_selected_backend(api_client):
    resp = api_client.get("/v1/voice/status", headers=_auth_headers())
    assert resp.status_code == 200
    body = resp.json()
    assert body["active"] is True
    assert body["backend_kind"] == "pattern"
    assert body["session_count"] == 0
    assert body["model_path"] is None


def test_interpret_play(api_client):
    resp = api_client.post(
        "/v1/voice/interpret",
        json={"transcript": "pon bad bunny", "confidence": 85},
        headers=_auth_headers(),
    )
    assert resp.status_code == 200
    intent = resp.json()["intent"]
    assert intent["kind"] == "play"
    assert intent["query"] == "bad bunny"


def test_interpret_low_confidence_is_ignored(api_client):
    resp = api_client.post(
        "/v1/voice/interpret",
        json={"transcript": "pon bad bunny", "confidence": 50},
        headers=_auth_headers(),
    )
    assert resp.json()["intent"]["kind"] == "ignored"


def test_interpret_rejects_out_of_range_confidence(api_client):
    resp = api_client.post(
        "/v1/voice/interpret",
        json={"transcript": "pon bad bunny", "confidence": 120},
        headers=_auth_headers(),
    )
    assert resp.status_code == 422


def test_recognize_upload_runs_backend_and_interpreter(api_client):
    resp = api_client.post(
        "/v1/voice/recognize",
        files={"file": ("clip.wav", _wav(), "audio/wav")},
        headers=_auth_headers(),
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["backend"] == "pattern"
    assert body["transcript"] == "pon bad bunny"
    assert body["confidence"] == 70
    assert body["intent"] == {"kind": "play", "query": "bad bunny", "direction": None, "level": None, "raw": None}
    assert body["duration"] == pytest.approx(15_000 / 16_000)


def test_recognize_rejects_wrong_sample_rate(api_client):
    resp = api_client.post(
        "/v1/voice/recognize",
        files={"file": ("clip.wav", _wav(sample_rate=8000), "audio/wav")},
        headers=_auth_headers(),
    )
    assert resp.status_code == 422


def test_recognize_without_transcript_is_bad_gateway(api_client):
    resp = api_client.post(
        "/v1/voice/recognize",
        files={"file": ("clip.wav", _wav(samples=4000), "audio/wav")},
        headers=_auth_headers(),
    )
    assert resp.status_code == 502


def test_metrics_exposed(api_client):
    resp = api_client.get("/metrics", headers=_auth_headers())
    assert resp.status_code == 200
    assert "voice_recognitions_total" in resp.text


def test_voice_unavailable_keeps_api_running(tmp_path):
    settings = _settings(tmp_path, disabled_backends=["model", "pattern", "simulated"], api_keys=[])
    with TestClient(create_app(settings)) as client:
        status = client.get("/v1/voice/status").json()
        assert status["active"] is False
        assert status["backend_kind"] is None

        resp = client.post("/v1/voice/recognize", files={"file": ("clip.wav", _wav(), "audio/wav")})
        assert resp.status_code == 503

        resp = client.post("/v1/voice/interpret", json={"transcript": "siguiente", "confidence": 90})
        assert resp.json()["intent"]["kind"] == "skip"
