import pytest
from pydantic import ValidationError

from voicecmd.settings import VoiceSettings


def test_defaults_match_documented_values():
    settings = VoiceSettings()
    assert settings.model_names == ["vosk-model-small-es-0.42", "vosk-model-es-0.42"]
    assert settings.confidence_threshold == 70
    assert settings.model_frame_bytes == 4096
    assert settings.bytes_per_second == 32_000
    assert settings.max_pending_segments == 32
    assert settings.shutdown_timeout_sec == 10.0


def test_list_settings_read_from_environment(monkeypatch):
    monkeypatch.setenv("VOICE_MODEL_NAMES", " small , big ,")
    monkeypatch.setenv("VOICE_DISABLED_BACKENDS", "MODEL")
    monkeypatch.setenv("VOICE_API_KEYS", "a,b")
    settings = VoiceSettings()
    assert settings.model_names == ["small", "big"]
    assert settings.disabled_backends == ["model"]
    assert settings.api_keys == ["a", "b"]


def test_invalid_values_are_rejected():
    with pytest.raises(ValidationError):
        VoiceSettings(model_engine="kaldi-2")
    with pytest.raises(ValidationError):
        VoiceSettings(confidence_threshold=150)
    with pytest.raises(ValidationError):
        VoiceSettings(silence_timeout_sec=0)


def test_engine_is_normalized():
    assert VoiceSettings(model_engine=" Whisper ").model_engine == "whisper"
