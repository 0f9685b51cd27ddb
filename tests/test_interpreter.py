import pytest

from voicecmd.commands import (
    CommandInterpreter,
    Ignored,
    Play,
    SetVolume,
    Skip,
    Stop,
    Unrecognized,
    VolumeDirection,
)


@pytest.fixture()
def interpreter() -> CommandInterpreter:
    return CommandInterpreter()


def test_play_scenario(interpreter):
    assert interpreter.interpret("pon bad bunny", 85) == Play("bad bunny")


def test_stop_scenario(interpreter):
    assert interpreter.interpret("para la música", 80) == Stop()


def test_volume_up_scenario(interpreter):
    assert interpreter.interpret("sube el volumen", 90) == SetVolume(VolumeDirection.UP)


def test_unrecognized_scenario(interpreter):
    assert interpreter.interpret("buenos días", 90) == Unrecognized("buenos días")


def test_gate_blocks_matching_transcript(interpreter):
    assert interpreter.interpret("pon bad bunny", 50) == Ignored("pon bad bunny", 50)


@pytest.mark.parametrize("confidence", [0, 1, 35, 69])
@pytest.mark.parametrize("transcript", ["pon bad bunny", "para", "siguiente", "sube el volumen", "", "buenos días"])
def test_below_threshold_is_always_ignored(interpreter, transcript, confidence):
    assert isinstance(interpreter.interpret(transcript, confidence), Ignored)


def test_threshold_is_inclusive(interpreter):
    assert interpreter.interpret("siguiente", 70) == Skip()


@pytest.mark.parametrize(
    "transcript,query",
    [
        ("reproduce reggaeton", "reggaeton"),
        ("ponme   rock en español  ", "rock en español"),
        ("quiero escuchar a Rosalía", "a Rosalía"),
        ("pon música de bad bunny", "bad bunny"),
        ("busca despacito", "despacito"),
        ("oye toca algo tranquilo", "algo tranquilo"),
        ("Play Bohemian Rhapsody.", "Bohemian Rhapsody"),
        ("put on some jazz", "some jazz"),
        ("search for lofi beats", "lofi beats"),
    ],
)
def test_play_query_is_trimmed_remainder(interpreter, transcript, query):
    assert interpreter.interpret(transcript, 90) == Play(query)


def test_play_verb_without_query_falls_through(interpreter):
    assert interpreter.interpret("pon", 90) == Unrecognized("pon")
    assert interpreter.interpret("  pon   ", 90) == Unrecognized("pon")


def test_play_takes_priority_over_stop_keyword(interpreter):
    assert interpreter.interpret("pon música para bailar", 90) == Play("música para bailar")


def test_keywords_match_whole_words_only(interpreter):
    assert interpreter.interpret("comparar precios", 90) == Unrecognized("comparar precios")
    assert interpreter.interpret("ponemos la mesa", 90) == Unrecognized("ponemos la mesa")


@pytest.mark.parametrize("transcript", ["stop", "detén todo", "pausa", "para"])
def test_stop_keywords(interpreter, transcript):
    assert interpreter.interpret(transcript, 90) == Stop()


@pytest.mark.parametrize("transcript", ["siguiente canción", "skip", "next please", "cambia", "otra canción"])
def test_skip_keywords(interpreter, transcript):
    assert interpreter.interpret(transcript, 90) == Skip()


def test_volume_down(interpreter):
    assert interpreter.interpret("baja el volumen", 90) == SetVolume(VolumeDirection.DOWN)
    assert interpreter.interpret("volume down", 90) == SetVolume(VolumeDirection.DOWN)


def test_volume_absolute_from_embedded_number(interpreter):
    assert interpreter.interpret("volumen 30", 90) == SetVolume(VolumeDirection.ABSOLUTE, 30)
    assert interpreter.interpret("volumen al 250", 90) == SetVolume(VolumeDirection.ABSOLUTE, 100)
    assert interpreter.interpret("volumen 1000", 90) == SetVolume(VolumeDirection.ABSOLUTE, 100)


def test_volume_absolute_defaults_to_fifty(interpreter):
    assert interpreter.interpret("volumen", 90) == SetVolume(VolumeDirection.ABSOLUTE, 50)


def test_custom_threshold():
    strict = CommandInterpreter(threshold=90)
    assert isinstance(strict.interpret("pon bad bunny", 85), Ignored)
    assert strict.interpret("pon bad bunny", 95) == Play("bad bunny")


def test_intents_serialize_with_kind():
    assert Play("x").to_dict() == {"kind": "play", "query": "x"}
    assert Stop().to_dict() == {"kind": "stop"}
    assert SetVolume(VolumeDirection.UP).to_dict() == {"kind": "volume", "direction": "up", "level": None}
    assert Unrecognized("hm").actionable is False
    assert Ignored("x", 10).to_dict()["kind"] == "ignored"
