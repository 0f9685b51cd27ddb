from .intents import (
    Ignored,
    Intent,
    Play,
    SetVolume,
    Skip,
    Stop,
    Unrecognized,
    VolumeDirection,
)
from .interpreter import CommandInterpreter

__all__ = [
    "CommandInterpreter",
    "Ignored",
    "Intent",
    "Play",
    "SetVolume",
    "Skip",
    "Stop",
    "Unrecognized",
    "VolumeDirection",
]
