"""Configuration, events and interfaces shared by String Tuner components."""

from .config import TunerConfig, ConfigManager
from .events import TuningEvents, TuningEventType
from .interfaces import IAudioProvider

__all__ = [
    "TunerConfig",
    "ConfigManager",
    "TuningEvents",
    "TuningEventType",
    "IAudioProvider",
]
