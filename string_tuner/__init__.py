"""String Tuner - pitch detection and in-tune confirmation for instrument strings."""

from .core.config import TunerConfig
from .note_types import (
    Frame,
    FrameResult,
    PitchReading,
    PitchStatus,
    ResolvedMatch,
    StabilityState,
    TargetNote,
    TuningDirection,
    TuningMode,
)
from .note_utils import cents, get_note_name, note_to_frequency
from .tuner import TunerSession, process_frame
from .tunings import TargetNoteSet, build_chromatic_set, build_target_set, default_target_set, get_tuning

__version__ = "0.1.0"

__all__ = [
    "TunerConfig",
    "Frame",
    "FrameResult",
    "PitchReading",
    "PitchStatus",
    "ResolvedMatch",
    "StabilityState",
    "TargetNote",
    "TuningDirection",
    "TuningMode",
    "cents",
    "get_note_name",
    "note_to_frequency",
    "TunerSession",
    "process_frame",
    "TargetNoteSet",
    "build_chromatic_set",
    "build_target_set",
    "default_target_set",
    "get_tuning",
]
