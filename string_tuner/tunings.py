"""Target note sets: instrument presets, chromatic matching and the default guitar set."""

from __future__ import annotations
from typing import Dict, Iterable, Iterator, List, Mapping, Optional

from .logger import get_logger
from .note_types import TargetNote
from .note_utils import note_to_frequency

logger = get_logger(__name__)

CHROMATIC = "chromatic"

# Half-width of the acceptance window as a share of the reference frequency
STRING_WINDOW_RATIO = 0.15
CHROMATIC_WINDOW_RATIO = 0.06

# Semitone spelling used for chromatic target ids
CHROMATIC_NOTE_NAMES: List[str] = ["C", "C#", "D", "Eb", "E", "F", "F#", "G", "Ab", "A", "Bb", "B"]

INSTRUMENTS: Dict[str, Dict] = {
    "guitar": {
        "name": "Guitar (6 String)",
        "tunings": {
            "Standard": ["E2", "A2", "D3", "G3", "B3", "E4"],
            "Drop D": ["D2", "A2", "D3", "G3", "B3", "E4"],
            "Open D": ["D2", "A2", "D3", "F#3", "A3", "D4"],
            "Open G": ["D2", "G2", "D3", "G3", "B3", "D4"],
            "DADGAD": ["D2", "A2", "D3", "G3", "A3", "D4"],
            "Half Step Down": ["Eb2", "Ab2", "Db3", "Gb3", "Bb3", "Eb4"],
        },
    },
    "bass": {
        "name": "Bass (4 String)",
        "tunings": {
            "Standard": ["E1", "A1", "D2", "G2"],
            "Drop D": ["D1", "A1", "D2", "G2"],
            "Half Step Down": ["Eb1", "Ab1", "Db2", "Gb2"],
        },
    },
    "ukulele": {
        "name": "Ukulele",
        "tunings": {
            "Standard (GCEA)": ["G4", "C4", "E4", "A4"],
            "D Tuning (ADF#B)": ["A4", "D4", "F#4", "B4"],
            "Low G": ["G3", "C4", "E4", "A4"],
        },
    },
    "violin": {
        "name": "Violin Family",
        "tunings": {
            "Violin": ["G3", "D4", "A4", "E5"],
            "Viola": ["C3", "G3", "D4", "A4"],
            "Cello": ["C2", "G2", "D3", "A3"],
        },
    },
    "folk": {
        "name": "Folk Instruments",
        "tunings": {
            "Mandolin": ["G3", "D4", "A4", "E5"],
            "Banjo (5-String)": ["G4", "D3", "G3", "B3", "D4"],
            "Balalaika": ["E4", "E4", "A4"],
            "Cavaquinho": ["D4", "G4", "B4", "D5"],
        },
    },
}

# Hand-set windows for standard guitar tuning
DEFAULT_GUITAR_WINDOWS = [
    ("E2", 82.41, 70.0, 95.0),
    ("A2", 110.00, 95.0, 125.0),
    ("D3", 146.83, 130.0, 165.0),
    ("G3", 196.00, 175.0, 215.0),
    ("B3", 246.94, 225.0, 270.0),
    ("E4", 329.63, 300.0, 360.0),
]


class TargetNoteSet(Mapping[str, TargetNote]):
    """Read-only mapping of note id to TargetNote.

    Insertion order is kept only to break ties deterministically.
    """

    def __init__(self, targets: Iterable[TargetNote] = (), name: str = ""):
        self.name = name
        self._targets: Dict[str, TargetNote] = {}
        for target in targets:
            if target.id in self._targets:
                logger.debug(f"Duplicate target {target.id} in {name or 'set'}, keeping first")
                continue
            self._targets[target.id] = target

    def __getitem__(self, target_id: str) -> TargetNote:
        return self._targets[target_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._targets)

    def __len__(self) -> int:
        return len(self._targets)

    def __repr__(self) -> str:
        return f"TargetNoteSet({self.name!r}, {list(self._targets)})"


def window_target(note_name: str, window_ratio: float) -> TargetNote:
    """TargetNote at the equal-tempered pitch of ``note_name`` with a +/- ratio window."""
    freq = note_to_frequency(note_name)
    return TargetNote(note_name, freq, freq * (1 - window_ratio), freq * (1 + window_ratio))


def build_target_set(
    notes: Iterable[str], window_ratio: float = STRING_WINDOW_RATIO, name: str = ""
) -> TargetNoteSet:
    """Build a set of string targets from note names.

    Raises:
        ValueError: If a note name is invalid or the ratio is outside (0, 1)
    """
    if not 0 < window_ratio < 1:
        raise ValueError(f"window_ratio must be between 0 and 1, got {window_ratio}")
    return TargetNoteSet((window_target(n, window_ratio) for n in notes), name=name)


def build_chromatic_set(
    octaves: Iterable[int] = range(1, 7), window_ratio: float = CHROMATIC_WINDOW_RATIO
) -> TargetNoteSet:
    """Every semitone of the given octaves. Neighbouring windows overlap."""
    notes = [f"{n}{octave}" for octave in octaves for n in CHROMATIC_NOTE_NAMES]
    return build_target_set(notes, window_ratio, name="Chromatic")


def default_target_set() -> TargetNoteSet:
    """Standard guitar tuning with hand-set windows."""
    return TargetNoteSet(
        (TargetNote(*row) for row in DEFAULT_GUITAR_WINDOWS), name="Standard"
    )


def get_tuning(instrument: str, tuning_name: Optional[str] = None) -> TargetNoteSet:
    """Look up a preset tuning, or the chromatic set for ``"chromatic"``.

    Args:
        instrument: Instrument key, e.g. 'guitar', or 'chromatic'
        tuning_name: Tuning within the instrument; defaults to its first tuning

    Raises:
        ValueError: If the instrument or tuning is unknown
    """
    if instrument == CHROMATIC:
        return build_chromatic_set()

    if instrument not in INSTRUMENTS:
        raise ValueError(
            f"Unknown instrument {instrument!r}; choose from {sorted(INSTRUMENTS)} or {CHROMATIC!r}"
        )
    tunings = INSTRUMENTS[instrument]["tunings"]
    if tuning_name is None:
        tuning_name = next(iter(tunings))
    if tuning_name not in tunings:
        raise ValueError(
            f"Unknown tuning {tuning_name!r} for {instrument}; choose from {list(tunings)}"
        )

    target_set = build_target_set(tunings[tuning_name], name=tuning_name)
    logger.info(f"Loaded {instrument} tuning {tuning_name}: {' '.join(tunings[tuning_name])}")
    return target_set


def parse_tuning_spec(spec: str) -> TargetNoteSet:
    """Parse 'instrument', 'instrument:tuning' or 'chromatic' into a target set."""
    instrument, _, tuning_name = spec.partition(":")
    return get_tuning(instrument.strip().lower(), tuning_name.strip() or None)
