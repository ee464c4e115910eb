"""Utility functions for working with musical notes and frequencies."""

import re
import numpy as np
from typing import Dict, List

from .logger import get_logger

# Get logger for this module
logger = get_logger(__name__)

# Standard reference: A4 = 440Hz
A4_FREQ = 440.0
A4_MIDI = 69

NOTE_NAMES_SHARPS: List[str] = [
    "C",
    "C#",
    "D",
    "D#",
    "E",
    "F",
    "F#",
    "G",
    "G#",
    "A",
    "A#",
    "B",
]
NOTE_NAMES_FLATS: List[str] = ["C", "Db", "D", "Eb", "E", "F", "Gb", "G", "Ab", "A", "Bb", "B"]

FLAT_TO_SHARP: Dict[str, str] = {
    "Db": "C#",
    "Eb": "D#",
    "Gb": "F#",
    "Ab": "G#",
    "Bb": "A#",
}

# Note letter with optional accidental, then a (possibly negative) octave
NOTE_PATTERN = re.compile(r"^([A-Ga-g])([#b]?)(-?\d+)$")


def cents(current: float, reference: float) -> float:
    """Signed distance from ``reference`` to ``current`` in cents.

    100 cents is one equal-tempered semitone and 1200 cents one octave.

    Raises:
        ValueError: If either frequency is not positive
    """
    if current <= 0 or reference <= 0:
        raise ValueError(
            f"Cents are undefined for non-positive frequencies: {current}, {reference}"
        )
    return float(1200.0 * np.log2(current / reference))


def note_to_midi(note_name: str) -> int:
    """Convert an SPN note name such as 'A4', 'C#3' or 'Eb2' to a MIDI number.

    Raises:
        ValueError: If the note name cannot be parsed
    """
    match = NOTE_PATTERN.match(note_name.strip()) if note_name else None
    if not match:
        raise ValueError(f"Invalid note name: {note_name!r}")

    letter, accidental, octave = match.groups()
    note = letter.upper() + accidental
    note = FLAT_TO_SHARP.get(note, note)
    if note not in NOTE_NAMES_SHARPS:
        # Cb / Fb / E# / B# style spellings
        offset = -1 if accidental == "b" else 1
        index = (NOTE_NAMES_SHARPS.index(letter.upper()) + offset) % 12
        octave_shift = (NOTE_NAMES_SHARPS.index(letter.upper()) + offset) // 12
        return (int(octave) + octave_shift + 1) * 12 + index

    return (int(octave) + 1) * 12 + NOTE_NAMES_SHARPS.index(note)


def midi_to_frequency(midi_number: int) -> float:
    return A4_FREQ * 2.0 ** ((midi_number - A4_MIDI) / 12.0)


def note_to_frequency(note_name: str) -> float:
    """Equal-tempered frequency of a note name, with A4 = 440 Hz.

    Examples:
        >>> round(note_to_frequency('A2'), 2)
        110.0
        >>> round(note_to_frequency('Eb2'), 2)
        77.78
    """
    return midi_to_frequency(note_to_midi(note_name))


def get_note_name(freq: float, use_flats: bool = False) -> str:
    """Convert frequency to note name using Scientific Pitch Notation (SPN).

    Args:
        freq: Frequency in Hz
        use_flats: If True, use flat notes (e.g., 'Bb') instead of sharps (e.g., 'A#')

    Returns:
        Note name with octave in SPN (e.g., 'A4', 'C#4', 'Bb3'), or '---' for
        non-positive frequencies
    """
    if freq <= 0:
        return "---"

    half_steps = round(12 * np.log2(freq / A4_FREQ))
    midi_number = A4_MIDI + half_steps

    # SPN octave calculation (C4 is middle C)
    octave = (midi_number // 12) - 1
    note_idx = midi_number % 12

    names = NOTE_NAMES_FLATS if use_flats else NOTE_NAMES_SHARPS
    return f"{names[note_idx]}{octave}"
