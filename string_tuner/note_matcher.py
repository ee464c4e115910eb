from typing import Iterable, Mapping, Optional

from .logger import get_logger
from .note_types import ResolvedMatch, TargetNote
from .note_utils import cents

# Get logger for this module
logger = get_logger(__name__)


class NoteResolver:
    """
    Attributes a detected frequency to a target note.

    Manual mode only accepts frequencies inside the pinned target's window.
    Auto mode prefers a containing window and otherwise falls back to the
    nearest reference frequency, so a non-empty set always resolves.
    """

    @staticmethod
    def _match(frequency: float, target: TargetNote, in_window: bool) -> ResolvedMatch:
        return ResolvedMatch(
            target_id=target.id,
            reference_freq=target.reference_freq,
            cents=cents(frequency, target.reference_freq),
            in_window=in_window,
        )

    @classmethod
    def resolve_manual(cls, frequency: float, target: TargetNote) -> Optional[ResolvedMatch]:
        """Match against a single pinned target.

        Args:
            frequency: Detected frequency in Hz
            target: The pinned target note
        Returns:
            ResolvedMatch if the frequency is inside the window (edges included), else None
        """
        if not target.contains(frequency):
            logger.debug(
                f"{frequency:.2f} Hz outside {target.id} window "
                f"[{target.min_freq:.2f}, {target.max_freq:.2f}]"
            )
            return None
        return cls._match(frequency, target, in_window=True)

    @classmethod
    def resolve_auto(cls, frequency: float, targets: Iterable[TargetNote]) -> Optional[ResolvedMatch]:
        """Match against every target in a set.

        Among windows containing the frequency, the closest reference wins.
        If none contains it, the closest reference overall wins. Ties keep
        the earlier target.

        Args:
            frequency: Detected frequency in Hz
            targets: Target notes to search
        Returns:
            ResolvedMatch, or None only when ``targets`` is empty
        """
        if isinstance(targets, Mapping):
            targets = targets.values()

        containing: Optional[TargetNote] = None
        nearest: Optional[TargetNote] = None
        for target in targets:
            distance = abs(frequency - target.reference_freq)
            if nearest is None or distance < abs(frequency - nearest.reference_freq):
                nearest = target
            if target.contains(frequency) and (
                containing is None
                or distance < abs(frequency - containing.reference_freq)
            ):
                containing = target

        if containing is not None:
            return cls._match(frequency, containing, in_window=True)
        if nearest is not None:
            logger.debug(f"{frequency:.2f} Hz in no window, nearest is {nearest.id}")
            return cls._match(frequency, nearest, in_window=False)
        return None
