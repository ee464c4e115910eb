"""Event system for String Tuner components."""

from typing import Dict, List, Callable, Any
from enum import Enum, auto

from ..logger import get_logger

logger = get_logger(__name__)


class TuningEventType(Enum):
    """Event types published by a tuning session."""

    TUNED_CONFIRMED = auto()
    TARGET_CHANGED = auto()


class EventEmitter:
    """Minimal synchronous event emitter."""

    def __init__(self):
        self._listeners: Dict[Any, List[Callable]] = {}

    def on(self, event_type: Any, callback: Callable) -> None:
        """Register a callback for an event type.

        Args:
            event_type: Event type to listen for
            callback: Function to call when the event occurs
        """
        listeners = self._listeners.setdefault(event_type, [])
        if callback not in listeners:
            listeners.append(callback)
            logger.debug(f"Added listener for event {event_type}")

    def off(self, event_type: Any, callback: Callable) -> None:
        listeners = self._listeners.get(event_type, [])
        if callback in listeners:
            listeners.remove(callback)

    def emit(self, event_type: Any, *args, **kwargs) -> None:
        """Emit an event.

        Listener exceptions are logged and do not stop other listeners.
        """
        for callback in list(self._listeners.get(event_type, [])):
            try:
                callback(*args, **kwargs)
            except Exception as e:
                logger.error(f"Error in event listener for {event_type}: {e}")

    def clear(self) -> None:
        """Remove all event listeners."""
        self._listeners = {}
        logger.debug("Cleared all event listeners")


class TuningEvents:
    """Event emitter specifically for tuning session events."""

    def __init__(self):
        self._emitter = EventEmitter()

    def on_tuned_confirmed(self, callback: Callable) -> None:
        """Register a callback fired once per confirmed in-tune streak.

        Args:
            callback: Called with the confirmed ResolvedMatch
        """
        self._emitter.on(TuningEventType.TUNED_CONFIRMED, callback)

    def on_target_changed(self, callback: Callable) -> None:
        """Register a callback fired when the session's target or mode changes.

        Args:
            callback: Called with the new target id, or None for auto mode
        """
        self._emitter.on(TuningEventType.TARGET_CHANGED, callback)

    def emit_tuned_confirmed(self, match) -> None:
        self._emitter.emit(TuningEventType.TUNED_CONFIRMED, match)

    def emit_target_changed(self, target_id) -> None:
        self._emitter.emit(TuningEventType.TARGET_CHANGED, target_id)

    def clear(self) -> None:
        """Remove all event listeners."""
        self._emitter.clear()
