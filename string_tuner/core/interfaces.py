"""Defines the frame-source interface consumed by the tuner."""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Callable

import numpy as np


class IAudioProvider(ABC):
    """Interface for anything that supplies fixed-size blocks of mono samples."""

    @abstractmethod
    def start(self, callback: Callable[[np.ndarray, float], None]) -> None:
        """Start delivering frames as ``callback(samples, timestamp)``."""
        pass

    @abstractmethod
    def stop(self) -> None:
        """Stop delivering frames."""
        pass

    @property
    @abstractmethod
    def sample_rate(self) -> int:
        """The sample rate of the delivered frames."""
        pass
