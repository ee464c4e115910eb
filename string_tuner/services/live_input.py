"""Live microphone input. Requires the PortAudio library used by sounddevice."""

import sounddevice as sd
import numpy as np
import time
from typing import Callable, Optional

from ..core.interfaces import IAudioProvider
from ..logger import get_logger

logger = get_logger(__name__)


class LiveAudioProvider(IAudioProvider):
    """Provides overlapping frames from an input device using sounddevice.

    The device is read in blocks of ``hop_size`` samples; each block is
    appended to a rolling window of ``buffer_size`` samples, and the full
    window is handed to the callback once it has filled.
    """

    def __init__(
        self,
        buffer_size: int,
        device_id: Optional[int] = None,
        sample_rate: int = 44100,
        hop_size: int = 1024,
        channels: int = 1,
    ):
        if hop_size <= 0 or hop_size > buffer_size:
            raise ValueError(f"hop_size must be in (0, {buffer_size}], got {hop_size}")
        self._device_id = device_id
        self._sample_rate = sample_rate
        self._buffer_size = buffer_size
        self._hop_size = hop_size
        self._channels = channels
        self._window = np.zeros(buffer_size, dtype=np.float32)
        self._filled = 0
        self._stream: Optional[sd.InputStream] = None
        self._on_frame: Optional[Callable[[np.ndarray, float], None]] = None

    def start(self, callback: Callable[[np.ndarray, float], None]) -> None:
        self._on_frame = callback
        self._window[:] = 0
        self._filled = 0
        self._stream = sd.InputStream(
            device=self._device_id,
            channels=self._channels,
            samplerate=self._sample_rate,
            blocksize=self._hop_size,
            callback=self._audio_callback,
            dtype="float32",
        )
        self._stream.start()
        logger.info(
            f"Listening on device {self._device_id if self._device_id is not None else 'default'} "
            f"at {self._sample_rate} Hz"
        )

    def stop(self) -> None:
        if self._stream:
            self._stream.stop()
            self._stream.close()
            self._stream = None
            logger.info("Audio input stopped")

    def _audio_callback(
        self, indata: np.ndarray, _frames: int, _time_info, status
    ) -> None:
        """Runs on the audio thread; keep it short."""
        if status:
            logger.warning(f"Audio callback status: {status}")

        # Take the first channel if multi-channel
        block = indata[:, 0] if indata.ndim > 1 else indata
        block = block[-self._buffer_size:]
        self._window = np.roll(self._window, -len(block))
        self._window[-len(block):] = block
        self._filled = min(self._buffer_size, self._filled + len(block))

        if self._on_frame and self._filled == self._buffer_size:
            self._on_frame(self._window.copy(), time.time())

    @property
    def sample_rate(self) -> int:
        return self._sample_rate
