import soundfile as sf
import numpy as np
import threading
import time
from typing import Callable, Iterator, Optional

from ..core.interfaces import IAudioProvider
from ..logger import get_logger

logger = get_logger(__name__)


class WavFileAudioProvider(IAudioProvider):
    """Provides frames by reading a sound file with soundfile."""

    def __init__(
        self,
        file_path: str,
        buffer_size: int,
        hop_size: Optional[int] = None,
        gain: float = 1.0,
        realtime: bool = False,
    ):
        self._file_path = file_path
        self._buffer_size = buffer_size
        self._hop_size = hop_size or buffer_size
        self._gain = gain
        self._realtime = realtime
        self._is_running = False
        self._thread: Optional[threading.Thread] = None

        if self._hop_size <= 0:
            raise ValueError(f"hop_size must be positive, got {self._hop_size}")

        with sf.SoundFile(self._file_path) as f:
            self._sample_rate = f.samplerate
            self._channels = f.channels

    @property
    def hop_size(self) -> int:
        return self._hop_size

    def frames(self) -> Iterator[np.ndarray]:
        """Yield mono frames of ``buffer_size`` samples, ``hop_size`` apart.

        A trailing partial frame is dropped.
        """
        data, _ = sf.read(self._file_path, dtype="float32", always_2d=True)
        mono = data[:, 0] if self._channels == 1 else data.mean(axis=1)
        if self._gain != 1.0:
            mono = np.clip(mono * self._gain, -1.0, 1.0)

        for start in range(0, len(mono) - self._buffer_size + 1, self._hop_size):
            yield mono[start:start + self._buffer_size]

    def start(self, callback: Callable[[np.ndarray, float], None]) -> None:
        if self._is_running:
            return

        self._is_running = True
        self._thread = threading.Thread(target=self._stream_data, args=(callback,))
        self._thread.start()

    def stop(self) -> None:
        self._is_running = False
        if self._thread and self._thread is not threading.current_thread():
            self._thread.join()
        self._thread = None

    @property
    def is_running(self) -> bool:
        """Returns True if the provider is currently streaming data."""
        return self._is_running

    def _stream_data(self, callback: Callable[[np.ndarray, float], None]) -> None:
        try:
            for samples in self.frames():
                if not self._is_running:
                    break
                callback(samples, time.time())
                if self._realtime:
                    # Simulate real-time playback speed
                    time.sleep(self._hop_size / self._sample_rate)
        except (OSError, RuntimeError) as e:
            logger.error(f"Error streaming {self._file_path}: {e}")
        finally:
            self._is_running = False

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    @property
    def channels(self) -> int:
        return self._channels
