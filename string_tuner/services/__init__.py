"""Frame sources that feed the tuner.

``live_input`` needs the PortAudio library and is imported on demand.
"""

from .audio_providers import WavFileAudioProvider

__all__ = ["WavFileAudioProvider"]
