from .silence_gate import SilenceGate
from .pitch_estimator import PitchEstimator
from .stability_tracker import TuningStabilityTracker

__all__ = ["SilenceGate", "PitchEstimator", "TuningStabilityTracker"]
