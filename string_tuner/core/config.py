"""Configuration management for String Tuner components."""

from dataclasses import dataclass, asdict, fields
from typing import Dict, Any, Optional, Union
import json
import os
from pathlib import Path

from ..logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class TunerConfig:
    """Settings for one tuning session. Immutable once the session starts."""

    buffer_size: int = 4096  # Samples per analysed frame
    tuned_tolerance_cents: float = 5.0  # Within this many cents counts as tuned
    stable_duration_ms: float = 600.0  # Dwell needed before confirming
    silence_rms: float = 0.015  # Below this RMS the frame is "too quiet"

    # Declared bounds that the estimator does not consult. Kept so persisted
    # settings round-trip; see DESIGN.md.
    confidence_threshold: float = 0.9
    min_frequency: float = 60.0
    max_frequency: float = 1000.0

    def __post_init__(self):
        # Values read from JSON may arrive as strings or null
        for f in fields(self):
            value = getattr(self, f.name)
            try:
                number = float(value)
            except (TypeError, ValueError):
                raise ValueError(f"{f.name} must be a number, got {value!r}") from None
            object.__setattr__(self, f.name, number)

        if not self.buffer_size.is_integer() or self.buffer_size <= 0:
            raise ValueError(f"buffer_size must be a positive integer, got {self.buffer_size}")
        for name in ("tuned_tolerance_cents", "stable_duration_ms", "silence_rms"):
            value = getattr(self, name)
            if not value > 0:
                raise ValueError(f"{name} must be positive, got {value}")
        if self.min_frequency >= self.max_frequency:
            raise ValueError(
                f"min_frequency ({self.min_frequency}) must be below "
                f"max_frequency ({self.max_frequency})"
            )
        object.__setattr__(self, "buffer_size", int(self.buffer_size))

    def within_frequency_bounds(self, frequency: float) -> bool:
        """Check the advisory min/max frequency bounds. Not applied by the core."""
        return self.min_frequency <= frequency <= self.max_frequency

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "TunerConfig":
        """Build a config from a dict, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = set(values) - known
        if unknown:
            logger.warning(f"Ignoring unknown configuration keys: {sorted(unknown)}")
        return cls(**{k: v for k, v in values.items() if k in known})


class ConfigManager:
    """Loads tuner settings from a JSON file, falling back to defaults."""

    CONFIG_NAME = "tuner"

    def __init__(self, config_dir: Optional[Union[str, Path]] = None):
        """Initialize the configuration manager.

        Args:
            config_dir: Directory holding configuration files, or None to use
                ~/.config/string_tuner
        """
        if config_dir is None:
            home = os.path.expanduser("~")
            config_dir = os.path.join(home, ".config", "string_tuner")

        self.config_dir = Path(config_dir)
        self.default_config = TunerConfig().to_dict()
        self._config = self.load_config(self.config_path, self.default_config)

    @property
    def config_path(self) -> Path:
        return self.config_dir / f"{self.CONFIG_NAME}.json"

    def load_config(self, config_file: Path, default_config: Dict[str, Any]) -> Dict[str, Any]:
        """Load configuration from file, filling in missing keys from defaults.

        Args:
            config_file: Path to the JSON file
            default_config: Default configuration to use if the file is absent or unreadable

        Returns:
            Configuration dictionary
        """
        if not config_file.exists():
            logger.debug(f"No configuration at {config_file}, using defaults")
            return default_config.copy()

        try:
            with open(config_file, "r") as f:
                config = json.load(f)
            if not isinstance(config, dict):
                raise ValueError("top-level JSON value must be an object")
            logger.info(f"Loaded configuration from {config_file}")
        except (OSError, ValueError) as e:
            logger.error(f"Error loading configuration from {config_file}: {e}")
            return default_config.copy()

        # Ensure all default keys are present
        for key, value in default_config.items():
            config.setdefault(key, value)
        return config

    def save_config(self, config: Optional[Dict[str, Any]] = None) -> bool:
        """Save configuration to file.

        Returns:
            True if saved successfully, False otherwise
        """
        config = self._config if config is None else config
        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, "w") as f:
                json.dump(config, f, indent=2)
            logger.info(f"Saved configuration to {self.config_path}")
            return True
        except OSError as e:
            logger.error(f"Error saving configuration to {self.config_path}: {e}")
            return False

    def get_config(self) -> Dict[str, Any]:
        return self._config.copy()

    def update_config(self, updates: Dict[str, Any]) -> TunerConfig:
        """Apply overrides in memory and return the resulting validated config.

        Raises:
            ValueError: If the resulting values are invalid
        """
        candidate = {**self._config, **updates}
        tuner_config = TunerConfig.from_dict(candidate)
        self._config = candidate
        return tuner_config

    def get_tuner_config(self, **overrides) -> TunerConfig:
        """Build a validated TunerConfig, applying any non-None overrides.

        Raises:
            ValueError: If the stored or overridden values are invalid
        """
        values = self.get_config()
        values.update({k: v for k, v in overrides.items() if v is not None})
        return TunerConfig.from_dict(values)

    def reset_config(self) -> bool:
        """Reset configuration to default and save it."""
        self._config = self.default_config.copy()
        return self.save_config()
