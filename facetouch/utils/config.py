"""
Centralized configuration manager.
Loads YAML configs and provides typed access with defaults.

Two layers:
    - Config: singleton holding the raw YAML tree, dotted-path access and
      schema type checks that only warn
    - DetectorConfig: typed, validated detector settings; invalid values
      raise ConfigError once, at construction or update time
"""

import os
import math
import logging
from dataclasses import dataclass, asdict, fields, replace as dc_replace

import yaml

logger = logging.getLogger(__name__)

_BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
_CONFIG_DIR = os.path.join(_BASE_DIR, "config")

PROXIMITY_STRATEGIES = ("brute_force", "kdtree")

# Schema: sections and their expected types
_CONFIG_SCHEMA = {
    "detector": {
        "margin": float,
        "front_threshold": float,
        "side_threshold": float,
        "debounce_window": int,
        "history_retention_sec": float,
        "proximity_strategy": str,
        "search_radius": float,
        "frame_timeout_sec": float,
        "depth_boost": float,
        "depth_steepness": float,
        "depth_offset": float,
    },
    "performance": {
        "metrics_window": int,
    },
    "logging": {
        "level": str,
    },
}


# Numeric detector fields and their lower bound (None: any finite value)
_NUMERIC_FIELDS = {
    "margin": 0,
    "front_threshold": 0,
    "side_threshold": 0,
    "history_retention_sec": 0,
    "search_radius": 0,
    "frame_timeout_sec": 0,
    "depth_boost": 0,
    "depth_steepness": None,
    "depth_offset": None,
}


class ConfigError(ValueError):
    """Raised for configuration values the detector cannot run with."""


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base dict."""
    merged = base.copy()
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


@dataclass(frozen=True)
class DetectorConfig:
    """Detector configuration."""
    margin: float = 10.0                 # Face box X inflation (toward the ears)
    front_threshold: float = 10.0        # Touch distance when hand is in front of face
    side_threshold: float = 30.0         # Touch distance when hand is at the side
    debounce_window: int = 2             # Consecutive frames required
    history_retention_sec: float = 3600.0
    proximity_strategy: str = "brute_force"
    search_radius: float = 30.0          # kdtree only
    frame_timeout_sec: float = 0.3       # Delay between frames in the run loop
    depth_boost: float = 35.0            # Max Z added to a hand in front of the face
    depth_steepness: float = 32.0
    depth_offset: float = 25.0

    def __post_init__(self):
        self.validate()

    @classmethod
    def from_dict(cls, config: dict) -> "DetectorConfig":
        """Create config from dictionary. Unknown keys are ignored."""
        known = {f.name for f in fields(cls)}
        unknown = set(config) - known
        if unknown:
            logger.warning("Ignoring unknown detector config keys: %s", sorted(unknown))
        return cls(**{k: v for k, v in config.items() if k in known})

    def to_dict(self) -> dict:
        return asdict(self)

    def replace(self, **changes) -> "DetectorConfig":
        """Return a validated copy with ``changes`` applied."""
        return dc_replace(self, **changes)

    def validate(self):
        """Check every field, raising ConfigError on the first bad one."""
        window = self.debounce_window
        if isinstance(window, bool) or not isinstance(window, int) or window < 1:
            raise ConfigError(f"debounce_window must be an int >= 1, got {window!r}")

        for name, minimum in _NUMERIC_FIELDS.items():
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
                raise ConfigError(f"{name} must be a finite number, got {value!r}")
            if minimum is not None and value < minimum:
                raise ConfigError(f"{name} must be >= {minimum}, got {value!r}")

        if self.search_radius <= 0:
            raise ConfigError(f"search_radius must be > 0, got {self.search_radius!r}")

        if self.proximity_strategy not in PROXIMITY_STRATEGIES:
            raise ConfigError(
                f"proximity_strategy must be one of {PROXIMITY_STRATEGIES}, "
                f"got {self.proximity_strategy!r}"
            )


class Config:
    """Singleton configuration manager."""

    _instance = None
    _data = {}

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def load(self, config_path=None):
        """Load configuration from a YAML file."""
        config_path = config_path or os.path.join(_CONFIG_DIR, "config.yaml")

        try:
            with open(config_path, "r") as f:
                self._data = yaml.safe_load(f) or {}
            logger.info("Loaded config from %s", config_path)
        except FileNotFoundError:
            logger.warning("Config file not found: %s, using defaults", config_path)
            self._data = {}

        self._validate()

        return self

    def load_dict(self, data: dict):
        """Merge a plain dict over the loaded configuration."""
        self._data = _deep_merge(self._data, data or {})
        self._validate()
        return self

    def _validate(self):
        """Validate config fields against schema."""
        warnings = []
        for section_name, fields_ in _CONFIG_SCHEMA.items():
            section = self._data.get(section_name)
            if section is None:
                warnings.append(f"Missing config section: '{section_name}'")
                continue
            if not isinstance(section, dict):
                warnings.append(f"Section '{section_name}' should be a dict, got {type(section).__name__}")
                continue
            for field_name, expected_type in fields_.items():
                if field_name in section:
                    value = section[field_name]
                    # Allow int where float is expected
                    if expected_type is float and isinstance(value, (int, float)):
                        continue
                    if not isinstance(value, expected_type):
                        warnings.append(
                            f"{section_name}.{field_name}: expected {expected_type.__name__}, "
                            f"got {type(value).__name__} ({value!r})"
                        )

        if warnings:
            for w in warnings:
                logger.warning("Config validation: %s", w)
        else:
            logger.debug("Config validation passed")

    def get(self, key_path: str, default=None):
        """Get nested config value using dot notation: 'detector.margin'."""
        keys = key_path.split(".")
        value = self._data
        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default
        return value

    def get_section(self, section: str) -> dict:
        """Get an entire config section."""
        return self._data.get(section, {}) or {}

    def detector_config(self) -> DetectorConfig:
        """Build the validated detector settings from the 'detector' section."""
        return DetectorConfig.from_dict(self.detector)

    @property
    def detector(self) -> dict:
        return self.get_section("detector")

    @property
    def performance(self) -> dict:
        return self.get_section("performance")

    @property
    def log_settings(self) -> dict:
        return self.get_section("logging")

    @property
    def base_dir(self) -> str:
        return _BASE_DIR

    @classmethod
    def reset(cls):
        """Reset singleton instance (for testing)."""
        cls._instance = None
        cls._data = {}
