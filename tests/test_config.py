"""
Tests for Configuration
========================
"""

import pytest
from dataclasses import FrozenInstanceError
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from facetouch.utils.config import Config, DetectorConfig, ConfigError


@pytest.fixture
def config():
    Config.reset()
    yield Config()
    Config.reset()


class TestDetectorConfig:
    """Test suite for DetectorConfig."""

    def test_default_values(self):
        cfg = DetectorConfig()
        assert cfg.margin == 10.0
        assert cfg.front_threshold == 10.0
        assert cfg.side_threshold == 30.0
        assert cfg.debounce_window == 2
        assert cfg.history_retention_sec == 3600.0
        assert cfg.proximity_strategy == "brute_force"

    def test_from_dict(self):
        cfg = DetectorConfig.from_dict({
            "margin": 5,
            "debounce_window": 3,
            "proximity_strategy": "kdtree",
        })
        assert cfg.margin == 5
        assert cfg.debounce_window == 3
        assert cfg.proximity_strategy == "kdtree"
        assert cfg.side_threshold == 30.0  # Default

    def test_from_dict_ignores_unknown(self):
        cfg = DetectorConfig.from_dict({"render_canvas": True, "margin": 2.0})
        assert cfg.margin == 2.0

    @pytest.mark.parametrize("changes", [
        {"debounce_window": 0},
        {"debounce_window": -3},
        {"debounce_window": 1.5},
        {"history_retention_sec": -1},
        {"front_threshold": -0.1},
        {"margin": "wide"},
        {"proximity_strategy": "octree"},
        {"search_radius": 0},
        {"frame_timeout_sec": -1},
        {"depth_steepness": "32"},
        {"depth_offset": None},
        {"depth_boost": -5.0},
        {"front_threshold": float("nan")},
        {"search_radius": float("nan")},
        {"margin": float("inf")},
        {"search_radius": True},
        {"side_threshold": False},
    ])
    def test_invalid_values(self, changes):
        with pytest.raises(ConfigError):
            DetectorConfig(**changes)

    def test_replace_validates(self):
        cfg = DetectorConfig()
        assert cfg.replace(debounce_window=4).debounce_window == 4
        with pytest.raises(ConfigError):
            cfg.replace(debounce_window=0)
        assert cfg.debounce_window == 2

    def test_negative_depth_constants_allowed(self):
        cfg = DetectorConfig(depth_steepness=-2.0, depth_offset=-1.0)
        assert cfg.depth_offset == -1.0

    def test_frozen(self):
        cfg = DetectorConfig()
        with pytest.raises(FrozenInstanceError):
            cfg.margin = -1000.0
        assert cfg.margin == 10.0

    def test_round_trip_dict(self):
        cfg = DetectorConfig(margin=3.0)
        assert DetectorConfig.from_dict(cfg.to_dict()) == cfg

    def test_config_error_is_value_error(self):
        assert issubclass(ConfigError, ValueError)


class TestConfig:
    """Test suite for the YAML config manager."""

    def test_singleton(self, config):
        assert Config() is config

    def test_load_yaml(self, config, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "detector:\n"
            "  margin: 4\n"
            "  debounce_window: 3\n"
            "logging:\n"
            "  level: DEBUG\n"
        )
        config.load(str(path))
        assert config.get("detector.margin") == 4
        assert config.get("logging.level") == "DEBUG"
        assert config.get("detector.missing", "x") == "x"

        detector = config.detector_config()
        assert detector.debounce_window == 3
        assert detector.margin == 4
        assert detector.side_threshold == 30.0

    def test_missing_file_uses_defaults(self, config, tmp_path):
        config.load(str(tmp_path / "nope.yaml"))
        assert config.get_section("detector") == {}
        assert config.detector_config() == DetectorConfig()

    def test_invalid_detector_section(self, config, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("detector:\n  debounce_window: 0\n")
        config.load(str(path))
        with pytest.raises(ConfigError):
            config.detector_config()

    def test_load_dict_merges(self, config):
        config.load_dict({"detector": {"margin": 1.0, "side_threshold": 20.0}})
        config.load_dict({"detector": {"margin": 2.0}})
        assert config.get("detector.margin") == 2.0
        assert config.get("detector.side_threshold") == 20.0

    def test_shipped_config_is_valid(self, config):
        config.load()
        assert config.detector_config() == DetectorConfig()
