"""Configuration, logging and performance utilities."""
from .config import Config, ConfigError, DetectorConfig
from .logger import setup_logging, TouchLogger, log_timing
from .performance import PerformanceMonitor

__all__ = [
    "Config",
    "ConfigError",
    "DetectorConfig",
    "setup_logging",
    "TouchLogger",
    "log_timing",
    "PerformanceMonitor",
]
