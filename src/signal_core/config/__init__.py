"""Configuration system."""

from signal_core.config.loader import load_config
from signal_core.config.schema import AppConfig

__all__ = ["AppConfig", "load_config"]
