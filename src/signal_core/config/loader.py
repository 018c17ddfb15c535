"""Config loader — reads YAML, applies SIGNAL_* env var overrides."""

from __future__ import annotations

import os
from pathlib import Path

import yaml

from signal_core.config.schema import AppConfig

# env var -> (section, key)
ENV_OVERRIDES = {
    "SIGNAL_LOG_LEVEL": ("logging", "level"),
    "SIGNAL_LOG_FORMAT": ("logging", "format"),
    "SIGNAL_OKX_BASE_URL": ("okx", "base_url"),
}


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load config from a YAML file, then apply env var overrides.

    If *path* is None or the file doesn't exist, returns defaults.
    """
    data: dict = {}
    if path is not None:
        p = Path(path)
        if p.exists():
            with open(p) as f:
                data = yaml.safe_load(f) or {}

    for var, (section, key) in ENV_OVERRIDES.items():
        value = os.environ.get(var)
        if value:
            data.setdefault(section, {})[key] = value

    return AppConfig.model_validate(data)
