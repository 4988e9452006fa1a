import os
from pathlib import Path
from typing import Optional

import yaml

from .errors import SettingsError

ENV_CONFIG_PATH = "APPENDLOG_CONFIG"

DEFAULT_CONFIG = {
    "extensions": ["txt"],
    "mode": "append",
    "encoding": "utf-8",
    "max_attempts": 9999,
}


def default_config_path() -> Optional[Path]:
    env = os.environ.get(ENV_CONFIG_PATH)
    return Path(env) if env else None


def load_config(path: Path) -> dict:
    # If config file missing → return defaults
    if not path.exists():
        return DEFAULT_CONFIG.copy()

    with path.open("r", encoding="utf-8") as f:
        try:
            user_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise SettingsError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(user_config, dict):
        raise SettingsError(f"Config {path} must be a mapping, got {type(user_config).__name__}")

    # Merge defaults with user config
    final_config = DEFAULT_CONFIG.copy()
    final_config.update(user_config)

    return final_config
