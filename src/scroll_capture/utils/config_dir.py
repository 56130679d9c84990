import os
from pathlib import Path

from platformdirs import user_config_dir

CONFIG_DIR_NAME = "scroll-capture"
# Overrides the platform config directory (used by tests and CI)
CONFIG_DIR_ENV = "SCROLL_CAPTURE_CONFIG_DIR"


def get_config_dir() -> Path:
    """Get the directory holding session logs and debug output."""
    override = os.environ.get(CONFIG_DIR_ENV)
    config_dir = Path(override) if override else Path(user_config_dir(CONFIG_DIR_NAME))
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir
