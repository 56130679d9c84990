import json
import os
from datetime import datetime
from pathlib import Path
from typing import Any

from scroll_capture.types.capture_config import CaptureConfig
from scroll_capture.utils.logger import logger
from scroll_capture.utils.slugify import slugify

DEBUG_FOLDER = "debug"
DEBUG_FILENAME_FORMAT = "capture_{source}.jsonl"


def debug_log_path(config: CaptureConfig) -> Path:
    if config.debug_file:
        return Path(config.debug_file)
    return Path(DEBUG_FOLDER) / DEBUG_FILENAME_FORMAT.format(source=slugify(config.source_tag))


def save_capture_log(config: CaptureConfig, log_type: str, data: dict[str, Any]) -> None:
    """Append a debug entry to the run's JSONL file when debug is enabled.

    Args:
        config: Capture configuration (debug flag, source tag, debug_file)
        log_type: Entry type (config, cycle, stop, result)
        data: JSON-serializable payload
    """
    if not config.debug:
        return

    path = debug_log_path(config)
    entry = {
        "timestamp": datetime.now().isoformat(),
        "type": log_type,
        "source": config.source_tag,
        "data": data,
    }

    try:
        os.makedirs(path.parent, exist_ok=True)
        with open(path, "a", encoding="utf-8") as f:
            f.write(json.dumps(entry, default=str) + "\n")
    except OSError as e:
        logger.error(f"Failed to write capture debug log {path}: {e}")
