from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

_TRUTHY = ("1", "true", "yes", "on")


class BusConfig(BaseModel):
    """Engine behavior switches loaded from file + env overrides."""

    # What happens to mutations queued by callbacks that ran before another
    # callback raised: replay them once the dispatch unwinds, or drop them.
    replay_deferred_on_error: bool = True
    record_history: bool = True
    log_level: LogLevel = "WARNING"


class ConfigManager:
    """Load configuration from an optional JSON file with environment overrides.

    Precedence: default < config file < environment variables.
    A missing file is not an error. A file that does not parse, or holds values
    that fail validation, is logged and ignored. Bad environment values still raise.
    """

    env_path_key = "SIGNAL_BUS_CONFIG_PATH"

    def __init__(self, path: Optional[str | Path] = None) -> None:
        self.path = Path(path) if path is not None else None

    def _resolve_path(self) -> Optional[Path]:
        raw = os.getenv(self.env_path_key)
        if raw and raw.strip():
            return Path(raw.strip())
        return self.path

    def _read_file(self, cfg_path: Path) -> dict:
        try:
            data = json.loads(cfg_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable config file %s: %s", cfg_path, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring config file %s: top level must be an object", cfg_path)
            return {}
        try:
            BusConfig.model_validate(data)
        except ValidationError as exc:
            logger.warning("Ignoring config file %s: %s", cfg_path, exc)
            return {}
        return data

    def load(self) -> BusConfig:
        data: dict = {}

        cfg_path = self._resolve_path()
        if cfg_path is not None and cfg_path.exists():
            data = self._read_file(cfg_path)

        for key in ("replay_deferred_on_error", "record_history"):
            raw = os.getenv(f"SIGNAL_BUS_{key.upper()}")
            if raw is None or raw.strip() == "":
                continue
            data[key] = raw.strip().lower() in _TRUTHY

        level = os.getenv("SIGNAL_BUS_LOG_LEVEL")
        if level and level.strip():
            data["log_level"] = level.strip().upper()

        return BusConfig.model_validate(data)
