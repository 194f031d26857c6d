"""Configuration for calckit.

Settings live in ``.calckit/config.json`` under the project path:

    {
      "history": {
        "live_cap": 10,
        "persisted_cap": 100,
        "persist": true,
        "file": "history.log"
      }
    }

Every key is optional; anything missing or invalid falls back to its default.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path

from .history import LIVE_HISTORY_CAP, PERSISTED_HISTORY_CAP

__all__ = ["CONFIG_DIR", "CalculatorConfig", "load_config", "save_config"]

logger = logging.getLogger(__name__)

CONFIG_DIR = ".calckit"
CONFIG_FILE = "config.json"


@dataclass
class CalculatorConfig:
    """Calculator configuration options."""

    live_history_cap: int = LIVE_HISTORY_CAP
    persisted_history_cap: int = PERSISTED_HISTORY_CAP
    persist_history: bool = True
    history_file: str = "history.log"

    def history_path(self, project_path: str = ".") -> Path:
        """Resolve the history file relative to the config directory."""
        return Path(project_path) / CONFIG_DIR / self.history_file

    def to_dict(self) -> dict:
        return {
            "history": {
                "live_cap": self.live_history_cap,
                "persisted_cap": self.persisted_history_cap,
                "persist": self.persist_history,
                "file": self.history_file,
            }
        }


def _positive_int(section: dict, key: str, default: int) -> int:
    value = section.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        logger.warning("Ignoring invalid history.%s=%r; using %d", key, value, default)
        return default
    return value


def load_config(project_path: str = ".") -> CalculatorConfig:
    """Load configuration from the project's config file.

    Args:
        project_path: Path to project root.

    Returns:
        CalculatorConfig with settings from config.json or defaults.
    """
    config_file = Path(project_path) / CONFIG_DIR / CONFIG_FILE
    defaults = CalculatorConfig()

    if not config_file.exists():
        return defaults

    try:
        with open(config_file, encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, IOError) as e:
        logger.warning("Could not read %s: %s; using defaults", config_file, e)
        return defaults

    if not isinstance(data, dict):
        logger.warning("Config root in %s is not an object; using defaults", config_file)
        return defaults

    history = data.get("history", {})
    if not isinstance(history, dict):
        logger.warning("Config section 'history' is not an object; using defaults")
        history = {}

    return CalculatorConfig(
        live_history_cap=_positive_int(history, "live_cap", defaults.live_history_cap),
        persisted_history_cap=_positive_int(
            history, "persisted_cap", defaults.persisted_history_cap
        ),
        persist_history=bool(history.get("persist", defaults.persist_history)),
        history_file=str(history.get("file", defaults.history_file)),
    )


def save_config(project_path: str, config: CalculatorConfig) -> Path:
    """Write ``config`` to the project's config file and return its path."""
    config_file = Path(project_path) / CONFIG_DIR / CONFIG_FILE
    config_file.parent.mkdir(parents=True, exist_ok=True)
    with open(config_file, "w", encoding="utf-8") as f:
        json.dump(config.to_dict(), f, indent=2)
    return config_file
