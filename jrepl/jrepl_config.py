"""
Settings, file locations and session history for javarepl.

Settings start from defaults, are overridden by an optional YAML file
(`~/.javarepl.yaml`) and finally by `JAVAREPL_*` environment variables.
"""
import logging
import os
import readline
import sys
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)

HISTORY_FILENAME = ".javarepl_history"
STARTUP_FILENAME = ".javarepl"
SETTINGS_FILENAME = ".javarepl.yaml"
LOG_FILENAME = ".javarepl.log"


def home_path(name: str) -> str:
    return os.path.join(os.path.expanduser("~"), name)


@dataclass
class ReplSettings:
    compiler: str = "javac"
    runtime: str = "java"
    # Seconds per external process; None waits forever.
    timeout: Optional[float] = 30.0
    class_name: str = "ReplTmpInstance"
    history_size: int = 500
    history_path: str = field(default_factory=lambda: home_path(HISTORY_FILENAME))
    startup_path: str = field(default_factory=lambda: home_path(STARTUP_FILENAME))
    log_path: str = field(default_factory=lambda: home_path(LOG_FILENAME))


def _coerce_timeout(value: Any) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f"invalid timeout: {value!r}")
    timeout = float(value)
    if timeout <= 0:
        raise ValueError(f"timeout must be positive: {value!r}")
    return timeout


def _apply(settings: ReplSettings, data: Dict[str, Any], source: str):
    for key in ("compiler", "runtime"):
        value = data.get(key)
        if value is None:
            continue
        if isinstance(value, str) and value.strip():
            setattr(settings, key, value.strip())
        else:
            logger.warning("ignoring %s from %s: %r", key, source, value)

    if "timeout" in data:
        try:
            settings.timeout = _coerce_timeout(data["timeout"])
        except (TypeError, ValueError):
            logger.warning("ignoring timeout from %s: %r", source, data["timeout"])

    if "history_size" in data:
        value = data["history_size"]
        if isinstance(value, int) and not isinstance(value, bool) and value > 0:
            settings.history_size = value
        else:
            logger.warning("ignoring history_size from %s: %r", source, value)


def load_settings(path: Optional[str] = None, environ: Optional[Dict[str, str]] = None) -> ReplSettings:
    """Build settings from defaults, the YAML settings file and the environment."""
    settings = ReplSettings()
    path = path or home_path(SETTINGS_FILENAME)
    environ = os.environ if environ is None else environ

    if os.path.exists(path):
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.warning("could not read settings file %s: %s", path, e)
            data = None
        if isinstance(data, dict):
            _apply(settings, data, path)
        elif data is not None:
            logger.warning("settings file %s is not a mapping", path)

    env_data: Dict[str, Any] = {}
    if environ.get("JAVAREPL_JAVAC"):
        env_data["compiler"] = environ["JAVAREPL_JAVAC"]
    if environ.get("JAVAREPL_JAVA"):
        env_data["runtime"] = environ["JAVAREPL_JAVA"]
    if environ.get("JAVAREPL_TIMEOUT"):
        env_data["timeout"] = environ["JAVAREPL_TIMEOUT"]
    _apply(settings, env_data, "environment")
    return settings


def read_startup_lines(path: str) -> List[str]:
    with open(path, "r", encoding="utf-8") as f:
        return f.read().splitlines()


class History:
    """Input history persisted as a newline-joined file."""

    def __init__(self, history_path: str, max_items: int = 500):
        self.history_path = history_path
        self.max_items = max_items
        self.entries: List[str] = []

    def load(self) -> List[str]:
        if not os.path.exists(self.history_path):
            return self.entries
        try:
            with open(self.history_path, "r", encoding="utf-8") as f:
                lines = [l.rstrip("\n") for l in f if l.strip()]
        except OSError as e:
            print(f"Error opening '{self.history_path}' - {e}", file=sys.stderr)
            logger.warning("Error opening '%s': %s", self.history_path, e)
            return self.entries
        self.entries = lines[-self.max_items:]
        return self.entries

    def seed_readline(self):
        """Make loaded entries recallable with the arrow keys at the prompt."""
        readline.clear_history()
        readline.set_history_length(self.max_items)
        for entry in self.entries:
            readline.add_history(entry)

    def append(self, entry: str):
        if not entry:
            return
        self.entries.append(entry)
        if len(self.entries) > self.max_items:
            self.entries = self.entries[-self.max_items:]

    def save(self) -> bool:
        try:
            with open(self.history_path, "w", encoding="utf-8") as f:
                f.write("\n".join(self.entries))
        except OSError as e:
            print(f"Error saving '{self.history_path}' - {e}", file=sys.stderr)
            logger.warning("Error saving '%s': %s", self.history_path, e)
            return False
        return True
