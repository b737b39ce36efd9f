from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List

from . import config

LOGGER = logging.getLogger("saved_places")
LOG_FORMAT = "[%(asctime)s] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_LOGGER_INITIALISED = False
_CURRENT_LOG_FILE: Path = config.LOG_FILE


def _drop_handlers() -> None:
    for handler in list(LOGGER.handlers):
        LOGGER.removeHandler(handler)
        try:
            handler.close()
        except Exception:  # noqa: BLE001
            continue


def _handlers_for(log_path: Path) -> List[logging.Handler]:
    """Console plus file handler, both using the exporter's line format."""

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    handlers: List[logging.Handler] = [
        logging.StreamHandler(sys.stdout),
        logging.FileHandler(log_path, encoding="utf-8"),
    ]
    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def _configure_logger(log_path: Path) -> None:
    """Point the ``saved_places`` logger at stdout and ``log_path``."""

    global _LOGGER_INITIALISED, _CURRENT_LOG_FILE

    log_path.parent.mkdir(parents=True, exist_ok=True)
    _drop_handlers()
    for handler in _handlers_for(log_path):
        LOGGER.addHandler(handler)
    LOGGER.setLevel(logging.INFO)
    LOGGER.propagate = False

    _CURRENT_LOG_FILE = log_path
    _LOGGER_INITIALISED = True


def _ensure_logger() -> None:
    if not _LOGGER_INITIALISED:
        _configure_logger(config.LOG_FILE)


def setup_run_logger(prefix: str = "export") -> Path:
    """Start a fresh ``<prefix>_<UTC timestamp>.log`` for the current run."""

    stamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    log_path = config.LOG_DIR / f"{prefix}_{stamp}.log"
    _configure_logger(log_path)
    LOGGER.info("Run log: %s", log_path)
    return log_path


def get_current_log_path() -> Path:
    _ensure_logger()
    return _CURRENT_LOG_FILE


def ensure_dirs() -> None:
    """Create the data, log, runs and exports directories if missing."""

    for directory in (config.DATA_DIR, config.LOG_DIR, config.RUNS_DIR, config.EXPORTS_DIR):
        directory.mkdir(parents=True, exist_ok=True)


def log_line(message: str) -> None:
    """Log ``message`` to the console and the current run log."""

    _ensure_logger()
    LOGGER.info(message)


def short_text(value: Any, limit: int = 60) -> str:
    """Collapse whitespace and clip ``value`` for single-line log output."""

    text = " ".join(str(value or "").split())
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


def load_json_file(path: Path) -> Any:
    """Return the JSON content of ``path``, or ``None`` if missing or unreadable."""

    if not path.exists():
        return None
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        return None


def save_json_file(path: Path, payload: Any) -> None:
    """Write ``payload`` as pretty JSON through a temp file and rename."""

    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    tmp_path.replace(path)


__all__ = [
    "ensure_dirs",
    "setup_run_logger",
    "get_current_log_path",
    "log_line",
    "short_text",
    "load_json_file",
    "save_json_file",
]
