"""Logging setup shared by every module: console plus a daily log file."""
from __future__ import annotations

import logging
import os
import sys
from datetime import datetime
from pathlib import Path

_LOG_DIR = Path(os.environ.get("GIGSCOUT_LOG_DIR", Path(__file__).resolve().parent.parent / "logs"))
_FORMAT = "%(asctime)s  %(levelname)-8s  %(threadName)s  %(name)s  %(message)s"
_DATE_FMT = "%Y-%m-%d %H:%M:%S"
# HTTP client chatter drowns out the scrape log at DEBUG
_QUIET_LOGGERS = ("urllib3", "charset_normalizer")
_configured = False


def get_logger(name: str) -> logging.Logger:
    """Return a named logger; the first call installs the root handlers."""
    global _configured
    if not _configured:
        _install_handlers()
        _configured = True
    return logging.getLogger(name)


def set_level(level_name: str) -> None:
    """Change the console level at runtime (the file handler keeps DEBUG)."""
    level = getattr(logging, level_name.upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(min(level, logging.DEBUG) if _file_logging_enabled() else level)
    for handler in root.handlers:
        if not isinstance(handler, logging.FileHandler):
            handler.setLevel(level)


def _file_logging_enabled() -> bool:
    return os.environ.get("GIGSCOUT_LOG_FILE", "1").lower() not in ("0", "false", "no")


def _install_handlers() -> None:
    level_name = os.environ.get("LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    root = logging.getLogger()
    root.setLevel(level)
    if root.handlers:
        return

    formatter = logging.Formatter(_FORMAT, datefmt=_DATE_FMT)
    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(formatter)
    root.addHandler(console)

    # Opt-out for test runs and read-only deployments
    if not _file_logging_enabled():
        return
    try:
        _LOG_DIR.mkdir(parents=True, exist_ok=True)
        log_file = _LOG_DIR / f"gigscout_{datetime.now().strftime('%Y-%m-%d')}.log"
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(formatter)
        root.addHandler(fh)
        root.setLevel(logging.DEBUG)
    except OSError as exc:
        root.warning("File logging disabled, cannot write to %s: %s", _LOG_DIR, exc)
