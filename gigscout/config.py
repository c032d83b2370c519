"""Load settings from config/settings.yaml and the environment."""
from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from gigscout.log import get_logger

log = get_logger(__name__)

load_dotenv()

ROOT_DIR: Path = Path(__file__).resolve().parent.parent
CONFIG_DIR: Path = ROOT_DIR / "config"
SETTINGS_PATH: Path = CONFIG_DIR / "settings.yaml"
DATA_DIR: Path = ROOT_DIR / "data"

_WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]


@dataclass
class SourceSettings:
    enabled: bool = True
    url: str = ""


def _default_sources() -> dict[str, SourceSettings]:
    return {
        "indeed": SourceSettings(
            url="https://www.indeed.com/rss?q=social+media+marketing&l=&radius=25",
        ),
        "remoteok": SourceSettings(url="https://remoteok.io/api"),
        "sample": SourceSettings(),
    }


@dataclass
class Settings:
    # Scraping
    scrape_interval_seconds: float = 3600
    min_relevance: int = 3
    batch_size: int = 20
    http_timeout: float = 15
    rss_proxy_url: str = "https://api.allorigins.win/get"
    sources: dict[str, SourceSettings] = field(default_factory=_default_sources)

    # Email scheduling
    perfect_match_interval_seconds: float = 15 * 60
    daily_digest_interval_seconds: float = 60 * 60
    weekly_trends_interval_seconds: float = 6 * 60 * 60
    email_initial_delay_seconds: float = 5
    perfect_match_min_score: int = 8
    perfect_match_window_hours: float = 2
    digest_min_score: int = 4
    digest_limit: int = 20
    digest_hour: int = 8
    trends_weekday: int = 0  # Monday, as in datetime.weekday()
    trends_hour: int = 9
    timezone: str = "UTC"

    # Email transport
    from_email: str = "alerts@gigscout.com"
    reply_to_email: str = "noreply@gigscout.com"
    app_url: str = "https://gigscout.com"

    # Storage
    store_backend: str = "memory"
    data_dir: Path = DATA_DIR


def get_env(key: str, default: str = "") -> str:
    return os.environ.get(key, default).strip()


def _parse_weekday(value: Any) -> int:
    if isinstance(value, int):
        return value % 7
    name = str(value).strip().lower()
    if name in _WEEKDAYS:
        return _WEEKDAYS.index(name)
    return int(name) % 7


def load_settings(path: Path | None = None) -> Settings:
    """Defaults, overridden by the YAML file, overridden by env vars."""
    settings = Settings()
    path = path or Path(get_env("GIGSCOUT_SETTINGS") or SETTINGS_PATH)

    data: dict[str, Any] = {}
    if path.exists():
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
        log.debug("Loaded settings from %s", path)
    else:
        log.debug("No settings file at %s, using defaults", path)

    known = {f.name for f in fields(Settings)}
    for key, value in data.items():
        if key not in known:
            log.warning("Ignoring unknown setting %r", key)
            continue
        if key == "sources":
            for name, cfg in (value or {}).items():
                current = settings.sources.setdefault(name, SourceSettings())
                if cfg is None:
                    continue
                if isinstance(cfg, bool):
                    current.enabled = cfg
                    continue
                current.enabled = bool(cfg.get("enabled", current.enabled))
                current.url = cfg.get("url", current.url) or current.url
        elif key == "trends_weekday":
            settings.trends_weekday = _parse_weekday(value)
        elif key == "data_dir":
            data_dir = Path(value)
            settings.data_dir = data_dir if data_dir.is_absolute() else ROOT_DIR / data_dir
        else:
            setattr(settings, key, value)

    if get_env("GIGSCOUT_STORE"):
        settings.store_backend = get_env("GIGSCOUT_STORE")
    if get_env("GIGSCOUT_DATA_DIR"):
        settings.data_dir = Path(get_env("GIGSCOUT_DATA_DIR"))
    if get_env("GIGSCOUT_TIMEZONE"):
        settings.timezone = get_env("GIGSCOUT_TIMEZONE")
    if get_env("FROM_EMAIL"):
        settings.from_email = get_env("FROM_EMAIL")

    return settings


def ensure_dirs(settings: Settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
