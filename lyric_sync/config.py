from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path

from lyric_sync.sync.tracker import TrackerSettings

logger = logging.getLogger(__name__)

# config.json key -> environment variable
_TRACKER_KEYS: dict[str, str] = {
    "seek_threshold_ms": "LYRIC_SYNC_SEEK_THRESHOLD_MS",
    "resume_grace_ms": "LYRIC_SYNC_RESUME_GRACE_MS",
    "min_dwell_ms": "LYRIC_SYNC_MIN_DWELL_MS",
    "forward_lead_ms": "LYRIC_SYNC_FORWARD_LEAD_MS",
    "backward_margin_ms": "LYRIC_SYNC_BACKWARD_MARGIN_MS",
    "jitter_reverse_ms": "LYRIC_SYNC_JITTER_REVERSE_MS",
}


def _config_dir() -> Path:
    xdg = os.getenv("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "lyric-sync"
    return Path.home() / ".config" / "lyric-sync"


def _config_file() -> Path:
    return _config_dir() / "config.json"


@dataclass(frozen=True)
class AppConfig:
    config_dir: Path

    # Live cursor tracker
    seek_threshold_ms: float
    resume_grace_ms: float
    min_dwell_ms: float
    forward_lead_ms: float
    backward_margin_ms: float
    jitter_reverse_ms: float

    def tracker_settings(self) -> TrackerSettings:
        return TrackerSettings(**{f.name: getattr(self, f.name) for f in fields(TrackerSettings)})


def _read_file(cfg_path: Path) -> dict[str, object]:
    if not cfg_path.exists():
        return {}
    try:
        data = json.loads(cfg_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.debug("Ignoring unreadable config %s: %s", cfg_path, e)
        return {}
    return data if isinstance(data, dict) else {}


def load_config() -> AppConfig:
    # Priority: env → config.json → TrackerSettings defaults
    config_dir = _config_dir()
    stored = _read_file(config_dir / "config.json")
    defaults = TrackerSettings()

    values: dict[str, float] = {}
    for key, env_name in _TRACKER_KEYS.items():
        value: float = getattr(defaults, key)
        raw = os.getenv(env_name)
        if raw is None:
            raw = stored.get(key)  # type: ignore[assignment]
        if raw is not None:
            try:
                value = float(raw)
            except (TypeError, ValueError):
                logger.debug("Ignoring invalid %s=%r", key, raw)
        values[key] = value

    return AppConfig(config_dir=config_dir, **values)


def save_config_value(key: str, value: float) -> Path:
    if key not in _TRACKER_KEYS:
        raise KeyError(key)
    cfg_path = _config_file()
    cfg_path.parent.mkdir(parents=True, exist_ok=True)
    data = _read_file(cfg_path)
    data[key] = value
    cfg_path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
    return cfg_path


def config_keys() -> tuple[str, ...]:
    return tuple(_TRACKER_KEYS)
