from __future__ import annotations

import json

import pytest

from lyric_sync.config import config_keys, load_config, save_config_value
from lyric_sync.sync.tracker import TrackerSettings


@pytest.fixture
def clean_env(tmp_path, monkeypatch):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    for name in (
        "LYRIC_SYNC_SEEK_THRESHOLD_MS",
        "LYRIC_SYNC_RESUME_GRACE_MS",
        "LYRIC_SYNC_MIN_DWELL_MS",
        "LYRIC_SYNC_FORWARD_LEAD_MS",
        "LYRIC_SYNC_BACKWARD_MARGIN_MS",
        "LYRIC_SYNC_JITTER_REVERSE_MS",
    ):
        monkeypatch.delenv(name, raising=False)
    return tmp_path


class TestLoadConfig:
    def test_defaults(self, clean_env):
        cfg = load_config()
        assert cfg.config_dir == clean_env / "lyric-sync"
        assert cfg.tracker_settings() == TrackerSettings()

    def test_save_and_load(self, clean_env):
        path = save_config_value("min_dwell_ms", 200)
        assert json.loads(path.read_text(encoding="utf-8")) == {"min_dwell_ms": 200}
        assert load_config().min_dwell_ms == 200.0

    def test_env_wins_over_file(self, clean_env, monkeypatch):
        save_config_value("seek_threshold_ms", 900)
        monkeypatch.setenv("LYRIC_SYNC_SEEK_THRESHOLD_MS", "1000")
        assert load_config().tracker_settings().seek_threshold_ms == 1000.0

    def test_bad_values_are_ignored(self, clean_env, monkeypatch):
        (clean_env / "lyric-sync").mkdir()
        (clean_env / "lyric-sync" / "config.json").write_text("{not json", encoding="utf-8")
        monkeypatch.setenv("LYRIC_SYNC_RESUME_GRACE_MS", "soon")
        cfg = load_config()
        assert cfg.resume_grace_ms == 1200.0
        assert cfg.seek_threshold_ms == 800.0


def test_save_unknown_key(clean_env):
    with pytest.raises(KeyError):
        save_config_value("colour", 1)
    assert "jitter_reverse_ms" in config_keys()
