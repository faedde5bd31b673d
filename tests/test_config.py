"""
Tests for settings loading: defaults, YAML file, environment overrides.
"""

import pytest
import yaml

from focustimer.infra.config import Settings


@pytest.fixture
def dirs(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    config_dir = tmp_path / "config_home"
    data_dir = tmp_path / "data_home"
    monkeypatch.setenv("FOCUSTIMER_CONFIG_DIR", str(config_dir))
    monkeypatch.setenv("FOCUSTIMER_DATA_DIR", str(data_dir))
    return config_dir, data_dir


def test_defaults(dirs):
    config_dir, data_dir = dirs
    settings = Settings()

    assert settings.preferences.default_duration_minutes == 5
    assert settings.preferences.sync_tolerance_ms == 1500
    assert settings.preferences.quick_extend_minutes == [1, 3, 5]
    assert config_dir.is_dir() and data_dir.is_dir()
    assert settings.get_db_url() == f"sqlite+aiosqlite:///{data_dir / 'focustimer.db'}"


def test_yaml_preferences_are_loaded(dirs):
    config_dir, _ = dirs
    config_dir.mkdir(parents=True)
    (config_dir / "settings.yaml").write_text(
        yaml.dump({"default_duration_minutes": 25, "language": "ko"}), encoding="utf-8"
    )

    settings = Settings()

    assert settings.preferences.default_duration_minutes == 25
    assert settings.preferences.language == "ko"


def test_environment_wins_over_yaml(dirs, monkeypatch):
    config_dir, _ = dirs
    config_dir.mkdir(parents=True)
    (config_dir / "settings.yaml").write_text(
        yaml.dump({"sync_tolerance_ms": 2000, "fast_tick_ms": 20}), encoding="utf-8"
    )
    monkeypatch.setenv("FOCUSTIMER_PREFERENCES__SYNC_TOLERANCE_MS", "500")

    settings = Settings()

    assert settings.preferences.sync_tolerance_ms == 500
    assert settings.preferences.fast_tick_ms == 20


def test_explicit_database_url(dirs, monkeypatch):
    monkeypatch.setenv("FOCUSTIMER_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
    assert Settings().get_db_url() == "sqlite+aiosqlite:///:memory:"


def test_save_preferences_round_trip(dirs):
    settings = Settings()
    settings.preferences = settings.preferences.model_copy(update={"quick_extend_minutes": [2, 10]})
    settings.save_preferences()

    assert Settings().preferences.quick_extend_minutes == [2, 10]
