"""Tests for settings loading."""
from pathlib import Path

import pytest
from pydantic import ValidationError

from imagecast.config import AppSettings, get_config, load_config, set_config


@pytest.fixture(autouse=True)
def reset_config():
    """Ensure a clean config singleton for each test."""
    set_config(None)
    yield
    set_config(None)


def test_missing_file_gives_defaults(tmp_path):
    cfg = load_config(settings_path=tmp_path / "absent.yaml")

    assert cfg.server.host == "0.0.0.0"
    assert cfg.server.port == 8080
    assert cfg.storage.upload_dir == "uploads"
    assert cfg.storage.static_dir == "static"
    assert cfg.storage.allow_generic_binary is True
    assert cfg.logging.level == "info"


def test_empty_file_gives_defaults(tmp_path):
    settings_file = tmp_path / "imagecast.settings.yaml"
    settings_file.write_text("", encoding="utf-8")

    assert load_config(settings_path=settings_file) == AppSettings()


def test_values_override_defaults(tmp_path):
    settings_file = tmp_path / "imagecast.settings.yaml"
    settings_file.write_text(
        "server:\n"
        "  port: 9090\n"
        "storage:\n"
        "  upload_dir: /srv/images\n"
        "  allow_generic_binary: false\n"
        "logging:\n"
        "  level: DEBUG\n",
        encoding="utf-8",
    )

    cfg = load_config(settings_path=settings_file)

    assert cfg.server.port == 9090
    assert cfg.server.host == "0.0.0.0"
    assert Path(cfg.storage.upload_dir) == Path("/srv/images")
    assert cfg.storage.allow_generic_binary is False
    assert cfg.logging.level == "debug"


def test_unknown_log_level_rejected(tmp_path):
    settings_file = tmp_path / "imagecast.settings.yaml"
    settings_file.write_text("logging:\n  level: chatty\n", encoding="utf-8")

    with pytest.raises(ValidationError):
        load_config(settings_path=settings_file)


def test_get_config_loads_once(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    Path("imagecast.settings.yaml").write_text("server:\n  port: 7000\n", encoding="utf-8")

    first = get_config()
    Path("imagecast.settings.yaml").write_text("server:\n  port: 7001\n", encoding="utf-8")

    assert first.server.port == 7000
    assert get_config() is first


def test_set_config_replaces_singleton():
    custom = AppSettings(server={"port": 1234})

    set_config(custom)

    assert get_config() is custom
