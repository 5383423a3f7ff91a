from __future__ import annotations

from pathlib import Path

from settings import get_settings


def test_defaults_without_environment(monkeypatch) -> None:
    for name in ("UDS_CONFIG_FILE", "UDS_HTTP_TIMEOUT", "UDS_NUT_TIMEOUT", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()

    settings = get_settings()

    assert settings.config_file == Path("config.json")
    assert settings.http_timeout == 5.0
    assert settings.nut_timeout == 1.0
    assert settings.log_level == "INFO"


def test_environment_overrides_apply(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("UDS_CONFIG_FILE", str(tmp_path / "uds.json"))
    monkeypatch.setenv("UDS_HTTP_TIMEOUT", "2.5")
    monkeypatch.setenv("UDS_NUT_TIMEOUT", "-1")
    monkeypatch.setenv("LOG_LEVEL", " debug ")
    get_settings.cache_clear()

    settings = get_settings()

    assert settings.config_file == tmp_path / "uds.json"
    assert settings.http_timeout == 2.5
    assert settings.nut_timeout == 1.0
    assert settings.log_level == "DEBUG"
