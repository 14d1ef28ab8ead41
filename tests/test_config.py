"""
Tests for settings loading and client construction from settings
"""

from unittest.mock import patch

from rrf_filemanager import RRFFileManager
from rrf_filemanager.config import Settings


def test_defaults(monkeypatch):
    for name in ("RRF_HOST", "RRF_PORT", "RRF_PASSWORD", "RRF_DEBUG"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings(_env_file=None)

    assert settings.host == "localhost"
    assert settings.port == 80
    assert settings.password == ""
    assert settings.timeout_seconds == 30.0
    assert settings.debug is False
    assert settings.logs_dir is None


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("RRF_HOST", "printer.local")
    monkeypatch.setenv("RRF_PORT", "8080")
    monkeypatch.setenv("RRF_DEBUG", "true")

    settings = Settings(_env_file=None)

    assert settings.host == "printer.local"
    assert settings.port == 8080
    assert settings.debug is True


def test_init_arguments_win(monkeypatch):
    monkeypatch.setenv("RRF_HOST", "printer.local")

    settings = Settings(_env_file=None, host="other.local")

    assert settings.host == "other.local"


def test_client_from_settings():
    loaded = Settings(_env_file=None, host="printer.local", port=8080)

    with patch("rrf_filemanager.client.settings", loaded):
        client = RRFFileManager.from_settings()
        overridden = RRFFileManager.from_settings(host="10.0.0.5", port=None)

    assert client.base_url == "http://printer.local:8080/"
    assert overridden.base_url == "http://10.0.0.5:8080/"
