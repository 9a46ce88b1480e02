"""Tests for config/settings.py"""
import pytest

from trial_compass.config import settings as settings_module
from trial_compass.config.settings import BackendSettings, normalize_base_url, normalize_session_id
from trial_compass.errors import InputInvalid


def test_normalize_strips_trailing_slash():
    assert normalize_base_url(" http://localhost:8100/ ") == "http://localhost:8100"


@pytest.mark.parametrize("value", ["", "localhost:8100", "ftp://example.org", "http://", "not a url"])
def test_invalid_urls_rejected(value):
    with pytest.raises(InputInvalid):
        normalize_base_url(value)


def test_set_base_url_keeps_previous_on_error():
    settings = BackendSettings(base_url="http://localhost:8100")
    with pytest.raises(InputInvalid):
        settings.set_base_url("bogus")
    assert settings.base_url == "http://localhost:8100"


def test_from_env(monkeypatch):
    monkeypatch.setenv("TRIAL_COMPASS_BACKEND_URL", "https://compass.example.org/")
    monkeypatch.setenv("TRIAL_COMPASS_POLL_INTERVAL", "2.5")
    monkeypatch.setenv("TRIAL_COMPASS_HTTP_TIMEOUT", "-1")
    settings = BackendSettings.from_env()
    assert settings.base_url == "https://compass.example.org"
    assert settings.poll_interval == 2.5
    assert settings.http_timeout == settings_module.DEFAULT_HTTP_TIMEOUT


def test_from_env_invalid_url_falls_back(monkeypatch):
    monkeypatch.setenv("TRIAL_COMPASS_BACKEND_URL", "nope")
    monkeypatch.delenv("TRIAL_COMPASS_POLL_INTERVAL", raising=False)
    settings = BackendSettings.from_env()
    assert settings.base_url == settings_module.DEFAULT_BACKEND_URL
    assert settings.poll_interval == 5.0


def test_get_settings_is_shared(monkeypatch):
    monkeypatch.setattr(settings_module, "_default_settings", None)
    assert settings_module.get_settings() is settings_module.get_settings()


def test_normalize_session_id():
    assert normalize_session_id("  S1\t") == "S1"
    for value in ("", "   ", None):
        with pytest.raises(InputInvalid):
            normalize_session_id(value)


def test_session_url_uses_trimmed_id():
    settings = BackendSettings(base_url="http://localhost:8100")
    assert settings.session_url(" S1 ", "state") == "http://localhost:8100/api/sessions/S1/state"
