# backend/tests/test_config.py
import importlib.util

import pytest

import relay.config

DOTENV_KEYS = ("RECAPTCHA_SECRET_KEY", "TURNSTILE_CHECK_SECRET_KEY", "PORT", "ENV_FILE")


@pytest.fixture
def fresh_config(monkeypatch):
    """Import config.py anew as a separate module, so relay.config stays untouched."""
    # setenv first so monkeypatch restores whatever load_dotenv writes
    for key in DOTENV_KEYS:
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)

    def _load():
        module_spec = importlib.util.spec_from_file_location("relay_config_fresh", relay.config.__file__)
        module = importlib.util.module_from_spec(module_spec)
        module_spec.loader.exec_module(module)
        return module

    return _load


def test_dotenv_secret_is_picked_up(tmp_path, monkeypatch, fresh_config):
    (tmp_path / ".env").write_text("RECAPTCHA_SECRET_KEY=from-dotenv\nPORT=6001\n")
    monkeypatch.chdir(tmp_path)
    settings = fresh_config().get_settings()
    assert settings.RECAPTCHA_SECRET_KEY == "from-dotenv"
    assert settings.PORT == 6001


def test_environment_wins_over_dotenv(tmp_path, monkeypatch, fresh_config):
    (tmp_path / ".env").write_text("RECAPTCHA_SECRET_KEY=from-dotenv\n")
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("RECAPTCHA_SECRET_KEY", "from-env")
    assert fresh_config().get_settings().RECAPTCHA_SECRET_KEY == "from-env"


def test_env_file_override(tmp_path, monkeypatch, fresh_config):
    (tmp_path / "relay.env").write_text("TURNSTILE_CHECK_SECRET_KEY=ts-from-file\n")
    monkeypatch.setenv("ENV_FILE", str(tmp_path / "relay.env"))
    monkeypatch.chdir(tmp_path)
    assert fresh_config().get_settings().TURNSTILE_CHECK_SECRET_KEY == "ts-from-file"


def test_no_dotenv_falls_back_to_defaults(tmp_path, monkeypatch, fresh_config):
    monkeypatch.chdir(tmp_path)
    settings = fresh_config().get_settings()
    assert settings.PORT == 5183
    assert settings.RECAPTCHA_SECRET_KEY == ""
