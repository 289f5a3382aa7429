"""Tests for settings loading."""

from pathlib import Path

import pytest

from config import ConfigLoader, ConfigurationError, KiteSettings, load_settings


class TestConfigLoader:
    def test_coerces_to_default_type(self, monkeypatch) -> None:
        monkeypatch.setenv("KITE_VALIDATION_RETRIES", "3")
        monkeypatch.setenv("KITE_REQUEST_TIMEOUT", "2.5")
        loader = ConfigLoader("/nonexistent/.env")

        assert loader.get("KITE_VALIDATION_RETRIES", 0) == 3
        assert loader.get("KITE_REQUEST_TIMEOUT", 30.0) == 2.5
        assert loader.get("KITE_API_BASE", "https://default") == "https://default"

    def test_bad_number_falls_back_to_default(self, monkeypatch) -> None:
        monkeypatch.setenv("KITE_VALIDATION_RETRIES", "many")
        assert ConfigLoader("/nonexistent/.env").get("KITE_VALIDATION_RETRIES", 0) == 0


class TestLoadSettings:
    """Tests for load_settings()."""

    def test_reads_env_file(self, write_env, env_file) -> None:
        write_env(
            "KITE_API_KEY=K\n"
            "KITE_API_SECRET=S\n"
            "KITE_ACCESS_TOKEN=AT\n"
            "KITE_REFRESH_TOKEN=RT\n"
        )

        settings = load_settings(str(env_file))

        assert settings.api_key == "K"
        assert settings.api_secret == "S"
        assert settings.access_token == "AT"
        assert settings.refresh_token == "RT"
        assert settings.env_file == Path(str(env_file))

    def test_environment_wins_over_file(self, monkeypatch, write_env, env_file) -> None:
        write_env("KITE_API_KEY=from-file\n")
        monkeypatch.setenv("KITE_API_KEY", "from-env")

        assert load_settings(str(env_file)).api_key == "from-env"

    def test_env_file_from_environment(self, monkeypatch, tmp_path, write_env) -> None:
        other = write_env("KITE_API_KEY=other\n", tmp_path / "kite.env")
        monkeypatch.setenv("KITE_ENV_FILE", str(other))

        settings = load_settings()

        assert settings.api_key == "other"
        assert settings.env_file == other

    def test_defaults(self, env_file) -> None:
        settings = load_settings(str(env_file))

        assert settings.api_base == "https://api.kite.trade"
        assert settings.login_base == "https://kite.zerodha.com"
        assert settings.kite_version == "3"
        assert settings.request_timeout == 30.0
        assert settings.validation_retries == 0
        assert settings.callback_timeout is None
        assert settings.access_token == ""
        assert settings.refresh_token is None
        assert settings.log_level == "info"

    def test_blank_refresh_token_is_absent(self, write_env, env_file) -> None:
        write_env("KITE_ACCESS_TOKEN=AT\nKITE_REFRESH_TOKEN=\n")
        assert load_settings(str(env_file)).refresh_token is None

    def test_tuning_values(self, monkeypatch, env_file) -> None:
        monkeypatch.setenv("KITE_API_BASE", "http://localhost:9000/")
        monkeypatch.setenv("KITE_VALIDATION_RETRIES", "-2")
        monkeypatch.setenv("KITE_CALLBACK_TIMEOUT", "120")
        monkeypatch.setenv("LOG_LEVEL", "debug")

        settings = load_settings(str(env_file))

        assert settings.api_base == "http://localhost:9000"
        assert settings.validation_retries == 0
        assert settings.callback_timeout == 120.0
        assert settings.log_level == "debug"


class TestRequireIdentity:
    def test_complete_identity(self) -> None:
        identity = KiteSettings(api_key="K", api_secret="S").require_identity()
        assert (identity.api_key, identity.api_secret) == ("K", "S")

    def test_names_every_missing_value(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            KiteSettings(api_key="", api_secret="  ").require_identity()
        assert "KITE_API_KEY and KITE_API_SECRET" in str(exc_info.value)

    def test_missing_secret_only(self) -> None:
        with pytest.raises(ConfigurationError, match="KITE_API_SECRET") as exc_info:
            KiteSettings(api_key="K").require_identity()
        assert "KITE_API_KEY" not in str(exc_info.value)
