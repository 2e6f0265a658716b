"""Tests for pico.config — frozen AppConfig and environment loading."""

import dataclasses

import pytest

from pico.config import DEFAULT_SECRET_KEY, AppConfig
from pico.errors import ConfigurationError


class TestAppConfig:
    def test_defaults(self) -> None:
        config = AppConfig()
        assert config.host == "127.0.0.1"
        assert config.port == 8080
        assert config.debug is False
        assert config.secret_key == DEFAULT_SECRET_KEY
        assert config.cookie_name == "pico_token"
        assert config.db is None
        assert config.static_dir == "public"

    def test_frozen(self) -> None:
        config = AppConfig()
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.port = 9000  # type: ignore[misc]

    def test_with_overrides_skips_none(self) -> None:
        config = AppConfig(port=3000).with_overrides(port=None, debug=True)
        assert config.port == 3000
        assert config.debug is True


class TestFromEnv:
    def test_reads_prefixed_variables(self) -> None:
        config = AppConfig.from_env(
            {
                "PICO_PORT": "9000",
                "PICO_DEBUG": "yes",
                "PICO_SECRET_KEY": "abc",
                "PICO_DB": "sqlite:///x.db",
                "PORT": "1",
            }
        )
        assert config.port == 9000
        assert config.debug is True
        assert config.secret_key == "abc"
        assert config.db == "sqlite:///x.db"

    @pytest.mark.parametrize("raw", ["0", "false", "no", "off", ""])
    def test_false_booleans(self, raw: str) -> None:
        assert AppConfig.from_env({"PICO_DEBUG": raw}).debug is False

    def test_overrides_win(self) -> None:
        config = AppConfig.from_env({"PICO_PORT": "9000"}, port=7000, title="Blog")
        assert config.port == 7000
        assert config.title == "Blog"

    def test_none_override_keeps_env(self) -> None:
        assert AppConfig.from_env({"PICO_HOST": "0.0.0.0"}, host=None).host == "0.0.0.0"

    def test_unknown_override(self) -> None:
        with pytest.raises(ConfigurationError, match="Unknown config option"):
            AppConfig.from_env({}, colour="blue")

    def test_bad_integer(self) -> None:
        with pytest.raises(ConfigurationError, match="PICO_PORT must be an integer"):
            AppConfig.from_env({"PICO_PORT": "eighty"})

    def test_empty_environment_is_defaults(self) -> None:
        assert AppConfig.from_env({}) == AppConfig()
