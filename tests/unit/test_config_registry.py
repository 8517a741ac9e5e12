"""Unit tests for the configuration registry."""

import pytest

from serverpulse.config.registry import (
    BOT_TOKEN_PLACEHOLDER,
    CHAT_ID_PLACEHOLDER,
    REGISTRY,
    credential_problems,
    get_config_key,
    get_default_values,
    get_sensitive_keys,
    validate_config_value,
)


class TestRegistry:
    """Registry definitions and defaults."""

    def test_all_defaults_are_valid(self):
        for key, value in get_default_values().items():
            is_valid, error = validate_config_value(key, value)
            assert is_valid, f"{key}: {error}"

    def test_unknown_key(self):
        with pytest.raises(KeyError, match="not found in registry"):
            get_config_key("telegram.nope")
        assert validate_config_value("telegram.nope", 1)[0] is False

    def test_bot_token_is_sensitive(self):
        assert get_sensitive_keys() == {"telegram.bot_token"}

    def test_default_cadence(self):
        assert REGISTRY["status.update_interval_seconds"].default == 60
        assert REGISTRY["status.initial_delay_seconds"].default == 10


class TestValidation:
    """validate_config_value() rules."""

    @pytest.mark.parametrize(
        "key, value, message",
        [
            ("status.update_interval_seconds", "60", "Expected type int"),
            ("status.update_interval_seconds", True, "got bool"),
            ("status.update_interval_seconds", 1, "below minimum"),
            ("server.max_players", 1_000_000, "above maximum"),
            ("status.message_id", "abc", "Custom validation failed"),
            ("server.banner_url", "ftp://example.com/x.png", "Custom validation failed"),
            ("logging.level", "VERBOSE", "Custom validation failed"),
            ("logging.format", "xml", "Custom validation failed"),
        ],
    )
    def test_invalid_values(self, key, value, message):
        is_valid, error = validate_config_value(key, value)
        assert not is_valid
        assert message in error

    @pytest.mark.parametrize(
        "key, value",
        [
            ("status.message_id", ""),
            ("status.message_id", "123"),
            ("server.banner_url", "https://example.com/banner.png"),
            ("server.max_players", 0),
        ],
    )
    def test_valid_values(self, key, value):
        assert validate_config_value(key, value) == (True, None)


class TestCredentialProblems:
    """credential_problems() detects unusable bot credentials."""

    def test_placeholders_rejected(self):
        problems = credential_problems(BOT_TOKEN_PLACEHOLDER, CHAT_ID_PLACEHOLDER)
        assert problems == [
            "telegram.bot_token is not set",
            "telegram.status_chat_id is not set",
        ]

    def test_blank_values_rejected(self):
        assert len(credential_problems("   ", "")) == 2

    def test_real_values_accepted(self):
        assert credential_problems("123456:abc", "-100123") == []
