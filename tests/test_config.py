"""Integration tests for configuration module."""

from pathlib import Path

import pytest

from mailqueue.config import (
    ConfigurationError,
    load_config,
    validate_config_file,
)
from mailqueue.config.duration import (
    DurationParseError,
    format_duration,
    parse_duration,
    validate_duration_range,
)
from mailqueue.config.environment import DEFAULT_DATABASE_URL, load_environment_config
from mailqueue.config.validators import check_for_warnings


# Test fixtures directory
FIXTURES_DIR = Path(__file__).parent / "fixtures"


class TestConfigurationLoading:
    """Test configuration loading from YAML files."""

    def test_load_valid_config(self, mock_env_vars):
        """Test loading a valid configuration file."""
        app_config, env_config = load_config(FIXTURES_DIR / "valid_config.yaml")

        # Site settings (trailing slash stripped)
        assert app_config.site.name == "Test Shop"
        assert app_config.site.url == "https://shop.test"
        assert app_config.site.support_email == "help@example.com"

        # Queue settings
        assert app_config.queue.concurrency == 5
        assert app_config.queue.default_retries == 2
        assert app_config.queue.retry_base_delay == "30s"
        assert app_config.queue.retry_base_delay_seconds == 30

        # Email and logging
        assert app_config.email.smtp_timeout == 20
        assert app_config.logging.level == "DEBUG"
        assert app_config.logging.format == "json"

        assert env_config.smtp_host == "smtp.test.com"

    def test_load_minimal_config(self, mock_env_vars):
        """Test loading a minimal configuration with defaults."""
        app_config, _ = load_config(FIXTURES_DIR / "minimal_config.yaml")

        assert app_config.site.name == "Minimal Shop"
        assert app_config.queue.concurrency == 3  # Default
        assert app_config.queue.default_retries == 3  # Default
        assert app_config.queue.retry_base_delay_seconds == 60  # Default
        assert app_config.email.enabled is True
        assert app_config.logging.level == "INFO"

    def test_load_iso8601_duration_config(self, mock_env_vars):
        """Test loading config with ISO-8601 retry delay."""
        app_config, _ = load_config(FIXTURES_DIR / "iso8601_duration_config.yaml")

        assert app_config.queue.retry_base_delay_seconds == 120

    def test_config_file_not_found(self, mock_env_vars):
        with pytest.raises(ConfigurationError, match="not found"):
            load_config(FIXTURES_DIR / "does_not_exist.yaml")

    def test_empty_config_file(self, mock_env_vars):
        with pytest.raises(ConfigurationError, match="Configuration file is empty"):
            load_config(FIXTURES_DIR / "empty_config.yaml")

    def test_invalid_yaml_syntax(self, tmp_path, mock_env_vars):
        config_file = tmp_path / "broken.yaml"
        config_file.write_text("site:\n  name: [unclosed\n")

        with pytest.raises(ConfigurationError, match="Failed to parse YAML"):
            load_config(config_file)

    def test_top_level_list_rejected(self, tmp_path, mock_env_vars):
        config_file = tmp_path / "list.yaml"
        config_file.write_text("- site\n- queue\n")

        with pytest.raises(ConfigurationError, match="YAML mapping"):
            load_config(config_file)

    def test_email_disabled_in_environment_wins(self, mock_env_vars):
        mock_env_vars.setenv("EMAIL_ENABLED", "false")

        app_config, env_config = load_config(FIXTURES_DIR / "valid_config.yaml")

        assert env_config.email_enabled is False
        assert app_config.email.enabled is False


class TestConfigurationValidation:
    """Test that every schema error is reported in one pass."""

    def test_invalid_config_collects_all_errors(self, mock_env_vars):
        with pytest.raises(ConfigurationError) as exc_info:
            load_config(FIXTURES_DIR / "invalid_config.yaml")

        errors = exc_info.value.errors
        fields = " ".join(errors)
        assert "site -> name" in fields
        assert "site -> url" in fields
        assert "queue -> concurrency" in fields
        assert "queue -> retry_base_delay" in fields
        assert "logging -> level" in fields

    def test_retry_delay_too_long(self, tmp_path, mock_env_vars):
        config_file = tmp_path / "config.yaml"
        config_file.write_text('queue:\n  retry_base_delay: "2h"\n')

        with pytest.raises(ConfigurationError) as exc_info:
            load_config(config_file)

        assert any("too long" in error for error in exc_info.value.errors)

    @pytest.mark.parametrize("value", ["0s", "PT0S"])
    def test_zero_retry_delay_allowed(self, tmp_path, mock_env_vars, value):
        config_file = tmp_path / "config.yaml"
        config_file.write_text(f'queue:\n  retry_base_delay: "{value}"\n')

        app_config, _ = load_config(config_file)

        assert app_config.queue.retry_base_delay_seconds == 0

    def test_support_email_on_reserved_domain_rejected(self, tmp_path, mock_env_vars):
        config_file = tmp_path / "config.yaml"
        config_file.write_text('site:\n  support_email: "help@shop.test"\n')

        with pytest.raises(ConfigurationError) as exc_info:
            load_config(config_file)

        assert any("site -> support_email" in error for error in exc_info.value.errors)

    def test_negative_default_retries(self, tmp_path, mock_env_vars):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("queue:\n  default_retries: -1\n")

        with pytest.raises(ConfigurationError):
            load_config(config_file)

    def test_error_message_lists_suggestions(self):
        error = ConfigurationError("Broken", errors=["one"], suggestions=["fix it"])
        error.add_error("two")

        message = str(error)
        assert "1. one" in message
        assert "2. two" in message
        assert "- fix it" in message

    def test_warnings_for_risky_settings(self):
        warnings = check_for_warnings(
            {
                "site": {"url": "http://localhost:3000"},
                "queue": {"concurrency": 20, "default_retries": 0},
                "email": {"enabled": False},
            }
        )

        assert len(warnings) == 4


class TestDurationParsing:
    """Test duration parsing utilities."""

    @pytest.mark.parametrize(
        "value,seconds",
        [
            ("30s", 30),
            ("2m", 120),
            ("1h", 3600),
            ("1d", 86400),
            ("1h30m", 5400),
            ("PT45S", 45),
            ("PT2M", 120),
            ("PT1H30M", 5400),
            ("P1D", 86400),
        ],
    )
    def test_parse_duration(self, value, seconds):
        assert parse_duration(value) == seconds

    @pytest.mark.parametrize("value", ["10x", "1m foo", "PT", "abc"])
    def test_parse_invalid_format(self, value):
        with pytest.raises(DurationParseError):
            parse_duration(value)

    def test_parse_empty_string(self):
        with pytest.raises(DurationParseError, match="empty"):
            parse_duration("  ")

    def test_parse_zero_rejected(self):
        with pytest.raises(DurationParseError, match="zero"):
            parse_duration("0s")

    def test_parse_zero_allowed_on_request(self):
        assert parse_duration("0s", allow_zero=True) == 0
        assert parse_duration("PT0S", allow_zero=True) == 0

    def test_validate_duration_range(self):
        validate_duration_range(60, min_seconds=1, max_seconds=3600)

        with pytest.raises(DurationParseError, match="too short"):
            validate_duration_range(0, min_seconds=1)
        with pytest.raises(DurationParseError, match="too long"):
            validate_duration_range(7200, max_seconds=3600)

    def test_format_duration(self):
        assert format_duration(1) == "1 second"
        assert format_duration(120) == "2 minutes"
        assert format_duration(3600) == "1 hour"
        assert format_duration(172800) == "2 days"


class TestEnvironmentVariables:
    """Test environment variable loading."""

    def test_load_valid_environment_config(self, mock_env_vars):
        env_config = load_environment_config()

        assert env_config.smtp_host == "smtp.test.com"
        assert env_config.smtp_port == 587
        assert env_config.smtp_user == "shop@test.com"
        assert env_config.database_url == DEFAULT_DATABASE_URL
        assert env_config.email_enabled is True

    def test_missing_required_env_vars(self, clean_env):
        with pytest.raises(ConfigurationError) as exc_info:
            load_environment_config()

        assert "Missing required environment variable: SMTP_HOST" in exc_info.value.errors
        assert "Missing required environment variable: SMTP_PORT" in exc_info.value.errors

    def test_smtp_optional_when_email_disabled(self, clean_env):
        clean_env.setenv("EMAIL_ENABLED", "false")

        env_config = load_environment_config()

        assert env_config.email_enabled is False
        assert env_config.smtp_host == "localhost"
        assert env_config.smtp_port == 25

    @pytest.mark.parametrize("port", ["abc", "0", "70000"])
    def test_invalid_smtp_port(self, mock_env_vars, port):
        mock_env_vars.setenv("SMTP_PORT", port)

        with pytest.raises(ConfigurationError, match="Invalid SMTP_PORT"):
            load_environment_config()

    def test_invalid_from_address(self, mock_env_vars):
        mock_env_vars.setenv("EMAIL_FROM_ADDRESS", "not-an-email")

        with pytest.raises(ConfigurationError, match="Invalid EMAIL_FROM_ADDRESS"):
            load_environment_config()

    def test_credentials_must_be_paired(self, mock_env_vars):
        mock_env_vars.delenv("SMTP_PASS")

        with pytest.raises(ConfigurationError, match="SMTP_USER is set but SMTP_PASS is not"):
            load_environment_config()

    def test_invalid_log_level(self, mock_env_vars):
        mock_env_vars.setenv("LOG_LEVEL", "VERBOSE")

        with pytest.raises(ConfigurationError, match="Invalid LOG_LEVEL"):
            load_environment_config()

    def test_optional_env_vars(self, mock_env_vars):
        mock_env_vars.setenv("EMAIL_FROM_NAME", "Shop")
        mock_env_vars.setenv("EMAIL_FROM_ADDRESS", "orders@test.com")
        mock_env_vars.setenv("DATABASE_URL", "sqlite:///:memory:")

        env_config = load_environment_config()

        assert env_config.from_name == "Shop"
        assert env_config.from_address == "orders@test.com"
        assert env_config.database_url == "sqlite:///:memory:"


class TestConfigurationHelpers:
    def test_validate_config_file_utility(self, capsys):
        assert validate_config_file(FIXTURES_DIR / "valid_config.yaml") is True
        assert validate_config_file(FIXTURES_DIR / "invalid_config.yaml") is False

        assert "Configuration validation failed" in capsys.readouterr().out
