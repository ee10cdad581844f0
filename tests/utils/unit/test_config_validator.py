"""
Unit Tests: Startup config validation (utils/config_validator.py)
"""

from types import SimpleNamespace

import pytest

from utils.config_validator import ConfigValidationError, validate_or_exit, validate_startup_config


def make_config(**overrides):
    values = dict(
        STOCK_LOOKUP_BACKEND="catalog",
        STOCK_LOOKUP_URL="",
        STOCK_LOOKUP_TIMEOUT_SECONDS=5.0,
        PAYMENT_BACKEND="cash",
        PAYMENT_API_URL="",
        PAYMENT_API_KEY="",
        PAYMENT_TIMEOUT_SECONDS=30.0,
        MAX_SESSIONS=5,
        SESSION_IDLE_MINUTES=60,
        WEBAPP_PORT=8000,
    )
    values.update(overrides)
    return SimpleNamespace(**values)


class TestValidateStartupConfig:

    def test_default_local_setup_is_valid(self):
        validate_startup_config(make_config())

    def test_http_backends_with_full_settings(self):
        validate_startup_config(make_config(
            STOCK_LOOKUP_BACKEND="http",
            STOCK_LOOKUP_URL="https://inventory.example.com/api",
            PAYMENT_BACKEND="http",
            PAYMENT_API_URL="https://payments.example.com/api",
            PAYMENT_API_KEY="x" * 24,
        ))

    @pytest.mark.parametrize("overrides, fragment", [
        ({"STOCK_LOOKUP_BACKEND": "redis"}, "STOCK_LOOKUP_BACKEND"),
        ({"STOCK_LOOKUP_BACKEND": "http"}, "STOCK_LOOKUP_URL"),
        ({"STOCK_LOOKUP_BACKEND": "http", "STOCK_LOOKUP_URL": "inventory.local"}, "http(s) URL"),
        ({"PAYMENT_BACKEND": "http", "PAYMENT_API_URL": "https://payments.example.com"}, "PAYMENT_API_KEY"),
        ({"PAYMENT_BACKEND": "http", "PAYMENT_API_URL": "https://payments.example.com",
          "PAYMENT_API_KEY": "short"}, "truncated"),
        ({"MAX_SESSIONS": 0}, "MAX_SESSIONS"),
        ({"PAYMENT_TIMEOUT_SECONDS": 0}, "PAYMENT_TIMEOUT_SECONDS"),
    ])
    def test_invalid_settings(self, overrides, fragment):
        with pytest.raises(ConfigValidationError) as exc_info:
            validate_startup_config(make_config(**overrides))

        assert fragment in str(exc_info.value)


def test_validate_or_exit_exits_with_code_1():
    with pytest.raises(SystemExit) as exc_info:
        validate_or_exit(make_config(MAX_SESSIONS=-1))

    assert exc_info.value.code == 1
