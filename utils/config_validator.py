"""
Configuration Validation Module

Validates critical configuration values at startup to fail-fast
with clear error messages instead of runtime failures.
"""

import sys
from typing import Optional
from urllib.parse import urlparse


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""
    pass


def validate_required_config(value: Optional[str], name: str, example: str = "") -> None:
    """
    Validate that a required config value is set.

    Raises:
        ConfigValidationError: If value is missing
    """
    if not value:
        error_msg = f"{name} is required but not set!"
        if example:
            error_msg += f"\nAdd to .env: {name}={example}"
        raise ConfigValidationError(error_msg)


def validate_http_url(value: Optional[str], name: str, example: str) -> None:
    """
    Validate a collaborator base URL.

    Raises:
        ConfigValidationError: If the URL is missing or not http(s)
    """
    validate_required_config(value, name, example)
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigValidationError(
            f"{name} must be an http(s) URL (got: {value})\n"
            f"Add to .env: {name}={example}"
        )


def validate_choice(value: str, name: str, choices: tuple[str, ...]) -> None:
    if value not in choices:
        raise ConfigValidationError(
            f"{name} must be one of {', '.join(choices)} (got: {value})"
        )


def validate_positive(value, name: str) -> None:
    if value <= 0:
        raise ConfigValidationError(f"{name} must be greater than zero (got: {value})")


def validate_payment_api_key(api_key: Optional[str]) -> None:
    """
    Validate the payment gateway API key.

    Raises:
        ConfigValidationError: If key is missing or too short to be real
    """
    if not api_key or len(api_key.strip()) == 0:
        raise ConfigValidationError(
            "PAYMENT_API_KEY is required when PAYMENT_BACKEND=http!\n"
            "Get your API key from your payment provider dashboard.\n"
            "Add to .env: PAYMENT_API_KEY=<your-api-key>"
        )

    if len(api_key) < 16:
        raise ConfigValidationError(
            f"PAYMENT_API_KEY looks truncated (length: {len(api_key)}, minimum: 16)!\n"
            "Copy the full key from your payment provider dashboard."
        )


def validate_startup_config(config_module) -> None:
    """
    Validate all critical configuration at startup.

    Raises:
        ConfigValidationError: If any validation fails
    """
    validate_choice(config_module.STOCK_LOOKUP_BACKEND, 'STOCK_LOOKUP_BACKEND', ("catalog", "http"))
    validate_choice(config_module.PAYMENT_BACKEND, 'PAYMENT_BACKEND', ("cash", "http"))

    if config_module.STOCK_LOOKUP_BACKEND == "http":
        validate_http_url(config_module.STOCK_LOOKUP_URL, 'STOCK_LOOKUP_URL', 'https://inventory.example.com/api')
    validate_positive(config_module.STOCK_LOOKUP_TIMEOUT_SECONDS, 'STOCK_LOOKUP_TIMEOUT_SECONDS')

    if config_module.PAYMENT_BACKEND == "http":
        validate_http_url(config_module.PAYMENT_API_URL, 'PAYMENT_API_URL', 'https://payments.example.com/api')
        validate_payment_api_key(config_module.PAYMENT_API_KEY)
    validate_positive(config_module.PAYMENT_TIMEOUT_SECONDS, 'PAYMENT_TIMEOUT_SECONDS')

    validate_positive(config_module.MAX_SESSIONS, 'MAX_SESSIONS')
    validate_positive(config_module.SESSION_IDLE_MINUTES, 'SESSION_IDLE_MINUTES')
    validate_positive(config_module.WEBAPP_PORT, 'WEBAPP_PORT')


def validate_or_exit(config_module) -> None:
    """
    Validate configuration and exit with error code 1 if validation fails.

    This is the main entry point for startup validation.
    """
    try:
        validate_startup_config(config_module)
    except ConfigValidationError as e:
        print(f"\n ERROR: Configuration Validation Failed\n", file=sys.stderr)
        print(str(e), file=sys.stderr)
        print("\nPOS startup aborted. Please fix configuration and try again.\n", file=sys.stderr)
        sys.exit(1)
