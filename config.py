import os
import sys
import logging

from dotenv import load_dotenv

from enums.price_policy import PricePolicy
from enums.runtime_environment import RuntimeEnvironment

# Load .env but don't override existing environment variables
# This allows test scripts to set RUNTIME_ENVIRONMENT=TEST before import
load_dotenv(".env", override=False)

# Parse RUNTIME_ENVIRONMENT with clear error message on misconfiguration
try:
    _runtime_env_str = os.environ.get("RUNTIME_ENVIRONMENT", "DEV")
    RUNTIME_ENVIRONMENT = RuntimeEnvironment(_runtime_env_str.strip().upper())
except ValueError as e:
    valid_values = [env.value for env in RuntimeEnvironment]
    print(f"\n ERROR: Invalid RUNTIME_ENVIRONMENT configuration\n", file=sys.stderr)
    print(f"Reason: {e}", file=sys.stderr)
    print(f"Valid values: {', '.join(valid_values)}", file=sys.stderr)
    print(f"Current value: {os.environ.get('RUNTIME_ENVIRONMENT', '(not set)')}", file=sys.stderr)
    print(f"\nAdd to .env: RUNTIME_ENVIRONMENT={valid_values[0]}\n", file=sys.stderr)
    sys.exit(1)

# Web server (FastAPI served by uvicorn)
WEBAPP_HOST = os.environ.get("WEBAPP_HOST", "127.0.0.1")
WEBAPP_PORT = int(os.environ.get("WEBAPP_PORT")) if os.environ.get("WEBAPP_PORT") else 8000
CORS_ALLOWED_ORIGINS = [
    origin.strip() for origin in os.environ.get("CORS_ALLOWED_ORIGINS", "").split(",") if origin.strip()
]

# Currency shown on receipts (amounts are always Decimal, see MONEY_DECIMALS)
CURRENCY = os.environ.get("CURRENCY", "EUR")

# Parse MONEY_DECIMALS with error handling
try:
    MONEY_DECIMALS = int(os.environ.get("MONEY_DECIMALS", "2"))
    if MONEY_DECIMALS < 0 or MONEY_DECIMALS > 4:
        raise ValueError(f"MONEY_DECIMALS must be between 0 and 4 (got: {MONEY_DECIMALS})")
except ValueError as e:
    print(f"\n ERROR: Invalid MONEY_DECIMALS configuration\n", file=sys.stderr)
    print(f"Reason: {e}", file=sys.stderr)
    print(f"Current value: {os.environ.get('MONEY_DECIMALS', '(not set)')}\n", file=sys.stderr)
    sys.exit(1)

# Session registry
MAX_SESSIONS = int(os.environ.get("MAX_SESSIONS", "5"))  # Advisory: UI warns, creation never blocked
SESSION_IDLE_MINUTES = int(os.environ.get("SESSION_IDLE_MINUTES", "60"))  # Idle empty sessions are cleaned up
DEFAULT_SESSION_NAME = os.environ.get("DEFAULT_SESSION_NAME", "Default Session")
SESSION_CLEANUP_INTERVAL_MINUTES = int(os.environ.get("SESSION_CLEANUP_INTERVAL_MINUTES", "10"))  # 0 disables the cleanup job

# Cart pricing: SNAPSHOT keeps add-time price, REFRESH re-prices on every stock lookup
try:
    CART_PRICE_POLICY = PricePolicy.from_string(os.environ.get("CART_PRICE_POLICY", "SNAPSHOT"))
except ValueError as e:
    print(f"\n ERROR: Invalid CART_PRICE_POLICY configuration\n", file=sys.stderr)
    print(f"Reason: {e}\n", file=sys.stderr)
    sys.exit(1)

# Stock lookup collaborator
# STOCK_LOOKUP_BACKEND: "catalog" reads the local product table, "http" calls the inventory API
STOCK_LOOKUP_BACKEND = os.environ.get("STOCK_LOOKUP_BACKEND", "catalog")
STOCK_LOOKUP_URL = os.environ.get("STOCK_LOOKUP_URL", "")
STOCK_LOOKUP_TIMEOUT_SECONDS = float(os.environ.get("STOCK_LOOKUP_TIMEOUT_SECONDS", "5"))

# Payment submission collaborator
# PAYMENT_BACKEND: "cash" settles in-process (cash drawer), "http" calls the payment gateway
PAYMENT_BACKEND = os.environ.get("PAYMENT_BACKEND", "cash")
PAYMENT_API_URL = os.environ.get("PAYMENT_API_URL", "")
PAYMENT_API_KEY = os.environ.get("PAYMENT_API_KEY", "")
PAYMENT_TIMEOUT_SECONDS = float(os.environ.get("PAYMENT_TIMEOUT_SECONDS", "30"))

# Local product catalog (read-only from the engine's perspective)
DB_NAME = os.environ.get("DB_NAME", "catalog.db")
DB_URL = os.environ.get("DB_URL", f"sqlite+aiosqlite:///data/{DB_NAME}")

# Logging Configuration
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")  # DEBUG, INFO, WARNING, ERROR, CRITICAL
LOG_MASK_SECRETS = os.environ.get("LOG_MASK_SECRETS", "true") == "true"  # Mask sensitive data in logs

# Log Retention: Environment-specific defaults
# Dev: keep 30 days for debugging
# Prod: Use 5 days default to save disk space
if RUNTIME_ENVIRONMENT == RuntimeEnvironment.DEV:
    LOG_RETENTION_DAYS = int(os.environ.get("LOG_RETENTION_DAYS", "30"))
else:
    LOG_RETENTION_DAYS = int(os.environ.get("LOG_RETENTION_DAYS", "5"))

if RUNTIME_ENVIRONMENT == RuntimeEnvironment.PROD and PAYMENT_BACKEND == "cash":
    logging.info("[Init] PAYMENT_BACKEND=cash in PROD: only cash drawer settlements are available")
