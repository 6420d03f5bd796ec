import os
import sys
from decimal import Decimal, InvalidOperation

from dotenv import load_dotenv

from enums.runtime_environment import RuntimeEnvironment

# Load .env but don't override existing environment variables
# This allows test scripts to set RUNTIME_ENVIRONMENT=TEST before import
load_dotenv(".env", override=False)

# Parse RUNTIME_ENVIRONMENT with clear error message on misconfiguration
try:
    _runtime_env_str = os.environ.get("RUNTIME_ENVIRONMENT")
    if not _runtime_env_str:
        raise ValueError("RUNTIME_ENVIRONMENT environment variable is not set")
    RUNTIME_ENVIRONMENT = RuntimeEnvironment(_runtime_env_str)
except ValueError as e:
    valid_values = [env.value for env in RuntimeEnvironment]
    print(f"\n ERROR: Invalid RUNTIME_ENVIRONMENT configuration\n", file=sys.stderr)
    print(f"Reason: {e}", file=sys.stderr)
    print(f"Valid values: {', '.join(valid_values)}", file=sys.stderr)
    print(f"Current value: {os.environ.get('RUNTIME_ENVIRONMENT', '(not set)')}", file=sys.stderr)
    print(f"\nAdd to .env: RUNTIME_ENVIRONMENT={valid_values[0]}\n", file=sys.stderr)
    sys.exit(1)

# Database
DB_NAME = os.environ.get("DB_NAME", "restaurant.db")
DB_URL = os.environ.get("DB_URL", f"sqlite+aiosqlite:///data/{DB_NAME}")

# Pricing
# Tax is a fixed fraction of the subtotal (0.08 = 8%)
try:
    TAX_RATE = Decimal(os.environ.get("TAX_RATE", "0.08"))
    if TAX_RATE < 0 or TAX_RATE >= 1:
        raise ValueError(f"TAX_RATE must be in [0, 1) (got: {TAX_RATE})")
except (InvalidOperation, ValueError) as e:
    print(f"\n ERROR: Invalid TAX_RATE configuration\n", file=sys.stderr)
    print(f"Reason: {e}", file=sys.stderr)
    print(f"Expected: Decimal fraction (e.g., 0.08 for 8%)", file=sys.stderr)
    print(f"Current value: {os.environ.get('TAX_RATE', '(not set)')}\n", file=sys.stderr)
    sys.exit(1)
CURRENCY_SYMBOL = os.environ.get("CURRENCY_SYMBOL", "£")

# Cart Storage Configuration
CART_STORAGE_KEY = os.environ.get("CART_STORAGE_KEY", "cart")
CART_STORAGE_BACKEND = os.environ.get("CART_STORAGE_BACKEND", "memory")  # memory | redis
REDIS_HOST = os.environ.get("REDIS_HOST", "localhost")
REDIS_PORT = int(os.environ.get("REDIS_PORT", "6379"))
REDIS_PASSWORD = os.environ.get("REDIS_PASSWORD")

# Order Submission Configuration
ORDER_NUMBER_MAX_ATTEMPTS = int(os.environ.get("ORDER_NUMBER_MAX_ATTEMPTS", "3"))
# false: header, lines and add-ons are committed one step at a time
# true: all three are written in one transaction, idempotent by order number
ORDER_SUBMISSION_ATOMIC = os.environ.get("ORDER_SUBMISSION_ATOMIC", "false") == "true"

# Order Status Channel Configuration
ORDER_STATUS_REDIS_CHANNEL = os.environ.get("ORDER_STATUS_REDIS_CHANNEL", "order-status-updates")
# true: status events are also relayed to other processes through Redis pub/sub
ORDER_STATUS_RELAY_ENABLED = os.environ.get("ORDER_STATUS_RELAY_ENABLED", "false") == "true"

# Telegram delivery of toasts (optional)
TOKEN = os.environ.get("TOKEN")
try:
    _staff_chat_ids_str = os.environ.get("STAFF_CHAT_ID_LIST", "")
    STAFF_CHAT_ID_LIST = [int(chat_id.strip()) for chat_id in _staff_chat_ids_str.split(',') if chat_id.strip()]
except ValueError as e:
    print(f"\n ERROR: Invalid STAFF_CHAT_ID_LIST configuration\n", file=sys.stderr)
    print(f"Reason: {e}", file=sys.stderr)
    print(f"Expected format: comma-separated list of Telegram chat IDs", file=sys.stderr)
    print(f"Example: STAFF_CHAT_ID_LIST=123456789,987654321", file=sys.stderr)
    print(f"Current value: {os.environ.get('STAFF_CHAT_ID_LIST', '(not set)')}\n", file=sys.stderr)
    sys.exit(1)

# Logging Configuration
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")  # DEBUG, INFO, WARNING, ERROR, CRITICAL
LOG_MASK_SECRETS = os.environ.get("LOG_MASK_SECRETS", "true") == "true"  # Mask customer PII in logs

# Log Retention: Environment-specific defaults
# Dev: 30 days for debugging
# Prod: 5 days default to save disk space
if RUNTIME_ENVIRONMENT == RuntimeEnvironment.DEV:
    LOG_RETENTION_DAYS = int(os.environ.get("LOG_RETENTION_DAYS", "30"))
else:
    LOG_RETENTION_DAYS = int(os.environ.get("LOG_RETENTION_DAYS", "5"))
