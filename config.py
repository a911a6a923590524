import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file) or dict()
else:
    data = dict()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./metering.db")
    API_PREFIX = data.get("API_PREFIX", "")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    ENABLE_LOGGING_MIDDLEWARE = bool(data.get("ENABLE_LOGGING_MIDDLEWARE", 1))
    ENABLE_SENTRY = data.get("ENABLE_SENTRY", 0)
    DSN_SENTRY = data.get("DSN_SENTRY", "")
    SENTRY_ENVIRONMENT = data.get("SENTRY_ENVIRONMENT", "dev")

    # Metering
    DEFAULT_TIMEZONE = data.get("DEFAULT_TIMEZONE", "UTC")  # Zone for period boundaries when a subscription has none
    NEAR_LIMIT_THRESHOLD_PERCENT = data.get("NEAR_LIMIT_THRESHOLD_PERCENT", 80)
    USAGE_ALERT_WEBHOOK = data.get("USAGE_ALERT_WEBHOOK", None)

    # Store conflict retries on the locked read-check-write
    STORE_RETRY_ATTEMPTS = data.get("STORE_RETRY_ATTEMPTS", 3)
    STORE_RETRY_MIN_WAIT_SECONDS = data.get("STORE_RETRY_MIN_WAIT_SECONDS", 0.05)
    STORE_RETRY_MAX_WAIT_SECONDS = data.get("STORE_RETRY_MAX_WAIT_SECONDS", 1.0)

    # Invoicing
    DEFAULT_CURRENCY = data.get("DEFAULT_CURRENCY", "INR")
    DEFAULT_TAX_RATE = data.get("DEFAULT_TAX_RATE", 18)  # Percent; 0 selects zero tax
    INVOICE_DUE_DAYS = data.get("INVOICE_DUE_DAYS", 30)

    # Reset sweep
    RESET_SWEEP_ENABLED = bool(data.get("RESET_SWEEP_ENABLED", True))
    RESET_SWEEP_INTERVAL_SECONDS = data.get("RESET_SWEEP_INTERVAL_SECONDS", 3600)  # Hourly

    # Overdue sweep
    OVERDUE_SWEEP_ENABLED = bool(data.get("OVERDUE_SWEEP_ENABLED", True))
    OVERDUE_SWEEP_INTERVAL_SECONDS = data.get("OVERDUE_SWEEP_INTERVAL_SECONDS", 86400)  # Daily

    # Usage counter reconciliation
    RECONCILIATION_ENABLED = bool(data.get("RECONCILIATION_ENABLED", True))
    RECONCILIATION_INTERVAL_SECONDS = data.get("RECONCILIATION_INTERVAL_SECONDS", 86400)  # Daily
