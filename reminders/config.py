"""
Centralized configuration for the lecture reminder service.

Every setting is read from the environment on each call, so tests can
patch os.environ without reloading modules.
"""

import os
from datetime import timedelta


def _get_bool(name: str, default: str = "") -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


def _get_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


def is_dev_mode() -> bool:
    """Check if running in development mode (DEV_MODE env)."""
    return _get_bool("DEV_MODE")


def is_production() -> bool:
    """Check if running in production (APP_ENV=production)."""
    return os.getenv("APP_ENV", "").lower() == "production"


def is_scheduler_disabled() -> bool:
    """The web process skips APScheduler when an external cron drives the pipeline."""
    return _get_bool("DISABLE_SCHEDULER")


def get_api_port() -> int:
    """Get API server port from env or default."""
    return _get_int("API_PORT", 8000)


# =============================================================================
# Dispatcher
# =============================================================================


def get_dispatch_batch_limit() -> int:
    """Max notifications claimed by one dispatcher run."""
    return _get_int("DISPATCH_BATCH_LIMIT", 50)


def get_dispatch_concurrency() -> int:
    """Max provider calls in flight at once within a batch."""
    return max(1, _get_int("DISPATCH_CONCURRENCY", 5))


def get_dispatch_interval() -> timedelta:
    return timedelta(seconds=_get_int("DISPATCH_INTERVAL_SECONDS", 30))


def get_provider_timeout() -> float:
    """Seconds before a provider call is abandoned and treated as failed."""
    return float(os.getenv("PROVIDER_TIMEOUT_SECONDS", "10"))


def get_claim_lease() -> timedelta:
    """How long an in-flight claim is honoured before another run may reclaim it."""
    return timedelta(seconds=_get_int("CLAIM_LEASE_SECONDS", 600))


# =============================================================================
# Reminder windows
# =============================================================================


def get_imminent_window() -> timedelta:
    return timedelta(minutes=_get_int("IMMINENT_WINDOW_MINUTES", 60))


def get_next_day_window() -> timedelta:
    return timedelta(hours=_get_int("NEXT_DAY_WINDOW_HOURS", 24))


def get_lecture_timezone() -> str:
    """Timezone used when formatting lecture times in reminder messages."""
    return os.getenv("LECTURE_TIMEZONE", "UTC")


def get_trigger_secret() -> str | None:
    """Shared secret required by the HTTP trigger endpoint."""
    return os.getenv("TRIGGER_SECRET") or None


# Required environment variables for production
# Format: (name, description, required_in_dev)
REQUIRED_ENV_VARS = [
    ("DATABASE_URL", "PostgreSQL connection string", True),
    ("SENDGRID_API_KEY", "SendGrid API key for reminder emails", False),
    ("TRIGGER_SECRET", "Shared secret for the reminder trigger endpoint", False),
]


def check_required_env_vars() -> tuple[bool, list[str]]:
    """
    Check that required environment variables are set.

    Returns:
        (all_ok, warnings): Tuple of success flag and list of warning messages
    """
    warnings = []
    errors = []
    in_dev = is_dev_mode()

    for name, description, required_in_dev in REQUIRED_ENV_VARS:
        value = os.environ.get(name)

        if not value:
            if is_production():
                errors.append(f"  ✗ {name}: Not set ({description})")
            elif required_in_dev or not in_dev:
                warnings.append(f"  ⚠ {name}: Not set ({description})")

    if errors:
        for error in errors:
            print(error)
        return False, warnings

    return True, warnings
