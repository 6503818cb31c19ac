"""
Configuration constants for the Department Auto-Scheduling Service.
All configurable settings are defined here.
"""

import os
from typing import Tuple
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# Environment
APP_ENV = os.getenv("APP_ENV", "development")
IS_PRODUCTION = APP_ENV.lower() == "production"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Supabase Configuration
SUPABASE_URL = os.getenv("SUPABASE_URL", "")
SUPABASE_KEY = os.getenv("SUPABASE_KEY", os.getenv("SUPABASE_ANON_KEY", ""))

# Redis connection URL for the Celery broker/backend
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")


def get_supabase_credentials() -> Tuple[str, str]:
    """
    Get the Supabase project URL and API key from the environment.

    Returns:
        Tuple of (url, key)

    Raises:
        ValueError: If either value is missing
    """
    if not SUPABASE_URL or not SUPABASE_KEY:
        raise ValueError(
            "Supabase credentials not found. Please set:\n"
            "  - SUPABASE_URL: project URL (https://<ref>.supabase.co)\n"
            "  - SUPABASE_KEY (or SUPABASE_ANON_KEY): API key"
        )
    return SUPABASE_URL, SUPABASE_KEY


# Retry policy for persistence calls
RETRY_MAX_ATTEMPTS = int(os.getenv("RETRY_MAX_ATTEMPTS", "3"))
RETRY_BASE_DELAY_SECONDS = float(os.getenv("RETRY_BASE_DELAY_SECONDS", "1.0"))
# When false every failure is retried; when true only store/transient failures are
RETRY_TRANSIENT_ONLY = _env_bool("RETRY_TRANSIENT_ONLY", False)

# Time slot generation
DAY_START_HOUR = int(os.getenv("DAY_START_HOUR", "8"))
DAY_END_HOUR = int(os.getenv("DAY_END_HOUR", "20"))
SLOT_DURATION_MINUTES = int(os.getenv("SLOT_DURATION_MINUTES", "30"))

# Availability tiers (lower value = higher priority)
NOT_AVAILABLE_TIER = 4

# Schedule statuses
SCHEDULE_STATUS_SCHEDULED = "scheduled"

# Store tables
TABLE_INDIVIDUALS = "individuals"
TABLE_DEPARTMENTS = "departments"
TABLE_TIME_SLOTS = "time_slots"
TABLE_AVAILABILITY = "availability"
TABLE_SCHEDULES = "schedules"
