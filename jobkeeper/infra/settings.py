"""
Runtime settings.

All values come from environment variables; entry points load `.env` with
python-dotenv before the first get_settings() call.

Environment Variables:
- LOG_LEVEL: Logging level (default: INFO)
- LOG_DIR: Directory for daily log files (default: logs)
- SCHEDULER_TIMEZONE: Engine timezone (default: UTC)
- SCHEDULER_MAX_WORKERS: Job execution thread pool size (default: 10)
- SMTP_HOST / SMTP_PORT / SMTP_USERNAME / SMTP_PASSWORD / SMTP_USE_TLS
- MAIL_FROM: Sender address for email jobs
- WEBHOOK_TIMEOUT_SECONDS: Default timeout for webhook jobs (default: 30)
"""

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


def _get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean value from environment variable."""
    val = os.getenv(key, "").lower()
    if val in ("true", "1", "yes", "on"):
        return True
    elif val in ("false", "0", "no", "off"):
        return False
    return default


def _get_env_int(key: str, default: int) -> int:
    """Get integer value from environment variable."""
    val = os.getenv(key)
    if val is None:
        return default
    try:
        return int(val)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    """Process-wide settings."""

    # Logging
    log_level: str = "INFO"
    log_dir: str = "logs"

    # Engine
    scheduler_timezone: str = "UTC"
    scheduler_max_workers: int = 10

    # Email jobs
    smtp_host: str = "localhost"
    smtp_port: int = 25
    smtp_username: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_use_tls: bool = False
    mail_from: str = "jobkeeper@localhost"

    # Webhook jobs
    webhook_timeout_seconds: int = 30


@lru_cache
def get_settings() -> Settings:
    """Load settings from environment variables."""
    return Settings(
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        log_dir=os.getenv("LOG_DIR", "logs"),
        scheduler_timezone=os.getenv("SCHEDULER_TIMEZONE", "UTC"),
        scheduler_max_workers=_get_env_int("SCHEDULER_MAX_WORKERS", 10),
        smtp_host=os.getenv("SMTP_HOST", "localhost"),
        smtp_port=_get_env_int("SMTP_PORT", 25),
        smtp_username=os.getenv("SMTP_USERNAME"),
        smtp_password=os.getenv("SMTP_PASSWORD"),
        smtp_use_tls=_get_env_bool("SMTP_USE_TLS", False),
        mail_from=os.getenv("MAIL_FROM", "jobkeeper@localhost"),
        webhook_timeout_seconds=_get_env_int("WEBHOOK_TIMEOUT_SECONDS", 30),
    )
