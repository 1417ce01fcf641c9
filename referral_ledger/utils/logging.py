"""
Logging configuration.

Configures loguru sinks for services and workers.
"""

import sys

from loguru import logger

from referral_ledger.config.settings import settings


def setup_logging(service_name: str = "referral-ledger") -> None:
    """
    Configure logger with stderr and optional rotating file sink.

    Args:
        service_name: Name logged on startup
    """
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level,
        backtrace=settings.debug,
        diagnose=settings.debug,
    )

    if settings.log_file:
        logger.add(
            settings.log_file,
            rotation="1 day",
            retention="7 days",
            level=settings.log_level,
            encoding="utf-8",
        )

    logger.info(f"Starting {service_name} ({settings.environment})...")
