"""Logging setup for the image host layer.

Modules log through ``structlog.get_logger(__name__)`` with key/value
fields. Call ``configure_logging()`` once at startup (the CLI does).
"""

import logging

import structlog

# Vendor SDKs that are chatty at INFO
THIRD_PARTY_LIBRARIES = [
    "boto3",
    "botocore",
    "urllib3",
    "httpx",
    "httpcore",
    "qcloud_cos",
    "alibabacloud_oss_v2",
]

_logging_configured = False


def configure_logging(level: str = "INFO", *, force: bool = False) -> None:
    """Configure stdlib logging and structlog filtering.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        force: Reconfigure even if already configured. Useful for testing.
    """
    global _logging_configured

    if _logging_configured and not force:
        return

    log_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        force=True,
    )
    for name in THIRD_PARTY_LIBRARIES:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        cache_logger_on_first_use=True,
    )

    _logging_configured = True


def reset_logging_config() -> None:
    """Allow configure_logging() to run again (tests)."""
    global _logging_configured
    _logging_configured = False
    structlog.reset_defaults()


def is_logging_configured() -> bool:
    return _logging_configured
