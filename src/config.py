"""
Application settings loaded from environment variables.

Values are read through getter functions so that a changed environment
(or a test's monkeypatch) is picked up at call time.
"""

import logging
import os
import sys
from typing import Any

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def get_openai_api_key() -> str | None:
    return os.getenv("OPENAI_API_KEY")


def get_generation_model() -> str:
    return os.getenv("GENERATION_MODEL", "gpt-4o-mini")


def get_generation_temperature() -> float:
    return float(os.getenv("GENERATION_TEMPERATURE", "0.2"))


def get_generation_timeout() -> int:
    return int(os.getenv("GENERATION_TIMEOUT_SECONDS", "120"))


def get_mailgun_domain() -> str:
    return os.getenv("MAILGUN_DOMAIN", "").strip()


def get_mailgun_api_key() -> str:
    return os.getenv("MAILGUN_API_KEY", "").strip()


def get_mailgun_api_base() -> str:
    # EU accounts use https://api.eu.mailgun.net/v3
    return os.getenv("MAILGUN_API_BASE", "https://api.mailgun.net/v3").rstrip("/")


def get_email_brand() -> str:
    return os.getenv("EMAIL_BRAND", "RigSurvey Specialist")


def get_data_dir() -> str:
    return os.getenv("RIG_DATA_DIR", "data")


def get_user_namespace() -> str:
    return os.getenv("RIG_USER", "anonymous")


def get_log_level() -> str:
    return os.getenv("LOG_LEVEL", "INFO").upper()


def get_all_settings() -> dict[str, Any]:
    """Snapshot of the effective configuration with secrets redacted."""
    return {
        "OPENAI_API_KEY": "***REDACTED***" if get_openai_api_key() else None,
        "GENERATION_MODEL": get_generation_model(),
        "GENERATION_TEMPERATURE": get_generation_temperature(),
        "GENERATION_TIMEOUT_SECONDS": get_generation_timeout(),
        "MAILGUN_DOMAIN": get_mailgun_domain() or None,
        "MAILGUN_API_KEY": "***REDACTED***" if get_mailgun_api_key() else None,
        "MAILGUN_API_BASE": get_mailgun_api_base(),
        "EMAIL_BRAND": get_email_brand(),
        "RIG_DATA_DIR": get_data_dir(),
        "RIG_USER": get_user_namespace(),
        "LOG_LEVEL": get_log_level(),
    }


def configure_logging() -> None:
    """
    Installs a single console handler on the root logger.

    Safe to call on every Streamlit rerun: existing handlers are replaced
    rather than stacked.
    """
    numeric_level = getattr(logging, get_log_level(), logging.INFO)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    console_handler.setLevel(numeric_level)
    root_logger.addHandler(console_handler)

    # Keep HTTP clients quiet
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
