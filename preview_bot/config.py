"""Configuration loading and environment setup."""
import os
import re
from pathlib import Path
from typing import Any, Dict, List

from dotenv import load_dotenv

from .exceptions import ConfigurationError
from .utils.logging import get_logger

logger = get_logger(__name__)

# Load environment variables from .env file with explicit path
load_dotenv(dotenv_path=Path.cwd() / ".env", verbose=True)

# Also try loading from the project root in case we're running from a subdirectory
load_dotenv(dotenv_path=Path(__file__).parent.parent / ".env", verbose=False)

MIB = 1024 * 1024

DEFAULT_ALLOWED_TYPES = "video/mp4,image/jpeg,image/png,image/gif"

REQUIRED_VARS = (
    "DISCORD_TOKEN",
    "PREVIEW_EXTRACTORS",
    "PREVIEW_DESTINATION",
    "PREVIEW_PUBLIC_URL",
)


def validate_required_env(required_vars=REQUIRED_VARS) -> None:
    """
    Validate that all required environment variables are present.
    """
    missing_vars = []
    for var in required_vars:
        value = _clean_env_value(os.getenv(var, ""))
        if not value:
            missing_vars.append(var)
        else:
            logger.debug(f"✅ {var} present", extra={"subsys": "config"})

    if missing_vars:
        raise ConfigurationError(
            f"Missing required environment variables: {', '.join(missing_vars)}"
        )


def _safe_int(value: str, default: str, var_name: str) -> int:
    """Safely convert environment variable to int, handling malformed values."""
    try:
        # Clean value by removing comments and whitespace
        clean_value = value.split("#")[0].strip() if value else default
        return int(clean_value)
    except (ValueError, AttributeError):
        logger.warning(
            f"⚠ Invalid {var_name} value '{value}', using default {default}",
            extra={"subsys": "config", "event": "config.bad_value"},
        )
        return int(default)


def _safe_float(value: str, default: str, var_name: str) -> float:
    """Safely convert environment variable to float, handling malformed values."""
    try:
        clean_value = value.split("#")[0].strip() if value else default
        return float(clean_value)
    except (ValueError, AttributeError):
        logger.warning(
            f"⚠ Invalid {var_name} value '{value}', using default {default}",
            extra={"subsys": "config", "event": "config.bad_value"},
        )
        return float(default)


def _clean_env_value(value: str) -> str:
    """Clean environment variable value by removing inline comments."""
    if not value:
        return value
    # Split on # and take the first part, then strip whitespace
    return value.split("#")[0].strip()


def _split_list(value: str) -> List[str]:
    """Split a whitespace or comma separated list, dropping blanks."""
    if not value:
        return []
    return [item for item in re.split(r"[\s,]+", value.strip()) if item]


def load_config() -> Dict[str, Any]:
    """
    Load configuration from environment variables.

    Values that look like URLs are not comment-stripped, since a '#'
    may legitimately appear in a fragment or password.
    """
    max_media_mb = _safe_int(os.getenv("PREVIEW_MAX_MEDIA_MB"), "500", "PREVIEW_MAX_MEDIA_MB")

    config = {
        # DISCORD BOT SETTINGS
        "DISCORD_TOKEN": os.getenv("DISCORD_TOKEN"),
        "COMMAND_PREFIX": os.getenv("COMMAND_PREFIX", "!"),

        # REUPLOAD PIPELINE
        "PREVIEW_EXTRACTORS": _split_list(os.getenv("PREVIEW_EXTRACTORS", "")),
        "PREVIEW_DESTINATION": (os.getenv("PREVIEW_DESTINATION") or "").strip(),
        "PREVIEW_PUBLIC_URL": (os.getenv("PREVIEW_PUBLIC_URL") or "").strip(),
        "PREVIEW_MAX_MEDIA_BYTES": max_media_mb * MIB,
        "PREVIEW_ALLOWED_TYPES": _split_list(
            _clean_env_value(os.getenv("PREVIEW_ALLOWED_TYPES", DEFAULT_ALLOWED_TYPES))
        ),
        "PREVIEW_EMBED_WAIT_S": _safe_float(
            os.getenv("PREVIEW_EMBED_WAIT_S"), "3.0", "PREVIEW_EMBED_WAIT_S"
        ),
        "TEST_PAGE_ADDR": _clean_env_value(os.getenv("TEST_PAGE_ADDR", "")),

        # HTTP CLIENT
        "HTTP_CONNECT_TIMEOUT_MS": _safe_int(
            os.getenv("HTTP_CONNECT_TIMEOUT_MS"), "5000", "HTTP_CONNECT_TIMEOUT_MS"
        ),
        "HTTP_READ_TIMEOUT_MS": _safe_int(
            os.getenv("HTTP_READ_TIMEOUT_MS"), "30000", "HTTP_READ_TIMEOUT_MS"
        ),
        "HTTP_MAX_CONNECTIONS": _safe_int(
            os.getenv("HTTP_MAX_CONNECTIONS"), "64", "HTTP_MAX_CONNECTIONS"
        ),

        # LOGGING / OBSERVABILITY
        "LOG_LEVEL": _clean_env_value(os.getenv("LOG_LEVEL", "INFO")).upper(),
        "LOG_JSONL_PATH": _clean_env_value(os.getenv("LOG_JSONL_PATH", "logs/bot.jsonl")),
        "OBS_ENABLE_PROMETHEUS": _clean_env_value(
            os.getenv("OBS_ENABLE_PROMETHEUS", "false")
        ).lower() in ("1", "true", "yes", "on"),
        "PROMETHEUS_PORT": _safe_int(os.getenv("PROMETHEUS_PORT"), "8001", "PROMETHEUS_PORT"),
    }

    if config["PREVIEW_MAX_MEDIA_BYTES"] <= 0:
        raise ConfigurationError("PREVIEW_MAX_MEDIA_MB must be positive")
    if config["PREVIEW_EMBED_WAIT_S"] < 0:
        raise ConfigurationError("PREVIEW_EMBED_WAIT_S must not be negative")

    return config
