"""
Dual-sink logging: a Rich console for humans and a JSONL file for machines.

Records carry structured fields through ``extra``::

    logger.info("✅ Reuploaded ...", extra={"subsys": "reupload", "fingerprint": fp})

Configured extractor and destination URLs embed credentials
(``b2://keyId:appKey@bucket``, ``cobalt://host?key=...``), so every record
is scrubbed before either sink sees it.
"""

import json
import logging
import os
import re
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, NoReturn, Optional

from rich.logging import RichHandler

PRETTY_HANDLER = "pretty_handler"
JSONL_HANDLER = "jsonl_handler"

THIRD_PARTY_LOGGERS = ("discord", "httpx", "httpcore", "aiohttp", "botocore", "boto3")

_ICONS = ((logging.ERROR, "✖"), (logging.WARNING, "⚠"), (logging.INFO, "✔"))

_URL_USERINFO = re.compile(r"([a-z][a-z0-9+.\-]*://)([^/\s:@]+):([^/\s@]+)@", re.IGNORECASE)
_SECRET_QUERY = re.compile(r"([?&](?:key|token|api_key)=)[^&\s#]+", re.IGNORECASE)


def redact_secrets(text: str) -> str:
    """Mask URL passwords and key/token query values."""
    text = _URL_USERINFO.sub(lambda m: f"{m.group(1)}{m.group(2)}:[REDACTED]@", text)
    return _SECRET_QUERY.sub(lambda m: f"{m.group(1)}[REDACTED]", text)


def message_context(message: Any) -> Dict[str, Any]:
    """``extra`` fields locating a Discord message in the JSONL sink."""
    return {"channel_id": message.channel.id, "msg_id": message.id}


class LevelIconFilter(logging.Filter):
    """Adds a level icon to each record for console output."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.level_icon = next(
            (icon for level, icon in _ICONS if record.levelno >= level), "ℹ"
        )
        return True


class JsonlFormatter(logging.Formatter):
    """One JSON object per line with a frozen key order. Unset keys are omitted."""

    KEYS = (
        "ts",
        "level",
        "name",
        "subsys",
        "channel_id",
        "msg_id",
        "fingerprint",
        "event",
        "detail",
        "exc",
    )

    def format(self, record: logging.LogRecord) -> str:
        ts = (
            datetime.fromtimestamp(record.created, tz=timezone.utc)
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z")
        )

        detail: Any = getattr(record, "detail", None)
        if detail is None:
            detail = record.getMessage()

        payload: Dict[str, Any] = {
            "ts": ts,
            "level": record.levelname,
            "name": record.name,
            "detail": detail,
        }
        for key in ("subsys", "channel_id", "msg_id", "fingerprint", "event"):
            payload[key] = getattr(record, key, None)
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)

        obj = {k: payload[k] for k in self.KEYS if payload.get(k) is not None}
        return json.dumps(obj, ensure_ascii=False, default=str)


class SensitiveDataFilter(logging.Filter):
    """Scrubs credentials from the message, its args and structured extras."""

    SECRET_KEYS = frozenset(
        {
            "discord_token",
            "authorization",
            "api_key",
            "app_key",
            "key",
            "token",
            "password",
        }
    )

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = redact_secrets(record.msg)
        if isinstance(record.args, tuple):
            record.args = tuple(
                redact_secrets(a) if isinstance(a, str) else a for a in record.args
            )
        for key, value in list(record.__dict__.items()):
            if isinstance(value, dict):
                # caller dicts are left untouched
                setattr(record, key, self._scrubbed(value))
        return True

    def _scrubbed(self, obj: Dict[Any, Any]) -> Dict[Any, Any]:
        clean: Dict[Any, Any] = {}
        for k, v in obj.items():
            if isinstance(v, dict):
                clean[k] = self._scrubbed(v)
            elif isinstance(v, str):
                clean[k] = "[REDACTED]" if str(k).lower() in self.SECRET_KEYS else redact_secrets(v)
            else:
                clean[k] = v
        return clean


def init_logging(level: Optional[str] = None, jsonl_path: Optional[str] = None) -> None:
    """Install exactly the two sinks on the root logger.

    ``level`` and ``jsonl_path`` default to LOG_LEVEL and LOG_JSONL_PATH.
    Exits with status 2 if anything else ends up attached to the root.
    """
    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    path = Path(jsonl_path or os.getenv("LOG_JSONL_PATH", "logs/bot.jsonl"))
    path.parent.mkdir(parents=True, exist_ok=True)

    scrubber = SensitiveDataFilter()

    pretty = RichHandler(
        rich_tracebacks=True,
        show_path=False,
        enable_link_path=False,
        log_time_format="%H:%M:%S.%f",
    )
    pretty.set_name(PRETTY_HANDLER)
    pretty.addFilter(scrubber)
    pretty.addFilter(LevelIconFilter())
    pretty.setFormatter(logging.Formatter(fmt="%(level_icon)s %(message)s"))

    jsonl = logging.FileHandler(str(path), encoding="utf-8")
    jsonl.set_name(JSONL_HANDLER)
    jsonl.addFilter(scrubber)
    jsonl.setFormatter(JsonlFormatter())

    logging.basicConfig(handlers=[pretty, jsonl], level=level, force=True)

    names = sorted(h.get_name() for h in logging.getLogger().handlers)
    if names != [JSONL_HANDLER, PRETTY_HANDLER]:
        sys.stderr.write(f"[logging] expected {PRETTY_HANDLER} + {JSONL_HANDLER}, got {names}\n")
        logging.shutdown()
        sys.exit(2)

    third_party_level = os.getenv("THIRD_PARTY_LOG_LEVEL", "WARNING").upper()
    for name in THIRD_PARTY_LOGGERS:
        logging.getLogger(name).setLevel(third_party_level)

    logging.getLogger(__name__).info(
        f"✔ Logging initialized ({level}, jsonl={path})", extra={"subsys": "logging"}
    )


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def cleanup_rich_handlers() -> None:
    for handler in list(logging.getLogger().handlers):
        if isinstance(handler, RichHandler):
            handler.rich_tracebacks = False
            handler.close()


def shutdown_logging_and_exit(exit_code: int) -> NoReturn:
    try:
        logging.getLogger(__name__).info(
            f"Shutting down (exit {exit_code})", extra={"subsys": "logging"}
        )
    finally:
        try:
            cleanup_rich_handlers()
            logging.shutdown()
        finally:
            sys.exit(exit_code)
