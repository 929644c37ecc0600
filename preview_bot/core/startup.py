"""
Contains bot startup, pre-flight checks and component wiring.
"""
import hashlib
from typing import Optional

import discord

from ..exceptions import ConfigurationError
from ..http_client import SharedHttpClient
from ..metrics import Metrics
from ..reupload.destinations import create_destination
from ..reupload.extractors import create_extractors
from ..reupload.reuploader import Reuploader
from ..utils.logging import get_logger

logger = get_logger(__name__)


def create_bot_intents() -> discord.Intents:
    """Guild and DM messages, plus content to find links in."""
    intents = discord.Intents.none()
    intents.guilds = True
    intents.guild_messages = True
    intents.dm_messages = True
    intents.message_content = True
    return intents


def run_pre_flight_checks(config: dict) -> None:
    """Runs the mandatory startup checks."""
    logger.info("--- Running Pre-Flight Checklist ---", extra={"subsys": "core"})

    token = config.get("DISCORD_TOKEN")
    if not token:
        logger.critical("DISCORD_TOKEN is missing. Bot cannot start.")
        raise ConfigurationError("DISCORD_TOKEN not found in environment.")
    token_hash = hashlib.sha256(token.encode()).hexdigest()[:12]
    logger.info(f"[INIT] Token hash={token_hash} validated", extra={"subsys": "core"})

    if not config.get("PREVIEW_EXTRACTORS"):
        raise ConfigurationError("PREVIEW_EXTRACTORS lists no extractors.")
    if not config.get("PREVIEW_DESTINATION"):
        raise ConfigurationError("PREVIEW_DESTINATION is not set.")
    if not config.get("PREVIEW_PUBLIC_URL"):
        raise ConfigurationError("PREVIEW_PUBLIC_URL is not set.")

    logger.info(f"[INIT] discord.py version: {discord.__version__}", extra={"subsys": "core"})
    logger.info("--- Pre-Flight Checklist Complete ---", extra={"subsys": "core"})


async def build_reuploader(
    config: dict, http_client: SharedHttpClient, metrics: Optional[Metrics] = None
) -> Reuploader:
    """Create extractors, the destination and the reuploader from configuration."""
    extractors = create_extractors(config.get("PREVIEW_EXTRACTORS") or [], http_client)
    if not extractors:
        raise ConfigurationError("PREVIEW_EXTRACTORS lists no extractors.")

    destination = await create_destination(
        config["PREVIEW_DESTINATION"],
        http_client=http_client,
        max_media_size=config["PREVIEW_MAX_MEDIA_BYTES"],
    )

    return Reuploader(
        extractors,
        destination,
        config["PREVIEW_PUBLIC_URL"],
        http_client,
        max_media_size=config["PREVIEW_MAX_MEDIA_BYTES"],
        allowed_types=config["PREVIEW_ALLOWED_TYPES"],
        metrics=metrics,
    )
