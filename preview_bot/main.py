"""
Discord bot main entry point - BOOTSTRAP ONLY
This module should contain NO business logic, only orchestration.
"""
import asyncio
import os
import sys
from typing import NoReturn

import aiohttp
import discord

from .config import ConfigurationError, load_config, validate_required_env
from .core.bot import PreviewBot
from .core.cli import parse_arguments, show_version_info, validate_configuration_only
from .core.embed_wait import EmbedWaiter
from .core.startup import build_reuploader, create_bot_intents, run_pre_flight_checks
from .exceptions import ReuploadError
from .http_client import SharedHttpClient
from .metrics import get_metrics
from .utils.logging import get_logger, init_logging, shutdown_logging_and_exit


async def reupload_once(config: dict, url: str) -> int:
    """Run a single reupload outside Discord and print the permalinks."""
    logger = get_logger(__name__)
    async with SharedHttpClient(config) as http_client:
        reuploader = await build_reuploader(config, http_client)
        try:
            permalinks = await reuploader.reupload(url)
        except ReuploadError as e:
            logger.error(f"✖ Reupload failed: {e}", extra={"subsys": "core", "event": "cli.reupload"})
            return 1
        finally:
            await reuploader.destination.close()

    for link in permalinks:
        print(link)
    return 0


async def main() -> NoReturn:
    """Main bot execution function with CLI support."""
    args = parse_arguments()

    if args.debug:
        os.environ["LOG_LEVEL"] = "DEBUG"

    init_logging()
    logger = get_logger(__name__)

    if args.version:
        show_version_info()
        shutdown_logging_and_exit(0)

    if args.config_check:
        validate_configuration_only()
        shutdown_logging_and_exit(0)

    try:
        config = load_config()
        if args.reupload:
            shutdown_logging_and_exit(await reupload_once(config, args.reupload))
        validate_required_env()
        run_pre_flight_checks(config)
    except ConfigurationError as e:
        logger.critical(f"Configuration error during startup: {e}", extra={"subsys": "core"})
        shutdown_logging_and_exit(1)

    http_client = SharedHttpClient(config)
    await http_client.start()
    try:
        reuploader = await build_reuploader(config, http_client, get_metrics(config))
    except ConfigurationError as e:
        logger.critical(f"Could not wire the reupload pipeline: {e}", extra={"subsys": "core"})
        await http_client.stop()
        shutdown_logging_and_exit(1)

    bot = PreviewBot(
        config=config,
        reuploader=reuploader,
        embed_waiter=EmbedWaiter(config["PREVIEW_EMBED_WAIT_S"]),
        command_prefix=config.get("COMMAND_PREFIX", "!"),
        intents=create_bot_intents(),
        help_command=None,
    )

    exit_code = 0
    try:
        logger.info("Connecting to Discord...", extra={"subsys": "core"})
        async with bot:
            await bot.start(config["DISCORD_TOKEN"])
    except (discord.LoginFailure, discord.HTTPException, aiohttp.ClientConnectorError) as e:
        logger.error(f"Failed to log in: {e}", extra={"subsys": "core"})
        exit_code = 1
    finally:
        await reuploader.destination.close()
        await http_client.stop()

    shutdown_logging_and_exit(exit_code)


def run_bot() -> None:
    """Entry point for running the bot with proper error handling."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nBot shutdown requested by user.")
        shutdown_logging_and_exit(0)
    except Exception as e:
        print(f"FATAL ERROR: {e}", file=sys.stderr)
        import traceback

        traceback.print_exc()
        shutdown_logging_and_exit(1)


if __name__ == "__main__":
    run_bot()
