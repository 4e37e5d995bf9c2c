#!/usr/bin/env python3
"""
Read Adviser Bot - Telegram long polling service.

Users send links to save them and /random to get one back.

Commands:
    /start  - Register and say hello
    /random - Get (and remove) a random saved page
    /help   - Show available commands
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from typing import Optional, Sequence

from read_adviser.config import STORAGE_MEMORY, BotConfig, load_bot_config, load_environment
from read_adviser.consumer import Consumer
from read_adviser.dispatcher import CommandDispatcher
from read_adviser.errors import ConfigError, StorageError
from read_adviser.rate_limiter import RateLimiter
from read_adviser.retry import backoff_delays, fixed_delays
from read_adviser.storage import MemoryPageStore, PageStore
from read_adviser.telegram_api import TelegramAPI
from read_adviser.title_fetcher import fetch_title

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"

logger = logging.getLogger(__name__)


def build_store(config: BotConfig) -> PageStore:
    """Create the page store selected by the configuration."""
    if config.storage == STORAGE_MEMORY:
        logger.warning("Using in-memory storage: saved pages are lost on restart")
        return MemoryPageStore(title_resolver=fetch_title)

    from read_adviser.storage.postgres import PostgresPageStore

    store = PostgresPageStore(config.database_url, title_resolver=fetch_title)
    store.connect()
    return store


async def run(config: BotConfig) -> int:
    """Wire the pipeline together and poll until interrupted."""
    api = TelegramAPI(
        config.telegram.bot_token,
        host=config.telegram.api_host,
        request_timeout=config.telegram.request_timeout,
        poll_timeout=config.telegram.poll_timeout,
    )
    try:
        store = build_store(config)
    except StorageError as e:
        logger.error(f"Unable to connect to database: {e}")
        return 1

    dispatcher = CommandDispatcher(
        api,
        store,
        RateLimiter(),
        rate_limit_page_submissions=config.rate_limit_page_submissions,
    )
    if config.consumer.retry_backoff:
        retry_policy = backoff_delays(start=config.consumer.retry_delay)
    else:
        retry_policy = fixed_delays(config.consumer.retry_delay)
    consumer = Consumer(
        api,
        dispatcher,
        batch_size=config.consumer.batch_size,
        idle_delay=config.consumer.idle_delay,
        retry_policy=retry_policy,
    )

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, consumer.stop)
        except NotImplementedError:
            # Signal handlers are unavailable on Windows event loops
            pass

    try:
        await api.delete_webhook()
        logger.info("service started")
        await consumer.start()
        return 0
    finally:
        await api.close()
        close = getattr(store, "close", None)
        if close is not None:
            close()


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Read Adviser Telegram bot")
    parser.add_argument(
        "--tg-bot-token",
        help="token for access to telegram bot (default: $TELEGRAM_BOT_TOKEN)",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    load_environment()

    try:
        config = load_bot_config(token=args.tg_bot_token)
    except ConfigError as e:
        logging.basicConfig(format=LOG_FORMAT, level=logging.INFO)
        logger.error(str(e))
        return 1

    logging.basicConfig(format=LOG_FORMAT, level=config.log_level)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logger.info(f"TELEGRAM_BOT_TOKEN is set (length: {len(config.telegram.bot_token)})")
    logger.info(f"Storage backend: {config.storage}")

    return asyncio.run(run(config))


if __name__ == "__main__":
    sys.exit(main())
