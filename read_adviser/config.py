"""Configuration loaded from environment variables and an optional .env file."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from read_adviser.errors import ConfigError

ENV_TELEGRAM_BOT_TOKEN = "TELEGRAM_BOT_TOKEN"
ENV_TELEGRAM_API_HOST = "TELEGRAM_API_HOST"
ENV_DATABASE_URL = "DATABASE_URL"
ENV_STORAGE = "STORAGE"
ENV_BATCH_SIZE = "BATCH_SIZE"
ENV_POLL_TIMEOUT = "POLL_TIMEOUT"
ENV_REQUEST_TIMEOUT = "REQUEST_TIMEOUT"
ENV_IDLE_DELAY = "IDLE_DELAY"
ENV_RETRY_DELAY = "RETRY_DELAY"
ENV_RETRY_BACKOFF = "RETRY_BACKOFF"
ENV_RATE_LIMIT_PAGE_SUBMISSIONS = "RATE_LIMIT_PAGE_SUBMISSIONS"
ENV_LOG_LEVEL = "LOG_LEVEL"

STORAGE_POSTGRES = "postgres"
STORAGE_MEMORY = "memory"

DEFAULT_TELEGRAM_API_HOST = "api.telegram.org"
DEFAULT_BATCH_SIZE = 100
DEFAULT_POLL_TIMEOUT = 30
DEFAULT_REQUEST_TIMEOUT = 40.0
DEFAULT_IDLE_DELAY = 1.0
DEFAULT_RETRY_DELAY = 1.0
DEFAULT_LOG_LEVEL = "INFO"


@dataclass(frozen=True)
class TelegramConfig:
    """Telegram Bot API access."""

    bot_token: str
    api_host: str = DEFAULT_TELEGRAM_API_HOST
    poll_timeout: int = DEFAULT_POLL_TIMEOUT
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT


@dataclass(frozen=True)
class ConsumerConfig:
    """Polling loop tuning."""

    batch_size: int = DEFAULT_BATCH_SIZE
    idle_delay: float = DEFAULT_IDLE_DELAY
    retry_delay: float = DEFAULT_RETRY_DELAY
    retry_backoff: bool = False


@dataclass(frozen=True)
class BotConfig:
    """Everything the bot needs at startup."""

    telegram: TelegramConfig
    consumer: ConsumerConfig
    storage: str
    database_url: Optional[str]
    rate_limit_page_submissions: bool
    log_level: str


def load_environment() -> None:
    """Load environment variables from .env if present."""
    load_dotenv()


def _get_env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _get_env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "y"}


def _required_env(name: str) -> str:
    value = os.getenv(name)
    if not value:
        raise ConfigError(f"{name} environment variable not set")
    return value


def load_bot_config(token: Optional[str] = None) -> BotConfig:
    """
    Build the bot configuration from the environment.

    Args:
        token: Bot token from the command line; overrides TELEGRAM_BOT_TOKEN

    Raises:
        ConfigError: A required variable is missing or STORAGE is unknown
    """
    storage = os.getenv(ENV_STORAGE, STORAGE_POSTGRES).strip().lower()
    if storage not in (STORAGE_POSTGRES, STORAGE_MEMORY):
        raise ConfigError(f"Unknown {ENV_STORAGE} backend: {storage}")

    database_url = None
    if storage == STORAGE_POSTGRES:
        database_url = _required_env(ENV_DATABASE_URL)

    poll_timeout = _get_env_int(ENV_POLL_TIMEOUT, DEFAULT_POLL_TIMEOUT)
    telegram = TelegramConfig(
        bot_token=token or _required_env(ENV_TELEGRAM_BOT_TOKEN),
        api_host=os.getenv(ENV_TELEGRAM_API_HOST, DEFAULT_TELEGRAM_API_HOST),
        poll_timeout=poll_timeout,
        # The HTTP timeout must outlast a long poll
        request_timeout=max(
            _get_env_float(ENV_REQUEST_TIMEOUT, DEFAULT_REQUEST_TIMEOUT), poll_timeout + 5.0
        ),
    )
    consumer = ConsumerConfig(
        batch_size=_get_env_int(ENV_BATCH_SIZE, DEFAULT_BATCH_SIZE),
        idle_delay=_get_env_float(ENV_IDLE_DELAY, DEFAULT_IDLE_DELAY),
        retry_delay=_get_env_float(ENV_RETRY_DELAY, DEFAULT_RETRY_DELAY),
        retry_backoff=_get_env_bool(ENV_RETRY_BACKOFF, False),
    )
    return BotConfig(
        telegram=telegram,
        consumer=consumer,
        storage=storage,
        database_url=database_url,
        rate_limit_page_submissions=_get_env_bool(ENV_RATE_LIMIT_PAGE_SUBMISSIONS, True),
        log_level=os.getenv(ENV_LOG_LEVEL, DEFAULT_LOG_LEVEL).upper(),
    )
