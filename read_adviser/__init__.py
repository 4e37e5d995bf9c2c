"""
Read Adviser Bot - core pipeline.

This package contains:
- command_parser: Classify message texts (URL, /start, /random, /help)
- rate_limiter: Per-chat spam protection with cooldown
- message_builder: Build reply texts
- dispatcher: Route events to command handlers
- consumer: Fetch-dispatch-advance polling loop
- telegram_api: Telegram Bot API client
- storage: Page stores (memory, PostgreSQL)
"""

from .command_parser import parse_command, CommandResult
from .consumer import Consumer
from .dispatcher import CommandDispatcher
from .message_builder import MessageBuilder
from .models import Event, Page, User
from .rate_limiter import RateLimiter

__all__ = [
    "parse_command",
    "CommandResult",
    "Consumer",
    "CommandDispatcher",
    "MessageBuilder",
    "Event",
    "Page",
    "User",
    "RateLimiter",
]
