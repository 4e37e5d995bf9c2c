"""
Command dispatcher.

Turns one inbound Event into a reply: classifies the text, applies spam
protection and runs the matching handler against the page store.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Protocol, TypeVar

from read_adviser import command_parser
from read_adviser.errors import (
    CommandError,
    NoSavedPagesError,
    PageAlreadyExistsError,
    UnsupportedEventError,
)
from read_adviser.message_builder import MessageBuilder
from read_adviser.models import Event, Page
from read_adviser.rate_limiter import RateLimiter
from read_adviser.storage import PageStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Notifier(Protocol):
    async def send_message(self, chat_id: int, text: str) -> None: ...


async def _run_db(action: Callable[..., T], *args: Any) -> T:
    return await asyncio.to_thread(action, *args)


class CommandDispatcher:
    """
    Route events to command handlers.

    Args:
        notifier: Sends replies to chats
        store: Persistence for users and pages
        rate_limiter: Spam protection shared by all chats
        rate_limit_page_submissions: Whether URL submissions go through
            spam protection like commands do (default: True)
    """

    def __init__(
        self,
        notifier: Notifier,
        store: PageStore,
        rate_limiter: RateLimiter,
        rate_limit_page_submissions: bool = True,
    ):
        self.notifier = notifier
        self.store = store
        self.rate_limiter = rate_limiter
        self.rate_limit_page_submissions = rate_limit_page_submissions

    async def process(self, event: Event) -> None:
        """
        Handle one event.

        Raises:
            UnsupportedEventError: The event has no chat to answer
            CommandError: A handler failed; the cause is chained
        """
        if event.chat_id is None:
            raise UnsupportedEventError(f"update {event.offset} has no message")

        chat_id = event.chat_id
        text = event.text.strip()
        parsed = command_parser.parse_command(text)
        logger.info(f"got new command '{text}' from '{event.sender_name}'")

        if parsed.command != command_parser.ADD_PAGE or self.rate_limit_page_submissions:
            if not self.rate_limiter.is_allowed(chat_id):
                logger.info(f"Rate limited chat {chat_id}")
                await self._send(
                    chat_id, MessageBuilder.build_rate_limited(), "send rate limit notice"
                )
                return

        if parsed.command == command_parser.ADD_PAGE:
            await self._save_page(chat_id, parsed.url, event.sender_name)
        elif parsed.command == command_parser.START:
            await self._register_user(chat_id, event.sender_name)
        elif parsed.command == command_parser.RANDOM:
            await self._send_random(chat_id, event.sender_name)
        elif parsed.command == command_parser.HELP:
            await self._send(chat_id, MessageBuilder.build_help(), "send help")
        else:
            await self._send(
                chat_id, MessageBuilder.build_unknown_command(), "send unknown command notice"
            )

    async def _register_user(self, chat_id: int, user_name: str) -> None:
        try:
            exists = await _run_db(self.store.user_exists, user_name)
            if not exists:
                await _run_db(self.store.create_user, user_name)
            await self.notifier.send_message(chat_id, MessageBuilder.build_hello())
        except Exception as e:
            raise CommandError("can't do command: start") from e

    async def _save_page(self, chat_id: int, url: str, user_name: str) -> None:
        page = Page(url=url, user_name=user_name)
        try:
            if await _run_db(self.store.page_exists, page):
                await self.notifier.send_message(chat_id, MessageBuilder.build_already_exists())
                return
            try:
                await _run_db(self.store.save_page, page)
            except PageAlreadyExistsError:
                await self.notifier.send_message(chat_id, MessageBuilder.build_already_exists())
                return
            logger.info(f"Saved page {url} for {user_name}")
            await self.notifier.send_message(chat_id, MessageBuilder.build_saved())
        except Exception as e:
            raise CommandError("can't do command: save page") from e

    async def _send_random(self, chat_id: int, user_name: str) -> None:
        try:
            try:
                page = await _run_db(self.store.pick_random_page, user_name)
            except NoSavedPagesError:
                await self.notifier.send_message(chat_id, MessageBuilder.build_no_saved_pages())
                return
            # The page is removed only once the user has actually received it
            await self.notifier.send_message(chat_id, MessageBuilder.build_random_page(page))
            await _run_db(self.store.remove_page, page)
        except Exception as e:
            raise CommandError("can't do command: send random page") from e

    async def _send(self, chat_id: int, text: str, description: str) -> None:
        try:
            await self.notifier.send_message(chat_id, text)
        except Exception as e:
            raise CommandError(f"can't do command: {description}") from e
