"""
Telegram Bot API client.

Serves as both the event source (getUpdates long polling) and the notifier
(sendMessage) of the pipeline.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from read_adviser.errors import TelegramAPIError
from read_adviser.models import Event

logger = logging.getLogger(__name__)

DEFAULT_HOST = "api.telegram.org"
REQUEST_TIMEOUT = 40.0
POLL_TIMEOUT = 30


def event_from_update(update: dict[str, Any]) -> Event:
    """
    Convert a raw Telegram update into an Event.

    Updates without a message get chat_id None. Messages without text
    (photos, stickers) get an empty text. The sender name is the Telegram
    username, or the numeric user ID for accounts without one.
    """
    message = update.get("message") or {}
    chat_id = (message.get("chat") or {}).get("id")
    sender = message.get("from") or {}
    sender_name = sender.get("username") or str(sender.get("id", ""))
    return Event(
        offset=update["update_id"],
        chat_id=chat_id,
        text=message.get("text") or "",
        sender_name=sender_name,
    )


class TelegramAPI:
    """Telegram Bot API client with connection reuse."""

    def __init__(
        self,
        token: str,
        host: str = DEFAULT_HOST,
        request_timeout: float = REQUEST_TIMEOUT,
        poll_timeout: int = POLL_TIMEOUT,
    ):
        self.token = token
        self.base_url = f"https://{host}/bot{token}"
        self.request_timeout = request_timeout
        self.poll_timeout = poll_timeout
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create a reusable HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.request_timeout,
                limits=httpx.Limits(max_keepalive_connections=5, max_connections=10),
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _call(self, method: str, payload: dict[str, Any]) -> Any:
        """Call a Bot API method and return its result field."""
        try:
            client = await self._get_client()
            response = await client.post(f"{self.base_url}/{method}", json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 409:
                logger.error(
                    f"{method} returned 409 Conflict - a webhook or another poller "
                    "is blocking getUpdates"
                )
            raise TelegramAPIError(
                f"{method} failed with HTTP {e.response.status_code}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise TelegramAPIError(f"{method} failed: {type(e).__name__}: {e}") from e

        if not data.get("ok"):
            raise TelegramAPIError(
                f"{method} rejected: {data.get('description', 'unknown error')}"
            )
        return data.get("result")

    async def delete_webhook(self) -> bool:
        """Delete any existing webhook to enable polling."""
        logger.info("Deleting webhook to ensure polling works...")
        try:
            await self._call("deleteWebhook", {"drop_pending_updates": False})
        except TelegramAPIError as e:
            logger.warning(f"deleteWebhook failed: {e}")
            return False
        logger.info("Webhook deleted successfully (or no webhook was set)")
        return True

    async def get_updates(self, offset: int, limit: int) -> list[dict[str, Any]]:
        """Fetch pending updates starting at offset."""
        logger.debug(f"Calling getUpdates with offset={offset} limit={limit}")
        updates = await self._call(
            "getUpdates",
            {"offset": offset, "limit": limit, "timeout": self.poll_timeout},
        )
        return updates or []

    async def fetch(self, offset: int, limit: int) -> list[Event]:
        """Fetch pending updates as Events, in update order."""
        updates = await self.get_updates(offset, limit)
        if updates:
            logger.info(f"Received {len(updates)} updates from Telegram")
        return [event_from_update(update) for update in updates]

    async def send_message(self, chat_id: int, text: str) -> None:
        """Send a plain text message."""
        await self._call("sendMessage", {"chat_id": chat_id, "text": text})
        logger.debug(f"Message sent successfully to chat_id={chat_id}")
