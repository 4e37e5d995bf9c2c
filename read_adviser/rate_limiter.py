"""
Spam protection for incoming chat messages.

Each chat is tracked independently. A message arriving less than
``burst_window`` seconds after the previous accepted one puts the chat
into a cooldown of ``cooldown`` seconds, during which every message is
rejected. The first message after the cooldown is accepted again.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass
class ChatRateInfo:
    """Rate limiting state for a single chat."""

    last_seen: float
    cooldown_until: Optional[float] = None


@dataclass
class RateLimiter:
    """
    Burst detector with an escalating cooldown, per chat.

    Args:
        burst_window: Minimum spacing between messages, in seconds (default: 0.5)
        cooldown: Lockout applied after a burst, in seconds (default: 10)
        idle_ttl: Seconds without messages before a chat is forgotten (default: 600)
        sweep_interval: Minimum seconds between two idle sweeps (default: 60)
        clock: Monotonic time source, injectable for tests
    """

    burst_window: float = 0.5
    cooldown: float = 10.0
    idle_ttl: float = 600.0
    sweep_interval: float = 60.0
    clock: Callable[[], float] = time.monotonic
    _chats: Dict[int, ChatRateInfo] = field(default_factory=dict)
    _last_sweep: Optional[float] = None

    def is_allowed(self, chat_id: int) -> bool:
        """
        Check if a message from chat_id should be processed.

        Args:
            chat_id: Telegram chat ID

        Returns:
            True if the message is allowed, False if it is spam or the
            chat is cooling down
        """
        now = self.clock()
        self._maybe_sweep(now)

        info = self._chats.get(chat_id)
        if info is None:
            self._chats[chat_id] = ChatRateInfo(last_seen=now)
            return True

        if info.cooldown_until is not None:
            if now < info.cooldown_until:
                logger.debug(f"Chat {chat_id} is in cooldown until {info.cooldown_until:.1f}")
                return False
            info.cooldown_until = None

        if now - info.last_seen < self.burst_window:
            info.cooldown_until = now + self.cooldown
            logger.warning(f"Spam detected for chat {chat_id}, cooldown {self.cooldown:g}s")
            return False

        info.last_seen = now
        return True

    def get_cooldown_remaining(self, chat_id: int) -> float:
        """
        Get seconds left in a chat's cooldown.

        Args:
            chat_id: Telegram chat ID

        Returns:
            Seconds until the chat may send again (0 if not cooling down)
        """
        info = self._chats.get(chat_id)
        if info is None or info.cooldown_until is None:
            return 0.0
        return max(0.0, info.cooldown_until - self.clock())

    @property
    def tracked_chats(self) -> int:
        """Number of chats currently held in memory."""
        return len(self._chats)

    def reset(self, chat_id: Optional[int] = None) -> None:
        """
        Forget rate limiting state.

        Args:
            chat_id: Specific chat to reset, or None to reset all
        """
        if chat_id is not None:
            self._chats.pop(chat_id, None)
        else:
            self._chats.clear()

    def _maybe_sweep(self, now: float) -> None:
        if self._last_sweep is None:
            self._last_sweep = now
            return
        if now - self._last_sweep < self.sweep_interval:
            return
        self._last_sweep = now
        self._cleanup(now)

    def _cleanup(self, now: float) -> None:
        """Remove idle chats that are not cooling down."""
        idle = [
            cid
            for cid, info in self._chats.items()
            if now - info.last_seen >= self.idle_ttl
            and (info.cooldown_until is None or now >= info.cooldown_until)
        ]
        for cid in idle:
            del self._chats[cid]
        if idle:
            logger.debug(f"Evicted {len(idle)} idle chat(s) from rate limiter")
