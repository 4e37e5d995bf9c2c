"""Data model shared by the pipeline components."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Event:
    """One inbound message from the messaging platform."""

    offset: int
    chat_id: Optional[int]
    text: str
    sender_name: str


@dataclass
class Page:
    """A URL saved by a user."""

    url: str
    user_name: str
    title: Optional[str] = None

    @property
    def key(self) -> tuple[str, str]:
        """Identity of the page in a store."""
        return (self.url, self.user_name)


@dataclass(frozen=True)
class User:
    """A registered bot user."""

    user_name: str
    id: int
