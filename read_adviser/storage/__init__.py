"""
Persistence layer for users and saved pages.

The dispatcher only depends on the PageStore protocol. Two stores are
provided:
- memory: MemoryPageStore, process-local, for tests and local runs
- postgres: PostgresPageStore, backed by psycopg2
"""

from typing import Callable, Optional, Protocol

from read_adviser.models import Page

from .memory import MemoryPageStore

# Resolves a display title for a URL, or None when it cannot be found
TitleResolver = Callable[[str], Optional[str]]


class PageStore(Protocol):
    """Operations the dispatcher needs from persistence."""

    def user_exists(self, user_name: str) -> bool: ...

    def create_user(self, user_name: str) -> int: ...

    def page_exists(self, page: Page) -> bool: ...

    def save_page(self, page: Page) -> None: ...

    def pick_random_page(self, user_name: str) -> Page: ...

    def remove_page(self, page: Page) -> None: ...


__all__ = ["PageStore", "TitleResolver", "MemoryPageStore"]
