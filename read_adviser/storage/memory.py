"""In-process page store."""

from __future__ import annotations

import logging
import random
import threading
from typing import Callable, Dict, List, Optional

from read_adviser.errors import NoSavedPagesError, PageAlreadyExistsError
from read_adviser.models import Page, User

logger = logging.getLogger(__name__)


class MemoryPageStore:
    """
    Dict-backed PageStore.

    Every operation holds one lock, so the duplicate check inside
    save_page and the insert happen atomically.
    """

    def __init__(
        self,
        title_resolver: Optional[Callable[[str], Optional[str]]] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._title_resolver = title_resolver
        self._rng = rng or random.Random()
        self._lock = threading.Lock()
        self._users: Dict[str, User] = {}
        self._pages: Dict[str, List[Page]] = {}

    def user_exists(self, user_name: str) -> bool:
        with self._lock:
            return user_name in self._users

    def create_user(self, user_name: str) -> int:
        """Register a user, returning the existing id if already registered."""
        with self._lock:
            return self._create_user_locked(user_name)

    def page_exists(self, page: Page) -> bool:
        with self._lock:
            return self._find(page) is not None

    def save_page(self, page: Page) -> None:
        """Save a page, resolving its title first when a resolver is set."""
        title = page.title
        if title is None and self._title_resolver is not None:
            title = self._title_resolver(page.url)

        with self._lock:
            if self._find(page) is not None:
                raise PageAlreadyExistsError(f"page already saved: {page.url}")
            self._create_user_locked(page.user_name)
            self._pages.setdefault(page.user_name, []).append(
                Page(url=page.url, user_name=page.user_name, title=title)
            )

    def pick_random_page(self, user_name: str) -> Page:
        with self._lock:
            pages = self._pages.get(user_name)
            if not pages:
                raise NoSavedPagesError(f"no saved pages for {user_name}")
            picked = self._rng.choice(pages)
            return Page(url=picked.url, user_name=picked.user_name, title=picked.title)

    def remove_page(self, page: Page) -> None:
        with self._lock:
            pages = self._pages.get(page.user_name, [])
            self._pages[page.user_name] = [p for p in pages if p.key != page.key]

    def count_pages(self, user_name: str) -> int:
        """Number of pages saved by a user."""
        with self._lock:
            return len(self._pages.get(user_name, []))

    def count_users(self) -> int:
        with self._lock:
            return len(self._users)

    def _create_user_locked(self, user_name: str) -> int:
        user = self._users.get(user_name)
        if user is None:
            user = User(user_name=user_name, id=len(self._users) + 1)
            self._users[user_name] = user
            logger.info(f"Registered user {user_name} (id={user.id})")
        return user.id

    def _find(self, page: Page) -> Optional[Page]:
        for saved in self._pages.get(page.user_name, []):
            if saved.key == page.key:
                return saved
        return None
