"""
PostgreSQL page store.

Expected schema:

    CREATE TABLE users (
        id SERIAL PRIMARY KEY,
        username TEXT NOT NULL UNIQUE
    );
    CREATE TABLE pages (
        url TEXT NOT NULL,
        user_id INTEGER NOT NULL REFERENCES users (id),
        title TEXT,
        UNIQUE (url, user_id)
    );

The unique constraints make user creation and page insertion atomic: a
concurrent duplicate insert is reported as PageAlreadyExistsError instead of
a database error.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional, Sequence

import psycopg2
from psycopg2 import pool

from read_adviser.errors import NoSavedPagesError, PageAlreadyExistsError, StorageError
from read_adviser.models import Page

logger = logging.getLogger(__name__)


class PostgresPageStore:
    """PageStore over a psycopg2 connection pool."""

    def __init__(
        self,
        dsn: str,
        title_resolver: Optional[Callable[[str], Optional[str]]] = None,
        max_connections: int = 5,
    ) -> None:
        self._dsn = dsn
        self._title_resolver = title_resolver
        self._max_connections = max_connections
        self._pool: Optional[pool.ThreadedConnectionPool] = None

    def connect(self) -> None:
        """Initialize the connection pool."""
        if self._pool is None:
            try:
                self._pool = pool.ThreadedConnectionPool(
                    minconn=1,
                    maxconn=self._max_connections,
                    dsn=self._dsn,
                )
            except psycopg2.Error as e:
                raise StorageError(f"can't connect to database: {e}") from e

    def close(self) -> None:
        """Close the connection pool."""
        if self._pool is not None:
            self._pool.closeall()
            self._pool = None

    def user_exists(self, user_name: str) -> bool:
        row = self._fetch_one(
            "SELECT EXISTS(SELECT 1 FROM users WHERE username = %s)", (user_name,)
        )
        return bool(row and row[0])

    def create_user(self, user_name: str) -> int:
        """Register a user, returning the existing id if already registered."""
        with self._cursor() as cursor:
            cursor.execute(
                "INSERT INTO users (username) VALUES (%s) ON CONFLICT (username) DO NOTHING",
                (user_name,),
            )
            if cursor.rowcount > 0:
                logger.info(f"Registered user {user_name}")
            cursor.execute("SELECT id FROM users WHERE username = %s", (user_name,))
            row = cursor.fetchone()
        if row is None:
            raise StorageError(f"can't register user {user_name}")
        return int(row[0])

    def page_exists(self, page: Page) -> bool:
        row = self._fetch_one(
            "SELECT EXISTS("
            "SELECT 1 FROM pages p JOIN users u ON u.id = p.user_id "
            "WHERE p.url = %s AND u.username = %s)",
            (page.url, page.user_name),
        )
        return bool(row and row[0])

    def save_page(self, page: Page) -> None:
        """Save a page, resolving its title first when a resolver is set."""
        title = page.title
        if title is None and self._title_resolver is not None:
            title = self._title_resolver(page.url)

        user_id = self.create_user(page.user_name)
        with self._cursor() as cursor:
            cursor.execute(
                "INSERT INTO pages (url, user_id, title) VALUES (%s, %s, %s) "
                "ON CONFLICT (url, user_id) DO NOTHING",
                (page.url, user_id, title),
            )
            inserted = cursor.rowcount > 0
        if not inserted:
            raise PageAlreadyExistsError(f"page already saved: {page.url}")

    def pick_random_page(self, user_name: str) -> Page:
        row = self._fetch_one(
            "SELECT p.url, p.title FROM pages p JOIN users u ON u.id = p.user_id "
            "WHERE u.username = %s ORDER BY RANDOM() LIMIT 1",
            (user_name,),
        )
        if row is None:
            raise NoSavedPagesError(f"no saved pages for {user_name}")
        return Page(url=row[0], user_name=user_name, title=row[1])

    def remove_page(self, page: Page) -> None:
        with self._cursor() as cursor:
            cursor.execute(
                "DELETE FROM pages p USING users u "
                "WHERE u.id = p.user_id AND p.url = %s AND u.username = %s",
                (page.url, page.user_name),
            )

    def _fetch_one(self, query: str, params: Sequence[Any]) -> Optional[tuple]:
        with self._cursor() as cursor:
            cursor.execute(query, params)
            return cursor.fetchone()

    @contextmanager
    def _cursor(self) -> Iterator[Any]:
        """Yield a cursor on a pooled autocommit connection."""
        if self._pool is None:
            self.connect()
        if self._pool is None:
            raise StorageError("database connection pool is unavailable")
        conn = self._pool.getconn()
        try:
            conn.autocommit = True
            with conn.cursor() as cursor:
                yield cursor
        except psycopg2.Error as e:
            raise StorageError(f"database error: {e}") from e
        finally:
            self._pool.putconn(conn)
