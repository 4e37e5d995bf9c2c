"""
Exceptions raised by the Read Adviser bot.

Domain conditions (no saved pages, duplicate page) are exceptions too so the
store can signal them, but the dispatcher answers them with a message and
never lets them escape.
"""


class ReadAdviserError(Exception):
    """Base class for all bot errors."""


class ConfigError(ReadAdviserError):
    """Required configuration is missing or invalid."""


class TransportError(ReadAdviserError):
    """The messaging platform could not be reached or rejected a call."""


class TelegramAPIError(TransportError):
    """A Telegram Bot API call failed."""


class StorageError(ReadAdviserError):
    """The persistence layer failed."""


class NoSavedPagesError(ReadAdviserError):
    """The user has no saved pages."""


class PageAlreadyExistsError(ReadAdviserError):
    """The page is already saved for this user."""


class UnsupportedEventError(ReadAdviserError):
    """The event carries nothing the dispatcher can answer."""


class CommandError(ReadAdviserError):
    """A command handler failed; the cause is chained."""
