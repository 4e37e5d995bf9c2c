"""
Message Builder for bot replies.

Builds the texts sent back to users. Uses plain text to avoid Markdown
parsing issues with page titles.
"""

from read_adviser.models import Page


class MessageBuilder:
    """
    Build reply texts for the Telegram bot.

    All messages use plain text (no Markdown) because page titles are
    arbitrary user-supplied content.
    """

    HELP_MESSAGE = (
        "I can save and keep your pages. Also I can offer you them to read.\n\n"
        "In order to save the page, just send me a link to it.\n\n"
        "In order to get a random page from your list, send me command /random.\n"
        "Caution! After that, this page will be removed from your list!\n\n"
        "Commands:\n"
        "/start - Register and say hello\n"
        "/random - Get a random saved page\n"
        "/help - Show this message"
    )

    HELLO_MESSAGE = "Hi there! \U0001F44B\n\n" + HELP_MESSAGE

    UNKNOWN_COMMAND_MESSAGE = "Unknown command \U0001F914\n\nSend /help to see what I can do."

    NO_SAVED_PAGES_MESSAGE = "You have no saved pages \U0001F64A"

    SAVED_MESSAGE = "Saved! \U0001F44C"

    ALREADY_EXISTS_MESSAGE = "You already have this page in your list \U0001F917"

    RATE_LIMITED_MESSAGE = "Too many requests. Please try again later."

    @classmethod
    def build_hello(cls) -> str:
        """Build greeting sent on /start."""
        return cls.HELLO_MESSAGE

    @classmethod
    def build_help(cls) -> str:
        """Build help message."""
        return cls.HELP_MESSAGE

    @classmethod
    def build_unknown_command(cls) -> str:
        return cls.UNKNOWN_COMMAND_MESSAGE

    @classmethod
    def build_no_saved_pages(cls) -> str:
        return cls.NO_SAVED_PAGES_MESSAGE

    @classmethod
    def build_saved(cls) -> str:
        return cls.SAVED_MESSAGE

    @classmethod
    def build_already_exists(cls) -> str:
        return cls.ALREADY_EXISTS_MESSAGE

    @classmethod
    def build_rate_limited(cls) -> str:
        """Build rate limited message."""
        return cls.RATE_LIMITED_MESSAGE

    @classmethod
    def build_random_page(cls, page: Page) -> str:
        """
        Build the message delivering a saved page.

        Args:
            page: Page picked from the user's list

        Returns:
            Title line (when known) followed by the URL
        """
        lines = ["Here's a random page from your list:"]
        if page.title:
            lines.append(f"Title: {page.title}")
        lines.append(f"URL: {page.url}")
        return "\n".join(lines)
