"""
Command Parser for incoming chat messages.

Classifies a message text as one of:
- A page to save: any absolute URL (https://example.com/article)
- A known command: /start, /random (or /rnd), /help
- Bot mention suffix: /start@ReadAdviserBot
- Command parameters: /command param1 param2 (ignored by the handlers)
- Case-insensitive matching
- Anything else is an unknown command
"""

from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlsplit

START = "start"
RANDOM = "random"
HELP = "help"
ADD_PAGE = "add_page"
UNKNOWN = "unknown"

# Command tokens accepted from users, mapped to the command they trigger
COMMAND_ALIASES = {
    "start": START,
    "random": RANDOM,
    "rnd": RANDOM,
    "help": HELP,
}


@dataclass
class CommandResult:
    """Result of parsing a message."""

    command: str
    params: str
    raw_text: str
    url: Optional[str] = None

    @property
    def is_valid(self) -> bool:
        """Check if the text is something the bot understands."""
        return self.command != UNKNOWN

    @property
    def has_params(self) -> bool:
        """Check if command has parameters."""
        return bool(self.params.strip())


def is_url(text: Optional[str]) -> bool:
    """Check if text is an absolute URL with both a scheme and a host."""
    if not text or any(ch.isspace() for ch in text):
        return False
    try:
        parts = urlsplit(text)
    except ValueError:
        return False
    return bool(parts.scheme) and bool(parts.netloc)


def parse_command(text: Optional[str]) -> CommandResult:
    """
    Parse a message text into a command.

    Handles various input formats:
    - https://example.com -> CommandResult(command="add_page", url="https://example.com")
    - /start -> CommandResult(command="start", params="")
    - /rnd@BotName -> CommandResult(command="random", params="")
    - /HELP -> CommandResult(command="help", params="")  # case-insensitive
    - Regular text -> CommandResult(command="unknown")

    Args:
        text: The message text to parse

    Returns:
        CommandResult with parsed command information
    """
    if text is None:
        return CommandResult(command=UNKNOWN, params="", raw_text="")

    raw_text = text
    text = text.strip()

    if is_url(text):
        return CommandResult(command=ADD_PAGE, params="", raw_text=raw_text, url=text)

    if not text.startswith("/"):
        return CommandResult(command=UNKNOWN, params="", raw_text=raw_text)

    parts = text.split(None, 1)
    command_part = parts[0][1:]
    params = parts[1].strip() if len(parts) > 1 else ""

    # Handle @botname suffix (e.g., /start@ReadAdviserBot)
    if "@" in command_part:
        command_part = command_part.split("@")[0]

    command = COMMAND_ALIASES.get(command_part.lower(), UNKNOWN)
    return CommandResult(command=command, params=params, raw_text=raw_text)
