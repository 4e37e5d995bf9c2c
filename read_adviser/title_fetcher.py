"""Resolve a display title for a saved page."""

from __future__ import annotations

import logging
from typing import Optional, Union

import httpx
from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 10.0
MAX_BODY_BYTES = 1024 * 1024
USER_AGENT = "Mozilla/5.0 (compatible; ReadAdviserBot/1.0)"


def extract_title(html: Union[str, bytes]) -> Optional[str]:
    """Return the stripped <title> text of an HTML document, if any."""
    soup = BeautifulSoup(html, "html.parser")
    if soup.title is None:
        return None
    title = soup.title.get_text().strip()
    return title or None


def _read_prefix(response: httpx.Response, limit: int) -> bytes:
    """Read at most limit bytes of a streamed body."""
    body = bytearray()
    for chunk in response.iter_bytes():
        body.extend(chunk)
        if len(body) >= limit:
            break
    return bytes(body[:limit])


def fetch_title(url: str, timeout: float = REQUEST_TIMEOUT) -> Optional[str]:
    """
    Fetch a page and extract its title.

    Only HTML responses are read, and only their first MAX_BODY_BYTES.

    Args:
        url: Page URL
        timeout: Request timeout in seconds

    Returns:
        The page title, or None if the page can't be fetched or has no title
    """
    try:
        with httpx.Client(
            follow_redirects=True,
            timeout=timeout,
            headers={"User-Agent": USER_AGENT},
        ) as client:
            with client.stream("GET", url) as response:
                response.raise_for_status()
                content_type = response.headers.get("content-type", "")
                if "html" not in content_type.lower():
                    logger.info(f"No title for {url}: content type {content_type or 'unknown'}")
                    return None
                body = _read_prefix(response, MAX_BODY_BYTES)
    # InvalidURL is not an HTTPError; bad IDNA hosts raise UnicodeError
    except (httpx.HTTPError, httpx.InvalidURL, UnicodeError, ValueError) as e:
        logger.warning(f"Failed to fetch title for {url}: {type(e).__name__}: {e}")
        return None

    title = extract_title(body)
    if title is None:
        logger.info(f"No <title> tag found on {url}")
    return title
