"""
Unit tests for title_fetcher module.

Tests cover:
- <title> extraction from HTML
- Fetch success, HTTP failures and non-HTML responses
- Malformed URLs that still look absolute
- Body size cap
"""

import sys
import os
from unittest.mock import MagicMock, patch

import httpx
import pytest

# Add repo root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from read_adviser.command_parser import is_url
from read_adviser.title_fetcher import MAX_BODY_BYTES, extract_title, fetch_title


def _mock_client(mock_client_cls, response=None, error=None):
    instance = MagicMock()
    if error is not None:
        instance.stream.side_effect = error
    else:
        instance.stream.return_value.__enter__.return_value = response
        instance.stream.return_value.__exit__.return_value = False
    mock_client_cls.return_value.__enter__.return_value = instance
    mock_client_cls.return_value.__exit__.return_value = False
    return instance


def _streamed_response(chunks, content_type="text/html; charset=utf-8"):
    response = MagicMock()
    response.headers = {"content-type": content_type}
    response.raise_for_status = MagicMock()
    response.iter_bytes.return_value = chunks
    return response


class TestExtractTitle:
    """Tests for extract_title function."""

    def test_simple_title(self):
        html = "<html><head><title>Hello</title></head><body></body></html>"
        assert extract_title(html) == "Hello"

    def test_title_is_stripped(self):
        html = "<html><head><title>\n   Spaced Out  \n</title></head></html>"
        assert extract_title(html) == "Spaced Out"

    def test_no_title(self):
        assert extract_title("<html><body><h1>No title</h1></body></html>") is None

    def test_empty_title(self):
        assert extract_title("<html><head><title>  </title></head></html>") is None

    def test_first_title_wins(self):
        html = "<title>First</title><svg><title>Second</title></svg>"
        assert extract_title(html) == "First"

    def test_bytes_input(self):
        html = '<meta charset="utf-8"><title>Caf\xe9</title>'.encode("utf-8")
        assert extract_title(html) == "Caf\xe9"


class TestFetchTitle:
    """Tests for fetch_title function."""

    def test_fetch_success(self):
        with patch("read_adviser.title_fetcher.httpx.Client") as mock_client_cls:
            instance = _mock_client(
                mock_client_cls, _streamed_response([b"<title>Example Domain</title>"])
            )
            assert fetch_title("https://example.com") == "Example Domain"
            instance.stream.assert_called_once_with("GET", "https://example.com")

    def test_title_split_across_chunks(self):
        chunks = [b"<html><head><ti", b"tle>Split</title></head>"]
        with patch("read_adviser.title_fetcher.httpx.Client") as mock_client_cls:
            _mock_client(mock_client_cls, _streamed_response(chunks))
            assert fetch_title("https://example.com") == "Split"

    def test_redirects_are_followed(self):
        with patch("read_adviser.title_fetcher.httpx.Client") as mock_client_cls:
            _mock_client(mock_client_cls, _streamed_response([b"<title>X</title>"]))
            fetch_title("https://example.com")
            assert mock_client_cls.call_args.kwargs["follow_redirects"] is True

    def test_connection_error_returns_none(self):
        with patch("read_adviser.title_fetcher.httpx.Client") as mock_client_cls:
            _mock_client(mock_client_cls, error=httpx.ConnectError("refused"))
            assert fetch_title("https://unreachable.example") is None

    def test_http_status_error_returns_none(self):
        response = _streamed_response([b"<title>Not Found</title>"])
        response.raise_for_status.side_effect = httpx.HTTPStatusError(
            "404", request=MagicMock(), response=MagicMock()
        )
        with patch("read_adviser.title_fetcher.httpx.Client") as mock_client_cls:
            _mock_client(mock_client_cls, response)
            assert fetch_title("https://example.com/missing") is None
        response.iter_bytes.assert_not_called()

    def test_non_html_body_is_never_read(self):
        response = _streamed_response([b"%PDF-1.4"], "application/pdf")
        with patch("read_adviser.title_fetcher.httpx.Client") as mock_client_cls:
            _mock_client(mock_client_cls, response)
            assert fetch_title("https://example.com/doc.pdf") is None
        response.iter_bytes.assert_not_called()
        response.read.assert_not_called()

    def test_body_read_stops_at_cap(self):
        chunks = iter(
            [b"<title>Big</title>", b"x" * MAX_BODY_BYTES, b"y" * 10, b"z" * 10]
        )
        with patch("read_adviser.title_fetcher.httpx.Client") as mock_client_cls:
            _mock_client(mock_client_cls, _streamed_response(chunks))
            assert fetch_title("https://example.com/huge") == "Big"
        assert list(chunks) == [b"y" * 10, b"z" * 10]

    @pytest.mark.parametrize(
        "error",
        [
            httpx.InvalidURL("Invalid port: 'abc'"),
            UnicodeError("encoding with 'idna' codec failed"),
            ValueError("bad url"),
        ],
    )
    def test_url_errors_return_none(self, error):
        with patch("read_adviser.title_fetcher.httpx.Client") as mock_client_cls:
            _mock_client(mock_client_cls, error=error)
            assert fetch_title("http://example.com:abc/") is None


class TestMalformedUrls:
    """URLs accepted as links but rejected by httpx before any request."""

    @pytest.mark.parametrize(
        "url",
        [
            "http://example.com:abc/",
            "http://" + "a" * 64 + ".example.com/",
            "http://exa\x01mple.com/",
        ],
    )
    def test_malformed_url_returns_none(self, url):
        assert is_url(url) is True
        assert fetch_title(url) is None
