"""
Exception hierarchy for the crawler.
"""
from __future__ import annotations


class CrawlerError(Exception):
    """Base class for all crawler errors."""


class StoreInitError(CrawlerError):
    """The URL or article store could not be opened or created."""


class StoreWriteError(CrawlerError):
    """A read or write against an open store failed."""


class FetchError(CrawlerError):
    """The HTTP request for a page failed."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason


class ParseError(CrawlerError):
    """The response body could not be parsed as an HTML document."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason
