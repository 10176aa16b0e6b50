"""Exception types raised by docseek."""

from __future__ import annotations


class DocseekError(Exception):
    """Base class for all docseek errors."""


class InvalidInputError(DocseekError, ValueError):
    """Raised when a caller passes an unusable URL or option combination."""


class FetchFailedError(DocseekError):
    """
    Raised when a page could not be fetched or navigated to.

    The core never retries these; callers may.

    Attributes:
        url: The URL that failed
        status_code: HTTP status code, when the failure was an HTTP error
    """

    def __init__(self, message: str, url: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class InteractionFailedError(DocseekError):
    """Raised by interactive sessions when an element cannot be clicked."""


class ScrapeTimeoutError(DocseekError, TimeoutError):
    """Raised when a scrape exceeds its session-level timeout."""

    def __init__(self, message: str, url: str | None = None, timeout: float | None = None) -> None:
        super().__init__(message)
        self.url = url
        self.timeout = timeout


class BrowserUnavailableError(DocseekError, ImportError):
    """Raised when the browser fetcher is needed but Playwright is not installed."""
