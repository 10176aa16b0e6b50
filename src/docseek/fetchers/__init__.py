"""Fetch clients: static HTTP, normalized DOM and interactive browser."""

from .browser import BrowserFetchClient, PlaywrightSession, is_download_error
from .normalized import NormalizedFetchClient
from .protocols import (
    FetchClient,
    FetchedPage,
    FetchOptions,
    FetchOutcome,
    InteractiveFetchClient,
    InteractiveSession,
)
from .static import StaticFetchClient

__all__ = [
    # Protocols
    "FetchClient",
    "FetchedPage",
    "FetchOptions",
    "FetchOutcome",
    "InteractiveFetchClient",
    "InteractiveSession",
    # Clients
    "BrowserFetchClient",
    "NormalizedFetchClient",
    "PlaywrightSession",
    "StaticFetchClient",
    "is_download_error",
]
