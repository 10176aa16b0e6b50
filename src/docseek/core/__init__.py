"""Scraping engine: expansion, landing-page resolution and the Spider."""

from .expansion import DEFAULT_SELECTORS, ExpansionEngine, ExpansionResult, ExpansionState
from .resolver import LandingPageSignature, RedirectResolver, normalize_landing_url
from .spider import Spider, scrape_document, scrape_index

__all__ = [
    "DEFAULT_SELECTORS",
    "ExpansionEngine",
    "ExpansionResult",
    "ExpansionState",
    "LandingPageSignature",
    "RedirectResolver",
    "normalize_landing_url",
    "Spider",
    "scrape_document",
    "scrape_index",
]
