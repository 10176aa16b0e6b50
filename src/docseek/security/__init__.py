"""Input validation for docseek."""

from .url_validator import UrlValidationResult, UrlValidator

__all__ = ["UrlValidator", "UrlValidationResult"]
