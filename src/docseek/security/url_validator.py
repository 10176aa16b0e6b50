"""URL validation for scrape inputs."""

from __future__ import annotations

import ipaddress
import logging
from dataclasses import dataclass
from urllib.parse import urlparse


@dataclass
class UrlValidationResult:
    """Result of URL validation."""

    is_valid: bool
    rejection_reason: str | None = None

    @staticmethod
    def valid() -> UrlValidationResult:
        """Create a valid result."""
        return UrlValidationResult(is_valid=True)

    @staticmethod
    def invalid(reason: str) -> UrlValidationResult:
        """Create an invalid result with reason."""
        return UrlValidationResult(is_valid=False, rejection_reason=reason)


class UrlValidator:
    """
    Validates URLs before any network work is done.

    By default only the shape is checked: an http(s) scheme and a host.
    Blocking of localhost, internal suffixes and private IPs can be enabled
    when docseek runs on behalf of untrusted callers.

    Example:
        validator = UrlValidator(block_private_ips=True)
        result = validator.validate("https://example.com/page")
        if not result.is_valid:
            print(f"Rejected: {result.rejection_reason}")
    """

    DEFAULT_ALLOWED_SCHEMES = {"http", "https"}
    INTERNAL_SUFFIXES = {".internal", ".local", ".localhost", ".localdomain"}
    LOCALHOST_NAMES = {"localhost", "localhost.localdomain"}

    def __init__(
        self,
        allowed_schemes: set[str] | None = None,
        allowed_domains: set[str] | None = None,
        block_private_ips: bool = False,
        logger: logging.Logger | None = None,
    ):
        """
        Initialize the URL validator.

        Args:
            allowed_schemes: Set of allowed URL schemes (default: {"http", "https"})
            allowed_domains: If set, only these domains are allowed
            block_private_ips: Block localhost, internal suffixes and private IPs
            logger: Optional logger for validation messages
        """
        self.allowed_schemes = allowed_schemes or self.DEFAULT_ALLOWED_SCHEMES
        self.allowed_domains = allowed_domains
        self.block_private_ips = block_private_ips
        self.logger = logger or logging.getLogger(__name__)

    def validate(self, url: str) -> UrlValidationResult:
        """
        Validate a URL.

        Args:
            url: The URL to validate

        Returns:
            UrlValidationResult with is_valid and optional rejection_reason
        """
        if not isinstance(url, str) or not url.strip():
            return UrlValidationResult.invalid("URL is required and must be a non-empty string")
        if url != url.strip() or any(ch.isspace() for ch in url):
            return UrlValidationResult.invalid("URL contains whitespace")

        try:
            parsed = urlparse(url)
            hostname = (parsed.hostname or "").lower()
            parsed.port  # noqa: B018  raises ValueError on a malformed port
        except ValueError:
            return UrlValidationResult.invalid("Invalid URL format")

        if parsed.scheme not in self.allowed_schemes:
            return UrlValidationResult.invalid(
                f"Scheme '{parsed.scheme}' not allowed (allowed: {sorted(self.allowed_schemes)})"
            )

        if not hostname:
            return UrlValidationResult.invalid("URL has no domain")

        if self.allowed_domains is not None and hostname not in self.allowed_domains:
            return UrlValidationResult.invalid(f"Domain '{hostname}' not in allowed list")

        if self.block_private_ips:
            blocked = self._check_internal_host(hostname)
            if blocked is not None:
                self.logger.debug(f"Rejected {url}: {blocked.rejection_reason}")
                return blocked

        return UrlValidationResult.valid()

    def _check_internal_host(self, hostname: str) -> UrlValidationResult | None:
        """
        Check if hostname is localhost, an internal name or a private IP.

        Returns:
            UrlValidationResult if blocked, None if allowed
        """
        if hostname in self.LOCALHOST_NAMES:
            return UrlValidationResult.invalid("Localhost URLs not allowed")

        for suffix in self.INTERNAL_SUFFIXES:
            if hostname.endswith(suffix):
                return UrlValidationResult.invalid(f"Internal domain suffix '{suffix}' not allowed")

        try:
            ip = ipaddress.ip_address(hostname)
        except ValueError:
            # A domain name, not an IP
            return None

        if ip.is_private:
            return UrlValidationResult.invalid(f"Private IP address '{hostname}' not allowed")
        if ip.is_loopback:
            return UrlValidationResult.invalid(f"Loopback IP address '{hostname}' not allowed")
        if ip.is_link_local:
            return UrlValidationResult.invalid(f"Link-local IP address '{hostname}' not allowed")
        if ip.is_reserved:
            return UrlValidationResult.invalid(f"Reserved IP address '{hostname}' not allowed")
        if isinstance(ip, ipaddress.IPv6Address) and ip.is_site_local:
            return UrlValidationResult.invalid(f"Site-local IPv6 address '{hostname}' not allowed")

        return None

    def is_valid(self, url: str) -> bool:
        """Quick check if URL is valid."""
        return self.validate(url).is_valid
