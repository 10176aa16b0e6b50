"""Tests for URL validation."""

import pytest
from docseek.security import UrlValidator


class TestUrlValidator:
    """Tests for UrlValidator."""

    @pytest.fixture
    def validator(self):
        return UrlValidator()

    @pytest.mark.parametrize(
        "url",
        [
            "https://example.com",
            "http://example.com/download/doc/?wpdmdl=1",
            "https://town.civicweb.net/filepro/documents/?preview=12",
            "http://localhost:8080/page",
        ],
    )
    def test_accepts_http_urls(self, validator, url):
        assert validator.is_valid(url)

    @pytest.mark.parametrize(
        "url",
        [
            "",
            "   ",
            "example.com/page",
            "ftp://example.com/file.pdf",
            "javascript:alert(1)",
            "https://",
            "https://exa mple.com/",
            "https://example.com:99999/",
        ],
    )
    def test_rejects_malformed_urls(self, validator, url):
        result = validator.validate(url)
        assert not result.is_valid
        assert result.rejection_reason

    def test_rejects_non_strings(self, validator):
        assert not validator.validate(None).is_valid  # type: ignore[arg-type]

    def test_allowed_domains(self):
        validator = UrlValidator(allowed_domains={"docs.example.com"})
        assert validator.is_valid("https://docs.example.com/a")
        assert not validator.is_valid("https://other.example.com/a")

    @pytest.mark.parametrize(
        "url",
        [
            "http://localhost/",
            "http://intranet.local/",
            "http://10.0.0.5/",
            "http://127.0.0.1/",
            "http://169.254.169.254/latest/meta-data",
            "http://[::1]/",
        ],
    )
    def test_blocks_internal_hosts_when_enabled(self, url):
        assert not UrlValidator(block_private_ips=True).is_valid(url)

    def test_public_ip_allowed_when_blocking(self):
        assert UrlValidator(block_private_ips=True).is_valid("http://93.184.216.34/")
