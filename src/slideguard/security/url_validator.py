"""Single-hop URL validation for SSRF prevention."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from urllib.parse import urlsplit

from ..http.protocols import AddressResolver
from ..http.resolver import Resolver
from ..models.verdict import RejectionReason, ValidationVerdict
from .addresses import classify_ip, looks_like_ip_literal
from .hostnames import match_blocked_hostname, normalize_hostname

# Whitespace, C0 controls, DEL and backslashes never appear in a URL we accept.
_FORBIDDEN_CHARS = re.compile(r"[\x00-\x20\x7f\\]")


@dataclass(frozen=True)
class ParsedUrl:
    """Components of an absolute URL, derived once per hop."""

    protocol: str
    hostname: str
    port: int | None
    path: str
    query: str


def parse_url(url: str) -> ParsedUrl | None:
    """
    Parse an absolute URL strictly.

    Args:
        url: The URL to parse

    Returns:
        ParsedUrl, or None if the URL is malformed or relative. The hostname
        is empty when the URL has no authority (e.g. ``data:`` URLs).
    """
    if _FORBIDDEN_CHARS.search(url):
        return None

    try:
        parts = urlsplit(url)
        port = parts.port
        hostname = parts.hostname or ""
        has_credentials = parts.username is not None or parts.password is not None
    except ValueError:
        return None

    if not parts.scheme or has_credentials or "%" in hostname:
        return None

    if hostname and not hostname.isascii():
        try:
            hostname = hostname.encode("idna").decode("ascii")
        except UnicodeError:
            return None

    return ParsedUrl(
        protocol=parts.scheme.lower(),
        hostname=normalize_hostname(hostname),
        port=port,
        path=parts.path,
        query=parts.query,
    )


class SingleUrlValidator:
    """
    Validates exactly one URL without following redirects.

    Checks run in order and stop at the first failure:
    1. Length limit
    2. Strict absolute-URL parse
    3. Protocol allow-list (``https`` only)
    4. Internal hostname deny-list
    5. IP literal classification (no DNS for literals)
    6. Classification of every address the hostname resolves to

    Example:
        validator = SingleUrlValidator(resolver=Resolver(timeout=5.0))
        verdict = await validator.validate("https://example.com/logo.png")
        if not verdict.valid:
            print(f"Rejected: {verdict.reason.value}")
    """

    ALLOWED_SCHEME = "https"
    DEFAULT_MAX_URL_LENGTH = 2048

    def __init__(
        self,
        resolver: AddressResolver | None = None,
        max_url_length: int = DEFAULT_MAX_URL_LENGTH,
        logger: logging.Logger | None = None,
    ):
        """
        Initialize the URL validator.

        Args:
            resolver: DNS resolver (default: system resolver with 5s timeout)
            max_url_length: Maximum accepted URL length in characters
            logger: Optional logger for validation messages
        """
        self.resolver = resolver or Resolver()
        self.max_url_length = max_url_length
        self.logger = logger or logging.getLogger(__name__)

    def _reject(self, url: str, reason: RejectionReason, detail: str) -> ValidationVerdict:
        self.logger.debug(f"Rejected {url!r}: {reason.value} ({detail})")
        return ValidationVerdict.reject(reason)

    async def validate(self, url: str) -> ValidationVerdict:
        """
        Validate a single URL.

        Args:
            url: The URL to validate

        Returns:
            ValidationVerdict; never raises for expected failures
        """
        if len(url) > self.max_url_length:
            return self._reject(url, RejectionReason.URL_TOO_LONG, f"{len(url)} characters")

        parsed = parse_url(url)
        if parsed is None:
            return self._reject(url, RejectionReason.INVALID_FORMAT, "not a well-formed absolute URL")

        if parsed.protocol != self.ALLOWED_SCHEME:
            return self._reject(url, RejectionReason.PROTOCOL_NOT_ALLOWED, f"scheme {parsed.protocol!r}")

        hostname = parsed.hostname
        if not hostname:
            return self._reject(url, RejectionReason.INVALID_FORMAT, "no hostname")

        blocked_name = match_blocked_hostname(hostname)
        if blocked_name is not None:
            return self._reject(url, RejectionReason.HOSTNAME_NOT_ALLOWED, blocked_name)

        # Literals are classified directly; resolving them is meaningless.
        if looks_like_ip_literal(hostname):
            blocked_ip = classify_ip(hostname)
            if blocked_ip is not None:
                return self._reject(url, RejectionReason.IP_NOT_ALLOWED, blocked_ip)
            return ValidationVerdict.accept()

        try:
            addresses = await self.resolver.resolve(hostname)
        except OSError as e:
            return self._reject(url, RejectionReason.RESOLUTION_FAILURE, str(e))

        if not addresses:
            return self._reject(url, RejectionReason.RESOLUTION_FAILURE, "no addresses")

        # Any blocked address rejects the URL, not only the first one.
        for address in addresses:
            blocked_ip = classify_ip(address)
            if blocked_ip is not None:
                return self._reject(
                    url,
                    RejectionReason.IP_NOT_ALLOWED,
                    f"{hostname} resolves to {blocked_ip} address",
                )

        return ValidationVerdict.accept()

    async def is_valid(self, url: str) -> bool:
        """
        Quick check if URL is valid.

        Args:
            url: The URL to check

        Returns:
            True if valid, False otherwise
        """
        return (await self.validate(url)).valid
