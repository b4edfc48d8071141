"""Validation verdicts and the fixed rejection taxonomy."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class RejectionReason(str, Enum):
    """Why an image URL was rejected."""

    MISSING_URL = "MissingUrl"
    EMPTY_URL = "EmptyUrl"
    INVALID_CHARACTERS = "InvalidCharacters"
    INVALID_FORMAT = "InvalidFormat"
    URL_TOO_LONG = "UrlTooLong"
    PROTOCOL_NOT_ALLOWED = "ProtocolNotAllowed"
    HOSTNAME_NOT_ALLOWED = "HostnameNotAllowed"
    IP_NOT_ALLOWED = "IpNotAllowed"
    RESOLUTION_FAILURE = "ResolutionFailure"
    TOO_MANY_REDIRECTS = "TooManyRedirects"
    REDIRECT_LOOP = "RedirectLoop"
    VALIDATION_ERROR = "ValidationError"

    @property
    def message(self) -> str:
        """Human-readable description, safe to show to end users."""
        return _MESSAGES[self]


_MESSAGES: dict[RejectionReason, str] = {
    RejectionReason.MISSING_URL: "Image URL is required",
    RejectionReason.EMPTY_URL: "Image URL cannot be empty",
    RejectionReason.INVALID_CHARACTERS: "Image URL contains invalid characters",
    RejectionReason.INVALID_FORMAT: "Invalid URL format",
    RejectionReason.URL_TOO_LONG: "URL exceeds maximum length",
    RejectionReason.PROTOCOL_NOT_ALLOWED: "Only HTTPS protocol is allowed for image URLs",
    RejectionReason.HOSTNAME_NOT_ALLOWED: "Hostname is not allowed",
    RejectionReason.IP_NOT_ALLOWED: "IP address is not allowed",
    RejectionReason.RESOLUTION_FAILURE: "Failed to resolve hostname",
    RejectionReason.TOO_MANY_REDIRECTS: "Too many redirects",
    RejectionReason.REDIRECT_LOOP: "Redirect loop detected",
    RejectionReason.VALIDATION_ERROR: "Failed to validate image URL",
}


@dataclass(frozen=True)
class ValidationVerdict:
    """
    Terminal result of validating one image URL.

    Either ``valid=True`` with no reason, or ``valid=False`` with exactly
    one reason from :class:`RejectionReason`. Use the ``accept`` and
    ``reject`` constructors rather than building instances directly.
    """

    valid: bool
    reason: RejectionReason | None = None

    def __post_init__(self) -> None:
        if self.valid and self.reason is not None:
            raise ValueError("A valid verdict cannot carry a rejection reason")
        if not self.valid and self.reason is None:
            raise ValueError("A rejected verdict requires a reason")

    @staticmethod
    def accept() -> ValidationVerdict:
        """Create an accepting verdict."""
        return ValidationVerdict(valid=True)

    @staticmethod
    def reject(reason: RejectionReason) -> ValidationVerdict:
        """Create a rejecting verdict with reason."""
        return ValidationVerdict(valid=False, reason=reason)

    @property
    def message(self) -> str | None:
        """Human-readable rejection message, or None when valid."""
        return self.reason.message if self.reason is not None else None

    def to_dict(self) -> dict:
        """Convert verdict to dictionary for serialization."""
        return {
            "valid": self.valid,
            "reason": self.reason.value if self.reason is not None else None,
            "message": self.message,
        }


@dataclass(frozen=True)
class RedirectHop:
    """One followed redirect: ``source`` answered with a 3xx pointing at ``target``."""

    source: str
    target: str
    index: int
