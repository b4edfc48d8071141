"""Protocol definitions for the network collaborators of the validators."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol


class ProbeOutcome(str, Enum):
    """What a redirect probe found out."""

    REDIRECT = "redirect"
    NO_REDIRECT = "no_redirect"
    FAILED = "failed"
    BLOCKED = "blocked"


@dataclass(frozen=True)
class ProbeResult:
    """
    Immutable result of a HEAD redirect probe.

    Attributes:
        outcome: Redirect found, no redirect, transport failure, or a
            connection refused because the host resolved to a disallowed address
        target: Absolute redirect target (only for REDIRECT)
        status_code: HTTP status of the probe response, if one arrived
        error: Error description (only for FAILED and BLOCKED)
    """

    outcome: ProbeOutcome
    target: str | None = None
    status_code: int | None = None
    error: str | None = None

    @property
    def has_redirect(self) -> bool:
        """True when the probed URL redirects to ``target``."""
        return self.outcome is ProbeOutcome.REDIRECT

    @staticmethod
    def redirect(target: str, status_code: int) -> ProbeResult:
        return ProbeResult(ProbeOutcome.REDIRECT, target=target, status_code=status_code)

    @staticmethod
    def no_redirect(status_code: int | None = None) -> ProbeResult:
        return ProbeResult(ProbeOutcome.NO_REDIRECT, status_code=status_code)

    @staticmethod
    def failed(error: str) -> ProbeResult:
        return ProbeResult(ProbeOutcome.FAILED, error=error)

    @staticmethod
    def blocked(error: str) -> ProbeResult:
        return ProbeResult(ProbeOutcome.BLOCKED, error=error)


class AddressResolver(Protocol):
    """
    Protocol for DNS resolution.

    Allows tests to substitute fixed answers for real lookups.
    """

    async def resolve(self, hostname: str) -> list[str]:
        """
        Resolve every A/AAAA address for a hostname.

        Args:
            hostname: DNS name to look up

        Returns:
            All addresses as literal strings (never empty)

        Raises:
            ResolutionError: If the lookup fails, times out or is empty
        """
        ...


class RedirectProber(Protocol):
    """Protocol for discovering a URL's redirect target without fetching its body."""

    async def probe(self, url: str) -> ProbeResult:
        """
        Probe a URL for a 3xx redirect.

        Args:
            url: Absolute URL that has already passed single-hop validation

        Returns:
            ProbeResult; transport problems are reported as FAILED and
            connections to disallowed addresses as BLOCKED, not raised
        """
        ...
