"""Multi-hop validation: validate, probe for a redirect, validate the target."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from ..http.protocols import ProbeOutcome, RedirectProber
from ..models.verdict import RedirectHop, RejectionReason, ValidationVerdict
from .url_validator import SingleUrlValidator

logger = logging.getLogger(__name__)

# Callback invoked for every redirect that is about to be followed.
RedirectListener = Callable[[RedirectHop], None]


class ChainValidator:
    """
    Validates a URL and every URL it redirects to.

    Hops are strictly sequential. At each hop the current URL is validated
    first; only a validated URL is counted against the hop limit, checked
    against the visited set and then probed. A redirect target is never
    contacted before it has itself been validated, so a 3xx pointing at an
    internal address is caught before any request reaches it.

    States: validating(hop, visited) -> probing -> validating(hop + 1) ...
    ending in accepted or rejected(reason). There are no retries.

    A probe that fails in transport is treated as "no redirect" unless
    ``reject_on_probe_failure`` is set. A probe refused because the host now
    resolves to a disallowed address always rejects with IpNotAllowed.

    Example:
        chain = ChainValidator(SingleUrlValidator(), RedirectProbe())
        verdict = await chain.validate_chain("https://example.com/img.png")
    """

    DEFAULT_MAX_REDIRECTS = 3

    def __init__(
        self,
        validator: SingleUrlValidator,
        prober: RedirectProber,
        max_redirects: int = DEFAULT_MAX_REDIRECTS,
        reject_on_probe_failure: bool = False,
        on_redirect: Optional[RedirectListener] = None,
    ) -> None:
        """
        Initialize the chain validator.

        Args:
            validator: Single-hop validator run on every URL in the chain
            prober: Redirect prober used after a hop validates
            max_redirects: Redirects allowed before TooManyRedirects
            reject_on_probe_failure: Reject when a probe fails at the transport
                level instead of treating it as "no redirect"
            on_redirect: Optional listener notified of each followed redirect
        """
        self._validator = validator
        self._prober = prober
        self.max_redirects = max_redirects
        self.reject_on_probe_failure = reject_on_probe_failure
        self._on_redirect = on_redirect

    async def validate_chain(self, url: str) -> ValidationVerdict:
        """
        Validate a URL and its redirect chain.

        Args:
            url: Starting URL

        Returns:
            Accepting verdict, or the first rejection encountered
        """
        visited: set[str] = set()
        current = url
        hop = 0

        while True:
            verdict = await self._validator.validate(current)
            if not verdict.valid:
                return verdict

            if hop > self.max_redirects:
                logger.debug(f"Rejected {url!r}: more than {self.max_redirects} redirects")
                return ValidationVerdict.reject(RejectionReason.TOO_MANY_REDIRECTS)

            if current in visited:
                logger.debug(f"Rejected {url!r}: redirect loop at {current!r}")
                return ValidationVerdict.reject(RejectionReason.REDIRECT_LOOP)
            visited.add(current)

            result = await self._prober.probe(current)

            if result.outcome is ProbeOutcome.BLOCKED:
                logger.debug(f"Rejected {url!r}: {current!r} resolved to a disallowed address at probe time")
                return ValidationVerdict.reject(RejectionReason.IP_NOT_ALLOWED)

            if result.outcome is ProbeOutcome.FAILED:
                if self.reject_on_probe_failure:
                    logger.debug(f"Rejected {url!r}: redirect probe failed at {current!r}")
                    return ValidationVerdict.reject(RejectionReason.VALIDATION_ERROR)
                # Failed probe counts as no redirect
                return ValidationVerdict.accept()

            if not result.has_redirect or result.target is None:
                return ValidationVerdict.accept()

            hop += 1
            if self._on_redirect is not None:
                self._on_redirect(RedirectHop(source=current, target=result.target, index=hop))
            current = result.target
