"""Entry point for validating image URLs found in user Markdown."""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Sequence
from types import TracebackType
from typing import Callable, Optional

from ..http.probe import RedirectProbe
from ..http.protocols import AddressResolver, RedirectProber
from ..http.resolver import Resolver
from ..models.config import GuardConfig
from ..models.events import EventType, ValidationEvent, ValidationStats
from ..models.verdict import RedirectHop, RejectionReason, ValidationVerdict
from .chain import ChainValidator
from .url_validator import SingleUrlValidator

logger = logging.getLogger(__name__)

EventEmitter = Callable[[ValidationEvent], None]

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")
_DOUBLE_SLASH_AFTER_AUTHORITY = re.compile(r"^https?://[^/]*//", re.IGNORECASE)


def precheck(raw: object) -> Optional[RejectionReason]:
    """
    Cheap input checks run before any parsing or network access.

    The ``%40``, backslash and double-slash checks are best-effort
    anti-obfuscation heuristics. They do not cover every URL-parser
    differential; the strict parse in SingleUrlValidator is the primary
    defense.

    Args:
        raw: Untrusted input

    Returns:
        Rejection reason, or None if the input may proceed
    """
    if not isinstance(raw, str):
        return RejectionReason.MISSING_URL

    url = raw.strip()
    if not url:
        return RejectionReason.EMPTY_URL
    if _CONTROL_CHARS.search(url):
        return RejectionReason.INVALID_CHARACTERS
    # Encoded "@" smuggles credentials past naive host extraction
    if "%40" in url:
        return RejectionReason.INVALID_FORMAT
    if "\\" in url:
        return RejectionReason.INVALID_FORMAT
    if _DOUBLE_SLASH_AFTER_AUTHORITY.match(url):
        return RejectionReason.INVALID_FORMAT
    return None


class ImageUrlValidator:
    """
    Validates externally referenced image URLs before a document is rendered.

    Every call is independent: no state is shared between URLs apart from
    the probe's HTTP session and the cumulative ``stats``. Unexpected
    internal errors are downgraded to ``ValidationError`` and never
    propagate, so a crash in this gate can neither abort the caller nor
    let a URL through.

    Example:
        async with ImageUrlValidator(GuardConfig()) as validator:
            verdict = await validator.validate("https://example.com/a.png")
            verdicts = await validator.validate_many(urls)
    """

    def __init__(
        self,
        config: GuardConfig | None = None,
        resolver: AddressResolver | None = None,
        prober: RedirectProber | None = None,
        emit: Optional[EventEmitter] = None,
    ) -> None:
        """
        Initialize the validator.

        Args:
            config: Validation settings (default: GuardConfig())
            resolver: DNS resolver (default: system resolver)
            prober: Redirect prober (default: RedirectProbe over aiohttp)
            emit: Optional callback receiving validation events; exceptions it
                raises are logged and ignored
        """
        self.config = config or GuardConfig()
        self._emit = emit
        self.stats = ValidationStats()

        self._resolver = resolver or Resolver(timeout=self.config.resolve_timeout)
        self._owned_probe: RedirectProbe | None = None
        if prober is None:
            resolver_for_probe = self._resolver if isinstance(self._resolver, Resolver) else None
            self._owned_probe = RedirectProbe(
                timeout=self.config.probe_timeout,
                user_agent=self.config.user_agent,
                resolver=resolver_for_probe,
            )
            prober = self._owned_probe

        self._chain = ChainValidator(
            validator=SingleUrlValidator(
                resolver=self._resolver,
                max_url_length=self.config.max_url_length,
            ),
            prober=prober,
            max_redirects=self.config.max_redirects,
            reject_on_probe_failure=self.config.reject_on_probe_failure,
            on_redirect=self._record_redirect,
        )

    async def __aenter__(self) -> ImageUrlValidator:
        """Enter async context and open the probe's session."""
        if self._owned_probe is not None:
            await self._owned_probe.__aenter__()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit async context and close the probe's session."""
        if self._owned_probe is not None:
            await self._owned_probe.__aexit__(exc_type, exc_val, exc_tb)

    def _emit_event(self, event: ValidationEvent) -> None:
        if self._emit is None:
            return
        # A failing callback must not change or lose a verdict
        try:
            self._emit(event)
        except Exception as e:
            logger.warning(f"Event callback failed for {event.type.value}: {type(e).__name__}")

    def _record_redirect(self, hop: RedirectHop) -> None:
        self.stats.redirects_followed += 1
        self._emit_event(
            ValidationEvent(
                type=EventType.REDIRECT_FOUND,
                url=hop.source,
                redirect_target=hop.target,
                hop=hop.index,
            )
        )

    async def _run_chain(self, url: str) -> ValidationVerdict:
        if self.config.validation_timeout is None:
            return await self._chain.validate_chain(url)
        return await asyncio.wait_for(
            self._chain.validate_chain(url),
            timeout=self.config.validation_timeout,
        )

    async def validate(self, raw: object) -> ValidationVerdict:
        """
        Validate one image URL, following and validating its redirects.

        Args:
            raw: Untrusted URL input

        Returns:
            ValidationVerdict; this method does not raise
        """
        reason = precheck(raw)
        if reason is not None:
            verdict = ValidationVerdict.reject(reason)
        else:
            url = str(raw).strip()
            try:
                verdict = await self._run_chain(url)
            except Exception as e:
                # Log the type only: messages may carry infrastructure detail.
                logger.error(f"Image URL validation error: {type(e).__name__}")
                verdict = ValidationVerdict.reject(RejectionReason.VALIDATION_ERROR)

        self._record_verdict(raw, verdict)
        return verdict

    def _record_verdict(self, raw: object, verdict: ValidationVerdict) -> None:
        self.stats.urls_checked += 1
        url = raw if isinstance(raw, str) else None
        if verdict.valid:
            self.stats.urls_accepted += 1
            self._emit_event(ValidationEvent(type=EventType.URL_ACCEPTED, url=url))
        else:
            self.stats.urls_rejected += 1
            self._emit_event(
                ValidationEvent(
                    type=EventType.URL_REJECTED,
                    url=url,
                    reason=verdict.reason,
                    message=verdict.message,
                )
            )

    async def validate_many(self, raws: Sequence[object]) -> list[ValidationVerdict]:
        """
        Validate several URLs independently.

        URLs are validated concurrently (bounded by ``config.max_concurrent``)
        and one failure never affects another URL's verdict.

        Args:
            raws: Untrusted URL inputs

        Returns:
            One verdict per input, in input order
        """
        semaphore = asyncio.Semaphore(self.config.max_concurrent)

        async def bounded(raw: object) -> ValidationVerdict:
            async with semaphore:
                return await self.validate(raw)

        return list(await asyncio.gather(*(bounded(raw) for raw in raws)))


async def validate_image_url(raw: object, config: GuardConfig | None = None) -> ValidationVerdict:
    """
    Validate one image URL with a short-lived validator.

    Args:
        raw: Untrusted URL input
        config: Optional validation settings

    Returns:
        ValidationVerdict
    """
    async with ImageUrlValidator(config) as validator:
        return await validator.validate(raw)


async def validate_image_urls(
    raws: Sequence[object],
    config: GuardConfig | None = None,
) -> list[ValidationVerdict]:
    """
    Validate several image URLs independently, preserving input order.

    Args:
        raws: Untrusted URL inputs
        config: Optional validation settings

    Returns:
        One verdict per input, in input order
    """
    async with ImageUrlValidator(config) as validator:
        return await validator.validate_many(raws)
