"""HEAD-based redirect discovery."""

from __future__ import annotations

import asyncio
import logging
from types import TracebackType
from urllib.parse import urljoin, urlsplit

import aiohttp

from .. import __version__
from .protocols import ProbeResult
from .resolver import BlockedAddressError, GuardedResolver, Resolver

logger = logging.getLogger(__name__)


def _refused_by_guard(error: BaseException) -> bool:
    """Check whether a connection error was the guarded resolver refusing an address."""
    # aiohttp wraps resolver errors in ClientConnectorError
    candidates = (error, getattr(error, "os_error", None), error.__cause__)
    return any(isinstance(candidate, BlockedAddressError) for candidate in candidates)


class RedirectProbe:
    """
    Discovers whether a URL redirects, without transferring a body.

    Sends a single HEAD request with redirects disabled and a hard
    timeout. Only 3xx responses carrying a ``Location`` header count as a
    redirect; the location is resolved against the probed URL. Transport
    failures and timeouts never raise: they come back as a FAILED result
    so the caller decides how to treat them.

    Connections made by the probe go through a GuardedResolver with the DNS
    cache disabled, so the probe never connects to a disallowed address. A
    connection refused that way comes back as BLOCKED, not FAILED.

    Example:
        async with RedirectProbe(timeout=5.0) as probe:
            result = await probe.probe("https://example.com/img.png")
            if result.has_redirect:
                print(f"Redirects to {result.target}")
    """

    DEFAULT_TIMEOUT = 5.0

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str | None = None,
        resolver: Resolver | None = None,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        """
        Initialize the probe.

        Args:
            timeout: Total timeout for one probe in seconds
            user_agent: User-Agent header for probe requests
            resolver: Resolver used by the guarded connector
            session: Existing session to use (caller keeps ownership)
        """
        self._timeout = timeout
        self._user_agent = user_agent or f"slideguard-image-validator/{__version__}"
        self._resolver = resolver or Resolver(timeout=timeout)
        self._session = session
        self._owns_session = False

    async def __aenter__(self) -> RedirectProbe:
        """Enter async context and create a session if none was given."""
        if self._session is None:
            self._session = self._create_session()
            self._owns_session = True
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit async context and close the session if we created it."""
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None
            self._owns_session = False

    def _create_session(self) -> aiohttp.ClientSession:
        connector = aiohttp.TCPConnector(
            resolver=GuardedResolver(self._resolver),
            use_dns_cache=False,
            limit_per_host=4,
        )
        return aiohttp.ClientSession(
            connector=connector,
            headers={"User-Agent": self._user_agent},
        )

    async def probe(self, url: str) -> ProbeResult:
        """
        Probe a URL for a redirect.

        Args:
            url: Absolute URL that has already been validated

        Returns:
            ProbeResult with the redirect target, no redirect, or failure
        """
        if self._session is not None:
            return await self._probe_with(self._session, url)

        async with self._create_session() as session:
            return await self._probe_with(session, url)

    async def _probe_with(self, session: aiohttp.ClientSession, url: str) -> ProbeResult:
        try:
            async with session.head(
                url,
                allow_redirects=False,
                timeout=aiohttp.ClientTimeout(total=self._timeout),
            ) as response:
                status = response.status
                location = response.headers.get("Location")
        except asyncio.TimeoutError:
            logger.debug(f"Redirect probe timed out for {url} after {self._timeout}s")
            return ProbeResult.failed("timeout")
        except (aiohttp.ClientError, OSError, ValueError) as e:
            if _refused_by_guard(e):
                logger.warning(f"Redirect probe for {url} refused: host resolved to a disallowed address")
                return ProbeResult.blocked(type(e).__name__)
            logger.debug(f"Redirect probe failed for {url}: {type(e).__name__}")
            return ProbeResult.failed(type(e).__name__)

        if not 300 <= status < 400 or not location:
            return ProbeResult.no_redirect(status)

        target = self.resolve_location(url, location)
        if target is None:
            logger.debug(f"Ignoring unparseable redirect location from {url}")
            return ProbeResult.no_redirect(status)

        logger.debug(f"{url} redirects ({status}) to {target}")
        return ProbeResult.redirect(target, status)

    @staticmethod
    def resolve_location(base_url: str, location: str) -> str | None:
        """
        Resolve a Location header value against the URL that returned it.

        Args:
            base_url: URL that was probed
            location: Raw Location header value

        Returns:
            Absolute target URL, or None if it cannot be parsed
        """
        try:
            target = urljoin(base_url, location.strip())
            parts = urlsplit(target)
            parts.port  # noqa: B018 - raises ValueError for a malformed port
        except ValueError:
            return None

        if not parts.scheme:
            return None
        return target
