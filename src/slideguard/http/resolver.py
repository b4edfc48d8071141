"""DNS resolution for URL validation and for the redirect probe's connector."""

from __future__ import annotations

import asyncio
import logging
import socket
from typing import Any

from aiohttp import ThreadedResolver
from aiohttp.abc import AbstractResolver

from ..security.addresses import classify_ip

logger = logging.getLogger(__name__)


class ResolutionError(OSError):
    """DNS lookup failed, timed out, or returned no addresses."""


class BlockedAddressError(ResolutionError):
    """A hostname resolved to a disallowed address when a connection was attempted."""


class Resolver:
    """
    Resolves hostnames to every address they map to.

    All A and AAAA records are returned, not only the first, because the
    renderer may later connect to any of them. Nothing is cached here; the
    only caching is whatever the platform resolver does on its own.

    Example:
        resolver = Resolver(timeout=5.0)
        addresses = await resolver.resolve("example.com")
        # ["93.184.216.34", "2606:2800:220:1:248:1893:25c8:1946"]
    """

    def __init__(
        self,
        timeout: float = 5.0,
        backend: AbstractResolver | None = None,
    ) -> None:
        """
        Initialize the resolver.

        Args:
            timeout: Upper bound for a single lookup in seconds
            backend: aiohttp resolver to delegate to (default: ThreadedResolver,
                which uses the system's getaddrinfo)
        """
        self._timeout = timeout
        self._backend = backend

    async def resolve_records(
        self,
        host: str,
        port: int = 0,
        family: int = socket.AF_UNSPEC,
    ) -> list[Any]:
        """
        Look up raw aiohttp resolve records for a host.

        Args:
            host: DNS name to look up
            port: Port to put into the records
            family: Address family filter (AF_UNSPEC for both)

        Returns:
            Non-empty list of aiohttp ``ResolveResult`` mappings

        Raises:
            ResolutionError: On lookup failure, timeout or empty answer
        """
        # ThreadedResolver binds to the running loop, so build it per call.
        backend = self._backend or ThreadedResolver()
        try:
            records = await asyncio.wait_for(
                backend.resolve(host, port, family=socket.AddressFamily(family)),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as e:
            raise ResolutionError(f"Timed out resolving {host} after {self._timeout}s") from e
        except OSError as e:
            raise ResolutionError(f"Failed to resolve {host}: {e}") from e

        if not records:
            raise ResolutionError(f"No addresses found for {host}")
        return list(records)

    async def resolve(self, hostname: str) -> list[str]:
        """
        Resolve every address for a hostname.

        Args:
            hostname: DNS name to look up

        Returns:
            Distinct address literals in resolver order

        Raises:
            ResolutionError: On lookup failure, timeout or empty answer
        """
        records = await self.resolve_records(hostname)
        addresses = list(dict.fromkeys(str(record["host"]) for record in records))
        logger.debug(f"Resolved {hostname} to {addresses}")
        return addresses


class GuardedResolver(AbstractResolver):
    """
    aiohttp resolver that refuses to hand out disallowed addresses.

    Installed on the redirect probe's connector so the probe re-checks the
    addresses it is about to connect to. If DNS changed between validation
    and probe (rebinding), the connection is refused instead of reaching an
    internal host.
    """

    def __init__(self, resolver: Resolver) -> None:
        self._resolver = resolver

    async def resolve(
        self,
        host: str,
        port: int = 0,
        family: socket.AddressFamily = socket.AF_INET,
    ) -> list[Any]:
        records = await self._resolver.resolve_records(host, port, family)
        for record in records:
            blocked = classify_ip(str(record["host"]))
            if blocked is not None:
                logger.warning(f"Refusing probe connection to {host}: resolved to {blocked} address")
                raise BlockedAddressError(f"Refusing to connect to {host}: disallowed address")
        return records

    async def close(self) -> None:
        return None
