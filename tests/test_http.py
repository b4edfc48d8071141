"""Tests for DNS resolution and the redirect probe."""

import asyncio
import socket
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest
from slideguard.http import (
    BlockedAddressError,
    GuardedResolver,
    ProbeOutcome,
    RedirectProbe,
    ResolutionError,
    Resolver,
)
from slideguard.models.verdict import RejectionReason
from slideguard.security.image_urls import ImageUrlValidator


def make_backend(records=None, error=None):
    backend = MagicMock()
    if error is not None:
        backend.resolve = AsyncMock(side_effect=error)
    else:
        backend.resolve = AsyncMock(return_value=records or [])
    return backend


def record(host, port=0):
    return {
        "hostname": "example.com",
        "host": host,
        "port": port,
        "family": socket.AF_INET6 if ":" in host else socket.AF_INET,
        "proto": 0,
        "flags": socket.AI_NUMERICHOST,
    }


def make_session(status=200, headers=None, error=None):
    """Session mock whose head() works as an async context manager."""
    response = MagicMock()
    response.status = status
    response.headers = headers or {}

    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=response)
    context.__aexit__ = AsyncMock(return_value=False)

    session = MagicMock()
    if error is not None:
        session.head = MagicMock(side_effect=error)
    else:
        session.head = MagicMock(return_value=context)
    return session


class TestResolver:
    """Tests for Resolver."""

    @pytest.mark.asyncio
    async def test_returns_all_distinct_addresses(self):
        """Test that every A/AAAA answer is returned once, in order."""
        backend = make_backend(
            [
                record("93.184.216.34"),
                record("93.184.216.34"),
                record("2606:2800:220:1:248:1893:25c8:1946"),
            ]
        )
        resolver = Resolver(backend=backend)

        addresses = await resolver.resolve("example.com")

        assert addresses == ["93.184.216.34", "2606:2800:220:1:248:1893:25c8:1946"]
        backend.resolve.assert_awaited_once_with("example.com", 0, family=socket.AF_UNSPEC)

    @pytest.mark.asyncio
    async def test_lookup_error(self):
        """Test that OS errors become ResolutionError."""
        resolver = Resolver(backend=make_backend(error=OSError("Name or service not known")))
        with pytest.raises(ResolutionError):
            await resolver.resolve("nope.example")

    @pytest.mark.asyncio
    async def test_empty_answer(self):
        """Test that an empty answer is an error."""
        resolver = Resolver(backend=make_backend([]))
        with pytest.raises(ResolutionError, match="No addresses"):
            await resolver.resolve("example.com")

    @pytest.mark.asyncio
    async def test_timeout(self):
        """Test that a slow lookup is abandoned."""

        async def slow(*args, **kwargs):
            await asyncio.sleep(1)
            return [record("93.184.216.34")]

        backend = MagicMock()
        backend.resolve = slow
        resolver = Resolver(timeout=0.01, backend=backend)

        with pytest.raises(ResolutionError, match="Timed out"):
            await resolver.resolve("example.com")

    def test_resolution_error_is_os_error(self):
        """Test the exception hierarchy callers rely on."""
        assert issubclass(ResolutionError, OSError)


class TestGuardedResolver:
    """Tests for GuardedResolver."""

    @pytest.mark.asyncio
    async def test_public_records_passed_through(self):
        """Test that public answers reach the connector unchanged."""
        records = [record("93.184.216.34", 443)]
        guarded = GuardedResolver(Resolver(backend=make_backend(records)))

        assert await guarded.resolve("example.com", 443) == records

    @pytest.mark.asyncio
    async def test_blocked_record_refused(self):
        """Test that a rebound answer stops the connection."""
        backend = make_backend([record("93.184.216.34", 443), record("127.0.0.1", 443)])
        guarded = GuardedResolver(Resolver(backend=backend))

        with pytest.raises(BlockedAddressError, match="disallowed address"):
            await guarded.resolve("example.com", 443)

    @pytest.mark.asyncio
    async def test_close(self):
        """Test that close is a no-op."""
        guarded = GuardedResolver(Resolver(backend=make_backend()))
        assert await guarded.close() is None


class TestRedirectProbe:
    """Tests for RedirectProbe."""

    @pytest.mark.asyncio
    async def test_redirect_detected(self):
        """Test that a 3xx with Location is a redirect."""
        session = make_session(302, {"Location": "https://cdn.example.net/a.png"})
        probe = RedirectProbe(session=session)

        result = await probe.probe("https://example.com/a.png")

        assert result.outcome is ProbeOutcome.REDIRECT
        assert result.target == "https://cdn.example.net/a.png"
        assert result.status_code == 302

    @pytest.mark.asyncio
    async def test_head_without_following_redirects(self):
        """Test the request shape: HEAD, redirects disabled, bounded timeout."""
        session = make_session(200)
        probe = RedirectProbe(timeout=2.5, session=session)

        await probe.probe("https://example.com/a.png")

        session.head.assert_called_once()
        args, kwargs = session.head.call_args
        assert args == ("https://example.com/a.png",)
        assert kwargs["allow_redirects"] is False
        assert kwargs["timeout"].total == 2.5

    @pytest.mark.asyncio
    async def test_relative_location_resolved(self):
        """Test that a relative Location is resolved against the probed URL."""
        session = make_session(301, {"Location": "/images/b.png"})
        probe = RedirectProbe(session=session)

        result = await probe.probe("https://example.com/old/a.png")

        assert result.target == "https://example.com/images/b.png"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status,headers", [(200, {}), (404, {}), (302, {}), (200, {"Location": "/x"})])
    async def test_no_redirect(self, status, headers):
        """Test that non-3xx responses and 3xx without Location are not redirects."""
        probe = RedirectProbe(session=make_session(status, headers))

        result = await probe.probe("https://example.com/a.png")

        assert result.outcome is ProbeOutcome.NO_REDIRECT
        assert result.status_code == status

    @pytest.mark.asyncio
    async def test_timeout_is_failure(self):
        """Test that timeouts come back as FAILED rather than raising."""
        probe = RedirectProbe(session=make_session(error=asyncio.TimeoutError()))

        result = await probe.probe("https://example.com/a.png")

        assert result.outcome is ProbeOutcome.FAILED
        assert result.error == "timeout"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [aiohttp.ClientConnectionError("refused"), ResolutionError("NXDOMAIN"), ValueError("bad url")],
    )
    async def test_transport_errors_are_failures(self, error):
        """Test that connection and resolution errors do not propagate."""
        probe = RedirectProbe(session=make_session(error=error))

        result = await probe.probe("https://example.com/a.png")

        assert result.outcome is ProbeOutcome.FAILED
        assert result.error == type(error).__name__

    @pytest.mark.asyncio
    async def test_guard_refusal_is_blocked(self):
        """Test that a connector error caused by the guarded resolver is BLOCKED."""
        refusal = BlockedAddressError("Refusing to connect to rebind.example.com: disallowed address")
        error = aiohttp.ClientConnectorError(MagicMock(), refusal)
        probe = RedirectProbe(session=make_session(error=error))

        result = await probe.probe("https://rebind.example.com/a.png")

        assert result.outcome is ProbeOutcome.BLOCKED
        assert result.has_redirect is False

    @pytest.mark.asyncio
    async def test_unwrapped_guard_refusal_is_blocked(self):
        """Test a refusal raised directly rather than wrapped by aiohttp."""
        probe = RedirectProbe(session=make_session(error=BlockedAddressError("disallowed address")))

        result = await probe.probe("https://rebind.example.com/a.png")

        assert result.outcome is ProbeOutcome.BLOCKED

    @pytest.mark.asyncio
    async def test_borrowed_session_not_closed(self):
        """Test that a caller-provided session is left open."""
        session = make_session()
        session.close = AsyncMock()

        async with RedirectProbe(session=session) as probe:
            await probe.probe("https://example.com/a.png")

        session.close.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_owned_session_closed(self):
        """Test that the probe closes a session it created."""
        probe = RedirectProbe()
        async with probe:
            session = probe._session
            assert session is not None
        assert session.closed is True
        assert probe._session is None


class TestResolveLocation:
    """Tests for RedirectProbe.resolve_location."""

    @pytest.mark.parametrize(
        "location,expected",
        [
            ("https://other.example/x.png", "https://other.example/x.png"),
            ("/x.png", "https://example.com/x.png"),
            ("x.png", "https://example.com/dir/x.png"),
            ("//cdn.example.net/x.png", "https://cdn.example.net/x.png"),
            ("  https://other.example/x.png ", "https://other.example/x.png"),
        ],
    )
    def test_resolves(self, location, expected):
        """Test absolute, root-relative, relative and protocol-relative targets."""
        assert RedirectProbe.resolve_location("https://example.com/dir/a.png", location) == expected

    def test_malformed_port(self):
        """Test that an unparseable target is dropped."""
        assert RedirectProbe.resolve_location("https://example.com/", "https://example.com:99999/") is None


class RebindingBackend:
    """Resolver backend that answers with a public address once, then loopback."""

    def __init__(self) -> None:
        self.calls = 0

    async def resolve(self, host, port=0, family=socket.AF_INET):
        self.calls += 1
        address = "93.184.216.34" if self.calls == 1 else "127.0.0.1"
        return [record(address, port)]


class TestDnsRebinding:
    """Tests for a hostname whose answer changes between validation and the HEAD request."""

    @pytest.mark.asyncio
    async def test_rebound_host_rejected(self):
        """Test that the connection-time lookup rejects the URL."""
        backend = RebindingBackend()

        async with ImageUrlValidator(resolver=Resolver(backend=backend)) as validator:
            verdict = await validator.validate("https://rebind.example.com/x.png")

        assert verdict.valid is False
        assert verdict.reason is RejectionReason.IP_NOT_ALLOWED
        assert backend.calls == 2
