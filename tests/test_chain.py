"""Tests for redirect chain validation."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from slideguard.http import ProbeResult
from slideguard.models.verdict import RejectionReason, ValidationVerdict
from slideguard.security.chain import ChainValidator
from slideguard.security.url_validator import SingleUrlValidator

from fakes import FakeProber, FakeResolver

START = "https://example.com/img.png"


def accepting_validator():
    validator = MagicMock()
    validator.validate = AsyncMock(return_value=ValidationVerdict.accept())
    return validator


def redirecting_prober(*targets):
    """Prober returning each target as a redirect in turn, then no redirect."""
    prober = MagicMock()
    results = [ProbeResult.redirect(t, 302) for t in targets] + [ProbeResult.no_redirect(200)]
    prober.probe = AsyncMock(side_effect=results)
    return prober


class TestChainValidator:
    """Tests for ChainValidator.validate_chain."""

    @pytest.mark.asyncio
    async def test_no_redirect_accepted(self):
        """Test a URL that serves its content directly."""
        validator = accepting_validator()
        prober = redirecting_prober()
        chain = ChainValidator(validator, prober)

        verdict = await chain.validate_chain(START)

        assert verdict.valid is True
        validator.validate.assert_awaited_once_with(START)
        prober.probe.assert_awaited_once_with(START)

    @pytest.mark.asyncio
    async def test_initial_rejection_skips_probe(self):
        """Test that an invalid URL is never probed."""
        validator = MagicMock()
        validator.validate = AsyncMock(return_value=ValidationVerdict.reject(RejectionReason.IP_NOT_ALLOWED))
        prober = redirecting_prober()
        chain = ChainValidator(validator, prober)

        verdict = await chain.validate_chain("https://10.0.0.1/x.png")

        assert verdict.reason is RejectionReason.IP_NOT_ALLOWED
        prober.probe.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_three_redirects_allowed(self):
        """Test that exactly max_redirects hops are followed."""
        validator = accepting_validator()
        prober = redirecting_prober(
            "https://hop1.example.com/a.png",
            "https://hop2.example.com/a.png",
            "https://hop3.example.com/a.png",
        )
        chain = ChainValidator(validator, prober, max_redirects=3)

        verdict = await chain.validate_chain(START)

        assert verdict.valid is True
        assert validator.validate.await_count == 4
        assert prober.probe.await_count == 4

    @pytest.mark.asyncio
    async def test_four_redirects_rejected(self):
        """Test that a fourth redirect exceeds the default limit."""
        validator = accepting_validator()
        prober = redirecting_prober(
            "https://hop1.example.com/a.png",
            "https://hop2.example.com/a.png",
            "https://hop3.example.com/a.png",
            "https://hop4.example.com/a.png",
        )
        chain = ChainValidator(validator, prober)

        verdict = await chain.validate_chain(START)

        assert verdict.reason is RejectionReason.TOO_MANY_REDIRECTS
        assert validator.validate.await_count == 5
        # The fifth URL is validated but never contacted.
        assert prober.probe.await_count == 4

    @pytest.mark.asyncio
    async def test_zero_redirects_allowed(self):
        """Test max_redirects=0 rejects any redirect."""
        chain = ChainValidator(accepting_validator(), redirecting_prober("https://hop1.example.com/"), max_redirects=0)
        verdict = await chain.validate_chain(START)
        assert verdict.reason is RejectionReason.TOO_MANY_REDIRECTS

    @pytest.mark.asyncio
    async def test_self_redirect_is_loop(self):
        """Test a URL redirecting to itself."""
        validator = accepting_validator()
        prober = redirecting_prober(START)
        chain = ChainValidator(validator, prober)

        verdict = await chain.validate_chain(START)

        assert verdict.reason is RejectionReason.REDIRECT_LOOP
        assert prober.probe.await_count == 1

    @pytest.mark.asyncio
    async def test_two_hop_cycle_is_loop(self):
        """Test A -> B -> A."""
        prober = redirecting_prober("https://hop1.example.com/a.png", START)
        chain = ChainValidator(accepting_validator(), prober)

        verdict = await chain.validate_chain(START)

        assert verdict.reason is RejectionReason.REDIRECT_LOOP
        assert prober.probe.await_count == 2

    @pytest.mark.asyncio
    async def test_redirect_to_internal_target_rejected_before_contact(self):
        """Test that a redirect target is validated before it is probed."""
        internal = "https://169.254.169.254/latest/meta-data/"
        validator = SingleUrlValidator(resolver=FakeResolver({"example.com": ["93.184.216.34"]}))
        prober = FakeProber({START: internal})
        chain = ChainValidator(validator, prober)

        verdict = await chain.validate_chain(START)

        assert verdict.reason is RejectionReason.IP_NOT_ALLOWED
        assert prober.calls == [START]

    @pytest.mark.asyncio
    async def test_redirect_downgrade_to_http_rejected(self):
        """Test that a redirect to plain http is rejected."""
        validator = SingleUrlValidator(resolver=FakeResolver({"example.com": ["93.184.216.34"]}))
        chain = ChainValidator(validator, FakeProber({START: "http://example.com/img.png"}))

        verdict = await chain.validate_chain(START)

        assert verdict.reason is RejectionReason.PROTOCOL_NOT_ALLOWED

    @pytest.mark.asyncio
    async def test_probe_failure_fails_open_by_default(self):
        """Test that a transport failure counts as no redirect."""
        prober = MagicMock()
        prober.probe = AsyncMock(return_value=ProbeResult.failed("timeout"))
        chain = ChainValidator(accepting_validator(), prober)

        verdict = await chain.validate_chain(START)

        assert verdict.valid is True

    @pytest.mark.asyncio
    async def test_probe_failure_rejected_when_strict(self):
        """Test reject_on_probe_failure."""
        prober = MagicMock()
        prober.probe = AsyncMock(return_value=ProbeResult.failed("ClientConnectorError"))
        chain = ChainValidator(accepting_validator(), prober, reject_on_probe_failure=True)

        verdict = await chain.validate_chain(START)

        assert verdict.reason is RejectionReason.VALIDATION_ERROR

    @pytest.mark.asyncio
    @pytest.mark.parametrize("strict", [False, True])
    async def test_refused_connection_rejected(self, strict):
        """Test that a HEAD request refused for a disallowed address never fails open."""
        prober = MagicMock()
        prober.probe = AsyncMock(return_value=ProbeResult.blocked("ClientConnectorError"))
        chain = ChainValidator(accepting_validator(), prober, reject_on_probe_failure=strict)

        verdict = await chain.validate_chain(START)

        assert verdict.reason is RejectionReason.IP_NOT_ALLOWED

    @pytest.mark.asyncio
    async def test_on_redirect_listener(self):
        """Test that every followed redirect is reported in order."""
        hops = []
        prober = redirecting_prober("https://hop1.example.com/a.png", "https://hop2.example.com/a.png")
        chain = ChainValidator(accepting_validator(), prober, on_redirect=hops.append)

        await chain.validate_chain(START)

        assert [(h.source, h.target, h.index) for h in hops] == [
            (START, "https://hop1.example.com/a.png", 1),
            ("https://hop1.example.com/a.png", "https://hop2.example.com/a.png", 2),
        ]

    @pytest.mark.asyncio
    async def test_chains_are_independent(self):
        """Test that the visited set does not leak between calls."""
        prober = FakeProber({START: "https://hop1.example.com/a.png"})
        chain = ChainValidator(accepting_validator(), prober)

        first = await chain.validate_chain(START)
        second = await chain.validate_chain(START)

        assert first == second
        assert first.valid is True
