"""Shared fixtures for slideguard tests."""

import pytest
from fakes import FakeProber, FakeResolver


@pytest.fixture
def public_resolver():
    """Resolver where a handful of hosts resolve to public addresses."""
    return FakeResolver(
        {
            "example.com": ["93.184.216.34", "2606:2800:220:1:248:1893:25c8:1946"],
            "images.example.org": ["151.101.1.69"],
            "cdn.example.net": ["151.101.65.69"],
            "hop1.example.com": ["93.184.216.35"],
            "hop2.example.com": ["93.184.216.36"],
            "hop3.example.com": ["93.184.216.37"],
            "hop4.example.com": ["93.184.216.38"],
            "rebind.example.com": ["93.184.216.34", "127.0.0.1"],
            "internal-only.example.com": ["10.0.0.7"],
        }
    )


@pytest.fixture
def no_redirects():
    """Prober that never finds a redirect."""
    return FakeProber()
