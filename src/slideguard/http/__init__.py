"""Network collaborators: DNS resolution and redirect probing."""

from .probe import RedirectProbe
from .protocols import AddressResolver, ProbeOutcome, ProbeResult, RedirectProber
from .resolver import BlockedAddressError, GuardedResolver, ResolutionError, Resolver

__all__ = [
    "AddressResolver",
    "BlockedAddressError",
    "GuardedResolver",
    "ProbeOutcome",
    "ProbeResult",
    "RedirectProbe",
    "RedirectProber",
    "ResolutionError",
    "Resolver",
]
