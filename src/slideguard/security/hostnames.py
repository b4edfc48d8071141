"""Deny-list of hostnames that name internal or special-purpose hosts."""

import re
from typing import NamedTuple, Optional


class HostnamePattern(NamedTuple):
    """A case-insensitive hostname pattern and what it guards against."""

    pattern: "re.Pattern[str]"
    description: str


def _exact(name: str, description: str) -> HostnamePattern:
    return HostnamePattern(re.compile(rf"^{re.escape(name)}$", re.IGNORECASE), description)


def _suffix(suffix: str, description: str) -> HostnamePattern:
    return HostnamePattern(re.compile(rf"{re.escape(suffix)}$", re.IGNORECASE), description)


BLOCKED_HOSTNAME_PATTERNS: tuple[HostnamePattern, ...] = (
    # Loopback names
    _exact("localhost", "localhost"),
    _exact("local", "localhost alias"),
    _exact("host", "localhost alias"),
    _exact("localhost.localdomain", "localhost alias"),
    _suffix(".localhost", "localhost subdomain"),
    _exact("ip6-localhost", "IPv6 loopback name"),
    _exact("ip6-loopback", "IPv6 loopback name"),
    # IPv6 reserved multicast names (/etc/hosts conventions)
    _exact("ip6-allnodes", "IPv6 multicast name"),
    _exact("ip6-allrouters", "IPv6 multicast name"),
    _exact("ip6-allhosts", "IPv6 multicast name"),
    _suffix(".ip6.allhosts", "IPv6 multicast name"),
    _suffix(".ip6.allnodes", "IPv6 multicast name"),
    _suffix(".ip6.allrouters", "IPv6 multicast name"),
    _suffix(".ip6.local", "IPv6 multicast name"),
    # Private and site-local zones
    _suffix(".local", "mDNS / local zone"),
    _suffix(".internal", "internal zone"),
    _suffix(".localdomain", "local domain"),
    _suffix(".home", "home network zone"),
    _suffix(".lan", "LAN zone"),
    _suffix(".intranet", "intranet zone"),
    _suffix(".corp", "corporate zone"),
    _suffix(".private", "private zone"),
    # Container orchestration
    _suffix(".svc.cluster.local", "Kubernetes service"),
    _exact("kubernetes.default", "Kubernetes API"),
    _exact("kubernetes.default.svc", "Kubernetes API"),
    _suffix(".kubernetes.default", "Kubernetes API"),
    _suffix(".kubernetes.default.svc", "Kubernetes API"),
    _suffix(".docker.internal", "Docker host"),
    # Cloud metadata aliases
    _exact("metadata", "cloud metadata alias"),
    _suffix(".metadata", "cloud metadata alias"),
    _exact("metadata.google.internal", "cloud metadata alias"),
    _suffix(".metadata.google", "cloud metadata alias"),
    _suffix(".metadata.google.internal", "cloud metadata alias"),
)


def normalize_hostname(hostname: str) -> str:
    """Lower-case a hostname and drop the root-zone trailing dot."""
    return hostname.strip().rstrip(".").lower()


def match_blocked_hostname(hostname: str) -> Optional[str]:
    """
    Find the deny-list entry a hostname matches.

    Args:
        hostname: Hostname as it appears in the URL

    Returns:
        Description of the matching pattern, None if the name is allowed
    """
    name = normalize_hostname(hostname)
    if not name:
        return "empty hostname"

    for entry in BLOCKED_HOSTNAME_PATTERNS:
        if entry.pattern.search(name):
            return entry.description
    return None


def is_blocked_hostname(hostname: str) -> bool:
    """Return True if the hostname matches any internal-name pattern."""
    return match_blocked_hostname(hostname) is not None
