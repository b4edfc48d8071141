"""Classification of IP literals against disallowed address blocks.

Every function here fails closed: input that does not parse as an address
of the expected family is reported as blocked, never as unknown.
"""

from __future__ import annotations

import ipaddress
import re
from ipaddress import IPv4Address, IPv4Network, IPv6Address, IPv6Network
from typing import NamedTuple, Optional, Union

IPAddress = Union[IPv4Address, IPv6Address]


class AddressBlock(NamedTuple):
    """A named disallowed address range."""

    network: Union[IPv4Network, IPv6Network]
    description: str


# The metadata singleton sits inside link-local; it is listed first so that
# classify_ipv4() names it specifically.
IPV4_BLOCKS: tuple[AddressBlock, ...] = (
    AddressBlock(IPv4Network("169.254.169.254/32"), "cloud metadata endpoint"),
    AddressBlock(IPv4Network("127.0.0.0/8"), "loopback"),
    AddressBlock(IPv4Network("10.0.0.0/8"), "private (RFC1918)"),
    AddressBlock(IPv4Network("172.16.0.0/12"), "private (RFC1918)"),
    AddressBlock(IPv4Network("192.168.0.0/16"), "private (RFC1918)"),
    AddressBlock(IPv4Network("169.254.0.0/16"), "link-local"),
    AddressBlock(IPv4Network("0.0.0.0/8"), "this network"),
    AddressBlock(IPv4Network("100.64.0.0/10"), "carrier-grade NAT"),
    AddressBlock(IPv4Network("192.0.0.0/24"), "IANA special purpose"),
    AddressBlock(IPv4Network("192.0.2.0/24"), "documentation (TEST-NET-1)"),
    AddressBlock(IPv4Network("198.51.100.0/24"), "documentation (TEST-NET-2)"),
    AddressBlock(IPv4Network("203.0.113.0/24"), "documentation (TEST-NET-3)"),
    AddressBlock(IPv4Network("192.88.99.0/24"), "6to4 relay anycast"),
    AddressBlock(IPv4Network("198.18.0.0/15"), "benchmarking"),
    AddressBlock(IPv4Network("224.0.0.0/4"), "multicast"),
    AddressBlock(IPv4Network("240.0.0.0/4"), "reserved"),
)

IPV6_BLOCKS: tuple[AddressBlock, ...] = (
    AddressBlock(IPv6Network("::1/128"), "loopback"),
    AddressBlock(IPv6Network("::/128"), "unspecified"),
    AddressBlock(IPv6Network("::/96"), "IPv4-compatible (deprecated)"),
    AddressBlock(IPv6Network("fe80::/10"), "link-local"),
    AddressBlock(IPv6Network("fec0::/10"), "site-local (deprecated)"),
    AddressBlock(IPv6Network("fc00::/7"), "unique local"),
    AddressBlock(IPv6Network("ff00::/8"), "multicast"),
    AddressBlock(IPv6Network("100::/64"), "discard prefix"),
    AddressBlock(IPv6Network("2001:db8::/32"), "documentation"),
    AddressBlock(IPv6Network("2001::/32"), "Teredo tunnelling"),
)

# Prefixes whose low 32 bits carry an IPv4 address that must be re-checked.
_NAT64_PREFIX = IPv6Network("64:ff9b::/96")

_UNPARSEABLE = "unparseable address"

# A host "ends in a number" when its last label is decimal or 0x-hex. Such
# hosts are IPv4 literals to URL parsers and resolvers, never DNS names.
_NUMERIC_LABEL = re.compile(r"^(?:[0-9]+|0x[0-9a-f]*)$", re.IGNORECASE)
_IPV4_PART = re.compile(r"^(?:0x[0-9a-f]*|0[0-7]*|[1-9][0-9]*)$", re.IGNORECASE)


def _strip_ipv6_decoration(value: str) -> str:
    """Remove URL brackets and any zone identifier (``fe80::1%eth0``)."""
    value = value.strip()
    if value.startswith("[") and value.endswith("]"):
        value = value[1:-1]
    return value.split("%", 1)[0]


def _parse_ipv4_part(part: str) -> int:
    if not _IPV4_PART.match(part):
        raise ValueError(f"Invalid IPv4 component: {part!r}")
    lower = part.lower()
    if lower.startswith("0x"):
        return int(lower[2:] or "0", 16)
    if len(part) > 1 and part.startswith("0"):
        return int(part[1:], 8)
    return int(part)


def normalize_ipv4(value: str) -> Optional[IPv4Address]:
    """
    Parse an IPv4 literal the way permissive resolvers do.

    Accepts canonical dotted quads as well as the legacy forms that
    ``inet_aton`` and browser URL parsers accept: decimal (``2130706433``),
    hex (``0x7f.0.0.1``), octal (``0177.0.0.1``) and short forms
    (``127.1``, where the last part fills the remaining bytes).

    Args:
        value: The candidate literal

    Returns:
        The address it denotes, or None if it is not an IPv4 literal
    """
    value = value.strip()
    if value.endswith("."):
        value = value[:-1]
    try:
        return IPv4Address(value)
    except ValueError:
        pass

    parts = value.split(".")
    if not 1 <= len(parts) <= 4:
        return None
    try:
        numbers = [_parse_ipv4_part(p) for p in parts]
    except ValueError:
        return None

    *head, last = numbers
    if any(n > 0xFF for n in head):
        return None
    if last >= 1 << (8 * (5 - len(numbers))):
        return None

    packed = 0
    for i, n in enumerate(head):
        packed |= n << (24 - 8 * i)
    packed |= last
    return IPv4Address(packed)


def looks_like_ip_literal(host: str) -> bool:
    """
    Check whether a hostname is an IP literal rather than a DNS name.

    IPv6 literals are recognised by their colons; IPv4 literals (including
    obfuscated ones) by a numeric final label.
    """
    if ":" in host:
        return True
    last_label = host.rstrip(".").rsplit(".", 1)[-1]
    return bool(_NUMERIC_LABEL.match(last_label))


def classify_ipv4(ip: Union[str, IPv4Address]) -> Optional[str]:
    """
    Find the disallowed block an IPv4 address falls in.

    Args:
        ip: Address object or literal string

    Returns:
        Block description if blocked (or unparseable), None if allowed
    """
    if isinstance(ip, str):
        parsed = normalize_ipv4(ip)
        if parsed is None:
            return _UNPARSEABLE
        ip = parsed

    for block in IPV4_BLOCKS:
        if ip in block.network:
            return block.description
    return None


def classify_ipv6(ip: Union[str, IPv6Address]) -> Optional[str]:
    """
    Find the disallowed block an IPv6 address falls in.

    IPv4 addresses embedded in IPv6 (mapped ``::ffff:a.b.c.d``, NAT64
    ``64:ff9b::/96`` and 6to4 ``2002::/16``) are extracted and checked
    against the IPv4 table.

    Args:
        ip: Address object or literal string

    Returns:
        Block description if blocked (or unparseable), None if allowed
    """
    if isinstance(ip, str):
        try:
            ip = IPv6Address(_strip_ipv6_decoration(ip))
        except ValueError:
            return _UNPARSEABLE

    if ip.ipv4_mapped is not None:
        embedded = classify_ipv4(ip.ipv4_mapped)
        return f"IPv4-mapped {embedded}" if embedded else None

    for block in IPV6_BLOCKS:
        if ip in block.network:
            return block.description

    if ip in _NAT64_PREFIX:
        embedded = classify_ipv4(IPv4Address(int(ip) & 0xFFFFFFFF))
        return f"NAT64 {embedded}" if embedded else None

    if ip.sixtofour is not None:
        embedded = classify_ipv4(ip.sixtofour)
        return f"6to4 {embedded}" if embedded else None

    return None


def classify_ip(ip: Union[str, IPAddress]) -> Optional[str]:
    """Dispatch to the IPv4 or IPv6 classifier based on the address family."""
    if isinstance(ip, IPv4Address):
        return classify_ipv4(ip)
    if isinstance(ip, IPv6Address):
        return classify_ipv6(ip)
    if ":" in ip:
        return classify_ipv6(ip)
    return classify_ipv4(ip)


def is_blocked_ipv4(ip: Union[str, IPv4Address]) -> bool:
    """Return True if the IPv4 address is disallowed or cannot be parsed."""
    return classify_ipv4(ip) is not None


def is_blocked_ipv6(ip: Union[str, IPv6Address]) -> bool:
    """Return True if the IPv6 address is disallowed or cannot be parsed."""
    return classify_ipv6(ip) is not None


def is_blocked_ip(ip: Union[str, IPAddress]) -> bool:
    """Return True if the address (either family) is disallowed or cannot be parsed."""
    return classify_ip(ip) is not None


def parse_ip(value: str) -> Optional[IPAddress]:
    """Parse a canonical IPv4 or IPv6 literal, returning None on failure."""
    try:
        return ipaddress.ip_address(_strip_ipv6_decoration(value))
    except ValueError:
        return None
