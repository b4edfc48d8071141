"""Security validation for slideguard."""

from .addresses import is_blocked_ip, is_blocked_ipv4, is_blocked_ipv6
from .chain import ChainValidator
from .hostnames import is_blocked_hostname
from .image_urls import ImageUrlValidator, precheck, validate_image_url, validate_image_urls
from .url_validator import ParsedUrl, SingleUrlValidator, parse_url

__all__ = [
    "ChainValidator",
    "ImageUrlValidator",
    "ParsedUrl",
    "SingleUrlValidator",
    "is_blocked_hostname",
    "is_blocked_ip",
    "is_blocked_ipv4",
    "is_blocked_ipv6",
    "parse_url",
    "precheck",
    "validate_image_url",
    "validate_image_urls",
]
