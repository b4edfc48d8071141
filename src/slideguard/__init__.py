"""
slideguard - SSRF-resistant validation of image URLs in Markdown slide decks.

Usage:
    from slideguard import ImageUrlValidator, GuardConfig

    async with ImageUrlValidator(GuardConfig(max_redirects=3)) as validator:
        verdict = await validator.validate("https://example.com/diagram.png")
        if not verdict.valid:
            print(verdict.reason.value, verdict.message)
"""

__version__ = "1.0.0"

from .markdown import extract_image_urls
from .models.config import GuardConfig
from .models.events import EventType, ValidationEvent, ValidationStats
from .models.verdict import RedirectHop, RejectionReason, ValidationVerdict
from .security import (
    ChainValidator,
    ImageUrlValidator,
    SingleUrlValidator,
    is_blocked_hostname,
    is_blocked_ip,
    is_blocked_ipv4,
    is_blocked_ipv6,
    validate_image_url,
    validate_image_urls,
)

__all__ = [
    "__version__",
    # Entry points
    "ImageUrlValidator",
    "validate_image_url",
    "validate_image_urls",
    "extract_image_urls",
    # Components
    "ChainValidator",
    "SingleUrlValidator",
    "is_blocked_hostname",
    "is_blocked_ip",
    "is_blocked_ipv4",
    "is_blocked_ipv6",
    # Config
    "GuardConfig",
    # Results and events
    "RejectionReason",
    "ValidationVerdict",
    "RedirectHop",
    "EventType",
    "ValidationEvent",
    "ValidationStats",
]
