"""Data models for slideguard."""

from .config import GuardConfig
from .events import EventType, ValidationEvent, ValidationStats
from .verdict import RedirectHop, RejectionReason, ValidationVerdict

__all__ = [
    "EventType",
    "GuardConfig",
    "RedirectHop",
    "RejectionReason",
    "ValidationEvent",
    "ValidationStats",
    "ValidationVerdict",
]
