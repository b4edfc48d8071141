"""Event types emitted while validating image URLs for an export job."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from .verdict import RejectionReason


class EventType(str, Enum):
    """Types of events emitted during validation and job pre-flight."""

    # Job lifecycle
    JOB_STARTED = "job_started"
    JOB_COMPLETED = "job_completed"
    JOB_FAILED = "job_failed"

    # Validation phase
    IMAGES_EXTRACTED = "images_extracted"
    VALIDATION_STARTED = "validation_started"
    REDIRECT_FOUND = "redirect_found"
    URL_ACCEPTED = "url_accepted"
    URL_REJECTED = "url_rejected"
    VALIDATION_COMPLETED = "validation_completed"

    # Rendering phase
    RENDER_STARTED = "render_started"
    RENDER_COMPLETED = "render_completed"


@dataclass
class ValidationEvent:
    """
    Event emitted during validation.

    Example:
        def on_event(event: ValidationEvent) -> None:
            if event.type == EventType.URL_REJECTED:
                print(f"Rejected: {event.url} ({event.reason.value})")
    """

    type: EventType

    # Timestamp (always UTC)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    job_id: Optional[str] = None
    url: Optional[str] = None
    message: Optional[str] = None
    error: Optional[str] = None

    reason: Optional[RejectionReason] = None
    redirect_target: Optional[str] = None
    hop: Optional[int] = None

    # Progress tracking
    current: Optional[int] = None
    total: Optional[int] = None

    @property
    def is_error(self) -> bool:
        """Check if this is an error event."""
        return self.type in (EventType.JOB_FAILED, EventType.URL_REJECTED)


@dataclass
class ValidationStats:
    """Cumulative counts for a batch of validations."""

    urls_checked: int = 0
    urls_accepted: int = 0
    urls_rejected: int = 0
    redirects_followed: int = 0

    @property
    def acceptance_rate(self) -> float:
        """Accepted URLs as a percentage of checked URLs."""
        if self.urls_checked == 0:
            return 0.0
        return (self.urls_accepted / self.urls_checked) * 100

    def to_dict(self) -> dict:
        """Convert stats to dictionary for serialization."""
        return {
            "urls_checked": self.urls_checked,
            "urls_accepted": self.urls_accepted,
            "urls_rejected": self.urls_rejected,
            "redirects_followed": self.redirects_followed,
            "acceptance_rate": round(self.acceptance_rate, 1),
        }
