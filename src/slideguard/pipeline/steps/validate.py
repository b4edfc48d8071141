"""ValidateImagesStep - SSRF pre-flight check of every remote image."""

import logging
from typing import Optional

from ...models.events import EventType, ValidationEvent
from ...security.image_urls import ImageUrlValidator
from ..base import EventEmitter, ExportJob

logger = logging.getLogger(__name__)


def validation_failure_message(url: str, reason: str) -> str:
    """Build the user-visible job error for a rejected image URL."""
    return f'Image URL validation failed for "{url}": {reason}'


class ValidateImagesStep:
    """
    Pipeline step that validates image URLs before rendering.

    All URLs are validated independently; the job fails on the first
    rejected URL in document order, and the renderer never runs.

    Example:
        async with ImageUrlValidator(config) as validator:
            step = ValidateImagesStep(validator)
            job = await step.execute(job)
            if job.error:
                print(job.error)
    """

    name = "validate_images"

    def __init__(self, validator: ImageUrlValidator) -> None:
        """
        Initialize the validation step.

        Args:
            validator: Entry-point validator used for the batch
        """
        self._validator = validator

    async def execute(
        self,
        job: ExportJob,
        emit: Optional[EventEmitter] = None,
    ) -> ExportJob:
        """
        Execute the validation step.

        Args:
            job: Job with ``image_urls`` filled in
            emit: Optional callback to emit events

        Returns:
            ExportJob (failed if any URL was rejected)
        """
        if not job.image_urls:
            return job

        if emit:
            emit(
                ValidationEvent(
                    type=EventType.VALIDATION_STARTED,
                    job_id=job.job_id,
                    total=len(job.image_urls),
                )
            )

        job.verdicts = await self._validator.validate_many(job.image_urls)

        for url, verdict in zip(job.image_urls, job.verdicts):
            if not verdict.valid:
                message = validation_failure_message(url, verdict.message or "")
                logger.info(f"Job {job.job_id}: {message}")
                job.fail(message)
                return job

        logger.debug(f"Job {job.job_id}: all {len(job.image_urls)} image URLs validated")
        if emit:
            emit(
                ValidationEvent(
                    type=EventType.VALIDATION_COMPLETED,
                    job_id=job.job_id,
                    total=len(job.image_urls),
                )
            )
        return job
