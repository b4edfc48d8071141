"""ExtractImagesStep - collect remote image references from the deck."""

import logging
from typing import Optional

from ...markdown import extract_image_urls
from ...models.events import EventType, ValidationEvent
from ..base import EventEmitter, ExportJob

logger = logging.getLogger(__name__)


class ExtractImagesStep:
    """Pipeline step that fills ``job.image_urls`` from the markdown source."""

    name = "extract_images"

    async def execute(
        self,
        job: ExportJob,
        emit: Optional[EventEmitter] = None,
    ) -> ExportJob:
        job.image_urls = extract_image_urls(job.markdown)
        logger.debug(f"Job {job.job_id}: found {len(job.image_urls)} remote image URLs")

        if emit:
            emit(
                ValidationEvent(
                    type=EventType.IMAGES_EXTRACTED,
                    job_id=job.job_id,
                    total=len(job.image_urls),
                )
            )
        return job
