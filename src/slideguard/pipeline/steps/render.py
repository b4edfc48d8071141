"""RenderStep - hand a validated job to the external document renderer."""

import logging
from pathlib import Path
from typing import Optional, Protocol

from ...models.events import EventType, ValidationEvent
from ..base import EventEmitter, ExportFormat, ExportJob

logger = logging.getLogger(__name__)


class Renderer(Protocol):
    """Protocol for the external Markdown-to-slides renderer."""

    async def render(self, markdown: str, css: Optional[str], format: ExportFormat) -> Path:
        """
        Render a deck and return the path of the produced artifact.

        Raises:
            Exception on conversion failure
        """
        ...


class RenderStep:
    """Pipeline step that invokes the renderer for jobs that passed pre-flight."""

    name = "render"

    def __init__(self, renderer: Renderer) -> None:
        self._renderer = renderer

    async def execute(
        self,
        job: ExportJob,
        emit: Optional[EventEmitter] = None,
    ) -> ExportJob:
        if emit:
            emit(ValidationEvent(type=EventType.RENDER_STARTED, job_id=job.job_id))

        job.output_path = await self._renderer.render(job.markdown, job.css, job.format)
        logger.info(f"Job {job.job_id}: rendered {job.format} to {job.output_path}")

        if emit:
            emit(ValidationEvent(type=EventType.RENDER_COMPLETED, job_id=job.job_id))
        return job
