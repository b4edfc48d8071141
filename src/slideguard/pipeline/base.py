"""Base classes for the export job pre-flight pipeline."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Literal, Optional, Protocol, runtime_checkable

from ..models.events import EventType, ValidationEvent
from ..models.verdict import ValidationVerdict

# Type alias for event emitter function
EventEmitter = Callable[[ValidationEvent], None]

ExportFormat = Literal["pdf", "pptx", "slides"]


class JobStatus(str, Enum):
    """Lifecycle states of an export job."""

    PENDING = "pending"
    PROCESSING = "processing"
    DONE = "done"
    ERROR = "error"


@dataclass
class ExportJob:
    """
    Context object passed through pipeline steps.

    Holds everything known about one export job, accumulated as it moves
    through the pipeline.

    Attributes:
        job_id: Unique job identifier
        markdown: Slide deck source
        format: Requested output format
        css: Optional custom theme CSS
        image_urls: Remote image URLs found in the markdown
        verdicts: Validation verdicts, aligned with image_urls
        should_stop: If True, remaining steps will be skipped
        error: User-visible failure message
        output_path: Rendered artifact, once produced
    """

    job_id: str
    markdown: str
    format: ExportFormat = "pdf"
    css: Optional[str] = None

    image_urls: list[str] = field(default_factory=list)
    verdicts: list[ValidationVerdict] = field(default_factory=list)

    status: JobStatus = JobStatus.PENDING
    should_stop: bool = False
    error: Optional[str] = None
    output_path: Optional[Path] = None

    def fail(self, message: str) -> None:
        """Record a terminal failure and stop the pipeline."""
        self.error = message
        self.should_stop = True


@runtime_checkable
class PipelineStep(Protocol):
    """
    Protocol for pipeline steps.

    Error Handling Contract:
    - For expected failures (a rejected image URL): call ``job.fail(message)``
    - For unexpected failures: raise an exception
    - The pipeline catches exceptions and records them on ``job.error``
    """

    name: str

    async def execute(
        self,
        job: ExportJob,
        emit: Optional[EventEmitter] = None,
    ) -> ExportJob:
        """
        Execute this pipeline step.

        Args:
            job: The job context with accumulated state
            emit: Optional callback to emit events

        Returns:
            The (possibly modified) job context
        """
        ...


@dataclass
class ExportPipeline:
    """
    Pipeline that takes one export job from pending to a terminal state.

    Steps are executed in order. If a step calls ``job.fail()``, remaining
    steps are skipped. If a step raises an exception, the error is captured
    in ``job.error`` and processing stops. The job always ends ``done`` or
    ``error``.

    Example:
        pipeline = ExportPipeline(steps=[
            ExtractImagesStep(),
            ValidateImagesStep(validator),
            RenderStep(renderer),
        ])

        job = await pipeline.execute(ExportJob(job_id="42", markdown=deck))
        if job.status is JobStatus.ERROR:
            logger.error(f"Failed: {job.error}")
    """

    steps: list[PipelineStep]

    async def execute(
        self,
        job: ExportJob,
        emit: Optional[EventEmitter] = None,
    ) -> ExportJob:
        """
        Execute the pipeline for a job.

        Args:
            job: The job to process
            emit: Optional callback for emitting events

        Returns:
            The job in its terminal state
        """
        job.status = JobStatus.PROCESSING
        if emit:
            emit(ValidationEvent(type=EventType.JOB_STARTED, job_id=job.job_id))

        for step in self.steps:
            if job.should_stop:
                break

            try:
                job = await step.execute(job, emit)
            except Exception as e:
                job.fail(f"{step.name}: {e}")
                break

        if job.error is not None:
            job.status = JobStatus.ERROR
            if emit:
                emit(ValidationEvent(type=EventType.JOB_FAILED, job_id=job.job_id, error=job.error))
        else:
            job.status = JobStatus.DONE
            if emit:
                emit(ValidationEvent(type=EventType.JOB_COMPLETED, job_id=job.job_id))

        return job

    def add_step(self, step: PipelineStep) -> "ExportPipeline":
        """
        Add a step to the pipeline (fluent API).

        Args:
            step: The step to add

        Returns:
            Self for chaining
        """
        self.steps.append(step)
        return self
