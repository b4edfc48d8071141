"""Export job pre-flight pipeline."""

from typing import Optional

from ..security.image_urls import ImageUrlValidator
from .base import EventEmitter, ExportJob, ExportPipeline, JobStatus, PipelineStep
from .steps import ExtractImagesStep, Renderer, RenderStep, ValidateImagesStep


def create_export_pipeline(
    validator: ImageUrlValidator,
    renderer: Optional[Renderer] = None,
) -> ExportPipeline:
    """
    Build the standard pipeline: extract images, validate them, render.

    Args:
        validator: Validator for the image URL pre-flight
        renderer: External renderer; omit to run the pre-flight only

    Returns:
        Configured ExportPipeline
    """
    pipeline = ExportPipeline(steps=[ExtractImagesStep(), ValidateImagesStep(validator)])
    if renderer is not None:
        pipeline.add_step(RenderStep(renderer))
    return pipeline


__all__ = [
    "EventEmitter",
    "ExportJob",
    "ExportPipeline",
    "JobStatus",
    "PipelineStep",
    "create_export_pipeline",
]
