"""Pipeline step implementations."""

from .extract import ExtractImagesStep
from .render import Renderer, RenderStep
from .validate import ValidateImagesStep, validation_failure_message

__all__ = [
    "ExtractImagesStep",
    "RenderStep",
    "Renderer",
    "ValidateImagesStep",
    "validation_failure_message",
]
