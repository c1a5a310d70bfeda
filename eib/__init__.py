"""Preparation pipeline for building operating system images."""

from .config import BuildArgs
from .models import ArtifactCatalog, BuildContext, ImageDefinition, PipelineResult
from .pipeline import BuildPipeline, Stage, assemble_context
from .version import SUPPORTED_SCHEMA_VERSIONS, __version__

__all__ = [
    "ArtifactCatalog",
    "BuildArgs",
    "BuildContext",
    "BuildPipeline",
    "ImageDefinition",
    "PipelineResult",
    "SUPPORTED_SCHEMA_VERSIONS",
    "Stage",
    "__version__",
    "assemble_context",
]
