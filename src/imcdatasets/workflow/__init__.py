"""imcdatasets workflow — ordered build stages and built-in datasets."""

from imcdatasets.workflow.build import build_dataset, verify_build
from imcdatasets.workflow.defaults import DATASETS, PANCREAS, build_pipeline, get_dataset
from imcdatasets.workflow.engine import Pipeline, PipelineResult
from imcdatasets.workflow.stage import FunctionStage, PipelineStage, StageResult

__all__ = [
    # Stage primitives
    "FunctionStage",
    "PipelineStage",
    "StageResult",
    # Engine
    "Pipeline",
    "PipelineResult",
    # Datasets
    "DATASETS",
    "PANCREAS",
    "build_pipeline",
    "get_dataset",
    "build_dataset",
    "verify_build",
]
