"""Pipeline coordination: producer, consumer stages and their wiring.

Usage:
    from ghostwatch.pipeline import run_pipeline
    await run_pipeline(PipelineSettings())
"""

from ghostwatch.pipeline.backoff import build_retryer, retry_forever
from ghostwatch.pipeline.coordinator import Coordinator
from ghostwatch.pipeline.models import (
    BackoffPolicy,
    CoordinatorConfig,
    PipelineState,
    PublishRequest,
)
from ghostwatch.pipeline.runtime import (
    Pipeline,
    build_pipeline,
    run_forever,
    run_once,
    run_pipeline,
)
from ghostwatch.pipeline.stages import PersistenceStage, PresentationStage

__all__ = [
    "BackoffPolicy",
    "Coordinator",
    "CoordinatorConfig",
    "PersistenceStage",
    "Pipeline",
    "PipelineState",
    "PresentationStage",
    "PublishRequest",
    "build_pipeline",
    "build_retryer",
    "retry_forever",
    "run_forever",
    "run_once",
    "run_pipeline",
]
