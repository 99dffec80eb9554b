"""Configuration module using Pydantic Settings.

Provides typed pipeline configuration with environment variable support.

Usage:
    from ghostwatch.config import PipelineSettings

    settings = PipelineSettings(world="de99", min_capture_interval=3600)
"""

from ghostwatch.config.settings import PipelineSettings

__all__ = [
    "PipelineSettings",
]
