"""Presentation Cache and HTTP read surface."""

from ghostwatch.web.app import create_app
from ghostwatch.web.cache import PresentationCache

__all__ = [
    "PresentationCache",
    "create_app",
]
