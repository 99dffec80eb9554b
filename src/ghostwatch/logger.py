"""loguru setup.

Modules log through ``from loguru import logger``; this module only installs
the sinks, once per process.
"""

from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger

from ghostwatch.config import PipelineSettings

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level:<7} | {name}:{line} | {message}"

_configured = False


def configure_logging(settings: PipelineSettings, force: bool = False) -> None:
    """Install the stderr sink and, if ``log_dir`` is set, a rotating file sink.

    Args:
        settings: Provides level, directory, rotation and retention.
        force: Reconfigure even if already configured.
    """
    global _configured
    if _configured and not force:
        return

    logger.remove()
    logger.add(sys.stderr, level=settings.log_level, format=LOG_FORMAT, backtrace=False)

    if settings.log_dir is not None:
        log_dir = Path(settings.log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(log_dir / "ghostwatch_{time:YYYY-MM-DD}.log"),
            level=settings.log_level,
            format=LOG_FORMAT,
            rotation=settings.log_rotation,
            retention=settings.log_retention,
            enqueue=True,
            backtrace=True,
            diagnose=False,
        )

    _configured = True
    logger.debug("Logging configured at level {}", settings.log_level)
