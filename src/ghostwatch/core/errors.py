"""Error taxonomy.

Every failure the pipeline can meet is either retryable or fatal:

    GhostwatchError
    ├── TransientError        retried with fixed backoff, cycle abandoned
    │   ├── SourceError       (ghostwatch.source)
    │   ├── RecordParseError  (ghostwatch.source)
    │   └── ValidationError   (ghostwatch.core.validation)
    └── FatalPipelineError    process terminates, restart recovers
        ├── PersistenceError  (ghostwatch.store)
        └── InvariantViolation

The top-level driver in ``ghostwatch.cli`` is the only place that turns a
FatalPipelineError into a process exit.
"""

from __future__ import annotations


class GhostwatchError(Exception):
    """Base class for all ghostwatch errors."""

    pass


class TransientError(GhostwatchError):
    """Retryable failure. The baseline is left unchanged."""

    pass


class FatalPipelineError(GhostwatchError):
    """Unrecoverable failure. The process must terminate."""

    pass


class InvariantViolation(FatalPipelineError):
    """Raised when state that validation should have excluded is observed."""

    pass
