"""ghostwatch: snapshot diffing and change-event pipeline for ghost towns.

Usage:
    from ghostwatch import diff, validate

    baseline = validate(previous_snapshot)
    candidate = validate(new_snapshot)
    for event in diff(baseline, candidate):
        print(event.kind.value, event.name, event.owner_name)

    # Or run the whole pipeline
    from ghostwatch.config import PipelineSettings
    from ghostwatch.pipeline import run_pipeline
    await run_pipeline(PipelineSettings(world="de99"))
"""

__version__ = "0.1.0"

# Core primitives
from ghostwatch.core import (
    Alliance,
    ChangeEvent,
    ChangeSet,
    EventKind,
    FatalPipelineError,
    GhostwatchError,
    InvariantViolation,
    Island,
    Offset,
    Player,
    Snapshot,
    Town,
    TransientError,
    ValidationError,
    ValidSnapshot,
    Violation,
    ViolationKind,
    diff,
    find_violations,
    validate,
)

__all__ = [
    "__version__",
    # Model
    "Alliance",
    "Island",
    "Offset",
    "Player",
    "Snapshot",
    "Town",
    "ValidSnapshot",
    # Validation
    "ValidationError",
    "Violation",
    "ViolationKind",
    "find_violations",
    "validate",
    # Diff
    "ChangeEvent",
    "ChangeSet",
    "EventKind",
    "diff",
    # Errors
    "GhostwatchError",
    "TransientError",
    "FatalPipelineError",
    "InvariantViolation",
]
