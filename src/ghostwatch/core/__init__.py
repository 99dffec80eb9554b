"""Core: snapshot model, validation, change events and the diff engine.

Architecture Note:
    core/ is pure. Nothing here performs I/O, sleeps or logs; the pipeline
    layer owns all of that.
"""

from ghostwatch.core.diff import diff
from ghostwatch.core.errors import (
    FatalPipelineError,
    GhostwatchError,
    InvariantViolation,
    TransientError,
)
from ghostwatch.core.events import ChangeEvent, ChangeSet, EventKind
from ghostwatch.core.snapshot import (
    Alliance,
    Island,
    Offset,
    Player,
    Snapshot,
    Town,
    ValidSnapshot,
    snapshot_from_dict,
    snapshot_to_dict,
)
from ghostwatch.core.validation import (
    ValidationError,
    Violation,
    ViolationKind,
    find_violations,
    validate,
)

__all__ = [
    # Model
    "Alliance",
    "Island",
    "Offset",
    "Player",
    "Snapshot",
    "Town",
    "ValidSnapshot",
    "snapshot_from_dict",
    "snapshot_to_dict",
    # Validation
    "ValidationError",
    "Violation",
    "ViolationKind",
    "find_violations",
    "validate",
    # Events
    "ChangeEvent",
    "ChangeSet",
    "EventKind",
    "diff",
    # Errors
    "FatalPipelineError",
    "GhostwatchError",
    "InvariantViolation",
    "TransientError",
]
