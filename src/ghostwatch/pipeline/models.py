"""Pipeline models and configuration.

Types for the coordinator state machine, the retry policy and the messages
passed between pipeline stages.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto

from ghostwatch.core.events import ChangeSet
from ghostwatch.core.snapshot import ValidSnapshot


class PipelineState(Enum):
    """Coordinator states.

    BOOTSTRAPPING -> WAITING -> FETCHING -> DIFFING -> PUBLISHING -> WAITING ...
    STOPPED is entered only when the producer loop ends.
    """

    BOOTSTRAPPING = auto()
    WAITING = auto()
    FETCHING = auto()
    DIFFING = auto()
    PUBLISHING = auto()
    STOPPED = auto()


@dataclass(frozen=True, slots=True)
class BackoffPolicy:
    """Fixed-interval retry with optional jitter and no attempt limit.

    The Snapshot Source is expected to recover, so retrying never gives up.
    """

    interval: float = 60.0
    """Seconds to wait after a failed attempt."""

    jitter: float = 0.0
    """Upper bound of uniformly random extra seconds added to each wait."""


@dataclass
class CoordinatorConfig:
    """Configuration for coordinator timing."""

    min_capture_interval: float = 3600.0
    """Minimum seconds between the baseline's capture and the next fetch."""

    backoff: BackoffPolicy = field(default_factory=BackoffPolicy)
    """Retry policy for failed fetch or validation."""


@dataclass(frozen=True, slots=True)
class PublishRequest:
    """Message from the producer to the persistence stage.

    The persistence stage commits ``changeset`` and ``snapshot``, the new
    warm-restart baseline, in one transaction.
    """

    changeset: ChangeSet
    snapshot: ValidSnapshot
