"""Snapshot Source failures. All of them are transient."""

from __future__ import annotations

from ghostwatch.core.errors import TransientError


class SourceError(TransientError):
    """Network or HTTP failure while fetching a resource."""

    def __init__(self, resource: str, reason: str) -> None:
        self.resource = resource
        self.reason = reason
        super().__init__(f"failed to fetch {resource}: {reason}")


class RecordParseError(TransientError):
    """A record stream line is missing a field or holds an unparseable value."""

    def __init__(self, resource: str, line_number: int, field: str, line: str) -> None:
        self.resource = resource
        self.line_number = line_number
        self.field = field
        self.line = line
        super().__init__(f"{resource} line {line_number}: bad or missing {field!r} in {line!r}")
