"""Snapshot Sources."""

from ghostwatch.source.errors import RecordParseError, SourceError
from ghostwatch.source.http_source import HttpSnapshotSource
from ghostwatch.source.offsets import load_offsets
from ghostwatch.source.parser import build_snapshot, decode_name
from ghostwatch.source.protocol import SnapshotSource

__all__ = [
    "SnapshotSource",
    "HttpSnapshotSource",
    "SourceError",
    "RecordParseError",
    "build_snapshot",
    "decode_name",
    "load_offsets",
]
