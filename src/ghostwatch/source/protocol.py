"""Snapshot Source protocol.

Usage:
    source: SnapshotSource = HttpSnapshotSource(world="de99", offsets=load_offsets())
    snapshot = await source.fetch()
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from ghostwatch.core.snapshot import Snapshot


@runtime_checkable
class SnapshotSource(Protocol):
    """Produces complete, unvalidated snapshots of the world."""

    async def fetch(self) -> Snapshot:
        """Fetch and parse one full capture.

        Raises:
            TransientError: On any network or format failure. A failure of
                any single resource fails the whole capture.
        """
        ...

    async def aclose(self) -> None:
        """Release network resources."""
        ...
