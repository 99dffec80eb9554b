"""Static town-slot offset table.

The table never changes during a world's lifetime, so it is not fetched.
A default layout ships with the package; deployments with a different map
layout point ``GHOSTWATCH_OFFSETS_PATH`` at their own file in the same
``type,x,y,slot_number`` format.
"""

from __future__ import annotations

from importlib import resources
from pathlib import Path

from ghostwatch.core.snapshot import Offset
from ghostwatch.source.parser import parse_offsets


def load_offsets(path: str | Path | None = None) -> dict[int, Offset]:
    """Load the offset table from ``path`` or from the bundled default.

    Raises:
        OSError: If ``path`` cannot be read.
        RecordParseError: If the table is malformed.
    """
    if path is None:
        data = resources.files("ghostwatch.source").joinpath("offsets.csv").read_text("utf-8")
    else:
        data = Path(path).read_text(encoding="utf-8")
    return parse_offsets(data)
