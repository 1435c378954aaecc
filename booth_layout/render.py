from __future__ import annotations

from typing import Mapping, Optional

from .spatial import SpatialIndex


def _cell(text: Optional[str], width: int) -> str:
    if not text:
        return ".".center(width)
    t = str(text)
    if len(t) > width:
        t = t[: max(0, width - 1)] + "…"
    return t.center(width)


def render_ascii(
    index: SpatialIndex,
    occupants: Optional[Mapping[str, str]] = None,
    *,
    cell_width: int = 4,
    show_numbers: bool = False,
) -> str:
    """
    Draw the floor as text, one character column per booth column.

    `occupants` maps booth id to the text shown in that booth (usually a
    company name). Free booths show "." or their number.
    """
    occupants = occupants or {}
    cell_width = max(3, int(cell_width))

    xs = sorted({b.x for b in index.booths})
    ys = sorted({b.y for b in index.booths})
    col_of = {x: i for i, x in enumerate(xs)}
    line_of = {y: i for i, y in enumerate(ys)}

    grid: list[list[str]] = [[" " * cell_width for _ in xs] for _ in ys]
    header = [" " * cell_width for _ in xs]
    for b in index.booths:
        text = occupants.get(b.id)
        if text is None and show_numbers:
            text = str(b.number)
        grid[line_of[b.y]][col_of[b.x]] = _cell(text, cell_width)
        header[col_of[b.x]] = b.row.center(cell_width)

    bottom_start = min((line_of[b.y] for b in index.booths if b.segment in (1, 4)), default=len(ys))
    lines = [" ".join(header)]
    for i, cells in enumerate(grid):
        if i == bottom_start:
            lines.append("")
        lines.append(" ".join(cells).rstrip())
    return "\n".join(lines)
