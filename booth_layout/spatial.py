from __future__ import annotations

from functools import lru_cache
from typing import Iterable, Optional

from .constants import AISLE_MIDLINE_Y, BOOTH_WIDTH, CANVAS_PADDING, EDGE_ROWS, ROW_GAP
from .layout import BoothDefinition, generate_layout


class SpatialIndex:
    """
    Read-only lookups over a generated layout.

    Built once; every query is a dict lookup or a walk over the 17 rows.
    """

    def __init__(self, booths: Iterable[BoothDefinition]):
        self._booths: tuple[BoothDefinition, ...] = tuple(booths)
        self._by_id: dict[str, BoothDefinition] = {b.id: b for b in self._booths}

        segments: dict[tuple[str, int], list[BoothDefinition]] = {}
        bounds: dict[str, tuple[float, float]] = {}
        columns: dict[str, set[float]] = {}
        for b in self._booths:
            segments.setdefault((b.row, b.segment), []).append(b)
            lo, hi = bounds.get(b.row, (b.x, b.right))
            bounds[b.row] = (min(lo, b.x), max(hi, b.right))
            columns.setdefault(b.row, set()).add(b.x)

        self._segments: dict[tuple[str, int], tuple[BoothDefinition, ...]] = {
            key: tuple(sorted(items, key=lambda b: b.y)) for key, items in segments.items()
        }
        self._row_bounds = bounds
        self._row_columns: dict[str, tuple[float, ...]] = {r: tuple(sorted(xs)) for r, xs in columns.items()}

        max_x = max((b.right for b in self._booths), default=0.0)
        max_y = max((b.bottom for b in self._booths), default=0.0)
        self._canvas = (max_x + CANVAS_PADDING, max_y + CANVAS_PADDING)

    @classmethod
    def build(cls) -> "SpatialIndex":
        return cls(generate_layout())

    @property
    def booths(self) -> tuple[BoothDefinition, ...]:
        return self._booths

    def __len__(self) -> int:
        return len(self._booths)

    def __contains__(self, booth_id: object) -> bool:
        return booth_id in self._by_id

    def by_id(self, booth_id: str) -> Optional[BoothDefinition]:
        return self._by_id.get(booth_id)

    def booths_in_segment(self, row: str, segment: int) -> tuple[BoothDefinition, ...]:
        return self._segments.get((row, segment), ())

    def canvas_dimensions(self) -> tuple[float, float]:
        return self._canvas

    def row_bounds(self, row: str) -> Optional[tuple[float, float]]:
        return self._row_bounds.get(row)

    def row_at(self, x: float) -> Optional[str]:
        # Half a row gap either side so clicks in the gap still land on a row.
        tolerance = ROW_GAP / 2
        for row, (min_x, max_x) in self._row_bounds.items():
            if min_x - tolerance <= x <= max_x + tolerance:
                return row
        return None

    def segment_at(self, x: float, y: float) -> Optional[tuple[str, int]]:
        row = self.row_at(x)
        if row is None:
            return None

        top_half = y < AISLE_MIDLINE_Y
        if row in EDGE_ROWS:
            return row, 2 if top_half else 1

        cols = self._row_columns[row]
        mid_x = (cols[0] + cols[-1] + BOOTH_WIDTH) / 2
        right_col = x >= mid_x
        if top_half:
            return row, 2 if right_col else 3
        return row, 1 if right_col else 4


@lru_cache(maxsize=1)
def default_index() -> SpatialIndex:
    return SpatialIndex.build()
