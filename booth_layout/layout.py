from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Iterator

from shapely.geometry import Polygon, box
from shapely.strtree import STRtree

from .constants import (
    ALL_ROWS,
    BOOTH_GAP,
    BOOTH_HEIGHT,
    BOOTH_WIDTH,
    BOTTOM_HALF_Y,
    CANVAS_PADDING,
    EDGE_ROWS,
    ROW_GAP,
    SEGMENT_SIDE_GAP,
    TOTAL_BOOTHS,
)


class LayoutError(Exception):
    pass


@dataclass(frozen=True)
class BoothDefinition:
    id: str
    row: str
    number: int
    segment: int
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def center_y(self) -> float:
        return self.y + self.height / 2

    @property
    def label(self) -> str:
        return display_booth_id(self.id)

    def box(self) -> Polygon:
        return box(self.x, self.y, self.right, self.bottom)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "row": self.row,
            "number": self.number,
            "segment": self.segment,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
        }


# Booth numbers per segment, listed top to bottom.
SEGMENT_NUMBERS: dict[int, tuple[int, ...]] = {
    3: tuple(range(16, 24)),
    2: tuple(range(15, 7, -1)),
    4: tuple(range(24, 31)),
    1: tuple(range(7, 0, -1)),
}


def booth_id(row: str, number: int) -> str:
    return f"{row}-{number}"


_BOOTH_ID_RE = re.compile(r"^\s*([A-Za-z])-?(\d+)\s*$")


def parse_booth_id(value: str) -> tuple[str, int]:
    """
    Split a booth id into (row, number).

    Accepts the internal form ("G-14") and the display form ("G14").
    """
    m = _BOOTH_ID_RE.match(value or "")
    if not m:
        raise LayoutError(f"invalid booth id: {value!r}")
    return m.group(1).upper(), int(m.group(2))


def normalize_booth_id(value: str) -> str:
    row, number = parse_booth_id(value)
    return booth_id(row, number)


def display_booth_id(value: str) -> str:
    return value.replace("-", "", 1)


def sort_booth_ids(ids: Iterable[str]) -> list[str]:
    # Row letter first, then numeric booth number (so A2 sorts before A10).
    return sorted(ids, key=parse_booth_id)


def format_booth_ids(ids: Iterable[str]) -> str:
    return ", ".join(display_booth_id(b) for b in sort_booth_ids(ids))


def _column(row: str, segment: int, x: float, top_y: float) -> Iterator[BoothDefinition]:
    for i, number in enumerate(SEGMENT_NUMBERS[segment]):
        yield BoothDefinition(
            id=booth_id(row, number),
            row=row,
            number=number,
            segment=segment,
            x=x,
            y=top_y + i * (BOOTH_HEIGHT + BOOTH_GAP),
            width=BOOTH_WIDTH,
            height=BOOTH_HEIGHT,
        )


def generate_layout() -> list[BoothDefinition]:
    """
    Build every booth on the floor with its pixel rectangle.

    Rows run left to right (Q..A). Middle rows have two columns:
      left:  seg 3 (top, 16..23), seg 4 (bottom, 24..30)
      right: seg 2 (top, 15..8),  seg 1 (bottom, 7..1)
    Edge rows (A, Q) only have the right-hand column.
    """
    booths: list[BoothDefinition] = []
    current_x: float = CANVAS_PADDING

    for row in ALL_ROWS:
        if row in EDGE_ROWS:
            booths.extend(_column(row, 2, current_x, CANVAS_PADDING))
            booths.extend(_column(row, 1, current_x, BOTTOM_HALF_Y))
            current_x += BOOTH_WIDTH + ROW_GAP
            continue

        left_x = current_x
        right_x = current_x + BOOTH_WIDTH + SEGMENT_SIDE_GAP
        booths.extend(_column(row, 3, left_x, CANVAS_PADDING))
        booths.extend(_column(row, 2, right_x, CANVAS_PADDING))
        booths.extend(_column(row, 4, left_x, BOTTOM_HALF_Y))
        booths.extend(_column(row, 1, right_x, BOTTOM_HALF_Y))
        current_x += 2 * BOOTH_WIDTH + SEGMENT_SIDE_GAP + ROW_GAP

    if len(booths) != TOTAL_BOOTHS:
        raise LayoutError(f"layout constants inconsistent: {len(booths)} booths, expected {TOTAL_BOOTHS}")
    return booths


def find_overlaps(booths: list[BoothDefinition]) -> list[tuple[str, str]]:
    """Pairs of booths whose rectangles share interior area."""
    boxes = [b.box() for b in booths]
    tree = STRtree(boxes)
    out: list[tuple[str, str]] = []
    for i, geom in enumerate(boxes):
        for j in tree.query(geom, predicate="intersects"):
            j = int(j)
            if j <= i:
                continue
            if geom.intersection(boxes[j]).area > 0:
                out.append((booths[i].id, booths[j].id))
    return out
