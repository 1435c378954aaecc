from __future__ import annotations

import math
from typing import AbstractSet, Iterable, Optional

from .spatial import SpatialIndex


def find_valid_placements(
    index: SpatialIndex,
    row: str,
    segment: int,
    count: int,
    occupied: AbstractSet[str],
) -> list[list[str]]:
    """All runs of `count` vertically adjacent free booths in one segment, top first."""
    if count < 1:
        return []
    booths = index.booths_in_segment(row, segment)
    out: list[list[str]] = []
    for start in range(len(booths) - count + 1):
        window = booths[start : start + count]
        if any(b.id in occupied for b in window):
            continue
        out.append([b.id for b in window])
    return out


def find_best_placement(
    index: SpatialIndex,
    row: str,
    segment: int,
    count: int,
    target_y: float,
    occupied: AbstractSet[str],
) -> Optional[list[str]]:
    """
    The free run whose vertical centre is closest to `target_y`.

    Ties go to the first (topmost) run. None if nothing fits.
    """
    best: Optional[list[str]] = None
    best_dist = math.inf
    for group in find_valid_placements(index, row, segment, count, occupied):
        first = index.by_id(group[0])
        last = index.by_id(group[-1])
        center_y = (first.y + last.y + last.height) / 2
        dist = abs(center_y - target_y)
        if dist < best_dist:
            best_dist = dist
            best = group
    return best


def contiguous_group_around(index: SpatialIndex, booth_id: str, count: int) -> Optional[list[str]]:
    """
    `count` adjacent booths roughly centred on `booth_id`, ignoring occupancy.

    The run is shifted to stay inside the segment; None if the segment is too small.
    """
    booth = index.by_id(booth_id)
    if booth is None or count < 1:
        return None
    booths = index.booths_in_segment(booth.row, booth.segment)
    if len(booths) < count:
        return None

    idx = next(i for i, b in enumerate(booths) if b.id == booth_id)
    start = idx - (count - 1) // 2
    start = max(0, min(start, len(booths) - count))
    return [b.id for b in booths[start : start + count]]


def suggest_at(
    index: SpatialIndex,
    x: float,
    y: float,
    count: int,
    occupied: AbstractSet[str],
) -> Optional[list[str]]:
    hit = index.segment_at(x, y)
    if hit is None:
        return None
    row, segment = hit
    return find_best_placement(index, row, segment, count, y, occupied)


def is_contiguous_run(index: SpatialIndex, booth_ids: Iterable[str]) -> bool:
    ids = list(booth_ids)
    if not ids or len(set(ids)) != len(ids):
        return False
    booths = [index.by_id(b) for b in ids]
    if any(b is None for b in booths):
        return False
    first = booths[0]
    if any((b.row, b.segment) != (first.row, first.segment) for b in booths):
        return False
    order = [b.id for b in index.booths_in_segment(first.row, first.segment)]
    positions = sorted(order.index(b) for b in ids)
    return positions[-1] - positions[0] == len(positions) - 1
