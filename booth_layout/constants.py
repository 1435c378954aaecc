from __future__ import annotations

# Booth geometry (pixels)
BOOTH_WIDTH = 48
BOOTH_HEIGHT = 48
BOOTH_GAP = 2
AISLE_GAP = 40
SEGMENT_SIDE_GAP = 8
ROW_GAP = 16
CANVAS_PADDING = 40

# Booth slots above and below the aisle, per column.
TOP_SLOTS = 8
BOTTOM_SLOTS = 7

# Rows left (Q) to right (A) as seen from above.
ALL_ROWS: tuple[str, ...] = ("Q", "P", "O", "N", "M", "L", "K", "J", "I", "H", "G", "F", "E", "D", "C", "B", "A")
EDGE_ROWS: frozenset[str] = frozenset({"A", "Q"})
MIDDLE_ROWS: tuple[str, ...] = tuple(r for r in ALL_ROWS if r not in EDGE_ROWS)

EDGE_ROW_BOOTHS = TOP_SLOTS + BOTTOM_SLOTS
MIDDLE_ROW_BOOTHS = 2 * (TOP_SLOTS + BOTTOM_SLOTS)
TOTAL_BOOTHS = len(EDGE_ROWS) * EDGE_ROW_BOOTHS + len(MIDDLE_ROWS) * MIDDLE_ROW_BOOTHS

# y where the bottom half starts, and the midline used to split pointer hits.
BOTTOM_HALF_Y = CANVAS_PADDING + TOP_SLOTS * (BOOTH_HEIGHT + BOOTH_GAP) + AISLE_GAP
AISLE_MIDLINE_Y = CANVAS_PADDING + TOP_SLOTS * (BOOTH_HEIGHT + BOOTH_GAP) + AISLE_GAP / 2

SEGMENTS = (1, 2, 3, 4)
EDGE_SEGMENTS = (1, 2)
