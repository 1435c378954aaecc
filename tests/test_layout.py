import unittest
from collections import Counter
from unittest import mock

from booth_layout.constants import ALL_ROWS, EDGE_ROWS
from booth_layout.layout import (
    LayoutError,
    display_booth_id,
    find_overlaps,
    format_booth_ids,
    generate_layout,
    normalize_booth_id,
    parse_booth_id,
    sort_booth_ids,
)


class TestGenerateLayout(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.booths = generate_layout()
        cls.by_id = {b.id: b for b in cls.booths}

    def test_total_and_unique_ids(self):
        self.assertEqual(len(self.booths), 480)
        self.assertEqual(len(self.by_id), 480)

    def test_booths_per_row(self):
        per_row = Counter(b.row for b in self.booths)
        for row in ALL_ROWS:
            expected = 15 if row in EDGE_ROWS else 30
            self.assertEqual(per_row[row], expected, row)

    def test_edge_rows_numbers_and_segments(self):
        q = [b for b in self.booths if b.row == "Q"]
        self.assertEqual(sorted(b.number for b in q), list(range(1, 16)))
        self.assertEqual({b.segment for b in q}, {1, 2})

    def test_segment_numbering(self):
        def numbers(row, seg):
            return [b.number for b in sorted((b for b in self.booths if b.row == row and b.segment == seg), key=lambda b: b.y)]

        self.assertEqual(numbers("G", 3), list(range(16, 24)))
        self.assertEqual(numbers("G", 2), list(range(15, 7, -1)))
        self.assertEqual(numbers("G", 4), list(range(24, 31)))
        self.assertEqual(numbers("G", 1), list(range(7, 0, -1)))
        self.assertEqual(numbers("A", 2), list(range(15, 7, -1)))
        self.assertEqual(numbers("A", 1), list(range(7, 0, -1)))
        self.assertEqual(numbers("A", 3), [])

    def test_known_coordinates(self):
        q15 = self.by_id["Q-15"]
        self.assertEqual((q15.x, q15.y, q15.width, q15.height), (40, 40, 48, 48))
        self.assertEqual((self.by_id["Q-1"].x, self.by_id["Q-1"].y), (40, 780))
        self.assertEqual((self.by_id["P-16"].x, self.by_id["P-16"].y), (104, 40))
        self.assertEqual((self.by_id["P-15"].x, self.by_id["P-15"].y), (160, 40))
        self.assertEqual((self.by_id["P-24"].x, self.by_id["P-24"].y), (104, 480))
        self.assertEqual((self.by_id["P-1"].x, self.by_id["P-1"].y), (160, 780))
        self.assertEqual((self.by_id["A-15"].x, self.by_id["A-15"].y), (1904, 40))

    def test_rows_run_left_to_right(self):
        min_x = {}
        for b in self.booths:
            min_x[b.row] = min(min_x.get(b.row, b.x), b.x)
        self.assertEqual(sorted(ALL_ROWS, key=lambda r: min_x[r]), list(ALL_ROWS))

    def test_no_overlaps(self):
        self.assertEqual(find_overlaps(self.booths), [])

    def test_deterministic(self):
        self.assertEqual(generate_layout(), self.booths)

    def test_inconsistent_constants_raise(self):
        with mock.patch("booth_layout.layout.TOTAL_BOOTHS", 481):
            with self.assertRaises(LayoutError):
                generate_layout()

    def test_find_overlaps_reports_pair(self):
        a = self.by_id["G-14"]
        shifted = type(a)(id="X-1", row="X", number=1, segment=1, x=a.x + 10, y=a.y + 10, width=48, height=48)
        self.assertEqual(find_overlaps([a, shifted]), [("G-14", "X-1")])


class TestBoothIds(unittest.TestCase):
    def test_parse(self):
        self.assertEqual(parse_booth_id("G-14"), ("G", 14))
        self.assertEqual(parse_booth_id("g14"), ("G", 14))
        with self.assertRaises(LayoutError):
            parse_booth_id("14-G")

    def test_normalize_and_display(self):
        self.assertEqual(normalize_booth_id("G14"), "G-14")
        self.assertEqual(display_booth_id("G-14"), "G14")

    def test_sort_by_row_then_number(self):
        self.assertEqual(sort_booth_ids(["A-10", "B-1", "A-2"]), ["A-2", "A-10", "B-1"])

    def test_format_for_export(self):
        self.assertEqual(format_booth_ids({"A-1", "G-14", "A-2"}), "A1, A2, G14")


if __name__ == "__main__":
    unittest.main()
