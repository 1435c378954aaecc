import io
import tempfile
import unittest
from pathlib import Path

from booth_layout.export import ExportEntry, export_rows, write_csv
from booth_layout.occupancy import Day, DayRange
from booth_layout.plan import BoothPlan, PlanError
from booth_layout.render import render_ascii
from booth_layout.storage import load_plan, maybe_init_plan, save_plan


class TestBoothPlan(unittest.TestCase):
    def setUp(self):
        self.plan = BoothPlan("Expo")
        self.plan.add_company("A", "GOLD")
        self.plan.add_company("B", "gold", ["wednesday"])

    def test_add_company_validation(self):
        with self.assertRaises(PlanError):
            self.plan.add_company("A", "GOLD")
        with self.assertRaises(PlanError):
            self.plan.add_company("  ", "GOLD")
        with self.assertRaises(PlanError):
            self.plan.add_company("C", "PLATINUM")
        with self.assertRaises(PlanError):
            self.plan.add_company("C", "GOLD", [])

    def test_conflict_rejected_and_plan_unchanged(self):
        self.plan.assign("A", ["G-14", "G-15"])
        with self.assertRaises(PlanError) as ctx:
            self.plan.assign("B", ["G-15", "G-16"], DayRange.only(Day.WEDNESDAY))
        self.assertEqual(str(ctx.exception), "Booth conflict: G15 is assigned to A")
        self.assertIsNone(self.plan.assignment_for("B"))
        self.assertEqual(len(self.plan.assignments), 1)

    def test_reassign_replaces_own_booths(self):
        first = self.plan.assign("A", ["G-14", "G-15"])
        second = self.plan.assign("A", ["G-15", "G-13"])
        self.assertEqual(first.id, second.id)
        self.assertEqual(self.plan.assignment_for("A").booth_ids, ("G-15", "G-13"))
        self.assertEqual(len(self.plan.assignments), 1)

    def test_day_change_frees_booths(self):
        self.plan.assign("A", ["G-14", "G-15"])
        self.plan.change_day("A", DayRange.only(Day.THURSDAY))
        self.plan.assign("B", ["G-15", "G-16"], DayRange.only(Day.WEDNESDAY))
        self.assertEqual(self.plan.occupied(Day.WEDNESDAY), {"G-15", "G-16"})
        self.assertEqual(self.plan.occupied(Day.THURSDAY), {"G-14", "G-15"})
        with self.assertRaises(PlanError):
            self.plan.change_day("A", DayRange.both())

    def test_move_checks_against_others(self):
        self.plan.assign("A", ["G-14", "G-15"])
        self.plan.assign("B", ["K-1", "K-2"], DayRange.only(Day.WEDNESDAY))
        with self.assertRaises(PlanError):
            self.plan.move("A", ["K-2", "K-3"])
        moved = self.plan.move("A", ["K-3", "K-4"])
        self.assertEqual(moved.booth_ids, ("K-3", "K-4"))

    def test_move_without_assignment(self):
        with self.assertRaises(PlanError):
            self.plan.move("A", ["G-14", "G-15"])

    def test_day_eligibility(self):
        with self.assertRaises(PlanError) as ctx:
            self.plan.assign("B", ["G-1", "G-2"], DayRange.both())
        self.assertIn("Thursday", str(ctx.exception))

    def test_wrong_booth_count(self):
        with self.assertRaises(PlanError):
            self.plan.assign("A", ["G-14"])

    def test_place_around(self):
        self.plan.add_company("M", "MAROON")
        a = self.plan.place_around("M", "G-15")
        self.assertEqual(a.booth_ids, ("G-15", "G-14", "G-13", "G-12"))

    def test_unassign_and_unassigned(self):
        self.plan.assign("A", ["G-14", "G-15"])
        self.assertEqual([c.name for c in self.plan.unassigned_companies(Day.WEDNESDAY)], ["B"])
        self.assertEqual(self.plan.unassigned_companies(Day.THURSDAY), [])
        self.assertTrue(self.plan.unassign("A"))
        self.assertFalse(self.plan.unassign("A"))
        self.assertEqual(self.plan.occupied(Day.WEDNESDAY), set())

    def test_occupants(self):
        self.plan.assign("A", ["G-14", "G-15"])
        self.assertEqual(self.plan.occupants(Day.THURSDAY)["G-14"].name, "A")

    def test_unknown_company(self):
        with self.assertRaises(PlanError):
            self.plan.company("Nobody")

    def test_dict_round_trip(self):
        self.plan.assign("A", ["G-14", "G-15"])
        self.plan.assign("B", ["K-1", "K-2"], DayRange.only(Day.WEDNESDAY))
        copy = BoothPlan.from_dict(self.plan.to_dict())
        self.assertEqual(copy.to_dict(), self.plan.to_dict())
        self.assertEqual(copy.assignment_for("B").day, DayRange.only(Day.WEDNESDAY))
        copy.add_company("C", "SILVER")
        self.assertEqual(copy.company("C").id, "c5")

    def test_from_dict_invalid(self):
        with self.assertRaises(PlanError):
            BoothPlan.from_dict({"companies": [{"id": "c1"}]})


def _plan_data(assignments, next_id=10):
    return {
        "name": "Expo",
        "next_id": next_id,
        "companies": [
            {"id": "c1", "name": "A", "sponsorship": "SILVER", "days": ["WEDNESDAY", "THURSDAY"]},
            {"id": "c2", "name": "B", "sponsorship": "SILVER", "days": ["WEDNESDAY"]},
        ],
        "assignments": assignments,
    }


class TestLoadChecks(unittest.TestCase):
    def test_valid_file_loads(self):
        plan = BoothPlan.from_dict(
            _plan_data(
                [
                    {"id": "a3", "company_id": "c1", "booth_ids": ["G-1"], "day": "THURSDAY"},
                    {"id": "a4", "company_id": "c2", "booth_ids": ["G-1"], "day": "WEDNESDAY"},
                ]
            )
        )
        self.assertEqual(plan.occupied(Day.WEDNESDAY), {"G-1"})

    def test_unknown_company(self):
        data = _plan_data([{"id": "a3", "company_id": "c9", "booth_ids": ["G-1"], "day": None}])
        with self.assertRaises(PlanError) as ctx:
            BoothPlan.from_dict(data)
        self.assertIn("unknown company", str(ctx.exception))

    def test_overlapping_booths(self):
        data = _plan_data(
            [
                {"id": "a3", "company_id": "c1", "booth_ids": ["G-1"], "day": None},
                {"id": "a4", "company_id": "c2", "booth_ids": ["G-1"], "day": "WEDNESDAY"},
            ]
        )
        with self.assertRaises(PlanError) as ctx:
            BoothPlan.from_dict(data)
        self.assertIn("Booth conflict: G1 is assigned to A", str(ctx.exception))

    def test_two_assignments_for_one_company(self):
        data = _plan_data(
            [
                {"id": "a3", "company_id": "c1", "booth_ids": ["G-1"], "day": "WEDNESDAY"},
                {"id": "a4", "company_id": "c1", "booth_ids": ["G-2"], "day": "THURSDAY"},
            ]
        )
        with self.assertRaises(PlanError):
            BoothPlan.from_dict(data)

    def test_unknown_booth(self):
        data = _plan_data([{"id": "a3", "company_id": "c1", "booth_ids": ["A-16"], "day": None}])
        with self.assertRaises(PlanError):
            BoothPlan.from_dict(data)

    def test_next_id_must_clear_existing_ids(self):
        data = _plan_data([{"id": "a3", "company_id": "c1", "booth_ids": ["G-1"], "day": None}], next_id=3)
        with self.assertRaises(PlanError):
            BoothPlan.from_dict(data)

    def test_missing_next_id_follows_highest_id(self):
        data = _plan_data([{"id": "a7", "company_id": "c1", "booth_ids": ["G-1"], "day": None}])
        del data["next_id"]
        plan = BoothPlan.from_dict(data)
        self.assertEqual(plan.add_company("C", "BASIC").id, "c8")


class TestStorage(unittest.TestCase):
    def test_save_and_load(self):
        with tempfile.TemporaryDirectory() as d:
            path = Path(d) / "plan.json"
            plan = BoothPlan("Expo")
            plan.add_company("A", "SILVER", ["THURSDAY"])
            plan.assign("A", ["Q-15"], DayRange.only(Day.THURSDAY))
            save_plan(plan, path)
            loaded = load_plan(path)
            self.assertEqual(loaded.name, "Expo")
            self.assertEqual(loaded.to_dict(), plan.to_dict())

    def test_load_missing(self):
        with tempfile.TemporaryDirectory() as d:
            with self.assertRaises(PlanError):
                load_plan(Path(d) / "nope.json")

    def test_load_bad_json(self):
        with tempfile.TemporaryDirectory() as d:
            path = Path(d) / "plan.json"
            path.write_text("{not json", encoding="utf-8")
            with self.assertRaises(PlanError):
                load_plan(path)

    def test_maybe_init_keeps_existing(self):
        with tempfile.TemporaryDirectory() as d:
            path = Path(d) / "plan.json"
            maybe_init_plan(path, name="First")
            self.assertEqual(maybe_init_plan(path, name="Second").name, "First")
            self.assertEqual(maybe_init_plan(path, name="Second", overwrite=True).name, "Second")


class TestExport(unittest.TestCase):
    def setUp(self):
        self.entries = [
            ExportEntry("Gamma", DayRange.only(Day.THURSDAY), ("G-14",)),
            ExportEntry("Alpha", DayRange.both(), ("A-2", "A-10")),
            ExportEntry("Beta", DayRange.only(Day.WEDNESDAY), ("B-1", "A-11")),
            ExportEntry("Empty", DayRange.both(), ()),
        ]

    def test_rows_sorted_by_first_booth(self):
        rows = export_rows(self.entries)
        self.assertEqual([r["Name"] for r in rows], ["Alpha", "Beta", "Gamma"])
        self.assertEqual(rows[0]["ASSIGNMENT"], "A2, A10")
        self.assertEqual(rows[0]["DAYS REGISTERED"], "Wednesday Thursday")
        self.assertEqual(rows[1]["ASSIGNMENT"], "A11, B1")

    def test_day_filter(self):
        rows = export_rows(self.entries, Day.THURSDAY)
        self.assertEqual([r["Name"] for r in rows], ["Alpha", "Gamma"])

    def test_write_csv(self):
        buf = io.StringIO()
        write_csv(export_rows(self.entries[:1]), buf)
        self.assertEqual(buf.getvalue(), "Name,DAYS REGISTERED,ASSIGNMENT\nGamma,Thursday,G14\n")


class TestRender(unittest.TestCase):
    def test_render_marks_occupants(self):
        plan = BoothPlan()
        text = render_ascii(plan.index, {"Q-15": "Acme"})
        lines = text.splitlines()
        self.assertIn("Q", lines[0])
        self.assertIn("A", lines[0])
        self.assertIn("Acme", lines[1])
        self.assertIn("", lines)

    def test_render_numbers(self):
        plan = BoothPlan()
        text = render_ascii(plan.index, show_numbers=True)
        self.assertIn("15", text.splitlines()[1])


if __name__ == "__main__":
    unittest.main()
