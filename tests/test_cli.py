import contextlib
import io
import tempfile
import unittest
from pathlib import Path

from booth_layout.__main__ import main


def run(*argv):
    buf = io.StringIO()
    with contextlib.redirect_stdout(buf):
        code = main(list(argv))
    return code, buf.getvalue()


class TestCli(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self._tmp.name)
        self.file = str(self.dir / "plan.json")

    def tearDown(self):
        self._tmp.cleanup()

    def test_layout_check(self):
        code, out = run("layout", "--check")
        self.assertEqual(code, 0)
        self.assertIn("480 booths, canvas 1992x868, 0 overlapping pairs", out)

    def test_layout_csv(self):
        target = self.dir / "booths.csv"
        self.assertEqual(run("layout", "--output", str(target))[0], 0)
        lines = target.read_text(encoding="utf-8").splitlines()
        self.assertEqual(lines[0], "id,row,number,segment,x,y,width,height")
        self.assertEqual(len(lines), 481)

    def test_locate(self):
        self.assertEqual(run("locate", "170", "50"), (0, "Row P segment 2\n"))
        self.assertEqual(run("locate", "5", "50")[0], 1)

    def test_check(self):
        self.assertEqual(run("check", "G14", "G15")[0], 0)
        self.assertEqual(run("check", "G-8,G-7")[0], 1)

    def test_plan_workflow(self):
        self.assertEqual(run("init", "--file", self.file, "--name", "Expo")[0], 0)
        self.assertEqual(run("add-company", "--file", self.file, "--name", "Acme", "--sponsorship", "gold")[0], 0)
        self.assertEqual(
            run("add-company", "--file", self.file, "--name", "Beta", "--sponsorship", "GOLD", "--days", "wednesday")[0],
            0,
        )

        code, out = run("assign", "--file", self.file, "--company", "Acme", "--booths", "G14,G15")
        self.assertEqual(code, 0)
        self.assertIn("G14, G15 (Wednesday Thursday)", out)

        code, out = run("assign", "--file", self.file, "--company", "Beta", "--booths", "G15", "G16")
        self.assertEqual(code, 2)
        self.assertEqual(out, "Error: Booth conflict: G15 is assigned to Acme\n")

        self.assertEqual(run("assign", "--file", self.file, "--company", "Beta", "--around", "K15")[0], 0)

        code, out = run("suggest", "--file", self.file, "G", "2", "2", "0")
        self.assertEqual((code, out), (0, "G12, G13\n"))

        target = self.dir / "out" / "assignments.csv"
        self.assertEqual(run("export-csv", "--file", self.file, "--output", str(target))[0], 0)
        self.assertEqual(
            target.read_text(encoding="utf-8"),
            "Name,DAYS REGISTERED,ASSIGNMENT\nAcme,Wednesday Thursday,\"G14, G15\"\nBeta,Wednesday,\"K14, K15\"\n",
        )

        code, out = run("show", "--file", self.file, "--active-day", "thursday")
        self.assertEqual(code, 0)
        self.assertIn("Acme", out)
        self.assertNotIn("Beta", out)

        self.assertEqual(run("move", "--file", self.file, "--company", "Acme", "--day", "thursday")[0], 0)
        self.assertEqual(run("unassign", "--file", self.file, "--company", "Acme")[0], 0)
        self.assertEqual(run("unassign", "--file", self.file, "--company", "Acme")[0], 1)

    def test_inconsistent_plan_file(self):
        Path(self.file).write_text(
            '{"name": "Expo", "next_id": 5, "companies": [], '
            '"assignments": [{"id": "a1", "company_id": "c9", "booth_ids": ["G-1"], "day": null}]}',
            encoding="utf-8",
        )
        code, out = run("export-csv", "--file", self.file, "--output", str(self.dir / "out.csv"))
        self.assertEqual(code, 2)
        self.assertTrue(out.startswith("Error: "))

    def test_missing_plan_file(self):
        code, out = run("show", "--file", self.file)
        self.assertEqual(code, 2)
        self.assertIn("plan file not found", out)


if __name__ == "__main__":
    unittest.main()
