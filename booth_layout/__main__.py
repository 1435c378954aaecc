from __future__ import annotations

import argparse
import csv
import logging
import sys
from pathlib import Path

from .export import ExportEntry, export_rows, write_csv
from .layout import LayoutError, find_overlaps, format_booth_ids, normalize_booth_id
from .occupancy import Day, DayRange, PlacementError, assignment_day_for
from .placement import find_best_placement, is_contiguous_run
from .render import render_ascii
from .spatial import default_index
from .storage import load_plan, maybe_init_plan, save_plan

DEFAULT_FILE = "booth_plan.json"


def _add_common_args(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--file",
        default=DEFAULT_FILE,
        help=f"Path to plan JSON file (default: {DEFAULT_FILE})",
    )


def _day(value: str) -> Day:
    try:
        return Day(value.strip().upper())
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"unknown day: {value!r}") from e


def _booth_list(values: list[str]) -> list[str]:
    out: list[str] = []
    for v in values:
        out.extend(normalize_booth_id(part) for part in v.split(",") if part.strip())
    return out


def _day_range(args: argparse.Namespace, days: tuple[Day, ...]) -> DayRange:
    if args.day is not None:
        return DayRange.from_value(args.day)
    return assignment_day_for(days, args.active_day)


def cmd_layout(args: argparse.Namespace) -> int:
    index = default_index()
    if args.check:
        overlaps = find_overlaps(list(index.booths))
        width, height = index.canvas_dimensions()
        print(f"{len(index)} booths, canvas {width:g}x{height:g}, {len(overlaps)} overlapping pairs")
        return 0 if not overlaps else 1
    out = open(args.output, "w", newline="", encoding="utf-8") if args.output else sys.stdout
    try:
        fields = ["id", "row", "number", "segment", "x", "y", "width", "height"]
        w = csv.DictWriter(out, fieldnames=fields, lineterminator="\n")
        w.writeheader()
        for b in index.booths:
            w.writerow(b.to_dict())
    finally:
        if out is not sys.stdout:
            out.close()
    return 0


def cmd_locate(args: argparse.Namespace) -> int:
    hit = default_index().segment_at(args.x, args.y)
    if hit is None:
        print("Not over a row")
        return 1
    print(f"Row {hit[0]} segment {hit[1]}")
    return 0


def cmd_suggest(args: argparse.Namespace) -> int:
    occupied: set[str] = set()
    if Path(args.file).exists():
        occupied = load_plan(args.file).occupied(args.active_day)
    group = find_best_placement(default_index(), args.row.upper(), args.segment, args.count, args.target_y, occupied)
    if group is None:
        print("No placement")
        return 1
    print(format_booth_ids(group))
    return 0


def cmd_check(args: argparse.Namespace) -> int:
    ids = _booth_list(args.booths)
    ok = is_contiguous_run(default_index(), ids)
    print(f"{format_booth_ids(ids)}: {'contiguous' if ok else 'not contiguous'}")
    return 0 if ok else 1


def cmd_init(args: argparse.Namespace) -> int:
    maybe_init_plan(args.file, name=args.name, overwrite=args.overwrite)
    print(f"Initialized plan {args.name!r} at {args.file}")
    return 0


def cmd_add_company(args: argparse.Namespace) -> int:
    plan = load_plan(args.file)
    company = plan.add_company(args.name, args.sponsorship, args.days, has_queue=args.queue)
    save_plan(plan, args.file)
    print(f"Added {company.name!r} ({company.sponsorship.label}, {company.sponsorship.booth_count} booth(s))")
    return 0


def cmd_assign(args: argparse.Namespace) -> int:
    plan = load_plan(args.file)
    company = plan.company(args.company)
    day = _day_range(args, company.days)
    if args.around:
        a = plan.place_around(company.id, normalize_booth_id(args.around), day)
    else:
        a = plan.assign(company.id, _booth_list(args.booths), day)
    save_plan(plan, args.file)
    print(f"Assigned {company.name!r} to {format_booth_ids(a.booth_ids)} ({a.day.label})")
    return 0


def cmd_move(args: argparse.Namespace) -> int:
    plan = load_plan(args.file)
    booths = _booth_list(args.booths) if args.booths else None
    day = DayRange.from_value(args.day) if args.day is not None else None
    a = plan.move(args.company, booths, day)
    save_plan(plan, args.file)
    print(f"Moved {args.company!r} to {format_booth_ids(a.booth_ids)} ({a.day.label})")
    return 0


def cmd_unassign(args: argparse.Namespace) -> int:
    plan = load_plan(args.file)
    if not plan.unassign(args.company):
        print("Not assigned")
        return 1
    save_plan(plan, args.file)
    print(f"Unassigned {args.company!r}")
    return 0


def cmd_show(args: argparse.Namespace) -> int:
    plan = load_plan(args.file)
    occupants = {bid: c.name for bid, c in plan.occupants(args.active_day).items()}
    print(render_ascii(plan.index, occupants, cell_width=args.width, show_numbers=args.numbers))
    return 0


def cmd_export_csv(args: argparse.Namespace) -> int:
    plan = load_plan(args.file)
    entries = [
        ExportEntry(company_name=plan.companies[a.company_id].name, day=a.day, booth_ids=a.booth_ids)
        for a in plan.assignments
    ]
    out = Path(args.output)
    out.parent.mkdir(parents=True, exist_ok=True)
    with out.open("w", newline="", encoding="utf-8") as f:
        write_csv(export_rows(entries, args.filter_day), f)
    print(f"Exported {len(entries)} assignment(s) to {out}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="booth_layout", description="Exhibition booth layout planner (CLI).")
    p.add_argument("-v", "--verbose", action="store_true", help="Log debug output")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_layout = sub.add_parser("layout", help="Print every booth definition as CSV")
    p_layout.add_argument("--output", help="Write to a file instead of stdout")
    p_layout.add_argument("--check", action="store_true", help="Only verify booth count and overlaps")
    p_layout.set_defaults(func=cmd_layout)

    p_locate = sub.add_parser("locate", help="Row and segment under a canvas point")
    p_locate.add_argument("x", type=float)
    p_locate.add_argument("y", type=float)
    p_locate.set_defaults(func=cmd_locate)

    p_suggest = sub.add_parser("suggest", help="Best free run of booths near a y position")
    _add_common_args(p_suggest)
    p_suggest.add_argument("row")
    p_suggest.add_argument("segment", type=int, choices=[1, 2, 3, 4])
    p_suggest.add_argument("count", type=int)
    p_suggest.add_argument("target_y", type=float)
    p_suggest.add_argument("--active-day", type=_day, default=Day.WEDNESDAY, help="Day whose occupancy to avoid")
    p_suggest.set_defaults(func=cmd_suggest)

    p_check = sub.add_parser("check", help="Check whether booths form one contiguous run")
    p_check.add_argument("booths", nargs="+", help="Booth ids, e.g. G14 G15 or G-14,G-15")
    p_check.set_defaults(func=cmd_check)

    p_init = sub.add_parser("init", help="Create a new plan JSON file")
    _add_common_args(p_init)
    p_init.add_argument("--name", default="Untitled Draft")
    p_init.add_argument("--overwrite", action="store_true", help="Overwrite existing plan file")
    p_init.set_defaults(func=cmd_init)

    p_company = sub.add_parser("add-company", help="Add a company to the plan")
    _add_common_args(p_company)
    p_company.add_argument("--name", required=True)
    p_company.add_argument("--sponsorship", required=True, help="MAROON, DIAMOND, GOLD, SILVER or BASIC")
    p_company.add_argument("--days", nargs="+", default=["WEDNESDAY", "THURSDAY"])
    p_company.add_argument("--queue", action="store_true", help="Company expects a queue")
    p_company.set_defaults(func=cmd_add_company)

    p_assign = sub.add_parser("assign", help="Assign a company to booths")
    _add_common_args(p_assign)
    p_assign.add_argument("--company", required=True, help="Company id or name")
    p_assign.add_argument("--booths", nargs="+", default=[])
    p_assign.add_argument("--around", help="Centre the company's run on this booth instead")
    p_assign.add_argument("--day", help="WEDNESDAY, THURSDAY or BOTH (default: from the company's days)")
    p_assign.add_argument("--active-day", type=_day, default=Day.WEDNESDAY)
    p_assign.set_defaults(func=cmd_assign)

    p_move = sub.add_parser("move", help="Move a company to other booths and/or day")
    _add_common_args(p_move)
    p_move.add_argument("--company", required=True)
    p_move.add_argument("--booths", nargs="*")
    p_move.add_argument("--day")
    p_move.set_defaults(func=cmd_move)

    p_unassign = sub.add_parser("unassign", help="Remove a company's booths")
    _add_common_args(p_unassign)
    p_unassign.add_argument("--company", required=True)
    p_unassign.set_defaults(func=cmd_unassign)

    p_show = sub.add_parser("show", help="Print the booth map for a day")
    _add_common_args(p_show)
    p_show.add_argument("--active-day", type=_day, default=Day.WEDNESDAY)
    p_show.add_argument("--width", type=int, default=4, help="Cell width for display")
    p_show.add_argument("--numbers", action="store_true", help="Show booth numbers for free booths")
    p_show.set_defaults(func=cmd_show)

    p_export = sub.add_parser("export-csv", help="Export assignments to a CSV file")
    _add_common_args(p_export)
    p_export.add_argument("--output", required=True)
    p_export.add_argument("--filter-day", type=_day, help="Only assignments held on this day")
    p_export.set_defaults(func=cmd_export_csv)

    return p


def main(argv: list[str] | None = None) -> int:
    p = build_parser()
    args = p.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
    try:
        return int(args.func(args))
    except (PlacementError, LayoutError) as e:
        print(f"Error: {e}")
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
