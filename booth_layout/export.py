from __future__ import annotations

import csv
from dataclasses import dataclass
from typing import IO, Iterable, Optional, Union

from .layout import format_booth_ids, parse_booth_id, sort_booth_ids
from .occupancy import Day, DayRange

EXPORT_HEADERS = ("Name", "DAYS REGISTERED", "ASSIGNMENT")


@dataclass(frozen=True)
class ExportEntry:
    company_name: str
    day: DayRange
    booth_ids: tuple[str, ...]


def export_rows(entries: Iterable[ExportEntry], day: Union[Day, str, None] = None) -> list[dict[str, str]]:
    """
    Rows for the assignments sheet, ordered by each assignment's first booth.

    With `day`, only assignments held on that day are kept.
    """
    kept = [e for e in entries if e.booth_ids and (day is None or e.day.covers(day))]
    kept.sort(key=lambda e: parse_booth_id(sort_booth_ids(e.booth_ids)[0]))
    return [
        {
            "Name": e.company_name,
            "DAYS REGISTERED": e.day.label,
            "ASSIGNMENT": format_booth_ids(e.booth_ids),
        }
        for e in kept
    ]


def write_csv(rows: Iterable[dict[str, str]], out: IO[str], headers: Optional[Iterable[str]] = None) -> None:
    w = csv.DictWriter(out, fieldnames=list(headers or EXPORT_HEADERS), lineterminator="\n")
    w.writeheader()
    for row in rows:
        w.writerow(row)
