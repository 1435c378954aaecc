from __future__ import annotations

import csv
import io
import logging
import re
from dataclasses import dataclass, field
from typing import Optional

from sqlmodel import Session, select

from booth_layout.export import ExportEntry, export_rows, write_csv
from booth_layout.occupancy import Day, Sponsorship

from .models import Company, dump_days
from .store import list_assignments, list_companies

logger = logging.getLogger(__name__)

_TIER_RE = re.compile(r"^(\w+)\s+(One-Day|Two-Day)", re.IGNORECASE)


@dataclass(frozen=True)
class ParsedCompany:
    name: str
    sponsorship: Sponsorship
    days: tuple[Day, ...]


@dataclass
class ImportResult:
    created: int = 0
    updated: int = 0
    errors: list[str] = field(default_factory=list)
    total: int = 0

    def to_dict(self) -> dict:
        return {"created": self.created, "updated": self.updated, "errors": self.errors, "total": self.total}


def parse_sponsorship_column(value: str) -> Optional[tuple[Sponsorship, tuple[Day, ...]]]:
    """
    Read tier and days out of a registration string, e.g.

        "Gold Two-Day [$5500.00]"
        "Basic One-Day: Wednesday, January 28th [$1000.00]"
    """
    v = (value or "").strip()
    m = _TIER_RE.match(v)
    if not m:
        return None
    try:
        tier = Sponsorship(m.group(1).upper())
    except ValueError:
        return None

    both = (Day.WEDNESDAY, Day.THURSDAY)
    if m.group(2).lower() == "two-day":
        return tier, both
    if re.search(r"wednesday", v, re.IGNORECASE):
        return tier, (Day.WEDNESDAY,)
    if re.search(r"thursday", v, re.IGNORECASE):
        return tier, (Day.THURSDAY,)
    # One-day without a recognizable day: keep both so the company stays placeable.
    return tier, both


def parse_company_rows(text: str) -> tuple[list[ParsedCompany], list[str]]:
    rows = [r for r in csv.reader(io.StringIO(text)) if any(cell.strip() for cell in r)]
    parsed: list[ParsedCompany] = []
    errors: list[str] = []

    start = 0
    if rows and parse_sponsorship_column(rows[0][1] if len(rows[0]) > 1 else "") is None:
        logger.debug("header row detected, skipping: %s", " | ".join(rows[0][:3]))
        start = 1

    for i in range(start, len(rows)):
        row = rows[i]
        row_num = i + 1
        name = row[0].strip() if row else ""
        if not name:
            errors.append(f"Row {row_num}: missing company name")
            continue
        raw = row[1].strip() if len(row) > 1 else ""
        result = parse_sponsorship_column(raw)
        if result is None:
            errors.append(f'Row {row_num}: could not parse sponsorship "{raw}"')
            continue
        tier, days = result
        logger.debug("row %d: %s -> %s %s", row_num, name, tier.value, [d.value for d in days])
        parsed.append(ParsedCompany(name=name, sponsorship=tier, days=days))
    return parsed, errors


def import_companies(session: Session, draft_id: int, text: str) -> ImportResult:
    """Upsert companies by name into a draft. Row problems are reported, not raised."""
    parsed, errors = parse_company_rows(text)
    result = ImportResult(errors=errors, total=len(parsed))
    try:
        for pc in parsed:
            existing = session.exec(
                select(Company).where(Company.draft_id == draft_id, Company.name == pc.name)
            ).first()
            if existing is not None:
                existing.days_json = dump_days(pc.days)
                existing.sponsorship = pc.sponsorship
                session.add(existing)
                result.updated += 1
            else:
                session.add(
                    Company(draft_id=draft_id, name=pc.name, days_json=dump_days(pc.days), sponsorship=pc.sponsorship)
                )
                result.created += 1
        session.commit()
    except Exception:
        session.rollback()
        raise
    logger.info(
        "import into draft %s: created=%d updated=%d errors=%d",
        draft_id,
        result.created,
        result.updated,
        len(result.errors),
    )
    return result


def export_assignments_csv(session: Session, draft_id: int, day: Optional[Day] = None) -> str:
    names = {c.id: c.name for c in list_companies(session, draft_id)}
    entries = [
        ExportEntry(company_name=names.get(a.company_id, ""), day=a.day_range(), booth_ids=tuple(a.booth_ids()))
        for a in list_assignments(session, draft_id)
    ]
    buf = io.StringIO()
    write_csv(export_rows(entries, day), buf)
    return buf.getvalue()
