"""Persistence operations for drafts, companies and booth assignments.

Functions take an open Session and never commit; the caller owns the
transaction so a read-check-write sequence can be rolled back as a unit.
"""

from __future__ import annotations

import json
import threading
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlmodel import Session, delete, select

from booth_layout.occupancy import Assignment, DayRange

from .models import BoothAssignment, Company, Draft, _utc_now

_locks: dict[int, threading.Lock] = {}
_locks_guard = threading.Lock()


@contextmanager
def draft_lock(draft_id: int) -> Iterator[None]:
    """Serialize assignment writes for one draft within this process."""
    with _locks_guard:
        lock = _locks.setdefault(draft_id, threading.Lock())
    with lock:
        yield


def get_owned_draft(session: Session, draft_id: int, owner_id: str) -> Optional[Draft]:
    draft = session.get(Draft, draft_id)
    if draft is None or draft.owner_id != owner_id:
        return None
    return draft


def get_owned_company(session: Session, company_id: int, owner_id: str) -> Optional[Company]:
    company = session.get(Company, company_id)
    if company is None or get_owned_draft(session, company.draft_id, owner_id) is None:
        return None
    return company


def get_owned_assignment(session: Session, assignment_id: int, owner_id: str) -> Optional[BoothAssignment]:
    a = session.get(BoothAssignment, assignment_id)
    if a is None or get_owned_draft(session, a.draft_id, owner_id) is None:
        return None
    return a


def list_companies(session: Session, draft_id: int) -> list[Company]:
    return list(session.exec(select(Company).where(Company.draft_id == draft_id).order_by(Company.name)).all())


def list_assignments(session: Session, draft_id: int, excluding: Optional[int] = None) -> list[BoothAssignment]:
    stmt = select(BoothAssignment).where(BoothAssignment.draft_id == draft_id)
    if excluding is not None:
        stmt = stmt.where(BoothAssignment.id != excluding)
    return list(session.exec(stmt.order_by(BoothAssignment.id)).all())


def list_domain_assignments(session: Session, draft_id: int, excluding: Optional[int] = None) -> list[Assignment]:
    """Assignments as engine records, carrying company names for conflict messages."""
    names = {c.id: c.name for c in session.exec(select(Company).where(Company.draft_id == draft_id)).all()}
    return [a.to_domain(names.get(a.company_id)) for a in list_assignments(session, draft_id, excluding)]


def get_assignment_for_company(session: Session, company_id: int, draft_id: int) -> Optional[BoothAssignment]:
    return session.exec(
        select(BoothAssignment).where(BoothAssignment.company_id == company_id, BoothAssignment.draft_id == draft_id)
    ).first()


def create_or_replace_assignment(
    session: Session,
    company_id: int,
    draft_id: int,
    booth_ids: list[str],
    day: DayRange,
) -> BoothAssignment:
    """Upsert keyed on (company_id, draft_id)."""
    existing = get_assignment_for_company(session, company_id, draft_id)
    if existing is None:
        existing = BoothAssignment(company_id=company_id, draft_id=draft_id, booth_ids_json="[]")
    existing.booth_ids_json = json.dumps(list(booth_ids))
    existing.day = day.day
    existing.updated_at = _utc_now()
    session.add(existing)
    session.flush()
    return existing


def update_assignment(
    session: Session,
    assignment_id: int,
    *,
    booth_ids: Optional[list[str]] = None,
    day: Optional[DayRange] = None,
) -> BoothAssignment:
    a = session.get(BoothAssignment, assignment_id)
    if a is None:
        raise LookupError(f"assignment {assignment_id} not found")
    if booth_ids is not None:
        a.booth_ids_json = json.dumps(list(booth_ids))
    if day is not None:
        a.day = day.day
    a.updated_at = _utc_now()
    session.add(a)
    session.flush()
    return a


def delete_assignment(session: Session, assignment_id: int) -> None:
    session.exec(delete(BoothAssignment).where(BoothAssignment.id == assignment_id))


def delete_company_cascade(session: Session, company_id: int) -> None:
    session.exec(delete(BoothAssignment).where(BoothAssignment.company_id == company_id))
    session.exec(delete(Company).where(Company.id == company_id))


def delete_draft_cascade(session: Session, draft_id: int) -> None:
    session.exec(delete(BoothAssignment).where(BoothAssignment.draft_id == draft_id))
    session.exec(delete(Company).where(Company.draft_id == draft_id))
    session.exec(delete(Draft).where(Draft.id == draft_id))
    with _locks_guard:
        _locks.pop(draft_id, None)


def touch_draft(session: Session, draft_id: int) -> None:
    draft = session.get(Draft, draft_id)
    if draft is not None:
        draft.updated_at = _utc_now()
        session.add(draft)
