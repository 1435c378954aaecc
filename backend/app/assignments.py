"""Assignment flows - the authoritative booth conflict check lives here.

Every write that can change which booths a company holds runs the same
sequence under the draft's lock: read the draft's assignments, run
find_conflict, write, commit. Any failure rolls the session back.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlmodel import Session

from booth_layout.occupancy import (
    DayRange,
    PlacementError,
    check_day_eligible,
    find_conflict,
    validate_booth_selection,
)
from booth_layout.spatial import SpatialIndex, default_index

from .errors import ConflictError, InvalidInputError, NotFoundError
from .models import BoothAssignment, Company, Draft
from .store import (
    create_or_replace_assignment,
    delete_assignment,
    draft_lock,
    get_assignment_for_company,
    get_owned_assignment,
    get_owned_draft,
    list_assignments,
    list_companies,
    list_domain_assignments,
    touch_draft,
    update_assignment,
)

logger = logging.getLogger(__name__)


@contextmanager
def _transaction(session: Session) -> Iterator[None]:
    try:
        yield
        session.commit()
    except Exception:
        session.rollback()
        raise


def _validate(index: SpatialIndex, company: Company, booth_ids: list[str], day: DayRange) -> list[str]:
    try:
        ids = validate_booth_selection(index, booth_ids, company.sponsorship)
        check_day_eligible(company.days(), day)
    except PlacementError as e:
        raise InvalidInputError(str(e)) from e
    return ids


def _check_conflict(
    session: Session, draft_id: int, booth_ids: list[str], day: DayRange, exclude_id: Optional[int]
) -> None:
    existing = list_domain_assignments(session, draft_id)
    conflict = find_conflict(booth_ids, day, existing, exclude_assignment_id=exclude_id)
    if conflict is not None:
        logger.warning(
            "rejected placement in draft %s: %s (assignment %s)", draft_id, conflict.message, conflict.assignment_id
        )
        raise ConflictError(conflict)


def assign_company(
    session: Session,
    owner_id: str,
    *,
    company_id: int,
    draft_id: int,
    booth_ids: list[str],
    day: DayRange,
    index: Optional[SpatialIndex] = None,
) -> BoothAssignment:
    """
    Place a company, replacing any booths it already holds in the draft.

    The company's own current assignment is excluded from the conflict
    check since the upsert replaces it.
    """
    index = index or default_index()
    draft = get_owned_draft(session, draft_id, owner_id)
    if draft is None:
        raise NotFoundError("draft")
    company = session.get(Company, company_id)
    if company is None or company.draft_id != draft.id:
        raise NotFoundError("company")
    ids = _validate(index, company, booth_ids, day)

    with draft_lock(draft.id), _transaction(session):
        current = get_assignment_for_company(session, company.id, draft.id)
        _check_conflict(session, draft.id, ids, day, current.id if current else None)
        a = create_or_replace_assignment(session, company.id, draft.id, ids, day)
        touch_draft(session, draft.id)
    session.refresh(a)
    logger.info("assigned company %s to %s (%s) in draft %s", company.id, ids, day.label, draft.id)
    return a


def move_assignment(
    session: Session,
    owner_id: str,
    assignment_id: int,
    *,
    booth_ids: Optional[list[str]] = None,
    day: Optional[DayRange] = None,
    index: Optional[SpatialIndex] = None,
) -> BoothAssignment:
    """Change an assignment's booths and/or day; `None` keeps the current value."""
    index = index or default_index()
    a = get_owned_assignment(session, assignment_id, owner_id)
    if a is None:
        raise NotFoundError("assignment")
    company = session.get(Company, a.company_id)
    if company is None:
        raise NotFoundError("company")

    new_ids = list(booth_ids) if booth_ids is not None else a.booth_ids()
    new_day = day if day is not None else a.day_range()
    if booth_ids is not None:
        new_ids = _validate(index, company, new_ids, new_day)
    else:
        try:
            check_day_eligible(company.days(), new_day)
        except PlacementError as e:
            raise InvalidInputError(str(e)) from e

    with draft_lock(a.draft_id), _transaction(session):
        _check_conflict(session, a.draft_id, new_ids, new_day, a.id)
        a = update_assignment(session, a.id, booth_ids=new_ids, day=new_day)
        touch_draft(session, a.draft_id)
    session.refresh(a)
    logger.info("moved assignment %s to %s (%s)", a.id, new_ids, new_day.label)
    return a


def change_assignment_day(
    session: Session, owner_id: str, assignment_id: int, day: DayRange, *, index: Optional[SpatialIndex] = None
) -> BoothAssignment:
    return move_assignment(session, owner_id, assignment_id, day=day, index=index)


def unassign(session: Session, owner_id: str, assignment_id: int) -> None:
    a = get_owned_assignment(session, assignment_id, owner_id)
    if a is None:
        raise NotFoundError("assignment")
    draft_id = a.draft_id
    with draft_lock(draft_id), _transaction(session):
        delete_assignment(session, a.id)
        touch_draft(session, draft_id)
    logger.info("deleted assignment %s from draft %s", assignment_id, draft_id)


def duplicate_draft(session: Session, owner_id: str, draft_id: int) -> Draft:
    """
    Copy a draft with its companies and assignments.

    New companies are matched back to the originals by name; assignments
    keep their booth ids and day under the new company ids.
    """
    original = get_owned_draft(session, draft_id, owner_id)
    if original is None:
        raise NotFoundError("draft")

    with draft_lock(original.id), _transaction(session):
        companies = list_companies(session, original.id)
        assignments = list_assignments(session, original.id)

        copy = Draft(owner_id=owner_id, name=f"{original.name} (Copy)")
        session.add(copy)
        session.flush()

        new_by_name: dict[str, Company] = {}
        for c in companies:
            nc = Company(
                draft_id=copy.id,
                name=c.name,
                days_json=c.days_json,
                sponsorship=c.sponsorship,
                has_queue=c.has_queue,
            )
            session.add(nc)
            new_by_name.setdefault(c.name, nc)
        session.flush()

        company_map = {c.id: new_by_name[c.name].id for c in companies}
        placed: set[int] = set()
        for a in assignments:
            new_company_id = company_map.get(a.company_id)
            # Same-named companies all map to the first copy, which keeps the first placement.
            if new_company_id is None or new_company_id in placed:
                continue
            placed.add(new_company_id)
            session.add(
                BoothAssignment(
                    company_id=new_company_id,
                    draft_id=copy.id,
                    booth_ids_json=a.booth_ids_json,
                    day=a.day,
                )
            )
    session.refresh(copy)
    logger.info(
        "duplicated draft %s into %s (%d companies, %d assignments)", original.id, copy.id, len(companies), len(placed)
    )
    return copy
