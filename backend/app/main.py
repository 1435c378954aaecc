from __future__ import annotations

import logging
import os
from typing import Iterator, Optional

from fastapi import Depends, FastAPI, Header, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from sqlalchemy import func
from sqlmodel import Session, select

from booth_layout.layout import sort_booth_ids
from booth_layout.occupancy import Assignment, Day, DayRange, find_conflict, occupied_booth_ids
from booth_layout.placement import contiguous_group_around, find_best_placement, is_contiguous_run
from booth_layout.spatial import SpatialIndex, default_index

from .assignments import assign_company, change_assignment_day, duplicate_draft, move_assignment, unassign
from .db import get_session, init_db
from .errors import DomainError, InvalidInputError, NotFoundError
from .models import BoothAssignment, Company, Draft, _utc_now, dump_days
from .schemas import (
    AssignmentCreate,
    AssignmentDayUpdate,
    AssignmentMove,
    BoothRun,
    CompanyCreate,
    CompanyImport,
    CompanyUpdate,
    ConflictCheckRequest,
    ContiguousRequest,
    DraftCreate,
    DraftUpdate,
    LayoutOut,
    SuggestRequest,
)
from .store import (
    delete_company_cascade,
    delete_draft_cascade,
    get_owned_company,
    get_owned_draft,
    list_assignments,
    list_companies,
    list_domain_assignments,
    touch_draft,
)
from .transfer import export_assignments_csv, import_companies

logger = logging.getLogger(__name__)

app = FastAPI(title="Booth Layout Planner API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in os.environ.get("BOOTH_PLANNER_CORS_ORIGINS", "*").split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def _startup() -> None:
    init_db()
    default_index()


def _session() -> Iterator[Session]:
    with get_session() as session:
        yield session


def _index() -> SpatialIndex:
    return default_index()


def _owner(x_owner_id: Optional[str] = Header(default=None)) -> str:
    # Authentication happens upstream; we only need a stable owner key.
    if not x_owner_id:
        raise HTTPException(status_code=401, detail="missing X-Owner-Id header")
    return x_owner_id


def _http_error(e: DomainError) -> HTTPException:
    return HTTPException(status_code=e.status_code, detail=e.to_detail())


def _require_draft(session: Session, draft_id: int, owner: str) -> Draft:
    draft = get_owned_draft(session, draft_id, owner)
    if not draft:
        raise _http_error(NotFoundError("draft"))
    return draft


def _draft_dict(draft: Draft) -> dict:
    return {
        "id": draft.id,
        "name": draft.name,
        "created_at": draft.created_at.isoformat(),
        "updated_at": draft.updated_at.isoformat(),
    }


@app.get("/health")
def health() -> dict:
    return {"ok": True}


# --- layout -----------------------------------------------------------------


@app.get("/layout", response_model=LayoutOut)
def get_layout(index: SpatialIndex = Depends(_index)) -> LayoutOut:
    width, height = index.canvas_dimensions()
    return LayoutOut(width=width, height=height, booths=[b.to_dict() for b in index.booths])


@app.get("/layout/locate")
def locate(x: float, y: float, index: SpatialIndex = Depends(_index)) -> Optional[dict]:
    hit = index.segment_at(x, y)
    if hit is None:
        return None
    return {"row": hit[0], "segment": hit[1]}


@app.post("/layout/suggest")
def suggest_placement(payload: SuggestRequest, index: SpatialIndex = Depends(_index)) -> dict:
    group = find_best_placement(
        index, payload.row.upper(), payload.segment, payload.count, payload.target_y, set(payload.occupied)
    )
    return {"booth_ids": group}


@app.post("/layout/contiguous")
def contiguous(payload: ContiguousRequest, index: SpatialIndex = Depends(_index)) -> dict:
    return {"booth_ids": contiguous_group_around(index, payload.booth_id, payload.count)}


@app.post("/layout/check-run")
def check_run(payload: BoothRun, index: SpatialIndex = Depends(_index)) -> dict:
    return {"contiguous": is_contiguous_run(index, payload.booth_ids)}


@app.post("/layout/check-conflict")
def check_conflict(payload: ConflictCheckRequest) -> dict:
    existing = [
        Assignment(
            id=e.id,
            company_id=e.company_id,
            booth_ids=tuple(e.booth_ids),
            day=DayRange.from_value(e.day),
            company_name=e.company_name,
        )
        for e in payload.existing
    ]
    conflict = find_conflict(payload.booth_ids, DayRange.from_value(payload.day), existing, payload.exclude_id)
    return {"conflict": conflict.to_dict() if conflict else None}


# --- drafts -----------------------------------------------------------------


@app.get("/drafts")
def list_drafts(owner: str = Depends(_owner), session: Session = Depends(_session)) -> list[dict]:
    drafts = session.exec(select(Draft).where(Draft.owner_id == owner).order_by(Draft.updated_at.desc())).all()
    ids = [d.id for d in drafts]
    company_counts: dict[int, int] = {}
    assignment_counts: dict[int, int] = {}
    if ids:
        company_counts = dict(
            session.exec(
                select(Company.draft_id, func.count(Company.id)).where(Company.draft_id.in_(ids)).group_by(Company.draft_id)
            ).all()
        )
        assignment_counts = dict(
            session.exec(
                select(BoothAssignment.draft_id, func.count(BoothAssignment.id))
                .where(BoothAssignment.draft_id.in_(ids))
                .group_by(BoothAssignment.draft_id)
            ).all()
        )
    return [
        {
            **_draft_dict(d),
            "companies": company_counts.get(d.id, 0),
            "assignments": assignment_counts.get(d.id, 0),
        }
        for d in drafts
    ]


@app.post("/drafts", status_code=201)
def create_draft(payload: DraftCreate, owner: str = Depends(_owner), session: Session = Depends(_session)) -> dict:
    d = Draft(owner_id=owner, name=payload.name.strip() or "Untitled Draft")
    session.add(d)
    session.commit()
    session.refresh(d)
    logger.info("created draft %s", d.id)
    return _draft_dict(d)


@app.get("/drafts/{draft_id}")
def get_draft(draft_id: int, owner: str = Depends(_owner), session: Session = Depends(_session)) -> dict:
    draft = _require_draft(session, draft_id, owner)
    return {
        **_draft_dict(draft),
        "companies": [c.to_dict() for c in list_companies(session, draft_id)],
        "assignments": [a.to_dict() for a in list_assignments(session, draft_id)],
    }


@app.put("/drafts/{draft_id}")
def rename_draft(
    draft_id: int, payload: DraftUpdate, owner: str = Depends(_owner), session: Session = Depends(_session)
) -> dict:
    draft = _require_draft(session, draft_id, owner)
    draft.name = payload.name
    draft.updated_at = _utc_now()
    session.add(draft)
    session.commit()
    return {"updated": True}


@app.delete("/drafts/{draft_id}")
def delete_draft(draft_id: int, owner: str = Depends(_owner), session: Session = Depends(_session)) -> dict:
    _require_draft(session, draft_id, owner)
    delete_draft_cascade(session, draft_id)
    session.commit()
    logger.info("deleted draft %s", draft_id)
    return {"deleted": True}


@app.post("/drafts/{draft_id}/duplicate", status_code=201)
def duplicate(draft_id: int, owner: str = Depends(_owner), session: Session = Depends(_session)) -> dict:
    try:
        copy = duplicate_draft(session, owner, draft_id)
    except DomainError as e:
        raise _http_error(e) from e
    return {
        **_draft_dict(copy),
        "companies": [c.to_dict() for c in list_companies(session, copy.id)],
        "assignments": [a.to_dict() for a in list_assignments(session, copy.id)],
    }


@app.get("/drafts/{draft_id}/occupancy")
def draft_occupancy(
    draft_id: int, day: Day, owner: str = Depends(_owner), session: Session = Depends(_session)
) -> dict:
    _require_draft(session, draft_id, owner)
    occupied = occupied_booth_ids(list_domain_assignments(session, draft_id), day)
    return {"day": day.value, "booth_ids": sort_booth_ids(occupied)}


@app.get("/drafts/{draft_id}/unassigned")
def unassigned_companies(
    draft_id: int, day: Day, owner: str = Depends(_owner), session: Session = Depends(_session)
) -> list[dict]:
    _require_draft(session, draft_id, owner)
    placed = {a.company_id for a in list_assignments(session, draft_id)}
    return [c.to_dict() for c in list_companies(session, draft_id) if c.id not in placed and day in c.days()]


# --- companies --------------------------------------------------------------


@app.get("/drafts/{draft_id}/companies")
def get_companies(draft_id: int, owner: str = Depends(_owner), session: Session = Depends(_session)) -> list[dict]:
    _require_draft(session, draft_id, owner)
    return [c.to_dict() for c in list_companies(session, draft_id)]


@app.post("/drafts/{draft_id}/companies", status_code=201)
def create_company(
    draft_id: int, payload: CompanyCreate, owner: str = Depends(_owner), session: Session = Depends(_session)
) -> dict:
    _require_draft(session, draft_id, owner)
    c = Company(
        draft_id=draft_id,
        name=payload.name.strip(),
        days_json=dump_days(payload.days),
        sponsorship=payload.sponsorship,
        has_queue=payload.has_queue,
    )
    session.add(c)
    touch_draft(session, draft_id)
    session.commit()
    session.refresh(c)
    return c.to_dict()


@app.post("/drafts/{draft_id}/companies/import")
def import_company_csv(
    draft_id: int, payload: CompanyImport, owner: str = Depends(_owner), session: Session = Depends(_session)
) -> dict:
    _require_draft(session, draft_id, owner)
    result = import_companies(session, draft_id, payload.csv)
    return {"success": True, **result.to_dict()}


@app.put("/companies/{company_id}")
def update_company(
    company_id: int, payload: CompanyUpdate, owner: str = Depends(_owner), session: Session = Depends(_session)
) -> dict:
    company = get_owned_company(session, company_id, owner)
    if not company:
        raise _http_error(NotFoundError("company"))
    if payload.name is not None:
        company.name = payload.name.strip()
    if payload.days is not None:
        company.days_json = dump_days(payload.days)
    if payload.sponsorship is not None:
        company.sponsorship = payload.sponsorship
    if payload.has_queue is not None:
        company.has_queue = payload.has_queue
    session.add(company)
    touch_draft(session, company.draft_id)
    session.commit()
    session.refresh(company)
    return company.to_dict()


@app.delete("/companies/{company_id}")
def delete_company(company_id: int, owner: str = Depends(_owner), session: Session = Depends(_session)) -> dict:
    company = get_owned_company(session, company_id, owner)
    if not company:
        raise _http_error(NotFoundError("company"))
    draft_id = company.draft_id
    delete_company_cascade(session, company_id)
    touch_draft(session, draft_id)
    session.commit()
    return {"deleted": True}


# --- assignments ------------------------------------------------------------


@app.post("/assignments", status_code=201)
def create_assignment(
    payload: AssignmentCreate,
    owner: str = Depends(_owner),
    session: Session = Depends(_session),
    index: SpatialIndex = Depends(_index),
) -> dict:
    try:
        a = assign_company(
            session,
            owner,
            company_id=payload.company_id,
            draft_id=payload.draft_id,
            booth_ids=payload.booth_ids,
            day=DayRange.from_value(payload.day),
            index=index,
        )
    except DomainError as e:
        raise _http_error(e) from e
    return a.to_dict()


@app.put("/assignments/{assignment_id}/move")
def move(
    assignment_id: int,
    payload: AssignmentMove,
    owner: str = Depends(_owner),
    session: Session = Depends(_session),
    index: SpatialIndex = Depends(_index),
) -> dict:
    day = DayRange.from_value(payload.day) if "day" in payload.model_fields_set else None
    if payload.booth_ids is None and day is None:
        raise _http_error(InvalidInputError("nothing to change: send booth_ids and/or day"))
    try:
        a = move_assignment(session, owner, assignment_id, booth_ids=payload.booth_ids, day=day, index=index)
    except DomainError as e:
        raise _http_error(e) from e
    return a.to_dict()


@app.put("/assignments/{assignment_id}/day")
def change_day(
    assignment_id: int,
    payload: AssignmentDayUpdate,
    owner: str = Depends(_owner),
    session: Session = Depends(_session),
    index: SpatialIndex = Depends(_index),
) -> dict:
    try:
        a = change_assignment_day(session, owner, assignment_id, DayRange.from_value(payload.day), index=index)
    except DomainError as e:
        raise _http_error(e) from e
    return a.to_dict()


@app.delete("/assignments/{assignment_id}")
def delete_assignment(assignment_id: int, owner: str = Depends(_owner), session: Session = Depends(_session)) -> dict:
    try:
        unassign(session, owner, assignment_id)
    except DomainError as e:
        raise _http_error(e) from e
    return {"deleted": True}


# --- export -----------------------------------------------------------------


@app.get("/drafts/{draft_id}/assignments.csv")
def export_csv(
    draft_id: int, day: Optional[Day] = None, owner: str = Depends(_owner), session: Session = Depends(_session)
) -> Response:
    draft = _require_draft(session, draft_id, owner)
    return Response(
        content=export_assignments_csv(session, draft_id, day),
        media_type="text/csv",
        headers={"content-disposition": f'attachment; filename="{draft.name}-Assignments.csv"'},
    )
