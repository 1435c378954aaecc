from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from booth_layout.occupancy import Assignment, Day, DayRange, Sponsorship


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Draft(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    owner_id: str = Field(index=True)
    name: str = "Untitled Draft"

    created_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime = Field(default_factory=_utc_now)


class Company(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    draft_id: int = Field(index=True, foreign_key="draft.id")
    name: str

    # JSON list of day names: ["WEDNESDAY", "THURSDAY"]
    days_json: str = '["WEDNESDAY", "THURSDAY"]'
    sponsorship: Sponsorship = Sponsorship.BASIC
    has_queue: bool = False

    created_at: datetime = Field(default_factory=_utc_now)

    def days(self) -> list[Day]:
        return [Day(d) for d in json.loads(self.days_json)]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "draft_id": self.draft_id,
            "name": self.name,
            "days": [d.value for d in self.days()],
            "sponsorship": self.sponsorship.value,
            "has_queue": self.has_queue,
        }


def dump_days(days) -> str:
    ordered = sorted({Day(d) for d in days}, key=list(Day).index)
    return json.dumps([d.value for d in ordered])


class BoothAssignment(SQLModel, table=True):
    __table_args__ = (UniqueConstraint("company_id", "draft_id", name="uq_assignment_company_draft"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    company_id: int = Field(index=True, foreign_key="company.id")
    draft_id: int = Field(index=True, foreign_key="draft.id")

    # JSON list of booth ids: ["G-14", "G-15"]
    booth_ids_json: str
    # NULL means the booths are held on both days.
    day: Optional[Day] = None

    updated_at: datetime = Field(default_factory=_utc_now)

    def booth_ids(self) -> list[str]:
        return list(json.loads(self.booth_ids_json))

    def day_range(self) -> DayRange:
        return DayRange.from_value(self.day)

    def to_domain(self, company_name: Optional[str] = None) -> Assignment:
        return Assignment(
            id=self.id,
            company_id=self.company_id,
            booth_ids=tuple(self.booth_ids()),
            day=self.day_range(),
            company_name=company_name,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "company_id": self.company_id,
            "draft_id": self.draft_id,
            "booth_ids": self.booth_ids(),
            "day": self.day.value if self.day is not None else None,
        }
