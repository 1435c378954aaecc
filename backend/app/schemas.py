from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from booth_layout.layout import LayoutError, normalize_booth_id
from booth_layout.occupancy import Day, Sponsorship


def _normalize_ids(v: list[str]) -> list[str]:
    # Accept "G14" as well as "G-14"; store the hyphenated form.
    try:
        return [normalize_booth_id(b) for b in v]
    except LayoutError as e:
        raise ValueError(str(e)) from e


class DraftCreate(BaseModel):
    name: str = "Untitled Draft"


class DraftUpdate(BaseModel):
    name: str = Field(min_length=1)


class CompanyCreate(BaseModel):
    name: str = Field(min_length=1)
    days: list[Day] = Field(default_factory=lambda: [Day.WEDNESDAY, Day.THURSDAY], min_length=1)
    sponsorship: Sponsorship = Sponsorship.BASIC
    has_queue: bool = False


class CompanyUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    days: Optional[list[Day]] = Field(default=None, min_length=1)
    sponsorship: Optional[Sponsorship] = None
    has_queue: Optional[bool] = None


class AssignmentCreate(BaseModel):
    company_id: int
    draft_id: int
    booth_ids: list[str] = Field(min_length=1)
    # null means both days
    day: Optional[Day] = None

    @field_validator("booth_ids")
    @classmethod
    def _ids(cls, v: list[str]) -> list[str]:
        return _normalize_ids(v)


class AssignmentMove(BaseModel):
    booth_ids: Optional[list[str]] = Field(default=None, min_length=1)
    # Only applied when present in the payload; explicit null means both days.
    day: Optional[Day] = None

    @field_validator("booth_ids")
    @classmethod
    def _ids(cls, v: Optional[list[str]]) -> Optional[list[str]]:
        return None if v is None else _normalize_ids(v)


class AssignmentDayUpdate(BaseModel):
    day: Optional[Day] = None


class SuggestRequest(BaseModel):
    row: str
    segment: int = Field(ge=1, le=4)
    count: int = Field(ge=1)
    target_y: float
    occupied: list[str] = Field(default_factory=list)

    @field_validator("occupied")
    @classmethod
    def _ids(cls, v: list[str]) -> list[str]:
        return _normalize_ids(v)


class ContiguousRequest(BaseModel):
    booth_id: str
    count: int = Field(ge=1)

    @field_validator("booth_id")
    @classmethod
    def _id(cls, v: str) -> str:
        return _normalize_ids([v])[0]


class BoothRun(BaseModel):
    booth_ids: list[str] = Field(min_length=1)

    @field_validator("booth_ids")
    @classmethod
    def _ids(cls, v: list[str]) -> list[str]:
        return _normalize_ids(v)


class ExistingAssignment(BaseModel):
    id: int | str
    company_id: int | str
    booth_ids: list[str]
    day: Optional[Day] = None
    company_name: Optional[str] = None

    @field_validator("booth_ids")
    @classmethod
    def _ids(cls, v: list[str]) -> list[str]:
        return _normalize_ids(v)


class ConflictCheckRequest(BaseModel):
    booth_ids: list[str] = Field(min_length=1)
    day: Optional[Day] = None
    existing: list[ExistingAssignment] = Field(default_factory=list)
    exclude_id: Optional[int | str] = None

    @field_validator("booth_ids")
    @classmethod
    def _ids(cls, v: list[str]) -> list[str]:
        return _normalize_ids(v)


class BoothOut(BaseModel):
    id: str
    row: str
    number: int
    segment: int
    x: float
    y: float
    width: float
    height: float


class LayoutOut(BaseModel):
    width: float
    height: float
    booths: list[BoothOut]


class CompanyImport(BaseModel):
    # Raw CSV text: company name in column 0, registration string in column 1.
    csv: str
