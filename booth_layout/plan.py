from __future__ import annotations

import re
from dataclasses import dataclass, replace
from typing import Iterable, Optional, Union

from .occupancy import (
    Assignment,
    Day,
    DayRange,
    PlacementError,
    Sponsorship,
    check_day_eligible,
    find_conflict,
    occupied_booth_ids,
    validate_booth_selection,
)
from .placement import contiguous_group_around
from .spatial import SpatialIndex, default_index


class PlanError(PlacementError):
    pass


_ID_SUFFIX_RE = re.compile(r"\d+$")


def _coerce(enum_cls, value):
    if isinstance(value, enum_cls):
        return value
    return enum_cls(str(value).strip().upper())


@dataclass
class PlanCompany:
    id: str
    name: str
    sponsorship: Sponsorship
    days: tuple[Day, ...]
    has_queue: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "sponsorship": self.sponsorship.value,
            "days": [d.value for d in self.days],
            "has_queue": self.has_queue,
        }


class BoothPlan:
    """
    One draft's companies and booth assignments, held in memory.

    Applies the same checks as the server so a caller can reject a bad
    placement before sending it. Every mutation either succeeds fully or
    raises PlanError and leaves the plan unchanged.
    """

    def __init__(self, name: str = "Untitled Draft", *, index: Optional[SpatialIndex] = None):
        self.name = name
        self.index = index or default_index()
        self.companies: dict[str, PlanCompany] = {}
        self.assignments: list[Assignment] = []
        self._next_id = 1

    def _new_id(self, prefix: str) -> str:
        value = f"{prefix}{self._next_id}"
        self._next_id += 1
        return value

    def company(self, ref: str) -> PlanCompany:
        if ref in self.companies:
            return self.companies[ref]
        for c in self.companies.values():
            if c.name == ref:
                return c
        raise PlanError(f"company not found: {ref!r}")

    def add_company(
        self,
        name: str,
        sponsorship: Union[Sponsorship, str],
        days: Iterable[Union[Day, str]] = (Day.WEDNESDAY, Day.THURSDAY),
        *,
        has_queue: bool = False,
    ) -> PlanCompany:
        name = (name or "").strip()
        if not name:
            raise PlanError("company name must be a non-empty string")
        if any(c.name == name for c in self.companies.values()):
            raise PlanError(f"company already exists: {name!r}")
        try:
            tier = _coerce(Sponsorship, sponsorship)
            day_set = tuple(sorted({_coerce(Day, d) for d in days}, key=list(Day).index))
        except ValueError as e:
            raise PlanError(str(e)) from e
        if not day_set:
            raise PlanError("company must attend at least one day")
        company = PlanCompany(id=self._new_id("c"), name=name, sponsorship=tier, days=day_set, has_queue=has_queue)
        self.companies[company.id] = company
        return company

    def assignment_for(self, ref: str) -> Optional[Assignment]:
        company = self.company(ref)
        return next((a for a in self.assignments if a.company_id == company.id), None)

    def _check(self, company: PlanCompany, booth_ids: list[str], day: DayRange, exclude: object) -> list[str]:
        try:
            ids = validate_booth_selection(self.index, booth_ids, company.sponsorship)
            check_day_eligible(company.days, day)
        except PlacementError as e:
            raise PlanError(str(e)) from e
        conflict = find_conflict(ids, day, self._with_names(), exclude_assignment_id=exclude)
        if conflict is not None:
            raise PlanError(conflict.message)
        return ids

    def _with_names(self) -> list[Assignment]:
        return [replace(a, company_name=self.companies[a.company_id].name) for a in self.assignments]

    def assign(self, ref: str, booth_ids: Iterable[str], day: DayRange = DayRange()) -> Assignment:
        """Place a company, replacing any booths it already holds."""
        company = self.company(ref)
        existing = self.assignment_for(company.id)
        ids = self._check(company, list(booth_ids), day, existing.id if existing else None)
        if existing is not None:
            updated = replace(existing, booth_ids=tuple(ids), day=day)
            self.assignments[self.assignments.index(existing)] = updated
            return updated
        created = Assignment(id=self._new_id("a"), company_id=company.id, booth_ids=tuple(ids), day=day)
        self.assignments.append(created)
        return created

    def place_around(self, ref: str, anchor_booth_id: str, day: DayRange = DayRange()) -> Assignment:
        company = self.company(ref)
        group = contiguous_group_around(self.index, anchor_booth_id, company.sponsorship.booth_count)
        if group is None:
            raise PlanError(f"no room for {company.sponsorship.booth_count} booth(s) around {anchor_booth_id}")
        return self.assign(company.id, group, day)

    def move(self, ref: str, booth_ids: Optional[Iterable[str]] = None, day: Optional[DayRange] = None) -> Assignment:
        company = self.company(ref)
        current = self.assignment_for(company.id)
        if current is None:
            raise PlanError(f"{company.name} has no booths to move")
        ids = list(booth_ids) if booth_ids is not None else list(current.booth_ids)
        new_day = day if day is not None else current.day
        ids = self._check(company, ids, new_day, current.id)
        updated = replace(current, booth_ids=tuple(ids), day=new_day)
        self.assignments[self.assignments.index(current)] = updated
        return updated

    def change_day(self, ref: str, day: DayRange) -> Assignment:
        return self.move(ref, day=day)

    def unassign(self, ref: str) -> bool:
        current = self.assignment_for(ref)
        if current is None:
            return False
        self.assignments.remove(current)
        return True

    def occupied(self, day: Union[Day, str]) -> set[str]:
        return occupied_booth_ids(self.assignments, day)

    def occupants(self, day: Union[Day, str]) -> dict[str, PlanCompany]:
        out: dict[str, PlanCompany] = {}
        for a in self.assignments:
            if a.day.covers(day):
                for bid in a.booth_ids:
                    out[bid] = self.companies[a.company_id]
        return out

    def unassigned_companies(self, day: Union[Day, str]) -> list[PlanCompany]:
        placed = {a.company_id for a in self.assignments}
        return [c for c in self.companies.values() if c.id not in placed and Day(day) in c.days]

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "next_id": self._next_id,
            "companies": [c.to_dict() for c in self.companies.values()],
            "assignments": [
                {
                    "id": a.id,
                    "company_id": a.company_id,
                    "booth_ids": list(a.booth_ids),
                    "day": a.day.to_value(),
                }
                for a in self.assignments
            ],
        }

    @classmethod
    def from_dict(cls, data: dict, *, index: Optional[SpatialIndex] = None) -> "BoothPlan":
        try:
            plan = cls(name=str(data.get("name", "Untitled Draft")), index=index)
            for c in data.get("companies", []):
                company = PlanCompany(
                    id=str(c["id"]),
                    name=str(c["name"]),
                    sponsorship=Sponsorship(c["sponsorship"]),
                    days=tuple(Day(d) for d in c["days"]),
                    has_queue=bool(c.get("has_queue", False)),
                )
                if company.id in plan.companies:
                    raise PlanError(f"duplicate company id {company.id!r}")
                plan.companies[company.id] = company
            for a in data.get("assignments", []):
                plan.assignments.append(
                    Assignment(
                        id=str(a["id"]),
                        company_id=str(a["company_id"]),
                        booth_ids=tuple(a["booth_ids"]),
                        day=DayRange.from_value(a.get("day")),
                    )
                )
            next_id = data.get("next_id")
            plan._next_id = int(next_id) if next_id is not None else plan._highest_id() + 1
        except (KeyError, TypeError, ValueError, PlacementError) as e:
            raise PlanError(f"invalid booth plan data: {e}") from e
        plan._check_loaded()
        return plan

    def _highest_id(self) -> int:
        numbers = [0]
        for ref in [*self.companies, *(a.id for a in self.assignments)]:
            m = _ID_SUFFIX_RE.search(str(ref))
            if m:
                numbers.append(int(m.group(0)))
        return max(numbers)

    def _check_loaded(self) -> None:
        """Re-run the write-time checks over assignments read from a file."""
        seen_ids: set[object] = set()
        placed: set[str] = set()
        loaded: list[Assignment] = []
        for a in self.assignments:
            if a.id in seen_ids:
                raise PlanError(f"duplicate assignment id {a.id!r}")
            company = self.companies.get(a.company_id)
            if company is None:
                raise PlanError(f"assignment {a.id!r} refers to unknown company {a.company_id!r}")
            if company.id in placed:
                raise PlanError(f"{company.name} has more than one assignment")
            unknown = [b for b in a.booth_ids if b not in self.index]
            if unknown:
                raise PlanError(f"assignment {a.id!r} has unknown booth ids: {', '.join(unknown)}")
            conflict = find_conflict(a.booth_ids, a.day, loaded)
            if conflict is not None:
                raise PlanError(f"assignment {a.id!r} for {company.name}: {conflict.message}")
            seen_ids.add(a.id)
            placed.add(company.id)
            loaded.append(replace(a, company_name=company.name))
        if self._next_id <= self._highest_id():
            raise PlanError(f"next_id {self._next_id} collides with existing ids")
