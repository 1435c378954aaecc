from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import AbstractSet, Iterable, Optional, Protocol, Union

from .layout import display_booth_id
from .spatial import SpatialIndex


class PlacementError(Exception):
    pass


class Day(str, Enum):
    WEDNESDAY = "WEDNESDAY"
    THURSDAY = "THURSDAY"

    @property
    def label(self) -> str:
        return self.value.capitalize()


class Sponsorship(str, Enum):
    MAROON = "MAROON"
    DIAMOND = "DIAMOND"
    GOLD = "GOLD"
    SILVER = "SILVER"
    BASIC = "BASIC"

    @property
    def booth_count(self) -> int:
        return _BOOTHS_PER_TIER[self]

    @property
    def label(self) -> str:
        return self.value.capitalize()


_BOOTHS_PER_TIER = {
    Sponsorship.MAROON: 4,
    Sponsorship.DIAMOND: 3,
    Sponsorship.GOLD: 2,
    Sponsorship.SILVER: 1,
    Sponsorship.BASIC: 1,
}


def required_booths(tier: Union[Sponsorship, str]) -> int:
    return Sponsorship(tier).booth_count


@dataclass(frozen=True)
class DayRange:
    """
    Which show days an assignment holds its booths for.

    `day=None` means both days; use `DayRange.both()` / `DayRange.only(day)`.
    """

    day: Optional[Day] = None

    @classmethod
    def both(cls) -> "DayRange":
        return cls(None)

    @classmethod
    def only(cls, day: Union[Day, str]) -> "DayRange":
        return cls(Day(day))

    @classmethod
    def from_value(cls, value: Union["DayRange", Day, str, None]) -> "DayRange":
        if isinstance(value, DayRange):
            return value
        if value is None:
            return cls.both()
        text = str(value.value if isinstance(value, Day) else value).strip().upper()
        if text in ("", "BOTH"):
            return cls.both()
        try:
            return cls.only(text)
        except ValueError as e:
            raise PlacementError(f"unknown day: {value!r}") from e

    @property
    def is_both(self) -> bool:
        return self.day is None

    @property
    def days(self) -> tuple[Day, ...]:
        return tuple(Day) if self.day is None else (self.day,)

    def covers(self, day: Union[Day, str]) -> bool:
        return self.day is None or self.day == Day(day)

    def overlaps(self, other: "DayRange") -> bool:
        if self.day is None or other.day is None:
            return True
        return self.day == other.day

    def to_value(self) -> Optional[str]:
        return None if self.day is None else self.day.value

    @property
    def label(self) -> str:
        return " ".join(d.label for d in self.days)


def days_overlap(a: DayRange, b: DayRange) -> bool:
    return a.overlaps(b)


class AssignmentLike(Protocol):
    id: object
    company_id: object
    booth_ids: tuple[str, ...]
    day: DayRange


@dataclass(frozen=True)
class Assignment:
    id: object
    company_id: object
    booth_ids: tuple[str, ...]
    day: DayRange = DayRange()
    company_name: Optional[str] = None


@dataclass(frozen=True)
class Conflict:
    booth_id: str
    assignment_id: object
    company_id: object
    company_name: Optional[str] = None

    @property
    def message(self) -> str:
        booth = display_booth_id(self.booth_id)
        if self.company_name:
            return f"Booth conflict: {booth} is assigned to {self.company_name}"
        return f"Booth conflict: {booth} is already assigned"

    def to_dict(self) -> dict:
        return {
            "booth_id": self.booth_id,
            "assignment_id": self.assignment_id,
            "company_id": self.company_id,
            "company_name": self.company_name,
            "message": self.message,
        }


def occupied_booth_ids(assignments: Iterable[AssignmentLike], day: Union[Day, str]) -> set[str]:
    out: set[str] = set()
    for a in assignments:
        if a.day.covers(day):
            out.update(a.booth_ids)
    return out


def booth_occupant(
    assignments: Iterable[AssignmentLike], booth_id: str, day: Union[Day, str]
) -> Optional[AssignmentLike]:
    for a in assignments:
        if a.day.covers(day) and booth_id in a.booth_ids:
            return a
    return None


def find_conflict(
    candidate_booth_ids: Iterable[str],
    candidate_day: DayRange,
    existing: Iterable[AssignmentLike],
    exclude_assignment_id: object = None,
) -> Optional[Conflict]:
    """
    First booth that `existing` already holds on an overlapping day.

    Assignments are scanned in the given order, each one's booths in stored
    order. `exclude_assignment_id` skips the assignment being moved.
    """
    wanted: AbstractSet[str] = frozenset(candidate_booth_ids)
    for a in existing:
        if exclude_assignment_id is not None and a.id == exclude_assignment_id:
            continue
        if not a.day.overlaps(candidate_day):
            continue
        for bid in a.booth_ids:
            if bid in wanted:
                return Conflict(
                    booth_id=bid,
                    assignment_id=a.id,
                    company_id=a.company_id,
                    company_name=getattr(a, "company_name", None),
                )
    return None


def assignment_day_for(company_days: Iterable[Union[Day, str]], active_day: Union[Day, str]) -> DayRange:
    """Two-day companies are placed for both days; everyone else for the day on screen."""
    days = {Day(d) for d in company_days}
    if days == set(Day):
        return DayRange.both()
    return DayRange.only(active_day)


def check_day_eligible(company_days: Iterable[Union[Day, str]], day: DayRange) -> None:
    registered = {Day(d) for d in company_days}
    missing = [d for d in day.days if d not in registered]
    if missing:
        names = ", ".join(d.label for d in missing)
        raise PlacementError(f"company is not registered for {names}")


def validate_booth_selection(
    index: SpatialIndex,
    booth_ids: Iterable[str],
    tier: Union[Sponsorship, str],
) -> list[str]:
    ids = list(booth_ids)
    if not ids:
        raise PlacementError("booth_ids must not be empty")
    if len(set(ids)) != len(ids):
        raise PlacementError("booth_ids contains duplicates")
    unknown = [b for b in ids if b not in index]
    if unknown:
        raise PlacementError(f"unknown booth ids: {', '.join(unknown[:10])}")
    sponsorship = Sponsorship(tier)
    if len(ids) != sponsorship.booth_count:
        raise PlacementError(
            f"{sponsorship.label} sponsorship needs {sponsorship.booth_count} booth(s), got {len(ids)}"
        )
    return ids
