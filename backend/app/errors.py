"""Domain error codes for the booth planner API."""

from __future__ import annotations

from enum import Enum

from booth_layout.occupancy import Conflict


class ErrorCode(Enum):
    """Domain error codes."""

    NOT_FOUND = "NOT_FOUND"
    BOOTH_CONFLICT = "BOOTH_CONFLICT"
    INVALID_INPUT = "INVALID_INPUT"


class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    status_code = 400

    def __init__(self, code: ErrorCode, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"

    def to_detail(self) -> dict:
        return {"code": self.code.value, "message": self.message}


class NotFoundError(DomainError):
    """Missing record, or one that belongs to another owner."""

    status_code = 404

    def __init__(self, what: str) -> None:
        super().__init__(code=ErrorCode.NOT_FOUND, message=f"{what} not found")
        self.what = what


class InvalidInputError(DomainError):
    """Request is well-formed JSON but cannot be applied."""

    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(code=ErrorCode.INVALID_INPUT, message=message)


class ConflictError(DomainError):
    """Requested booths are already held on an overlapping day."""

    status_code = 409

    def __init__(self, conflict: Conflict) -> None:
        super().__init__(code=ErrorCode.BOOTH_CONFLICT, message=conflict.message)
        self.conflict = conflict

    def to_detail(self) -> dict:
        detail = super().to_detail()
        detail.update(
            booth_id=self.conflict.booth_id,
            assignment_id=self.conflict.assignment_id,
            company_id=self.conflict.company_id,
            company_name=self.conflict.company_name,
        )
        return detail
