# backend/crewtech/services/errors.py
from __future__ import annotations

from typing import Iterable, List, Optional, Union

from pydantic import ValidationError as PydanticValidationError


class MissionError(Exception):
    """Base for every error a mission transition can end with."""

    status_code = 500
    error = "Mission operation failed"

    def __init__(self, message: Optional[str] = None, details: Union[str, List[str], None] = None):
        self.message = message or self.error
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict:
        out = {"error": self.message}
        if self.details:
            out["details"] = self.details
        return out


class AuthorizationError(MissionError):
    status_code = 403
    error = "Forbidden"


class NotFoundError(MissionError):
    status_code = 404
    error = "Mission not found"


class PreconditionError(MissionError):
    status_code = 400
    error = "Mission is not in an allowed status"

    def __init__(self, operation: str, current: str, expected: Iterable[str], reason: Optional[str] = None):
        self.operation = operation
        self.current = current
        self.expected = sorted(expected)
        message = f"Cannot {operation}: mission status is '{current}'"
        if reason:
            message += f" ({reason})"
        if self.expected:
            message += f", expected one of: {', '.join(self.expected)}"
        super().__init__(message)


class ValidationError(MissionError):
    status_code = 400
    error = "Invalid payload"

    def __init__(self, fields: List[str], message: Optional[str] = None):
        self.fields = fields
        super().__init__(message or self.error, details=fields)

    @classmethod
    def from_pydantic(cls, exc: PydanticValidationError, prefix: str = "") -> "ValidationError":
        return cls.from_errors(exc.errors(), prefix)

    @classmethod
    def from_errors(cls, errors: Iterable[dict], prefix: str = "") -> "ValidationError":
        """Flatten a pydantic-style error list into `field: reason` items."""
        items = []
        for err in errors:
            loc = ".".join(str(p) for p in err.get("loc", ()) if p != "__root__")
            if prefix:
                loc = f"{prefix}.{loc}" if loc else prefix
            if err.get("type") == "missing":
                items.append(f"{loc}: missing")
            else:
                msg = err.get("msg", "invalid")
                items.append(f"{loc}: {msg}" if loc else msg)
        return cls(items)


class ConcurrencyError(MissionError):
    status_code = 409
    error = "Mission was modified concurrently"

    def __init__(self, mission_id: str, expected_version: Optional[int], actual_version: Optional[int]):
        self.mission_id = mission_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            details=f"mission {mission_id}: expected version {expected_version}, found {actual_version}",
        )
