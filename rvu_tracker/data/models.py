"""Domain models for procedure codes, visits and favorites.

Decoding accepts the backend's snake_case keys as well as camelCase, and ids
that arrive as either strings or integers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..core.errors import DecodingError


# =============================================================================
# Decoding helpers
# =============================================================================

_MISSING = object()


def _pick(data: Dict[str, Any], *keys: str, default: Any = _MISSING) -> Any:
    """Return the first present key, or default. Raises DecodingError if required."""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    if default is _MISSING:
        raise DecodingError(f"missing required field '{keys[0]}'")
    return default


def _string_or_int(value: Any, key: str) -> str:
    if isinstance(value, bool):
        raise DecodingError(f"expected string or int for '{key}'")
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str):
        return value
    raise DecodingError(f"expected string or int for '{key}'")


def _positive_int(value: Any, key: str) -> int:
    """Whole number >= 1. Fractional values are rejected rather than truncated."""
    if isinstance(value, bool):
        raise DecodingError(f"expected a positive integer for '{key}'")
    if isinstance(value, float) and not value.is_integer():
        raise DecodingError(f"expected a positive integer for '{key}', got {value!r}")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise DecodingError(f"expected a positive integer for '{key}', got {value!r}")
    if number < 1:
        raise DecodingError(f"expected a positive integer for '{key}', got {value!r}")
    return number


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO 8601 timestamp with optional fractional seconds. None on failure."""
    if not isinstance(value, str) or not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


# =============================================================================
# Reference catalog
# =============================================================================

@dataclass(frozen=True)
class ProcedureCode:
    """One HCPCS entry from the bundled reference catalog."""

    code: str
    description: str
    status_code: str
    work_rvu: float


# =============================================================================
# Visits
# =============================================================================

@dataclass
class VisitProcedure:
    id: str
    visit_id: str
    code: str
    description: str = ""
    status_code: str = ""
    work_rvu: float = 0.0
    quantity: int = 1

    @property
    def total_work_rvu(self) -> float:
        return self.work_rvu * self.quantity

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VisitProcedure":
        if not isinstance(data, dict):
            raise DecodingError("procedure must be an object")
        visit_id = _pick(data, "visitId", "visit_id", default="")
        try:
            work_rvu = float(_pick(data, "workRVU", "work_rvu", "workRvu", default=0.0))
        except (TypeError, ValueError) as e:
            raise DecodingError(f"invalid numeric field in procedure: {e}") from e
        quantity = _positive_int(_pick(data, "quantity", default=1), "quantity")
        return cls(
            id=_string_or_int(_pick(data, "id"), "id"),
            visit_id=_string_or_int(visit_id, "visitId") if visit_id != "" else "",
            code=str(_pick(data, "hcpcs", "code")),
            description=str(_pick(data, "description", default="")),
            status_code=str(_pick(data, "statusCode", "status_code", default="")),
            work_rvu=work_rvu,
            quantity=quantity,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "visit_id": self.visit_id,
            "hcpcs": self.code,
            "description": self.description,
            "status_code": self.status_code,
            "work_rvu": self.work_rvu,
            "quantity": self.quantity,
        }


@dataclass
class Visit:
    """A visit as returned by the backend. date stays the literal YYYY-MM-DD string."""

    id: str
    owner_id: str
    date: str
    time: Optional[str] = None
    notes: Optional[str] = None
    is_no_show: bool = False
    procedures: List[VisitProcedure] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def total_work_rvu(self) -> float:
        return sum(p.work_rvu * p.quantity for p in self.procedures)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Visit":
        if not isinstance(data, dict):
            raise DecodingError("visit must be an object")
        procedures = _pick(data, "procedures", default=[])
        if not isinstance(procedures, list):
            raise DecodingError("'procedures' must be a list")
        date_value = _pick(data, "date")
        if not isinstance(date_value, str):
            raise DecodingError("'date' must be a string")
        return cls(
            id=_string_or_int(_pick(data, "id"), "id"),
            owner_id=_string_or_int(_pick(data, "userId", "user_id", "ownerId", "owner_id"), "userId"),
            date=date_value,
            time=_pick(data, "time", default=None),
            notes=_pick(data, "notes", default=None),
            is_no_show=bool(_pick(data, "isNoShow", "is_no_show", default=False)),
            procedures=[VisitProcedure.from_dict(p) for p in procedures],
            created_at=parse_timestamp(_pick(data, "createdAt", "created_at", default=None)),
            updated_at=parse_timestamp(_pick(data, "updatedAt", "updated_at", default=None)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.owner_id,
            "date": self.date,
            "time": self.time,
            "notes": self.notes,
            "is_no_show": self.is_no_show,
            "procedures": [p.to_dict() for p in self.procedures],
            "created_at": format_timestamp(self.created_at),
            "updated_at": format_timestamp(self.updated_at),
        }


# =============================================================================
# Favorites
# =============================================================================

@dataclass
class Favorite:
    """A favorited HCPCS code. Details are looked up from the reference catalog."""

    id: str
    owner_id: str
    code: str
    sort_order: int
    created_at: Optional[datetime] = None
    group_id: Optional[int] = None  # returned by the backend, unused

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Favorite":
        if not isinstance(data, dict):
            raise DecodingError("favorite must be an object")
        try:
            sort_order = int(_pick(data, "sortOrder", "sort_order"))
        except (TypeError, ValueError) as e:
            raise DecodingError(f"invalid sort_order: {e}") from e
        group_id = _pick(data, "groupId", "group_id", default=None)
        if group_id is not None:
            try:
                group_id = int(group_id)
            except (TypeError, ValueError) as e:
                raise DecodingError(f"invalid group_id: {e}") from e
        return cls(
            id=_string_or_int(_pick(data, "id"), "id"),
            owner_id=_string_or_int(_pick(data, "userId", "user_id", "ownerId", "owner_id"), "userId"),
            code=str(_pick(data, "hcpcs", "code")),
            sort_order=sort_order,
            created_at=parse_timestamp(_pick(data, "createdAt", "created_at", default=None)),
            group_id=group_id,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.owner_id,
            "hcpcs": self.code,
            "sort_order": self.sort_order,
            "created_at": format_timestamp(self.created_at),
            "group_id": self.group_id,
        }


# =============================================================================
# Request bodies
# =============================================================================

@dataclass
class ProcedureDraft:
    code: str
    description: str
    status_code: str
    work_rvu: float
    quantity: int = 1

    def to_request(self) -> Dict[str, Any]:
        return {
            "hcpcs": self.code,
            "description": self.description,
            "status_code": self.status_code,
            "work_rvu": self.work_rvu,
            "quantity": self.quantity,
        }


@dataclass
class VisitDraft:
    """Body for creating or updating a visit."""

    date: str
    time: Optional[str] = None
    notes: Optional[str] = None
    is_no_show: bool = False
    procedures: List[ProcedureDraft] = field(default_factory=list)

    def to_request(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "time": self.time,
            "notes": self.notes,
            "procedures": [p.to_request() for p in self.procedures],
            "is_no_show": self.is_no_show,
        }


__all__ = [
    'ProcedureCode',
    'VisitProcedure',
    'Visit',
    'Favorite',
    'ProcedureDraft',
    'VisitDraft',
    'parse_timestamp',
    'format_timestamp',
]
