"""
errors.py — failure taxonomy for the Met Museum fetching layer.

Upstream calls never raise past their caller. Instead they return a
FetchFailure, which callers treat as "no data":

- NOT_FOUND       -> the object id has no upstream record (404)
- SERVER_ERROR    -> upstream answered 5xx
- UNAVAILABLE     -> network error, timeout or any other non-2xx answer
- MALFORMED       -> body was not JSON or not the expected shape
- INVALID_RECORD  -> object exists but has no usable title/image

Exceptions are reserved for the few public seams that promise a value
(e.g. MetProxy.get_object) and for cache backends.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict


# ============================================================
# Failure kinds
# ============================================================

class FailureKind(str, Enum):
    NOT_FOUND = "not_found"
    SERVER_ERROR = "server_error"
    UNAVAILABLE = "unavailable"
    MALFORMED = "malformed"
    INVALID_RECORD = "invalid_record"


@dataclass(frozen=True)
class FetchFailure:
    """A typed "no data" result returned instead of raising."""

    kind: FailureKind
    detail: str = ""
    status: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "detail": self.detail, "status": self.status}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FetchFailure":
        try:
            kind = FailureKind(data.get("kind"))
        except ValueError:
            kind = FailureKind.UNAVAILABLE
        return cls(kind=kind, detail=str(data.get("detail") or ""), status=int(data.get("status") or 0))


# ============================================================
# Exceptions
# ============================================================

class MetAPIError(RuntimeError):
    """Raised when a public seam cannot produce the value it promises."""


class ObjectNotFound(MetAPIError):
    """Raised by single-object lookups when no usable record exists."""

    def __init__(self, object_id: int, failure: FetchFailure) -> None:
        self.object_id = object_id
        self.failure = failure
        super().__init__(f"Met object {object_id} unavailable ({failure.kind.value})")


class CacheUnavailable(RuntimeError):
    """Raised by cache backends when the underlying storage fails."""
