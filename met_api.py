"""
met_api.py — Metropolitan Museum of Art Collection API client

Thin, cache-free adapter over the public Met API:

- search(query, has_images) -> SearchResult | FetchFailure
- search_by_period(department_ids, date_begin, date_end, has_images) -> SearchResult | FetchFailure
- get_object_payload(object_id) -> raw dict | FetchFailure
- get_object(object_id) -> ArtworkRecord | FetchFailure

Data source:
- https://collectionapi.metmuseum.org/public/collection/v1

Notes:
- No API key is used, but the API may reject requests without a User-Agent.
- Every failure (network, non-2xx, bad JSON) is logged and returned as a
  FetchFailure; nothing is raised past the caller.
- Caching is the caller's job (see met_proxy.py).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import requests

from artwork import ArtworkRecord, normalize_met_object
from errors import FailureKind, FetchFailure

logger = logging.getLogger(__name__)


# ============================================================
# Constants
# ============================================================

MET_API_BASE = "https://collectionapi.metmuseum.org/public/collection/v1"

SEARCH_TIMEOUT = 15
OBJECT_TIMEOUT = 10
BATCH_OBJECT_TIMEOUT = 5

USER_AGENT = "MetTimelineExplorer/1.0 (+https://metmuseum.github.io/)"


# ============================================================
# Search result
# ============================================================

@dataclass(frozen=True)
class SearchResult:
    total: int
    object_ids: Tuple[int, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {"total": self.total, "objectIDs": list(self.object_ids)}

    @classmethod
    def from_payload(cls, payload: Any) -> Optional["SearchResult"]:
        """Parse a `/search` body. `objectIDs: null` means zero hits."""
        if not isinstance(payload, dict):
            return None
        raw_ids = payload.get("objectIDs") or []
        if not isinstance(raw_ids, list):
            return None
        ids = tuple(i for i in raw_ids if isinstance(i, int) and not isinstance(i, bool))
        total = payload.get("total")
        if not isinstance(total, int) or isinstance(total, bool):
            total = len(ids)
        return cls(total=total, object_ids=ids)


SearchOutcome = Union[SearchResult, FetchFailure]
ObjectOutcome = Union[ArtworkRecord, FetchFailure]


# ============================================================
# HTTP session
# ============================================================

def _get_session(user_agent: str = USER_AGENT) -> requests.Session:
    """Configured HTTP session."""
    s = requests.Session()
    s.headers.update({"User-Agent": user_agent, "Accept": "application/json"})
    return s


def _format_department_ids(department_ids: Union[str, int, Sequence[int]]) -> str:
    if isinstance(department_ids, str):
        return department_ids.strip()
    if isinstance(department_ids, int):
        return str(department_ids)
    return ",".join(str(int(d)) for d in department_ids)


# ============================================================
# Client
# ============================================================

class MetClient:
    """Blocking Met API client; safe to share across threads for GETs."""

    def __init__(
        self,
        base_url: str = MET_API_BASE,
        session: Optional[requests.Session] = None,
        search_timeout: float = SEARCH_TIMEOUT,
        object_timeout: float = OBJECT_TIMEOUT,
        user_agent: str = USER_AGENT,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session or _get_session(user_agent)
        self.search_timeout = search_timeout
        self.object_timeout = object_timeout

    def _get_json(self, path: str, params: Optional[Dict[str, Any]], timeout: float) -> Any:
        """GET a JSON document, or return a FetchFailure describing why not."""
        url = f"{self.base_url}{path}"
        try:
            resp = self.session.get(url, params=params, timeout=timeout)
        except requests.RequestException as exc:
            logger.warning("Met API request failed for %s: %s", url, exc)
            return FetchFailure(FailureKind.UNAVAILABLE, detail=str(exc))

        status = int(resp.status_code)
        if status == 404:
            return FetchFailure(FailureKind.NOT_FOUND, detail=url, status=status)
        if status >= 500:
            logger.warning("Met API server error (%s) for %s", status, url)
            return FetchFailure(FailureKind.SERVER_ERROR, detail=resp.text[:200], status=status)
        if not resp.ok:
            logger.warning("Met API error (%s) for %s: %s", status, url, resp.text[:200])
            return FetchFailure(FailureKind.UNAVAILABLE, detail=resp.text[:200], status=status)

        try:
            return resp.json()
        except ValueError:
            logger.warning("Met API returned non-JSON for %s: %s", url, resp.text[:200])
            return FetchFailure(FailureKind.MALFORMED, detail=resp.text[:200], status=status)

    def _search(self, params: Dict[str, Any]) -> SearchOutcome:
        data = self._get_json("/search", params, self.search_timeout)
        if isinstance(data, FetchFailure):
            return data
        result = SearchResult.from_payload(data)
        if result is None:
            logger.warning("Met search returned an unexpected body for %s", params)
            return FetchFailure(FailureKind.MALFORMED, detail=f"search {params}")
        return result

    def search(self, query: str, has_images: bool = True) -> SearchOutcome:
        """Free-text search. Returns matching object ids."""
        return self._search({"q": query, "hasImages": "true" if has_images else "false"})

    def search_by_period(
        self,
        department_ids: Union[str, int, Sequence[int]],
        date_begin: int,
        date_end: int,
        has_images: bool = True,
    ) -> SearchOutcome:
        """Department + date range search (wildcard query)."""
        params = {
            "departmentIds": _format_department_ids(department_ids),
            "dateBegin": int(date_begin),
            "dateEnd": int(date_end),
            "hasImages": "true" if has_images else "false",
            "q": "*",
        }
        return self._search(params)

    def get_object_payload(self, object_id: int, timeout: Optional[float] = None) -> Union[Dict[str, Any], FetchFailure]:
        """Raw `/objects/{id}` JSON."""
        data = self._get_json(f"/objects/{int(object_id)}", None, timeout or self.object_timeout)
        if isinstance(data, FetchFailure):
            return data
        if not isinstance(data, dict):
            return FetchFailure(FailureKind.MALFORMED, detail=f"object {object_id}")
        return data

    def get_object(self, object_id: int, timeout: Optional[float] = None) -> ObjectOutcome:
        """Fetch and normalize a single object."""
        payload = self.get_object_payload(object_id, timeout=timeout)
        if isinstance(payload, FetchFailure):
            return payload
        return to_record(object_id, payload)


def to_record(object_id: int, payload: Dict[str, Any]) -> ObjectOutcome:
    """Normalize a payload, turning rejection into an INVALID_RECORD failure."""
    record = normalize_met_object(payload)
    if record is None:
        logger.debug("Discarding Met object %s: missing title or image", object_id)
        return FetchFailure(FailureKind.INVALID_RECORD, detail=f"object {object_id}")
    return record


def ids_or_empty(outcome: SearchOutcome) -> List[int]:
    """Search outcome -> plain id list ("no data" becomes [])."""
    if isinstance(outcome, SearchResult):
        return list(outcome.object_ids)
    return []
