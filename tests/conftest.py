from __future__ import annotations

import json
import threading
from typing import Any, Callable, Dict, List, Optional

import pytest

from artwork import ArtworkRecord
from errors import FailureKind, FetchFailure
from met_api import SearchResult


def met_payload(object_id: int, **overrides: Any) -> Dict[str, Any]:
    """A realistic `/objects/{id}` body with every mapped field present."""
    payload: Dict[str, Any] = {
        "objectID": object_id,
        "isPublicDomain": True,
        "primaryImage": f"https://images.metmuseum.org/CRDImages/ep/original/{object_id}.jpg",
        "primaryImageSmall": f"https://images.metmuseum.org/CRDImages/ep/web-large/{object_id}.jpg",
        "additionalImages": [f"https://images.metmuseum.org/CRDImages/ep/original/{object_id}_2.jpg"],
        "department": "European Paintings",
        "title": f"Artwork {object_id}",
        "culture": "Italian",
        "period": "Renaissance",
        "artistDisplayName": "Sandro Botticelli",
        "artistDisplayBio": "Italian, Florence 1444/45–1510 Florence",
        "objectDate": "ca. 1500",
        "objectBeginDate": 1495,
        "objectEndDate": 1505,
        "medium": "Tempera on wood",
        "dimensions": "36 x 24 in.",
        "creditLine": "Bequest of Maitland F. Griggs, 1943",
        "city": "Florence",
        "country": "Italy",
        "classification": "Paintings",
        "metadataDate": "2024-05-01T04:52:52.36Z",
        "repository": "Metropolitan Museum of Art, New York, NY",
        "objectURL": f"https://www.metmuseum.org/art/collection/search/{object_id}",
    }
    payload.update(overrides)
    return payload


def make_record(object_id: int, begin: int = 1500, end: int = 1500, **overrides: Any) -> ArtworkRecord:
    fields: Dict[str, Any] = {
        "id": object_id,
        "title": f"Artwork {object_id}",
        "image": f"https://images.metmuseum.org/{object_id}.jpg",
        "object_begin_date": begin,
        "object_end_date": end,
    }
    fields.update(overrides)
    return ArtworkRecord(**fields)


# ============================================================
# HTTP fakes (requests.Session stand-ins)
# ============================================================

class FakeResponse:
    def __init__(self, status_code: int = 200, body: Any = None, text: Optional[str] = None) -> None:
        self.status_code = status_code
        self.text = text if text is not None else json.dumps(body)

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def json(self) -> Any:
        return json.loads(self.text)


class FakeSession:
    """Routes GETs by URL suffix; records (url, params, timeout) for each call."""

    def __init__(self, routes: Optional[Dict[str, Any]] = None) -> None:
        self.routes: Dict[str, Any] = dict(routes or {})
        self.calls: List[Dict[str, Any]] = []
        self.headers: Dict[str, str] = {}

    def get(self, url: str, params: Any = None, timeout: Any = None) -> FakeResponse:
        self.calls.append({"url": url, "params": params, "timeout": timeout})
        for suffix, answer in self.routes.items():
            if url.endswith(suffix):
                if isinstance(answer, Exception):
                    raise answer
                if callable(answer):
                    return answer(url, params)
                return answer
        return FakeResponse(404, {"message": "Not a valid object"})


# ============================================================
# Client fake (MetClient stand-in)
# ============================================================

class FakeMetClient:
    def __init__(self) -> None:
        self.search_results: Dict[str, Any] = {}
        self.period_result: Any = SearchResult(total=0, object_ids=())
        self.payloads: Dict[int, Any] = {}
        self.search_calls: List[tuple] = []
        self.period_calls: List[tuple] = []
        self.object_calls: List[int] = []
        self._lock = threading.Lock()

    def search(self, query: str, has_images: bool = True) -> Any:
        with self._lock:
            self.search_calls.append((query, has_images))
        return self.search_results.get(query, FetchFailure(FailureKind.UNAVAILABLE))

    def search_by_period(self, department_ids: Any, date_begin: int, date_end: int, has_images: bool = True) -> Any:
        with self._lock:
            self.period_calls.append((department_ids, date_begin, date_end, has_images))
        return self.period_result

    def get_object_payload(self, object_id: int, timeout: Any = None) -> Any:
        with self._lock:
            self.object_calls.append(object_id)
        return self.payloads.get(object_id, FetchFailure(FailureKind.NOT_FOUND, status=404))


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class CountingLookup:
    """Object lookup for the batch fetcher: id -> outcome, thread-safe call log."""

    def __init__(self, outcome_for: Callable[[int], Any]) -> None:
        self.outcome_for = outcome_for
        self.calls: List[int] = []
        self._lock = threading.Lock()

    def __call__(self, object_id: int) -> Any:
        with self._lock:
            self.calls.append(object_id)
        return self.outcome_for(object_id)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_client() -> FakeMetClient:
    return FakeMetClient()
