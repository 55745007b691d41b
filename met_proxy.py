"""
met_proxy.py — cached Met API endpoints used by the rest of the app.

Provides a stable interface on top of MetClient + ResponseCache:

- search(query, has_images) -> SearchResult | FetchFailure      (24h)
- search_ids(query, has_images) -> list of ids                   (24h)
- search_by_period(department_ids, begin, end, has_images)       (24h)
- lookup_object(id) -> ArtworkRecord | FetchFailure              (7 days)
- get_object(id) -> ArtworkRecord, raises ObjectNotFound
- get_batch(ids) -> list of ArtworkRecord (max 20 ids, partial results)

Object entries store the raw upstream payload so every consumer sees the
full object; normalization happens on the way out.
"""

from __future__ import annotations

import hashlib
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from artwork import ArtworkRecord
from errors import FailureKind, FetchFailure, ObjectNotFound
from met_api import (
    BATCH_OBJECT_TIMEOUT,
    MetClient,
    ObjectOutcome,
    SearchOutcome,
    SearchResult,
    ids_or_empty,
    to_record,
)
from response_cache import LONG_TTL, SHORT_TTL, ResponseCache

logger = logging.getLogger(__name__)


# ============================================================
# Constants
# ============================================================

BATCH_LIMIT = 20
BATCH_WORKERS = 8

DEFAULT_DEPARTMENT_IDS = "11"  # European Paintings
DEFAULT_DATE_BEGIN = -3000


# ============================================================
# Cache keys
# ============================================================

def _md5(text: str) -> str:
    return hashlib.md5(text.encode("utf-8")).hexdigest()


def search_cache_key(query: str, has_images: bool) -> str:
    return "met_search_" + _md5(query + ("1" if has_images else "0"))


def period_cache_key(department_ids: str, date_begin: int, date_end: int, has_images: bool) -> str:
    return "met_period_" + _md5(f"{department_ids}|{date_begin}|{date_end}|{int(has_images)}")


def object_cache_key(object_id: int) -> str:
    return f"object:{object_id}"


def _search_from_cache(value: Any) -> SearchOutcome:
    if isinstance(value, FetchFailure):
        return value
    result = SearchResult.from_payload(value)
    if result is None:
        return FetchFailure(FailureKind.MALFORMED, detail="cached search entry")
    return result


def _as_cacheable(outcome: Union[SearchOutcome, Dict[str, Any]]) -> Any:
    return outcome.to_dict() if isinstance(outcome, SearchResult) else outcome


# ============================================================
# Proxy
# ============================================================

class MetProxy:
    def __init__(
        self,
        client: MetClient,
        cache: ResponseCache,
        search_ttl: float = SHORT_TTL,
        object_ttl: float = LONG_TTL,
    ) -> None:
        self.client = client
        self.cache = cache
        self.search_ttl = search_ttl
        self.object_ttl = object_ttl

    # --------------------------------------------------------
    # Search
    # --------------------------------------------------------

    def search(self, query: str = "*", has_images: bool = True) -> SearchOutcome:
        key = search_cache_key(query, has_images)
        value = self.cache.get_or_compute(
            key,
            self.search_ttl,
            lambda: _as_cacheable(self.client.search(query, has_images=has_images)),
        )
        return _search_from_cache(value)

    def search_ids(self, query: str, has_images: bool = True) -> List[int]:
        outcome = self.search(query, has_images=has_images)
        if isinstance(outcome, FetchFailure):
            logger.info("Search for %r returned no data (%s)", query, outcome.kind.value)
        return ids_or_empty(outcome)

    def search_by_period(
        self,
        department_ids: Union[str, int, Sequence[int]] = DEFAULT_DEPARTMENT_IDS,
        date_begin: int = DEFAULT_DATE_BEGIN,
        date_end: Optional[int] = None,
        has_images: bool = True,
    ) -> SearchOutcome:
        if date_end is None:
            date_end = date.today().year
        if isinstance(department_ids, (str, int)):
            dept_key = str(department_ids).strip()
        else:
            dept_key = ",".join(str(int(d)) for d in department_ids)

        key = period_cache_key(dept_key, int(date_begin), int(date_end), has_images)
        value = self.cache.get_or_compute(
            key,
            self.search_ttl,
            lambda: _as_cacheable(
                self.client.search_by_period(dept_key, date_begin, date_end, has_images=has_images)
            ),
        )
        return _search_from_cache(value)

    # --------------------------------------------------------
    # Objects
    # --------------------------------------------------------

    def get_object_payload(self, object_id: int, timeout: Optional[float] = None) -> Union[Dict[str, Any], FetchFailure]:
        """Raw upstream payload, cached for the long tier."""
        return self.cache.get_or_compute(
            object_cache_key(int(object_id)),
            self.object_ttl,
            lambda: self.client.get_object_payload(object_id, timeout=timeout),
        )

    def lookup_object(self, object_id: int, timeout: Optional[float] = None) -> ObjectOutcome:
        payload = self.get_object_payload(object_id, timeout=timeout)
        if isinstance(payload, FetchFailure):
            return payload
        return to_record(object_id, payload)

    def get_object(self, object_id: int) -> ArtworkRecord:
        """Single-object lookup. Raises ObjectNotFound when nothing usable exists."""
        outcome = self.lookup_object(object_id)
        if isinstance(outcome, FetchFailure):
            raise ObjectNotFound(object_id, outcome)
        return outcome

    def get_batch(self, object_ids: Iterable[Any]) -> List[ArtworkRecord]:
        """
        Look up at most BATCH_LIMIT ids; return whichever succeeded.

        Non-integer ids are ignored. Order follows the input order.
        """
        ids: List[int] = []
        for raw in object_ids:
            try:
                ids.append(int(raw))
            except (TypeError, ValueError):
                continue
            if len(ids) >= BATCH_LIMIT:
                break

        if not ids:
            return []

        with ThreadPoolExecutor(max_workers=min(BATCH_WORKERS, len(ids))) as ex:
            outcomes = list(ex.map(lambda i: self.lookup_object(i, timeout=BATCH_OBJECT_TIMEOUT), ids))

        return [o for o in outcomes if isinstance(o, ArtworkRecord)]
