"""
timeline.py — curated "walk through art history" timelines.

For a period key (e.g. "renaissance") the assembler:

  1) returns the cached list if it holds at least `limit` artworks
     (replaying each record to the caller, exactly like a fresh run)
  2) otherwise runs the period's curated searches concurrently
  3) merges the ids (first 50 per query, deduplicated)
  4) shuffles them with today's seed (stable for the day)
  5) fetches progressively until `limit` artworks fall in the period
  6) caches the result for 24h

An empty result is cached too, but only for EMPTY_TIMELINE_TTL, so a
period the upstream cannot serve is not re-searched on every call.
Unknown period keys simply yield nothing.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import date
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from artwork import ArtworkRecord
from batch_fetcher import ProgressiveFetcher
from response_cache import SHORT_TTL, ResponseCache
from shuffle import deterministic_shuffle, today_seed

logger = logging.getLogger(__name__)


# ============================================================
# Constants
# ============================================================

DEFAULT_LIMIT = 4
PER_QUERY_ID_CAP = 50

TIMELINE_CACHE_PREFIX = "met_timeline_"
TIMELINE_TTL = SHORT_TTL
EMPTY_TIMELINE_TTL = 10 * 60


# ============================================================
# Period configuration
# ============================================================

@dataclass(frozen=True)
class TimelinePeriod:
    key: str
    title: str
    label: str
    start_date: int
    end_date: int
    queries: Tuple[str, ...]

    @property
    def date_range(self) -> Tuple[int, int]:
        return self.start_date, self.end_date


def _build_periods(current_year: int) -> Dict[str, TimelinePeriod]:
    periods = [
        TimelinePeriod(
            key="ancient",
            title="Ancient World",
            label="3000 BCE–500 CE",
            start_date=-3000,
            end_date=500,
            queries=("Egyptian sculpture", "Greek pottery", "Roman marble"),
        ),
        TimelinePeriod(
            key="medieval",
            title="Medieval Period",
            label="500–1400",
            start_date=500,
            end_date=1400,
            queries=("Medieval manuscript", "Byzantine mosaic", "Gothic sculpture"),
        ),
        TimelinePeriod(
            key="renaissance",
            title="Renaissance",
            label="1400–1600",
            start_date=1400,
            end_date=1600,
            queries=("Renaissance painting", "Italian sculpture", "Venetian art"),
        ),
        TimelinePeriod(
            key="baroque",
            title="Baroque & Enlightenment",
            label="1600–1800",
            start_date=1600,
            end_date=1800,
            queries=("Baroque painting", "Rococo art", "Dutch Golden Age"),
        ),
        TimelinePeriod(
            key="modern",
            title="Modern & Contemporary",
            label="1800–Present",
            start_date=1800,
            end_date=current_year,
            queries=("Impressionist painting", "Modern sculpture", "American painting"),
        ),
    ]
    return {p.key: p for p in periods}


TIMELINE_PERIODS: Dict[str, TimelinePeriod] = _build_periods(date.today().year)


def timeline_cache_key(period_key: str) -> str:
    return f"{TIMELINE_CACHE_PREFIX}{period_key}"


# ============================================================
# Assembler
# ============================================================

class TimelineAssembler:
    def __init__(
        self,
        search_ids: Callable[[str, bool], List[int]],
        fetcher: ProgressiveFetcher,
        cache: ResponseCache,
        periods: Optional[Dict[str, TimelinePeriod]] = None,
        seed_fn: Callable[[], int] = today_seed,
        ttl: float = TIMELINE_TTL,
        empty_ttl: float = EMPTY_TIMELINE_TTL,
    ) -> None:
        self.search_ids = search_ids
        self.fetcher = fetcher
        self.cache = cache
        self.periods = periods if periods is not None else TIMELINE_PERIODS
        self.seed_fn = seed_fn
        self.ttl = ttl
        self.empty_ttl = empty_ttl

    # --------------------------------------------------------
    # Cache
    # --------------------------------------------------------

    def _cached(self, period_key: str, limit: int) -> Optional[List[ArtworkRecord]]:
        found, value = self.cache.lookup(timeline_cache_key(period_key))
        if not found or not isinstance(value, list):
            return None

        try:
            records = [ArtworkRecord.from_dict(item) for item in value]
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Ignoring unreadable timeline cache for %s: %s", period_key, exc)
            return None

        # [] is a remembered "nothing found" and counts as a hit
        if records and len(records) < limit:
            return None
        return records

    def _store(self, period_key: str, records: List[ArtworkRecord]) -> None:
        ttl = self.ttl if records else self.empty_ttl
        if ttl <= 0:
            return
        self.cache.set(timeline_cache_key(period_key), [r.to_dict() for r in records], ttl)

    # --------------------------------------------------------
    # Searching + deduping
    # --------------------------------------------------------

    def _search_one(self, query: str) -> List[int]:
        try:
            ids = self.search_ids(query, True)
        except Exception:
            logger.exception("Curated search %r failed", query)
            return []
        logger.info("Found %s ids for %r", len(ids), query)
        return ids

    def collect_candidate_ids(self, queries: Sequence[str]) -> List[int]:
        """Run all queries concurrently and merge their first ids, deduplicated."""
        if not queries:
            return []

        with ThreadPoolExecutor(max_workers=len(queries)) as ex:
            results = list(ex.map(self._search_one, queries))

        seen = set()
        merged: List[int] = []
        for ids in results:
            for object_id in ids[:PER_QUERY_ID_CAP]:
                if object_id not in seen:
                    seen.add(object_id)
                    merged.append(object_id)
        return merged

    # --------------------------------------------------------
    # Public API
    # --------------------------------------------------------

    def iter_curated_timeline(
        self,
        period_key: str,
        limit: int = DEFAULT_LIMIT,
        cancel: Optional[threading.Event] = None,
    ) -> Iterator[ArtworkRecord]:
        """
        Yield the period's artworks as they become available.

        Cached and fresh runs look the same to the caller: both yield
        every record in order. The cache is written once the fetch
        finishes; abandoning the iterator early skips the write.
        """
        period = self.periods.get(period_key)
        if period is None:
            return

        cached = self._cached(period_key, limit)
        if cached is not None:
            logger.info("Loaded %s from cache (%s artworks)", period_key, len(cached))
            yield from cached
            return

        logger.info("Fetching %s artworks for %s", limit, period_key)

        candidate_ids = self.collect_candidate_ids(period.queries)
        shuffled = deterministic_shuffle(candidate_ids, self.seed_fn())
        logger.info("Total unique ids: %s for %s", len(shuffled), period_key)

        records: List[ArtworkRecord] = []
        if shuffled:
            for record in self.fetcher.iter_until(shuffled, limit, period.date_range, cancel=cancel):
                records.append(record)
                yield record
        else:
            logger.warning("No artworks found for %s", period_key)

        if cancel is not None and cancel.is_set():
            return

        self._store(period_key, records)
        logger.info("Completed %s: %s artworks", period_key, len(records))

    def get_curated_timeline(
        self,
        period_key: str,
        limit: int = DEFAULT_LIMIT,
        on_found: Optional[Callable[[ArtworkRecord], None]] = None,
        cancel: Optional[threading.Event] = None,
    ) -> List[ArtworkRecord]:
        records: List[ArtworkRecord] = []
        for record in self.iter_curated_timeline(period_key, limit=limit, cancel=cancel):
            records.append(record)
            if on_found is not None:
                on_found(record)
        return records
