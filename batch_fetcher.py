"""
batch_fetcher.py — progressive, batched object fetch.

Given a long candidate id list, fetch objects in concurrent batches until
`target` records pass the filters, handing each accepted record to the
caller as soon as its batch is processed.

Filters applied per fetched object:
- valid image URL (ArtworkRecord invariant, re-checked for cached records)
- dating overlaps the requested [start, end] range (inclusive)

Failures never abort the run: a failed id is skipped, and 404/5xx ids go
to the runtime blacklist so they are not tried again this session.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterator, List, Optional, Sequence, Tuple

from artwork import ArtworkRecord, is_valid_image_url
from errors import FetchFailure
from id_blacklist import IdBlacklist
from met_api import ObjectOutcome

logger = logging.getLogger(__name__)


# ============================================================
# Constants
# ============================================================

BATCH_SIZE = 30

# Try at most target * POOL_FACTOR candidates
POOL_FACTOR = 40

# Pause between batches (seconds)
BATCH_PAUSE = 0.05

ObjectLookup = Callable[[int], ObjectOutcome]
DateRange = Tuple[int, int]


# ============================================================
# Fetcher
# ============================================================

class ProgressiveFetcher:
    def __init__(
        self,
        lookup: ObjectLookup,
        blacklist: IdBlacklist,
        batch_size: int = BATCH_SIZE,
        pool_factor: int = POOL_FACTOR,
        pause: float = BATCH_PAUSE,
        max_seconds: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self.lookup = lookup
        self.blacklist = blacklist
        self.batch_size = batch_size
        self.pool_factor = pool_factor
        self.pause = pause
        self.max_seconds = max_seconds
        self.sleep = sleep
        self.clock = clock

    def _fetch_one(self, object_id: int) -> Optional[ArtworkRecord]:
        if self.blacklist.is_blocked(object_id):
            return None

        outcome = self.lookup(object_id)
        if isinstance(outcome, FetchFailure):
            self.blacklist.report_failure(object_id, outcome.kind)
            return None
        return outcome

    def iter_until(
        self,
        candidate_ids: Sequence[int],
        target: int,
        date_range: DateRange,
        cancel: Optional[threading.Event] = None,
    ) -> Iterator[ArtworkRecord]:
        """
        Yield accepted records one by one until `target` is reached.

        Batch N is fully fetched before batch N+1 starts; inside a batch,
        records are accepted in submission order. Closing the generator
        or setting `cancel` stops before the next batch.
        """
        if target <= 0:
            return

        start, end = date_range
        ids = self.blacklist.filter(candidate_ids)
        ids = ids[: target * self.pool_factor]

        logger.info("Fetching %s artworks from %s candidate ids", target, len(ids))

        started = self.clock()
        found = 0

        with ThreadPoolExecutor(max_workers=self.batch_size) as ex:
            for offset in range(0, len(ids), self.batch_size):
                if cancel is not None and cancel.is_set():
                    logger.info("Progressive fetch cancelled after %s artworks", found)
                    return
                if self.max_seconds is not None and self.clock() - started > self.max_seconds:
                    logger.warning("Progressive fetch hit its %.1fs deadline with %s/%s artworks",
                                   self.max_seconds, found, target)
                    return

                batch = ids[offset: offset + self.batch_size]
                futures = [ex.submit(self._fetch_one, object_id) for object_id in batch]

                results: List[Optional[ArtworkRecord]] = []
                for object_id, fut in zip(batch, futures):
                    try:
                        results.append(fut.result())
                    except Exception:
                        logger.exception("Unexpected error fetching Met object %s", object_id)
                        results.append(None)

                for record in results:
                    if found >= target:
                        break
                    if record is None or not is_valid_image_url(record.image):
                        continue
                    if not record.overlaps(start, end):
                        continue
                    found += 1
                    logger.debug("Found %s/%s: %s", found, target, record.title)
                    yield record

                if found >= target:
                    return
                if offset + self.batch_size < len(ids) and self.pause > 0:
                    self.sleep(self.pause)

    def fetch_until(
        self,
        candidate_ids: Sequence[int],
        target: int,
        date_range: DateRange,
        on_found: Optional[Callable[[ArtworkRecord], None]] = None,
        cancel: Optional[threading.Event] = None,
    ) -> List[ArtworkRecord]:
        """Eager form of iter_until; `on_found` sees each record as it is accepted."""
        records: List[ArtworkRecord] = []
        for record in self.iter_until(candidate_ids, target, date_range, cancel=cancel):
            records.append(record)
            if on_found is not None:
                on_found(record)
        return records
