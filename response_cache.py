"""
response_cache.py — TTL response cache used in front of the Met API.

Two tiers share one mechanism and differ only by TTL:
- SHORT_TTL (24h): search results, period queries, curated timelines
- LONG_TTL (7 days): per-object payloads (near-immutable upstream)

Backends:
- InMemoryCache: process-local dict
- FileCache: one JSON file per key, payload stored with its createdAt/ttl

ResponseCache adds, on top of a backend:
- get_or_compute with single-flight coalescing per key
- negative caching of FetchFailure results for a short window
- degrade-to-miss when the backend raises CacheUnavailable
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import tempfile
import threading
import time
from concurrent.futures import Future
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple, TypeVar, Union

from errors import CacheUnavailable, FetchFailure

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ============================================================
# TTL policy
# ============================================================

SHORT_TTL = 24 * 3600
LONG_TTL = 7 * 24 * 3600

# "Last attempt failed" markers live this long before the upstream is retried
NEGATIVE_TTL = 5 * 60

_FAILURE_MARKER = "__fetch_failure__"


# ============================================================
# Entries and backends
# ============================================================

@dataclass(frozen=True)
class CacheEntry:
    key: str
    value: Any
    created_at: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        return now - self.created_at > self.ttl

    def to_dict(self) -> Dict[str, Any]:
        return {"key": self.key, "value": self.value, "createdAt": self.created_at, "ttl": self.ttl}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CacheEntry":
        return cls(
            key=str(data["key"]),
            value=data.get("value"),
            created_at=float(data["createdAt"]),
            ttl=float(data["ttl"]),
        )


class CacheBackend:
    """Storage interface. Implementations raise CacheUnavailable on I/O trouble."""

    def read(self, key: str) -> Optional[CacheEntry]:
        raise NotImplementedError

    def write(self, entry: CacheEntry) -> None:
        raise NotImplementedError


class InMemoryCache(CacheBackend):
    def __init__(self) -> None:
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def read(self, key: str) -> Optional[CacheEntry]:
        with self._lock:
            return self._entries.get(key)

    def write(self, entry: CacheEntry) -> None:
        with self._lock:
            self._entries[entry.key] = entry

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class FileCache(CacheBackend):
    """
    JSON-file backend (one file per key).

    File names are a sha1 of the key so arbitrary query text is safe on disk.
    Writes go through a temp file + os.replace so readers never see half a file.
    """

    def __init__(self, directory: Union[str, Path], prefix: str = "") -> None:
        self.directory = Path(directory)
        self.prefix = prefix

    def _path(self, key: str) -> Path:
        digest = hashlib.sha1(f"{self.prefix}{key}".encode("utf-8")).hexdigest()
        return self.directory / f"{digest}.json"

    def read(self, key: str) -> Optional[CacheEntry]:
        path = self._path(key)
        try:
            if not path.exists():
                return None
            with path.open("r", encoding="utf-8") as f:
                data = json.load(f)
            entry = CacheEntry.from_dict(data)
        except (OSError, ValueError, KeyError, TypeError) as exc:
            raise CacheUnavailable(f"Could not read cache file {path}: {exc}") from exc
        return entry if entry.key == key else None

    def write(self, entry: CacheEntry) -> None:
        path = self._path(entry.key)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=str(self.directory), suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(entry.to_dict(), f, ensure_ascii=False)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except (OSError, TypeError, ValueError) as exc:
            raise CacheUnavailable(f"Could not write cache file {path}: {exc}") from exc


# ============================================================
# Response cache
# ============================================================

class ResponseCache:
    """
    TTL cache with single-flight get_or_compute.

    Values must be JSON-serializable (FileCache) or FetchFailure. A
    FetchFailure is stored as a short-lived negative entry; pass
    negative_ttl=0 to never cache failures (every call re-hits upstream).
    """

    def __init__(
        self,
        backend: Optional[CacheBackend] = None,
        clock: Callable[[], float] = time.time,
        negative_ttl: float = NEGATIVE_TTL,
    ) -> None:
        self.backend = backend if backend is not None else InMemoryCache()
        self.clock = clock
        self.negative_ttl = negative_ttl
        self._lock = threading.Lock()
        self._inflight: Dict[str, Future] = {}

    # --------------------------------------------------------
    # Plain get/set
    # --------------------------------------------------------

    def lookup(self, key: str) -> Tuple[bool, Any]:
        """Return (found, value). Expired or unreadable entries count as misses."""
        try:
            entry = self.backend.read(key)
        except CacheUnavailable as exc:
            logger.warning("Cache read failed, treating %s as a miss: %s", key, exc)
            return False, None

        if entry is None:
            return False, None
        if entry.is_expired(self.clock()):
            return False, None

        value = entry.value
        if isinstance(value, dict) and _FAILURE_MARKER in value:
            return True, FetchFailure.from_dict(value[_FAILURE_MARKER])
        return True, value

    def set(self, key: str, value: Any, ttl: float) -> None:
        if isinstance(value, FetchFailure):
            if self.negative_ttl <= 0:
                return
            value, ttl = {_FAILURE_MARKER: value.to_dict()}, self.negative_ttl

        entry = CacheEntry(key=key, value=value, created_at=self.clock(), ttl=ttl)
        try:
            self.backend.write(entry)
        except CacheUnavailable as exc:
            logger.warning("Cache write skipped for %s: %s", key, exc)

    # --------------------------------------------------------
    # Single-flight compute
    # --------------------------------------------------------

    def get_or_compute(self, key: str, ttl: float, compute: Callable[[], T]) -> T:
        """
        Return the cached value for `key`, computing and storing it on a miss.

        Concurrent callers for the same missing key wait on one in-flight
        computation instead of each calling `compute`.
        """
        found, value = self.lookup(key)
        if found:
            return value

        with self._lock:
            future = self._inflight.get(key)
            leader = future is None
            if leader:
                future = Future()
                self._inflight[key] = future

        if not leader:
            return future.result()

        try:
            # another leader may have stored it between our lookup and the lock
            found, value = self.lookup(key)
            if not found:
                value = compute()
                self.set(key, value, ttl)
        except BaseException as exc:
            future.set_exception(exc)
            raise
        else:
            future.set_result(value)
            return value
        finally:
            with self._lock:
                self._inflight.pop(key, None)
