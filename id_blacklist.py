"""
id_blacklist.py — Met object ids that should not be fetched.

Two disjoint sets:
- permanent: known-bad ids (fixed data; extendable via data/blacklist.json)
- runtime: ids that answered 404 or 5xx during this process/session

Any id in either set is skipped without a network call.
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import FrozenSet, Iterable, List, Optional, Set, Union

from errors import FailureKind

logger = logging.getLogger(__name__)


# ============================================================
# Known-bad ids
# ============================================================

# Objects that consistently 404 or return broken data upstream
PERMANENT_BLACKLIST: FrozenSet[int] = frozenset({662725, 634331, 811172})

BLACKLISTABLE_FAILURES = (FailureKind.NOT_FOUND, FailureKind.SERVER_ERROR)


def load_permanent_blacklist(path: Optional[Union[str, Path]] = None) -> FrozenSet[int]:
    """
    Built-in ids plus any ids listed in a local JSON file.

    The file holds a JSON list of integers. A missing or unreadable file
    just means "no extra ids".
    """
    ids: Set[int] = set(PERMANENT_BLACKLIST)
    if path is None:
        return frozenset(ids)

    p = Path(path)
    if not p.exists():
        return frozenset(ids)

    try:
        with p.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as exc:
        logger.warning("Ignoring unreadable blacklist file %s: %s", p, exc)
        return frozenset(ids)

    if isinstance(data, list):
        ids.update(i for i in data if isinstance(i, int) and not isinstance(i, bool))
    return frozenset(ids)


# ============================================================
# Blacklist
# ============================================================

class IdBlacklist:
    def __init__(self, permanent: Iterable[int] = PERMANENT_BLACKLIST) -> None:
        self.permanent: FrozenSet[int] = frozenset(permanent)
        self._runtime: Set[int] = set()
        self._lock = threading.Lock()

    @property
    def runtime(self) -> FrozenSet[int]:
        with self._lock:
            return frozenset(self._runtime)

    def is_blocked(self, object_id: int) -> bool:
        if object_id in self.permanent:
            return True
        with self._lock:
            return object_id in self._runtime

    def report_failure(self, object_id: int, kind: FailureKind) -> bool:
        """Remember a dead id. Returns True if it was newly added."""
        if kind not in BLACKLISTABLE_FAILURES or object_id in self.permanent:
            return False
        with self._lock:
            if object_id in self._runtime:
                return False
            self._runtime.add(object_id)
        logger.info("Blacklisted Met object %s for this session (%s)", object_id, kind.value)
        return True

    def filter(self, object_ids: Iterable[int]) -> List[int]:
        """Drop blocked ids, keeping order."""
        with self._lock:
            runtime = set(self._runtime)
        return [i for i in object_ids if i not in self.permanent and i not in runtime]
