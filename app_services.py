"""
app_services.py — composition root for the Met fetching layer.

Builds the shared, process-wide pieces (HTTP client, response cache,
proxy) and the per-session pieces (runtime blacklist, batch fetcher,
timeline assembler). Nothing in the core modules reads globals; they all
receive their collaborators here.

Streamlit pages call `get_shared_services()` (cached per process) and
`get_session_services()` (one assembler per browser session, so the
runtime blacklist is session-scoped).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import requests
import streamlit as st

from app_paths import BLACKLIST_FILE, DATA_DIR, RESPONSE_CACHE_DIR, TIMELINE_CACHE_DIR, ensure_data_dirs
from batch_fetcher import ProgressiveFetcher
from id_blacklist import IdBlacklist, load_permanent_blacklist
from met_api import MetClient
from met_proxy import MetProxy
from response_cache import CacheBackend, FileCache, InMemoryCache, ResponseCache
from timeline import TimelineAssembler

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Upper bound on one curated timeline run (seconds)
TIMELINE_DEADLINE = 90.0


def configure_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)
    # urllib3 is chatty at INFO when the pool is busy
    logging.getLogger("urllib3").setLevel(logging.WARNING)


# ============================================================
# Service bundles
# ============================================================

@dataclass
class SharedServices:
    client: MetClient
    response_cache: ResponseCache
    timeline_cache: ResponseCache
    proxy: MetProxy
    permanent_blacklist: frozenset


@dataclass
class SessionServices:
    blacklist: IdBlacklist
    fetcher: ProgressiveFetcher
    timeline: TimelineAssembler


def build_shared_services(
    data_dir: Optional[Path] = DATA_DIR,
    session: Optional[requests.Session] = None,
) -> SharedServices:
    """
    Process-wide services. `data_dir=None` keeps every cache in memory
    (tests, ephemeral runs); otherwise caches are JSON files under it.
    """
    response_backend: CacheBackend
    timeline_backend: CacheBackend
    if data_dir is None:
        response_backend, timeline_backend = InMemoryCache(), InMemoryCache()
        blacklist_file = None
    else:
        data_dir = Path(data_dir)
        ensure_data_dirs(data_dir)
        response_backend = FileCache(data_dir / RESPONSE_CACHE_DIR.name)
        timeline_backend = FileCache(data_dir / TIMELINE_CACHE_DIR.name)
        blacklist_file = data_dir / BLACKLIST_FILE.name

    client = MetClient(session=session)
    response_cache = ResponseCache(response_backend)
    timeline_cache = ResponseCache(timeline_backend)

    return SharedServices(
        client=client,
        response_cache=response_cache,
        timeline_cache=timeline_cache,
        proxy=MetProxy(client, response_cache),
        permanent_blacklist=load_permanent_blacklist(blacklist_file),
    )


def build_session_services(shared: SharedServices, max_seconds: Optional[float] = TIMELINE_DEADLINE) -> SessionServices:
    blacklist = IdBlacklist(shared.permanent_blacklist)
    fetcher = ProgressiveFetcher(shared.proxy.lookup_object, blacklist, max_seconds=max_seconds)
    timeline = TimelineAssembler(shared.proxy.search_ids, fetcher, shared.timeline_cache)
    return SessionServices(blacklist=blacklist, fetcher=fetcher, timeline=timeline)


# ============================================================
# Streamlit wiring
# ============================================================

@st.cache_resource(show_spinner=False)
def get_shared_services() -> SharedServices:
    configure_logging()
    return build_shared_services()


def get_session_services() -> SessionServices:
    """One SessionServices per Streamlit session (runtime blacklist included)."""
    key = "_met_session_services"
    services = st.session_state.get(key)
    if services is None:
        services = build_session_services(get_shared_services())
        st.session_state[key] = services
    return services
