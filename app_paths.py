"""
app_paths.py — central paths for local persistence.

This app uses local JSON files for:
- the response cache (search/period/object payloads)
- the curated timeline cache
- extra permanently blacklisted Met object ids

On Streamlit Cloud, the filesystem is ephemeral, so these files may reset
when the app restarts. Everything here is recomputable from the Met API.
"""

from __future__ import annotations

from pathlib import Path

# Project root (folder where this file lives)
ROOT_DIR = Path(__file__).resolve().parent

# App folders
DATA_DIR = ROOT_DIR / "data"
RESPONSE_CACHE_DIR = DATA_DIR / "cache"
TIMELINE_CACHE_DIR = DATA_DIR / "timeline"

# Core files (local persistence)
BLACKLIST_FILE = DATA_DIR / "blacklist.json"


def ensure_data_dirs(base: Path = DATA_DIR) -> None:
    """Create the cache folders (safe no-op if already created)."""
    for folder in (base, base / RESPONSE_CACHE_DIR.name, base / TIMELINE_CACHE_DIR.name):
        folder.mkdir(parents=True, exist_ok=True)
