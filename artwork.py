"""
artwork.py — ArtworkRecord and the Met object normalizer.

Maps a raw Met Collection API object payload into a stable, immutable
record with defaulted fields. Payloads without a usable title or image
are rejected (normalize_met_object returns None), so an ArtworkRecord
always carries both.

Serialized shape (to_dict / from_dict) keeps the camelCase keys used by
the rest of the app and by the JSON caches.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple


# ============================================================
# Defaults
# ============================================================

DEFAULT_TITLE = "Untitled"
DEFAULT_ARTIST = "Unknown Artist"
DEFAULT_YEAR = "Date Unknown"
DEFAULT_MEDIUM = "Medium Unknown"

# Literal strings the upstream (or older caches) sometimes put in image fields
_BOGUS_IMAGE_VALUES = {"undefined", "null", "none"}


# ============================================================
# Record
# ============================================================

@dataclass(frozen=True)
class ArtworkRecord:
    id: int
    title: str
    image: str
    artist: str = DEFAULT_ARTIST
    artist_bio: str = ""
    year: str = DEFAULT_YEAR
    object_begin_date: int = 0
    object_end_date: int = 0
    culture: str = ""
    period: str = ""
    location: str = ""
    medium: str = DEFAULT_MEDIUM
    dimensions: str = ""
    department: str = ""
    classification: str = ""
    description: str = ""
    additional_images: Tuple[str, ...] = field(default_factory=tuple)
    object_url: str = ""
    is_public_domain: bool = False
    metadata_date: Optional[str] = None
    repository: str = ""

    def overlaps(self, start: int, end: int) -> bool:
        """Inclusive overlap test between the object's dating and [start, end]."""
        return self.object_begin_date <= end and self.object_end_date >= start

    def to_dict(self, include_dates: bool = True) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "artist": self.artist,
            "artistBio": self.artist_bio,
            "year": self.year,
            "objectBeginDate": self.object_begin_date,
            "objectEndDate": self.object_end_date,
            "culture": self.culture,
            "period": self.period,
            "location": self.location,
            "medium": self.medium,
            "dimensions": self.dimensions,
            "department": self.department,
            "classification": self.classification,
            "description": self.description,
            "image": self.image,
            "additionalImages": list(self.additional_images),
            "objectURL": self.object_url,
            "isPublicDomain": self.is_public_domain,
            "metadataDate": self.metadata_date,
            "repository": self.repository,
        }
        if not include_dates:
            data.pop("objectBeginDate")
            data.pop("objectEndDate")
        return data

    def to_public_dict(self) -> Dict[str, Any]:
        """Shape handed to presentation code (no filter-only dates)."""
        return self.to_dict(include_dates=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ArtworkRecord":
        """Rebuild a record from to_dict() output (cache reads)."""
        return cls(
            id=int(data["id"]),
            title=str(data["title"]),
            image=str(data["image"]),
            artist=data.get("artist", DEFAULT_ARTIST),
            artist_bio=data.get("artistBio", ""),
            year=data.get("year", DEFAULT_YEAR),
            object_begin_date=int(data.get("objectBeginDate") or 0),
            object_end_date=int(data.get("objectEndDate") or 0),
            culture=data.get("culture", ""),
            period=data.get("period", ""),
            location=data.get("location", ""),
            medium=data.get("medium", DEFAULT_MEDIUM),
            dimensions=data.get("dimensions", ""),
            department=data.get("department", ""),
            classification=data.get("classification", ""),
            description=data.get("description", ""),
            additional_images=tuple(data.get("additionalImages") or ()),
            object_url=data.get("objectURL", ""),
            is_public_domain=bool(data.get("isPublicDomain", False)),
            metadata_date=data.get("metadataDate"),
            repository=data.get("repository", ""),
        )


# ============================================================
# Validation helpers
# ============================================================

def is_valid_image_url(value: Any) -> bool:
    """True for a non-empty http(s) URL that is not a stringified null."""
    if not isinstance(value, str):
        return False
    v = value.strip()
    if not v or v.lower() in _BOGUS_IMAGE_VALUES:
        return False
    return v.startswith("http")


def pick_image_url(raw: Dict[str, Any]) -> Optional[str]:
    """Prefer the small rendition (faster to load), fall back to the full one."""
    for key in ("primaryImageSmall", "primaryImage"):
        candidate = raw.get(key)
        if is_valid_image_url(candidate):
            return candidate.strip()
    return None


def _text(raw: Dict[str, Any], key: str, default: str = "") -> str:
    value = raw.get(key)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def _int(raw: Dict[str, Any], key: str) -> int:
    value = raw.get(key)
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


# ============================================================
# Mapper (Met object JSON -> ArtworkRecord)
# ============================================================

def normalize_met_object(raw: Any) -> Optional[ArtworkRecord]:
    """
    Map a Met `/objects/{id}` payload into an ArtworkRecord.

    Returns None when the payload is unusable:
      - not a dict, or no integer objectID
      - missing/blank title
      - no valid image URL
    """
    if not isinstance(raw, dict):
        return None

    object_id = raw.get("objectID")
    if isinstance(object_id, bool) or not isinstance(object_id, int):
        return None

    title = _text(raw, "title")
    if not title:
        return None

    image = pick_image_url(raw)
    if not image:
        return None

    extra = raw.get("additionalImages") or []
    additional = tuple(u for u in extra if is_valid_image_url(u)) if isinstance(extra, list) else ()

    metadata_date = raw.get("metadataDate")

    return ArtworkRecord(
        id=object_id,
        title=title,
        image=image,
        artist=_text(raw, "artistDisplayName", DEFAULT_ARTIST),
        artist_bio=_text(raw, "artistDisplayBio"),
        year=_text(raw, "objectDate", DEFAULT_YEAR),
        object_begin_date=_int(raw, "objectBeginDate"),
        object_end_date=_int(raw, "objectEndDate"),
        culture=_text(raw, "culture"),
        period=_text(raw, "period"),
        location=_text(raw, "country") or _text(raw, "city"),
        medium=_text(raw, "medium", DEFAULT_MEDIUM),
        dimensions=_text(raw, "dimensions"),
        department=_text(raw, "department"),
        classification=_text(raw, "classification"),
        description=_text(raw, "creditLine"),
        additional_images=additional,
        object_url=_text(raw, "objectURL"),
        is_public_domain=raw.get("isPublicDomain") is True,
        metadata_date=metadata_date if isinstance(metadata_date, str) else None,
        repository=_text(raw, "repository"),
    )
