"""
Catalog records and the display-ordering rules shared by every view.

Why:
    Courses and lessons are owned by the backend; this layer only keeps
    transient copies. Keeping the record shapes and the ordering rule in one
    place lets the read model, the admin writes and the lesson navigation agree
    on "what comes first".

Ordering:
    Ascending by `order`. Rows without an `order` sort after every numbered
    row. Ties (including rows without an `order`) fall back to `created_at`
    ascending and finally to `id` so the result is deterministic.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Optional, Sequence
import json
import logging


logger = logging.getLogger("academy.catalog")


@dataclass(frozen=True)
class DownloadFile:
    name: str
    url: str

    def to_dict(self) -> dict:
        return {"name": self.name, "url": self.url}


@dataclass
class Course:
    id: str
    title: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    order: Optional[int] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Course":
        return cls(
            id=str(row["id"]),
            title=str(row.get("title") or ""),
            description=row.get("description"),
            image_url=row.get("image_url"),
            order=_coerce_order(row.get("order")),
            created_at=_as_text(row.get("created_at")),
            updated_at=_as_text(row.get("updated_at")),
        )


@dataclass
class Lesson:
    id: str
    course_id: str
    title: str
    youtube_video_id: str
    description: Optional[str] = None
    download_files: List[DownloadFile] = field(default_factory=list)
    order: Optional[int] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Lesson":
        return cls(
            id=str(row["id"]),
            course_id=str(row["course_id"]),
            title=str(row.get("title") or ""),
            youtube_video_id=str(row.get("youtube_video_id") or ""),
            description=row.get("description"),
            download_files=parse_download_files(row.get("download_files")),
            order=_coerce_order(row.get("order")),
            created_at=_as_text(row.get("created_at")),
            updated_at=_as_text(row.get("updated_at")),
        )


def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


def _coerce_order(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


# --- download_files (de)serialization ------------------------------------------

def parse_download_files(raw: Any) -> List[DownloadFile]:
    """Return the typed attachment list for a stored `download_files` value.

    Accepts None, a list of mappings, or a JSON string holding such a list
    (older rows were saved as text). Entries without a name or url are dropped.
    """
    if raw is None or raw == "":
        return []
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8", "replace")
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            logger.warning("Ignoring malformed download_files payload (length=%s)", len(raw))
            return []
    if not isinstance(raw, (list, tuple)):
        return []
    files: List[DownloadFile] = []
    for item in raw:
        if isinstance(item, DownloadFile):
            files.append(item)
            continue
        if not isinstance(item, Mapping):
            continue
        name = str(item.get("name") or "").strip()
        url = str(item.get("url") or "").strip()
        if name and url:
            files.append(DownloadFile(name=name, url=url))
    return files


def dump_download_files(files: Iterable[DownloadFile]) -> List[dict]:
    return [f.to_dict() for f in files]


# --- Ordering -------------------------------------------------------------------

def display_sort_key(item: Any) -> tuple:
    order = getattr(item, "order", None)
    created = getattr(item, "created_at", None) or ""
    return (order is None, order if order is not None else 0, created, str(getattr(item, "id", "")))


def sort_for_display(items: Iterable[Any]) -> list:
    return sorted(items, key=display_sort_key)


def next_order(siblings: Sequence[Any]) -> int:
    """Order value for a new sibling: one past the largest, null counted as 0."""
    if not siblings:
        return 1
    return 1 + max((s.order if s.order is not None else 0) for s in siblings)


__all__ = [
    "Course",
    "Lesson",
    "DownloadFile",
    "parse_download_files",
    "dump_download_files",
    "display_sort_key",
    "sort_for_display",
    "next_order",
]
