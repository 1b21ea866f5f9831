"""
Catalog repository contract and the in-memory implementation.

Rows travel as plain dicts with the backend's column names. The Supabase
implementation lives in `repo_supabase.py`; the in-memory repo serves local
development without a backend and the test-suite.

Contract notes:
    - `get_*` return None when no row matches.
    - `update_*` return the updated row, or None when the id is unknown.
    - Lesson patches never carry `course_id`; a lesson stays in its course.
    - Deleting a course removes its lessons (the backend cascades the same way).
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol
from uuid import uuid4
import copy


COURSE_COLUMNS = ("title", "description", "image_url", "order")
LESSON_COLUMNS = ("course_id", "title", "description", "youtube_video_id", "download_files", "order")


class CatalogRepoProtocol(Protocol):
    def list_courses(self) -> List[dict]:
        ...

    def get_course(self, course_id: str) -> Optional[dict]:
        ...

    def insert_course(self, values: Mapping[str, Any]) -> dict:
        ...

    def update_course(self, course_id: str, patch: Mapping[str, Any]) -> Optional[dict]:
        ...

    def delete_course(self, course_id: str) -> bool:
        ...

    def list_lessons(self, course_id: str) -> List[dict]:
        ...

    def get_lesson(self, lesson_id: str) -> Optional[dict]:
        ...

    def insert_lesson(self, values: Mapping[str, Any]) -> dict:
        ...

    def update_lesson(self, lesson_id: str, patch: Mapping[str, Any]) -> Optional[dict]:
        ...

    def delete_lesson(self, lesson_id: str) -> bool:
        ...


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


def _row_sort_key(row: Mapping[str, Any]) -> tuple:
    order = row.get("order")
    return (order is None, order or 0, row.get("created_at") or "", str(row["id"]))


class InMemoryCatalogRepo:
    def __init__(self, clock: Callable[[], str] = _utcnow) -> None:
        self._clock = clock
        self.courses: Dict[str, dict] = {}
        self.lessons: Dict[str, dict] = {}

    @staticmethod
    def _pick(values: Mapping[str, Any], columns: tuple) -> dict:
        return {k: copy.deepcopy(values[k]) for k in columns if k in values}

    # --- Courses -----------------------------------------------------------------

    def list_courses(self) -> List[dict]:
        return [dict(r) for r in sorted(self.courses.values(), key=_row_sort_key)]

    def get_course(self, course_id: str) -> Optional[dict]:
        row = self.courses.get(course_id)
        return dict(row) if row else None

    def insert_course(self, values: Mapping[str, Any]) -> dict:
        title = (values.get("title") or "").strip()
        if not title:
            raise ValueError("courses.title violates not-null constraint")
        now = self._clock()
        row = {"id": str(uuid4()), "description": None, "image_url": None, "order": None}
        row.update(self._pick(values, COURSE_COLUMNS))
        row.update({"title": title, "created_at": now, "updated_at": now})
        self.courses[row["id"]] = row
        return dict(row)

    def update_course(self, course_id: str, patch: Mapping[str, Any]) -> Optional[dict]:
        row = self.courses.get(course_id)
        if row is None:
            return None
        changes = self._pick(patch, COURSE_COLUMNS)
        if "title" in changes and not (changes["title"] or "").strip():
            raise ValueError("courses.title violates not-null constraint")
        row.update(changes)
        row["updated_at"] = self._clock()
        return dict(row)

    def delete_course(self, course_id: str) -> bool:
        existed = self.courses.pop(course_id, None) is not None
        for lid in [lid for lid, l in self.lessons.items() if l["course_id"] == course_id]:
            del self.lessons[lid]
        return existed

    # --- Lessons -----------------------------------------------------------------

    def list_lessons(self, course_id: str) -> List[dict]:
        rows = [r for r in self.lessons.values() if r["course_id"] == course_id]
        return [copy.deepcopy(r) for r in sorted(rows, key=_row_sort_key)]

    def get_lesson(self, lesson_id: str) -> Optional[dict]:
        row = self.lessons.get(lesson_id)
        return copy.deepcopy(row) if row else None

    def insert_lesson(self, values: Mapping[str, Any]) -> dict:
        course_id = str(values.get("course_id") or "")
        if course_id not in self.courses:
            raise ValueError("lessons.course_id violates foreign key constraint")
        now = self._clock()
        row = {"id": str(uuid4()), "description": None, "download_files": [], "order": None}
        row.update(self._pick(values, LESSON_COLUMNS))
        row.update({"course_id": course_id, "created_at": now, "updated_at": now})
        self.lessons[row["id"]] = row
        return copy.deepcopy(row)

    def update_lesson(self, lesson_id: str, patch: Mapping[str, Any]) -> Optional[dict]:
        if "course_id" in patch:
            raise ValueError("course_id_immutable")
        row = self.lessons.get(lesson_id)
        if row is None:
            return None
        row.update(self._pick(patch, LESSON_COLUMNS))
        row["updated_at"] = self._clock()
        return copy.deepcopy(row)

    def delete_lesson(self, lesson_id: str) -> bool:
        return self.lessons.pop(lesson_id, None) is not None


__all__ = ["CatalogRepoProtocol", "InMemoryCatalogRepo", "COURSE_COLUMNS", "LESSON_COLUMNS"]
