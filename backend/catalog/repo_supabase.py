"""
Supabase-backed catalog repository.

Maps the repository contract onto `client.table(...)` query builders of the
supabase-py client. The client is duck-typed: anything exposing
`table(name)` with the postgrest builder chain (`select/insert/update/delete`,
`eq`, `order`, `limit`, `execute`) works, which keeps tests free of network
access.

Errors:
    Any exception raised while reading becomes `BackendQueryError`; while
    writing, `BackendWriteError`. The backend's message is preserved for the
    user-facing alert.
"""
from __future__ import annotations

from typing import Any, List, Mapping, Optional

import structlog

from .errors import BackendQueryError, BackendWriteError
from .repo import COURSE_COLUMNS, LESSON_COLUMNS


logger = structlog.get_logger()

COURSES_TABLE = "courses"
LESSONS_TABLE = "lessons"


def _error_message(exc: BaseException) -> str:
    # postgrest APIError exposes `.message`; fall back to the string form.
    msg = getattr(exc, "message", None) or str(exc) or exc.__class__.__name__
    return str(msg)


def _rows(response: Any) -> List[dict]:
    data = getattr(response, "data", None)
    if data is None and isinstance(response, Mapping):
        data = response.get("data")
    if data is None:
        return []
    if isinstance(data, Mapping):
        return [dict(data)]
    return [dict(r) for r in data]


class SupabaseCatalogRepo:
    def __init__(self, client: Any) -> None:
        self._client = client

    def _table(self, name: str) -> Any:
        return self._client.table(name)

    def _read(self, op: str, build) -> List[dict]:
        try:
            rows = _rows(build().execute())
        except Exception as exc:
            logger.warning("catalog_query_failed", op=op, error=exc.__class__.__name__)
            raise BackendQueryError(_error_message(exc)) from exc
        logger.debug("catalog_rows_fetched", op=op, count=len(rows))
        return rows

    def _write(self, op: str, build) -> List[dict]:
        try:
            rows = _rows(build().execute())
        except Exception as exc:
            logger.warning("catalog_write_failed", op=op, error=exc.__class__.__name__)
            raise BackendWriteError(_error_message(exc)) from exc
        logger.info("catalog_write_applied", op=op, count=len(rows))
        return rows

    @staticmethod
    def _pick(values: Mapping[str, Any], columns: tuple) -> dict:
        return {k: values[k] for k in columns if k in values}

    # --- Courses -----------------------------------------------------------------

    def list_courses(self) -> List[dict]:
        return self._read(
            "list_courses",
            lambda: self._table(COURSES_TABLE).select("*").order("order", nullsfirst=False).order("created_at"),
        )

    def get_course(self, course_id: str) -> Optional[dict]:
        rows = self._read(
            "get_course",
            lambda: self._table(COURSES_TABLE).select("*").eq("id", course_id).limit(1),
        )
        return rows[0] if rows else None

    def insert_course(self, values: Mapping[str, Any]) -> dict:
        payload = self._pick(values, COURSE_COLUMNS)
        rows = self._write("insert_course", lambda: self._table(COURSES_TABLE).insert(payload))
        if not rows:
            raise BackendWriteError("insert_returned_no_row")
        return rows[0]

    def update_course(self, course_id: str, patch: Mapping[str, Any]) -> Optional[dict]:
        payload = self._pick(patch, COURSE_COLUMNS)
        rows = self._write(
            "update_course",
            lambda: self._table(COURSES_TABLE).update(payload).eq("id", course_id),
        )
        return rows[0] if rows else None

    def delete_course(self, course_id: str) -> bool:
        rows = self._write("delete_course", lambda: self._table(COURSES_TABLE).delete().eq("id", course_id))
        return bool(rows)

    # --- Lessons -----------------------------------------------------------------

    def list_lessons(self, course_id: str) -> List[dict]:
        return self._read(
            "list_lessons",
            lambda: self._table(LESSONS_TABLE)
            .select("*")
            .eq("course_id", course_id)
            .order("order", nullsfirst=False)
            .order("created_at"),
        )

    def get_lesson(self, lesson_id: str) -> Optional[dict]:
        rows = self._read(
            "get_lesson",
            lambda: self._table(LESSONS_TABLE).select("*").eq("id", lesson_id).limit(1),
        )
        return rows[0] if rows else None

    def insert_lesson(self, values: Mapping[str, Any]) -> dict:
        payload = self._pick(values, LESSON_COLUMNS)
        rows = self._write("insert_lesson", lambda: self._table(LESSONS_TABLE).insert(payload))
        if not rows:
            raise BackendWriteError("insert_returned_no_row")
        return rows[0]

    def update_lesson(self, lesson_id: str, patch: Mapping[str, Any]) -> Optional[dict]:
        if "course_id" in patch:
            raise BackendWriteError("course_id_immutable")
        payload = self._pick(patch, LESSON_COLUMNS)
        rows = self._write(
            "update_lesson",
            lambda: self._table(LESSONS_TABLE).update(payload).eq("id", lesson_id),
        )
        return rows[0] if rows else None

    def delete_lesson(self, lesson_id: str) -> bool:
        rows = self._write("delete_lesson", lambda: self._table(LESSONS_TABLE).delete().eq("id", lesson_id))
        return bool(rows)


__all__ = ["SupabaseCatalogRepo"]
