"""
Catalog read model.

Every read goes through the shared `QueryCache`; the repository is called at
most once per key while a result is fresh. Repository calls are synchronous
(supabase-py's sync client or the in-memory repo) and run in a worker thread
so a slow backend does not block the event loop.
"""
from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from typing import Any, Callable, List
from uuid import UUID

import anyio

from ..cache import QueryCache, course_key, courses_key, lessons_key
from ..errors import BackendQueryError, CatalogError, NotFound
from ..models import Course, Lesson, sort_for_display
from ..repo import CatalogRepoProtocol


def _is_uuid_like(value: str) -> bool:
    try:
        UUID(str(value))
    except (ValueError, TypeError):
        return False
    return True


async def _query(fn: Callable[..., Any], *args: Any) -> Any:
    try:
        return await anyio.to_thread.run_sync(partial(fn, *args))
    except CatalogError:
        raise
    except Exception as exc:
        raise BackendQueryError(str(exc) or exc.__class__.__name__) from exc


@dataclass
class CatalogReader:
    repo: CatalogRepoProtocol
    cache: QueryCache

    async def list_courses(self) -> List[Course]:
        async def load() -> List[Course]:
            rows = await _query(self.repo.list_courses)
            return sort_for_display(Course.from_row(r) for r in rows)

        return list(await self.cache.fetch(courses_key(), load))

    async def get_course(self, course_id: str) -> Course:
        if not _is_uuid_like(course_id):
            raise NotFound("course", course_id)
        cached_list = self.cache.peek(courses_key())
        if cached_list is not None:
            for course in cached_list:
                if course.id == course_id:
                    return course

        async def load() -> Course | None:
            row = await _query(self.repo.get_course, course_id)
            return Course.from_row(row) if row else None

        course = await self.cache.fetch(course_key(course_id), load)
        if course is None:
            raise NotFound("course", course_id)
        return course

    async def list_lessons(self, course_id: str) -> List[Lesson]:
        """Lessons of one course in display order; empty for a course without lessons."""
        if not _is_uuid_like(course_id):
            return []

        async def load() -> List[Lesson]:
            rows = await _query(self.repo.list_lessons, course_id)
            return sort_for_display(Lesson.from_row(r) for r in rows)

        return list(await self.cache.fetch(lessons_key(course_id), load))

    async def get_lesson(self, course_id: str, lesson_id: str) -> Lesson:
        for lesson in await self.list_lessons(course_id):
            if lesson.id == lesson_id:
                return lesson
        raise NotFound("lesson", lesson_id)


__all__ = ["CatalogReader"]
