"""
Keyed query cache for catalog reads.

Why:
    Every catalog view asks for the same few lists (all courses, one course,
    the lessons of a course). The cache keeps the most recent result per
    (kind, parent id) key for a short TTL and shares one in-flight load
    between concurrent requests. Writes never patch cached data: they
    invalidate the keys they affect and the next read refetches.

Invalidation:
    The keys each write affects are declared once in `WRITE_INVALIDATIONS`
    and resolved through `invalidation_keys()`. Call sites never pick keys
    themselves.

Concurrency:
    A load that was started before an invalidation of its key does not store
    its result; callers waiting on it still receive the value they asked for.
    Errors are never cached. When the caller running a load is cancelled, the
    callers waiting on it start a new load instead of inheriting the
    cancellation.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple
import logging
import time

import anyio


logger = logging.getLogger("academy.catalog.cache")

CacheKey = Tuple[str, Optional[str]]

COURSES = "courses"
COURSE = "course"
LESSONS = "lessons"


def courses_key() -> CacheKey:
    return (COURSES, None)


def course_key(course_id: str) -> CacheKey:
    return (COURSE, str(course_id))


def lessons_key(course_id: str) -> CacheKey:
    return (LESSONS, str(course_id))


# Write kind -> cache kinds whose key (bound to the write's course id) is invalidated.
WRITE_INVALIDATIONS: Dict[str, Tuple[str, ...]] = {
    "course.create": (COURSES, COURSE),
    "course.update": (COURSES, COURSE),
    "course.move": (COURSES, COURSE),
    "course.delete": (COURSES, COURSE, LESSONS),
    "lesson.create": (LESSONS,),
    "lesson.update": (LESSONS,),
    "lesson.move": (LESSONS,),
    "lesson.delete": (LESSONS,),
}


def invalidation_keys(write_kind: str, course_id: str) -> Tuple[CacheKey, ...]:
    """Return the declared cache keys affected by a write on `course_id`."""
    try:
        kinds = WRITE_INVALIDATIONS[write_kind]
    except KeyError:
        raise ValueError(f"unknown_write_kind:{write_kind}") from None
    keys = []
    for kind in kinds:
        keys.append(courses_key() if kind == COURSES else (kind, str(course_id)))
    return tuple(keys)


@dataclass
class _Entry:
    value: Any
    stored_at: float


@dataclass
class _Inflight:
    generation: int
    done: anyio.Event = field(default_factory=anyio.Event)
    value: Any = None
    loaded: bool = False
    error: Optional[Exception] = None


class QueryCache:
    def __init__(self, ttl_seconds: float = 60.0, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl_seconds = float(ttl_seconds)
        self._clock = clock
        self._entries: Dict[CacheKey, _Entry] = {}
        self._inflight: Dict[CacheKey, _Inflight] = {}
        self._generations: Dict[CacheKey, int] = {}

    def _fresh(self, entry: _Entry) -> bool:
        if self.ttl_seconds <= 0:
            return False
        return (self._clock() - entry.stored_at) < self.ttl_seconds

    def peek(self, key: CacheKey) -> Any:
        """Return the cached value for `key` if fresh, else None (no load)."""
        entry = self._entries.get(key)
        if entry is None or not self._fresh(entry):
            return None
        return entry.value

    async def fetch(self, key: CacheKey, loader: Callable[[], Awaitable[Any]]) -> Any:
        while True:
            entry = self._entries.get(key)
            if entry is not None and self._fresh(entry):
                return entry.value
            pending = self._inflight.get(key)
            if pending is None:
                break
            await pending.done.wait()
            if pending.error is not None:
                raise pending.error
            if pending.loaded:
                return pending.value
            # The load was cancelled; start another one.

        pending = _Inflight(generation=self._generations.get(key, 0))
        self._inflight[key] = pending
        try:
            value = await loader()
        except Exception as exc:
            pending.error = exc
            raise
        else:
            pending.value = value
            pending.loaded = True
            if self._generations.get(key, 0) == pending.generation:
                self._entries[key] = _Entry(value=value, stored_at=self._clock())
            else:
                logger.debug("Discarding stale load for %s", key)
            return value
        finally:
            if self._inflight.get(key) is pending:
                del self._inflight[key]
            pending.done.set()

    def invalidate(self, *keys: CacheKey) -> None:
        for key in keys:
            self._entries.pop(key, None)
            self._generations[key] = self._generations.get(key, 0) + 1
            # Later callers must not join a load that predates the invalidation.
            self._inflight.pop(key, None)

    def invalidate_kind(self, kind: str) -> None:
        keys = {k for k in list(self._entries) + list(self._inflight) if k[0] == kind}
        self.invalidate(*keys)

    def clear(self) -> None:
        self.invalidate(*(list(self._entries) + list(self._inflight)))


__all__ = [
    "CacheKey",
    "QueryCache",
    "WRITE_INVALIDATIONS",
    "invalidation_keys",
    "courses_key",
    "course_key",
    "lessons_key",
]
