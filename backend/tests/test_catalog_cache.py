"""
Query cache: TTL, shared in-flight loads, and declared write invalidations.
"""
from __future__ import annotations

import anyio
import pytest

from backend.catalog.cache import (
    WRITE_INVALIDATIONS,
    QueryCache,
    course_key,
    courses_key,
    invalidation_keys,
    lessons_key,
)


class _Clock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def _counting_loader(value):
    calls = {"n": 0}

    async def load():
        calls["n"] += 1
        return value

    return load, calls


@pytest.mark.anyio
async def test_fresh_entries_are_served_without_reloading():
    cache = QueryCache(ttl_seconds=60, clock=_Clock())
    load, calls = _counting_loader(["a"])

    assert await cache.fetch(courses_key(), load) == ["a"]
    assert await cache.fetch(courses_key(), load) == ["a"]
    assert calls["n"] == 1


@pytest.mark.anyio
async def test_entries_expire_after_ttl():
    clock = _Clock()
    cache = QueryCache(ttl_seconds=60, clock=clock)
    load, calls = _counting_loader(["a"])

    await cache.fetch(courses_key(), load)
    clock.now += 61
    assert cache.peek(courses_key()) is None
    await cache.fetch(courses_key(), load)
    assert calls["n"] == 2


@pytest.mark.anyio
async def test_concurrent_fetches_share_one_load():
    cache = QueryCache(ttl_seconds=60)
    release = anyio.Event()
    calls = {"n": 0}
    results = []

    async def load():
        calls["n"] += 1
        await release.wait()
        return "value"

    async def reader():
        results.append(await cache.fetch(lessons_key("c1"), load))

    async with anyio.create_task_group() as tg:
        tg.start_soon(reader)
        tg.start_soon(reader)
        await anyio.sleep(0.01)
        release.set()

    assert results == ["value", "value"]
    assert calls["n"] == 1


@pytest.mark.anyio
async def test_load_started_before_invalidation_is_not_stored():
    cache = QueryCache(ttl_seconds=60)
    release = anyio.Event()
    results = []

    async def load():
        await release.wait()
        return "stale"

    async def reader():
        results.append(await cache.fetch(courses_key(), load))

    async with anyio.create_task_group() as tg:
        tg.start_soon(reader)
        await anyio.sleep(0.01)
        cache.invalidate(courses_key())
        release.set()

    assert results == ["stale"]
    assert cache.peek(courses_key()) is None


@pytest.mark.anyio
async def test_errors_are_not_cached():
    cache = QueryCache(ttl_seconds=60)

    async def failing():
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        await cache.fetch(courses_key(), failing)

    load, calls = _counting_loader(["ok"])
    assert await cache.fetch(courses_key(), load) == ["ok"]
    assert calls["n"] == 1


@pytest.mark.anyio
async def test_waiters_start_a_new_load_when_the_running_one_is_cancelled():
    cache = QueryCache(ttl_seconds=60)
    calls = {"n": 0}
    results = []

    async def load():
        calls["n"] += 1
        if calls["n"] == 1:
            await anyio.sleep_forever()
        return "value"

    first = anyio.CancelScope()

    async def cancelled_reader():
        with first:
            await cache.fetch(courses_key(), load)

    async def waiting_reader():
        results.append(await cache.fetch(courses_key(), load))

    async with anyio.create_task_group() as tg:
        tg.start_soon(cancelled_reader)
        await anyio.sleep(0.01)
        tg.start_soon(waiting_reader)
        await anyio.sleep(0.01)
        first.cancel()

    assert results == ["value"]
    assert calls["n"] == 2
    assert cache.peek(courses_key()) == "value"


@pytest.mark.anyio
async def test_invalidate_kind_drops_every_key_of_that_kind():
    cache = QueryCache(ttl_seconds=60)
    for cid in ("c1", "c2"):
        load, _ = _counting_loader([cid])
        await cache.fetch(lessons_key(cid), load)
    load, _ = _counting_loader(["all"])
    await cache.fetch(courses_key(), load)

    cache.invalidate_kind("lessons")

    assert cache.peek(lessons_key("c1")) is None
    assert cache.peek(lessons_key("c2")) is None
    assert cache.peek(courses_key()) == ["all"]


def test_course_delete_invalidates_list_course_and_lessons():
    assert invalidation_keys("course.delete", "c1") == (courses_key(), course_key("c1"), lessons_key("c1"))


def test_lesson_writes_only_touch_their_course_lessons():
    for kind in ("lesson.create", "lesson.update", "lesson.move", "lesson.delete"):
        assert invalidation_keys(kind, "c9") == (lessons_key("c9"),)


def test_every_declared_write_kind_resolves():
    for kind in WRITE_INVALIDATIONS:
        assert invalidation_keys(kind, "x")


def test_unknown_write_kind_is_rejected():
    with pytest.raises(ValueError):
        invalidation_keys("course.rename", "c1")
