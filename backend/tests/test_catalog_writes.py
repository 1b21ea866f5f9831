"""
Catalog write model: default ordering, reorder swaps, deletes and images.
"""
from __future__ import annotations

import pytest

from backend.catalog.cache import QueryCache, course_key, courses_key, lessons_key
from backend.catalog.errors import BackendWriteError, NotFound, UploadError, ValidationError
from backend.catalog.forms import parse_course_form, parse_lesson_form
from backend.catalog.repo import InMemoryCatalogRepo
from backend.catalog.services import CatalogReader, CatalogWriter, ImageUpload
from backend.catalog.storage import InMemoryStorageAdapter


PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


class RecordingRepo(InMemoryCatalogRepo):
    """In-memory repo that records update calls and can fail on demand."""

    def __init__(self, fail_on=()) -> None:
        super().__init__()
        self.updates = []
        self.inserts = 0
        self.fail_on = set(fail_on)

    def _maybe_fail(self) -> None:
        # `fail_on` holds 1-based update call numbers.
        if len(self.updates) in self.fail_on:
            raise RuntimeError("update rejected")

    def insert_course(self, values):
        self.inserts += 1
        return super().insert_course(values)

    def update_course(self, course_id, patch):
        self.updates.append((course_id, dict(patch)))
        self._maybe_fail()
        return super().update_course(course_id, patch)

    def update_lesson(self, lesson_id, patch):
        self.updates.append((lesson_id, dict(patch)))
        self._maybe_fail()
        return super().update_lesson(lesson_id, patch)


class FailingStorage(InMemoryStorageAdapter):
    def put_object(self, *, bucket, key, body, content_type):
        raise ConnectionError("storage offline")


def _seed_courses(repo: InMemoryCatalogRepo, orders: dict) -> None:
    for i, (cid, order) in enumerate(orders.items()):
        repo.courses[cid] = {
            "id": cid,
            "title": cid.upper(),
            "description": None,
            "image_url": None,
            "order": order,
            "created_at": f"2024-01-0{i + 1}T00:00:00+00:00",
            "updated_at": f"2024-01-0{i + 1}T00:00:00+00:00",
        }


def _writer(repo, storage=None, **kwargs) -> CatalogWriter:
    return CatalogWriter(repo=repo, cache=QueryCache(ttl_seconds=60), storage=storage or InMemoryStorageAdapter(), **kwargs)


def _orders(courses):
    return [(c.id, c.order) for c in courses]


# --- Create ----------------------------------------------------------------------


@pytest.mark.anyio
async def test_create_course_without_order_goes_after_the_largest_sibling():
    repo = RecordingRepo()
    _seed_courses(repo, {"a": 1, "b": None, "c": 4})
    writer = _writer(repo)

    result = await writer.create_course(parse_course_form({"title": "Novo"}))

    assert result.record.order == 5
    assert courses_key() in result.invalidated


@pytest.mark.anyio
async def test_first_course_gets_order_one():
    writer = _writer(RecordingRepo())
    result = await writer.create_course(parse_course_form({"title": "Primeiro"}))
    assert result.record.order == 1


@pytest.mark.anyio
async def test_create_course_keeps_an_explicit_order():
    repo = RecordingRepo()
    _seed_courses(repo, {"a": 1})
    result = await _writer(repo).create_course(parse_course_form({"title": "Novo", "order": "10"}))
    assert result.record.order == 10


@pytest.mark.anyio
async def test_new_course_is_visible_to_the_next_list_read():
    repo = RecordingRepo()
    writer = _writer(repo)
    assert await writer.reader.list_courses() == []

    await writer.create_course(parse_course_form({"title": "Power BI"}))

    assert [c.title for c in await writer.reader.list_courses()] == ["Power BI"]


@pytest.mark.anyio
async def test_invalid_form_never_reaches_the_backend():
    repo = RecordingRepo()
    with pytest.raises(ValidationError):
        await _writer(repo).create_course(parse_course_form({"title": ""}))
    assert repo.inserts == 0


@pytest.mark.anyio
async def test_create_lesson_defaults_order_within_its_course():
    repo = RecordingRepo()
    course = repo.insert_course({"title": "Excel"})
    other = repo.insert_course({"title": "Outro"})
    repo.insert_lesson({"course_id": other["id"], "title": "X", "youtube_video_id": "dQw4w9WgXcQ", "order": 9})
    repo.insert_lesson({"course_id": course["id"], "title": "A", "youtube_video_id": "dQw4w9WgXcQ", "order": 2})
    writer = _writer(repo)

    result = await writer.create_lesson(
        course["id"], parse_lesson_form({"title": "B", "youtube_video_id": "dQw4w9WgXcQ"})
    )

    assert result.record.order == 3
    assert result.invalidated == (lessons_key(course["id"]),)


@pytest.mark.anyio
async def test_create_lesson_for_unknown_course_is_not_found():
    writer = _writer(RecordingRepo())
    form = parse_lesson_form({"title": "Aula", "youtube_video_id": "dQw4w9WgXcQ"})
    with pytest.raises(NotFound):
        await writer.create_lesson("00000000-0000-4000-8000-000000000000", form)


# --- Reorder ---------------------------------------------------------------------


@pytest.mark.anyio
async def test_moving_b_down_swaps_it_with_c():
    repo = RecordingRepo()
    _seed_courses(repo, {"a": 1, "b": 2, "c": 3})
    writer = _writer(repo)

    result = await writer.move_course("b", "down")

    assert result.changed
    assert _orders(await writer.reader.list_courses()) == [("a", 1), ("c", 2), ("b", 3)]
    assert repo.updates == [("c", {"order": 2}), ("b", {"order": 3})]


@pytest.mark.anyio
async def test_moving_first_up_or_last_down_issues_no_backend_call():
    repo = RecordingRepo()
    _seed_courses(repo, {"a": 1, "b": 2, "c": 3})
    writer = _writer(repo)

    up = await writer.move_course("a", "up")
    down = await writer.move_course("c", "down")

    assert not up.changed and not down.changed
    assert up.invalidated == () and down.invalidated == ()
    assert repo.updates == []


@pytest.mark.anyio
async def test_moving_into_unordered_rows_uses_effective_order():
    repo = RecordingRepo()
    _seed_courses(repo, {"a": 1, "b": None, "c": None})
    writer = _writer(repo)

    await writer.move_course("c", "up")

    assert _orders(await writer.reader.list_courses()) == [("a", 1), ("c", 2), ("b", 3)]


@pytest.mark.anyio
async def test_equal_orders_are_split_into_adjacent_values():
    repo = RecordingRepo()
    _seed_courses(repo, {"a": 1, "b": 1})
    writer = _writer(repo)

    await writer.move_course("b", "up")

    assert repo.updates == [("a", {"order": 2})]
    assert [c.id for c in await writer.reader.list_courses()] == ["b", "a"]


@pytest.mark.anyio
async def test_moving_down_within_three_equal_orders_moves_one_slot():
    repo = RecordingRepo()
    _seed_courses(repo, {"a": 1, "b": 1, "c": 1})
    writer = _writer(repo)

    await writer.move_course("a", "down")

    assert [c.id for c in await writer.reader.list_courses()] == ["b", "a", "c"]
    assert repo.updates == [("a", {"order": 2}), ("c", {"order": 3})]


@pytest.mark.anyio
async def test_moving_up_within_three_equal_orders_moves_one_slot():
    repo = RecordingRepo()
    _seed_courses(repo, {"a": 1, "b": 1, "c": 1})
    writer = _writer(repo)

    await writer.move_course("c", "up")

    assert [c.id for c in await writer.reader.list_courses()] == ["a", "c", "b"]
    assert repo.updates == [("b", {"order": 2})]


@pytest.mark.anyio
async def test_splitting_a_tie_shifts_only_the_siblings_in_the_way():
    repo = RecordingRepo()
    _seed_courses(repo, {"a": 1, "b": 1, "c": 2, "d": 5})
    writer = _writer(repo)

    await writer.move_course("b", "up")

    assert _orders(await writer.reader.list_courses()) == [("b", 1), ("a", 2), ("c", 3), ("d", 5)]


@pytest.mark.anyio
async def test_failed_second_update_restores_the_neighbour():
    repo = RecordingRepo(fail_on={2})
    _seed_courses(repo, {"a": 1, "b": 2, "c": 3})
    writer = _writer(repo)

    with pytest.raises(BackendWriteError) as excinfo:
        await writer.move_course("b", "down")

    assert not excinfo.value.partial
    assert repo.courses["c"]["order"] == 3
    assert repo.courses["b"]["order"] == 2


@pytest.mark.anyio
async def test_failed_rollback_is_reported_as_partial():
    repo = RecordingRepo(fail_on={2, 3})
    _seed_courses(repo, {"a": 1, "b": 2, "c": 3})
    writer = _writer(repo)

    with pytest.raises(BackendWriteError) as excinfo:
        await writer.move_course("b", "down")

    assert excinfo.value.partial
    assert repo.courses["c"]["order"] == 2
    # The cached list is dropped so the next read shows the backend's state.
    assert writer.cache.peek(courses_key()) is None


@pytest.mark.anyio
async def test_move_lesson_swaps_within_the_course():
    repo = RecordingRepo()
    course = repo.insert_course({"title": "Excel"})
    first = repo.insert_lesson({"course_id": course["id"], "title": "A", "youtube_video_id": "dQw4w9WgXcQ", "order": 1})
    second = repo.insert_lesson({"course_id": course["id"], "title": "B", "youtube_video_id": "dQw4w9WgXcQ", "order": 2})
    writer = _writer(repo)

    result = await writer.move_lesson(course["id"], second["id"], "up")

    assert result.invalidated == (lessons_key(course["id"]),)
    assert [l.id for l in await writer.reader.list_lessons(course["id"])] == [second["id"], first["id"]]


@pytest.mark.anyio
async def test_move_rejects_unknown_direction_and_item():
    repo = RecordingRepo()
    _seed_courses(repo, {"a": 1})
    writer = _writer(repo)
    with pytest.raises(ValidationError):
        await writer.move_course("a", "sideways")
    with pytest.raises(NotFound):
        await writer.move_course("zzz", "up")


# --- Update / delete -------------------------------------------------------------


@pytest.mark.anyio
async def test_delete_course_invalidates_lists_and_removes_its_lessons():
    repo = RecordingRepo()
    course = repo.insert_course({"title": "Excel"})
    repo.insert_lesson({"course_id": course["id"], "title": "A", "youtube_video_id": "dQw4w9WgXcQ"})
    writer = _writer(repo)
    assert len(await writer.reader.list_lessons(course["id"])) == 1
    assert len(await writer.reader.list_courses()) == 1

    result = await writer.delete_course(course["id"], confirmed=True)

    assert set(result.invalidated) == {courses_key(), course_key(course["id"]), lessons_key(course["id"])}
    assert await writer.reader.list_courses() == []
    assert await writer.reader.list_lessons(course["id"]) == []
    assert repo.lessons == {}


@pytest.mark.anyio
async def test_delete_requires_confirmation():
    repo = RecordingRepo()
    course = repo.insert_course({"title": "Excel"})
    with pytest.raises(ValidationError):
        await _writer(repo).delete_course(course["id"], confirmed=False)
    assert course["id"] in repo.courses


@pytest.mark.anyio
async def test_update_lesson_of_another_course_is_not_found():
    repo = RecordingRepo()
    one = repo.insert_course({"title": "Um"})
    two = repo.insert_course({"title": "Dois"})
    lesson = repo.insert_lesson({"course_id": one["id"], "title": "A", "youtube_video_id": "dQw4w9WgXcQ"})
    form = parse_lesson_form({"title": "Novo", "youtube_video_id": "dQw4w9WgXcQ"})

    with pytest.raises(NotFound):
        await _writer(repo).update_lesson(two["id"], lesson["id"], form)
    assert repo.lessons[lesson["id"]]["title"] == "A"


@pytest.mark.anyio
async def test_update_course_keeps_order_when_form_leaves_it_blank():
    repo = RecordingRepo()
    course = repo.insert_course({"title": "Excel", "order": 7})
    writer = _writer(repo)

    result = await writer.update_course(course["id"], parse_course_form({"title": "Renomeado", "order": ""}))

    assert result.record.title == "Renomeado"
    assert result.record.order == 7


# --- Images ----------------------------------------------------------------------


@pytest.mark.anyio
async def test_uploaded_image_wins_over_url_and_lands_in_the_bucket():
    storage = InMemoryStorageAdapter()
    writer = _writer(RecordingRepo(), storage=storage)
    form = parse_course_form({"title": "Excel", "image_url": "https://cdn.example.com/capa.jpg"})

    result = await writer.create_course(form, image=ImageUpload("Capa.PNG", PNG, "image/png"))

    url = result.record.image_url
    assert url.startswith("http://storage.local/storage/v1/object/public/course-images/courses/")
    assert url.endswith(".png")
    assert len(storage.objects) == 1


@pytest.mark.anyio
async def test_replacing_or_clearing_an_image_removes_the_old_object():
    storage = InMemoryStorageAdapter()
    writer = _writer(RecordingRepo(), storage=storage)
    created = await writer.create_course(
        parse_course_form({"title": "Excel"}), image=ImageUpload("a.png", PNG, "image/png")
    )
    cid = created.record.id

    replaced = await writer.update_course(
        cid,
        parse_course_form({"title": "Excel", "image_url": created.record.image_url}),
        image=ImageUpload("b.png", PNG, "image/png"),
    )
    assert list(storage.objects) == [("course-images", replaced.record.image_url.rsplit("/course-images/", 1)[1])]

    await writer.update_course(cid, parse_course_form({"title": "Excel", "image_url": ""}))
    assert storage.objects == {}


@pytest.mark.anyio
async def test_upload_for_a_course_deleted_meanwhile_is_removed_again():
    repo = RecordingRepo()
    storage = InMemoryStorageAdapter()
    writer = _writer(repo, storage=storage)
    created = await writer.create_course(parse_course_form({"title": "Excel"}))
    await writer.reader.list_courses()
    repo.courses.clear()

    with pytest.raises(NotFound):
        await writer.update_course(
            created.record.id, parse_course_form({"title": "Excel"}), image=ImageUpload("x.png", PNG, "image/png")
        )

    assert storage.objects == {}


@pytest.mark.anyio
async def test_foreign_image_urls_are_left_alone_on_delete():
    storage = InMemoryStorageAdapter()
    storage.put_object(bucket="course-images", key="courses/keep.png", body=PNG, content_type="image/png")
    repo = RecordingRepo()
    course = repo.insert_course({"title": "Excel", "image_url": "https://cdn.example.com/courses/keep.png"})

    await _writer(repo, storage=storage).delete_course(course["id"], confirmed=True)

    assert ("course-images", "courses/keep.png") in storage.objects


@pytest.mark.anyio
async def test_image_checks_happen_before_any_upload():
    storage = InMemoryStorageAdapter()
    writer = _writer(RecordingRepo(), storage=storage, max_image_bytes=16)
    form = parse_course_form({"title": "Excel"})

    for upload in (
        ImageUpload("vazio.png", b"", "image/png"),
        ImageUpload("doc.pdf", b"%PDF-1.7", "application/pdf"),
        ImageUpload("grande.png", PNG, "image/png"),
    ):
        with pytest.raises(ValidationError) as excinfo:
            await writer.create_course(form, image=upload)
        assert set(excinfo.value.field_errors) == {"image"}
    assert storage.objects == {}


@pytest.mark.anyio
async def test_storage_failure_is_an_upload_error_and_nothing_is_written():
    repo = RecordingRepo()
    writer = _writer(repo, storage=FailingStorage())

    with pytest.raises(UploadError):
        await writer.create_course(parse_course_form({"title": "Excel"}), image=ImageUpload("a.png", PNG, "image/png"))
    assert repo.inserts == 0


@pytest.mark.anyio
async def test_writer_shares_the_reader_cache():
    repo = RecordingRepo()
    cache = QueryCache(ttl_seconds=60)
    reader = CatalogReader(repo=repo, cache=cache)
    writer = CatalogWriter(repo=repo, cache=cache, storage=InMemoryStorageAdapter(), reader=reader)
    await reader.list_courses()

    await writer.create_course(parse_course_form({"title": "Novo"}))

    assert cache.peek(courses_key()) is None
    assert [c.title for c in await reader.list_courses()] == ["Novo"]
