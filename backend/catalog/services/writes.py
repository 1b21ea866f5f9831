"""
Catalog write model (admin).

Every write is a backend round trip followed by the invalidation of the cache
keys declared for its kind in `cache.WRITE_INVALIDATIONS`. The result carries
the keys that were invalidated so routes and tests can see the side effect.

Reordering:
    Moving an item swaps its effective `order` with the neighbour in the
    requested direction. The effective order of a row without an `order`
    continues after the largest numbered sibling, matching the display rule
    (nulls last). The swap is two independent updates, neighbour first. When
    the two share one order (duplicates left by concurrent edits or typed in
    by hand) the pair is split into adjacent values and later siblings shift
    by as little as keeps them behind. When a later update fails the applied
    ones are restored; if that rollback fails as well, the error is flagged
    `partial`. The operation is best effort, not atomic.

Course images:
    An uploaded file wins over a manually entered URL. When an image that
    lives in our bucket is replaced, cleared, or its course is deleted, the
    old object is removed after the row write succeeded. Cleanup failures are
    logged and never fail the write.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from functools import partial
from typing import Any, Callable, List, Optional, Sequence, Tuple
import logging

import anyio

from ..cache import CacheKey, QueryCache, invalidation_keys
from ..errors import BackendWriteError, CatalogError, NotFound, UploadError, ValidationError
from ..forms import CourseForm, LessonForm
from ..keys import key_from_public_url, make_course_image_key
from ..models import Course, Lesson, next_order
from ..repo import CatalogRepoProtocol
from ..storage import StorageAdapterProtocol
from .reads import CatalogReader


logger = logging.getLogger("academy.catalog.writes")

DIRECTIONS = ("up", "down")
DEFAULT_MAX_IMAGE_BYTES = 5 * 1024 * 1024


@dataclass(frozen=True)
class ImageUpload:
    filename: str
    data: bytes
    content_type: str


@dataclass
class WriteResult:
    record: Any
    invalidated: Tuple[CacheKey, ...] = ()
    changed: bool = True


async def _mutate(fn: Callable[..., Any], *args: Any) -> Any:
    try:
        return await anyio.to_thread.run_sync(partial(fn, *args))
    except CatalogError:
        raise
    except Exception as exc:
        raise BackendWriteError(str(exc) or exc.__class__.__name__) from exc


def _effective_orders(items: Sequence[Any]) -> List[int]:
    numbered = [i.order for i in items if i.order is not None]
    base = max(numbered) if numbered else 0
    orders: List[int] = []
    extra = 0
    for item in items:
        if item.order is not None:
            orders.append(item.order)
        else:
            extra += 1
            orders.append(base + extra)
    return orders


@dataclass
class CatalogWriter:
    repo: CatalogRepoProtocol
    cache: QueryCache
    storage: StorageAdapterProtocol
    bucket: str = "course-images"
    max_image_bytes: int = DEFAULT_MAX_IMAGE_BYTES
    reader: Optional[CatalogReader] = field(default=None)

    def __post_init__(self) -> None:
        if self.reader is None:
            self.reader = CatalogReader(repo=self.repo, cache=self.cache)

    def _invalidate(self, write_kind: str, *course_ids: str) -> Tuple[CacheKey, ...]:
        keys: List[CacheKey] = []
        for cid in course_ids:
            for key in invalidation_keys(write_kind, cid):
                if key not in keys:
                    keys.append(key)
        self.cache.invalidate(*keys)
        return tuple(keys)

    # --- Images ------------------------------------------------------------------

    async def upload_course_image(self, upload: ImageUpload) -> str:
        """Store `upload` in the image bucket and return its public URL."""
        if not upload.data:
            raise ValidationError({"image": "O arquivo de imagem está vazio."})
        if not (upload.content_type or "").lower().startswith("image/"):
            raise ValidationError({"image": "Selecione um arquivo de imagem."})
        if len(upload.data) > self.max_image_bytes:
            raise ValidationError({"image": "A imagem é grande demais."})
        key = make_course_image_key(filename=upload.filename)
        try:
            await anyio.to_thread.run_sync(
                partial(self.storage.put_object, bucket=self.bucket, key=key, body=upload.data, content_type=upload.content_type)
            )
            url = await anyio.to_thread.run_sync(partial(self.storage.public_url, bucket=self.bucket, key=key))
        except Exception as exc:
            logger.warning("Course image upload failed: %s", exc.__class__.__name__)
            raise UploadError(str(exc) or "upload_failed") from exc
        if not url:
            raise UploadError("public_url_missing")
        logger.info("Course image stored (key=%s)", key)
        return str(url)

    async def _discard_image(self, url: Optional[str]) -> None:
        key = key_from_public_url(url, self.bucket)
        if key is None:
            return
        try:
            await anyio.to_thread.run_sync(partial(self.storage.delete_object, bucket=self.bucket, key=key))
        except Exception as exc:
            logger.warning("Could not remove course image %s: %s", key, exc.__class__.__name__)

    # --- Courses -----------------------------------------------------------------

    async def create_course(self, form: CourseForm, image: Optional[ImageUpload] = None) -> WriteResult:
        image_url = await self.upload_course_image(image) if image is not None else form.image_url
        order = form.order
        if order is None:
            order = next_order(await self.reader.list_courses())
        values = dict(form.to_values(), image_url=image_url, order=order)
        try:
            row = await _mutate(self.repo.insert_course, values)
        except BackendWriteError:
            if image is not None:
                await self._discard_image(image_url)
            raise
        course = Course.from_row(row)
        keys = self._invalidate("course.create", course.id)
        logger.info("Course created (id=%s, order=%s)", course.id, course.order)
        return WriteResult(record=course, invalidated=keys)

    async def update_course(self, course_id: str, form: CourseForm, image: Optional[ImageUpload] = None) -> WriteResult:
        current = await self.reader.get_course(course_id)
        image_url = await self.upload_course_image(image) if image is not None else form.image_url
        patch = dict(form.to_values(), image_url=image_url)
        if form.order is not None:
            patch["order"] = form.order
        try:
            row = await _mutate(self.repo.update_course, course_id, patch)
        except BackendWriteError:
            if image is not None:
                await self._discard_image(image_url)
            raise
        keys = self._invalidate("course.update", course_id)
        if row is None:
            if image is not None:
                await self._discard_image(image_url)
            raise NotFound("course", course_id)
        if current.image_url and current.image_url != image_url:
            await self._discard_image(current.image_url)
        return WriteResult(record=Course.from_row(row), invalidated=keys)

    async def delete_course(self, course_id: str, *, confirmed: bool) -> WriteResult:
        if not confirmed:
            raise ValidationError({"confirm": "Confirme a exclusão do curso."})
        current = await self.reader.get_course(course_id)
        existed = await _mutate(self.repo.delete_course, course_id)
        keys = self._invalidate("course.delete", course_id)
        if not existed:
            raise NotFound("course", course_id)
        await self._discard_image(current.image_url)
        logger.info("Course deleted (id=%s)", course_id)
        return WriteResult(record=current, invalidated=keys)

    # --- Lessons -----------------------------------------------------------------

    async def create_lesson(self, course_id: str, form: LessonForm) -> WriteResult:
        await self.reader.get_course(course_id)
        order = form.order
        if order is None:
            order = next_order(await self.reader.list_lessons(course_id))
        values = dict(form.to_values(), course_id=course_id, order=order)
        row = await _mutate(self.repo.insert_lesson, values)
        lesson = Lesson.from_row(row)
        keys = self._invalidate("lesson.create", course_id)
        return WriteResult(record=lesson, invalidated=keys)

    async def _owned_lesson_row(self, course_id: str, lesson_id: str) -> dict:
        try:
            row = await anyio.to_thread.run_sync(partial(self.repo.get_lesson, lesson_id))
        except CatalogError:
            raise
        except Exception as exc:
            raise BackendWriteError(str(exc) or exc.__class__.__name__) from exc
        if not row or str(row.get("course_id")) != str(course_id):
            raise NotFound("lesson", lesson_id)
        return row

    async def update_lesson(self, course_id: str, lesson_id: str, form: LessonForm) -> WriteResult:
        await self._owned_lesson_row(course_id, lesson_id)
        patch = form.to_values()
        if form.order is not None:
            patch["order"] = form.order
        row = await _mutate(self.repo.update_lesson, lesson_id, patch)
        keys = self._invalidate("lesson.update", course_id)
        if row is None:
            raise NotFound("lesson", lesson_id)
        return WriteResult(record=Lesson.from_row(row), invalidated=keys)

    async def delete_lesson(self, course_id: str, lesson_id: str, *, confirmed: bool) -> WriteResult:
        if not confirmed:
            raise ValidationError({"confirm": "Confirme a exclusão da aula."})
        row = await self._owned_lesson_row(course_id, lesson_id)
        existed = await _mutate(self.repo.delete_lesson, lesson_id)
        keys = self._invalidate("lesson.delete", course_id)
        if not existed:
            raise NotFound("lesson", lesson_id)
        return WriteResult(record=Lesson.from_row(row), invalidated=keys)

    # --- Reordering --------------------------------------------------------------

    async def move_course(self, course_id: str, direction: str) -> WriteResult:
        _check_direction(direction)
        courses = await self.reader.list_courses()
        return await self._swap(
            courses, course_id, direction, self.repo.update_course, kind="course", write_kind="course.move",
            course_ids=lambda mover, neighbour: (mover.id, neighbour.id),
        )

    async def move_lesson(self, course_id: str, lesson_id: str, direction: str) -> WriteResult:
        _check_direction(direction)
        lessons = await self.reader.list_lessons(course_id)
        return await self._swap(
            lessons, lesson_id, direction, self.repo.update_lesson, kind="lesson", write_kind="lesson.move",
            course_ids=lambda mover, neighbour: (course_id,),
        )

    async def _swap(
        self,
        items: Sequence[Any],
        item_id: str,
        direction: str,
        update: Callable[[str, dict], Optional[dict]],
        *,
        kind: str,
        write_kind: str,
        course_ids: Callable[[Any, Any], Tuple[str, ...]],
    ) -> WriteResult:
        index = next((i for i, it in enumerate(items) if it.id == item_id), -1)
        if index < 0:
            raise NotFound(kind, item_id)
        target = index - 1 if direction == "up" else index + 1
        if target < 0 or target >= len(items):
            return WriteResult(record=items[index], invalidated=(), changed=False)

        mover, neighbour = items[index], items[target]
        orders = _effective_orders(items)
        mover_order, neighbour_order = orders[index], orders[target]
        steps: List[Tuple[Any, int]]
        if mover_order == neighbour_order:
            steps = _split_tie(items, orders, index, target)
        else:
            steps = [(neighbour, mover_order), (mover, neighbour_order)]

        applied: List[Any] = []
        try:
            for item, new_order in steps:
                row = await _mutate(update, item.id, {"order": new_order})
                if row is None:
                    raise BackendWriteError(f"{kind}_vanished")
                applied.append(item)
        except BackendWriteError as exc:
            self._invalidate(write_kind, *course_ids(mover, neighbour))
            if not applied:
                raise
            partial_failure = False
            for item in applied:
                try:
                    await _mutate(update, item.id, {"order": item.order})
                except BackendWriteError as rollback_exc:
                    partial_failure = True
                    logger.error(
                        "Reorder rollback failed for %s %s: %s", kind, item.id, rollback_exc.message
                    )
            logger.warning("Reorder of %s %s failed after first update (rolled back: %s)", kind, item_id, not partial_failure)
            raise BackendWriteError(exc.message, partial=partial_failure) from exc

        keys = self._invalidate(write_kind, *course_ids(mover, neighbour))
        return WriteResult(record=mover, invalidated=keys)


def _split_tie(items: Sequence[Any], orders: Sequence[int], index: int, target: int) -> List[Tuple[Any, int]]:
    """Updates that move items[index] into `target` when both share one order.

    The item landing in the lower slot keeps the shared value, the other one
    gets the next value, and later siblings shift only as far as needed to
    stay behind it.
    """
    sequence = list(items)
    sequence[index], sequence[target] = sequence[target], sequence[index]
    low = min(index, target)
    values = {low: orders[low]}
    previous = orders[low]
    for pos in range(low + 1, len(sequence)):
        if pos > low + 1 and orders[pos] > previous:
            break
        previous = max(orders[pos], previous + 1)
        values[pos] = previous
    return [(sequence[pos], value) for pos, value in values.items() if sequence[pos].order != value]


def _check_direction(direction: str) -> None:
    if direction not in DIRECTIONS:
        raise ValidationError({"direction": "Direção inválida."})


__all__ = ["CatalogWriter", "ImageUpload", "WriteResult", "DIRECTIONS"]
