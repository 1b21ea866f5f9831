"""Previous/next lesson navigation over an ordered lesson list."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from .models import Lesson


@dataclass(frozen=True)
class LessonNavigation:
    current: Optional[Lesson]
    index: int
    previous: Optional[Lesson]
    next: Optional[Lesson]
    found: bool

    @property
    def position(self) -> int:
        """1-based position for display ("Aula 2 de 5")."""
        return self.index + 1 if self.current is not None else 0


def navigate(lessons: Sequence[Lesson], lesson_id: Optional[str] = None) -> LessonNavigation:
    """Locate `lesson_id` in `lessons` and return its neighbours.

    No id selects the first lesson. An unknown id returns `found=False` with
    no current lesson; callers redirect to the first lesson in that case.
    """
    if not lessons:
        return LessonNavigation(current=None, index=-1, previous=None, next=None, found=lesson_id is None)
    if lesson_id is None:
        index = 0
    else:
        index = next((i for i, l in enumerate(lessons) if l.id == lesson_id), -1)
        if index < 0:
            return LessonNavigation(current=None, index=-1, previous=None, next=None, found=False)
    return LessonNavigation(
        current=lessons[index],
        index=index,
        previous=lessons[index - 1] if index > 0 else None,
        next=lessons[index + 1] if index < len(lessons) - 1 else None,
        found=True,
    )


__all__ = ["LessonNavigation", "navigate"]
