"""
Lesson player: YouTube embed, description, attachments and prev/next links,
plus the sidebar listing every lesson of the course.
"""

from typing import Optional, Sequence
from urllib.parse import quote

from .base import Component


YOUTUBE_EMBED_BASE = "https://www.youtube.com/embed/"


def youtube_embed_url(video_id: str) -> str:
    return YOUTUBE_EMBED_BASE + quote(video_id or "", safe="")


class LessonPlayer(Component):
    def __init__(self, course_id: str, lesson, *, previous=None, next_=None, position: int = 0, total: int = 0):
        self.course_id = course_id
        self.lesson = lesson
        self.previous = previous
        self.next = next_
        self.position = position
        self.total = total

    def _href(self, lesson) -> str:
        return f"/courses/{quote(self.course_id, safe='')}/{quote(lesson.id, safe='')}"

    def _render_downloads(self) -> str:
        files = self.lesson.download_files
        if not files:
            return ""
        items = "".join(
            f'<li><a href="{self.escape(f.url)}" target="_blank" rel="noopener" download>{self.escape(f.name)}</a></li>'
            for f in files
        )
        return f'<section class="lesson-downloads"><h2>Materiais para download</h2><ul>{items}</ul></section>'

    def _render_pager(self) -> str:
        prev_html = (
            f'<a class="btn btn-secondary" rel="prev" href="{self._href(self.previous)}">&larr; {self.escape(self.previous.title)}</a>'
            if self.previous
            else '<span class="btn btn-secondary" aria-disabled="true">&larr; Anterior</span>'
        )
        next_html = (
            f'<a class="btn btn-primary" rel="next" href="{self._href(self.next)}">{self.escape(self.next.title)} &rarr;</a>'
            if self.next
            else '<span class="btn btn-primary" aria-disabled="true">Próxima &rarr;</span>'
        )
        return f'<nav class="lesson-pager" aria-label="Navegação entre aulas">{prev_html}{next_html}</nav>'

    def render(self) -> str:
        lesson = self.lesson
        frame_attrs = self.attributes(
            class_="lesson-video",
            src=youtube_embed_url(lesson.youtube_video_id),
            title=lesson.title,
            allow="accelerometer; autoplay; clipboard-write; encrypted-media; gyroscope; picture-in-picture",
            allowfullscreen=True,
            loading="lazy",
        )
        counter = (
            f'<p class="lesson-counter">Aula {self.position} de {self.total}</p>' if self.total else ""
        )
        desc = f'<p class="lesson-description">{self.escape(lesson.description)}</p>' if lesson.description else ""
        return f"""
        <article class="lesson-player" id="lesson-{self.escape(lesson.id)}">
            <div class="video-frame"><iframe {frame_attrs}></iframe></div>
            {counter}
            <h2 class="lesson-title">{self.escape(lesson.title)}</h2>
            {desc}
            {self._render_downloads()}
            {self._render_pager()}
        </article>
        """


class LessonSidebar(Component):
    def __init__(self, course_id: str, lessons: Sequence, current_id: Optional[str] = None):
        self.course_id = course_id
        self.lessons = list(lessons)
        self.current_id = current_id

    def render(self) -> str:
        if not self.lessons:
            return ""
        items = []
        for index, lesson in enumerate(self.lessons, start=1):
            current = lesson.id == self.current_id
            attrs = self.attributes(
                href=f"/courses/{quote(self.course_id, safe='')}/{quote(lesson.id, safe='')}",
                class_=self.classes("lesson-link", current=current),
                aria_current="true" if current else None,
            )
            items.append(f"<li><a {attrs}><span class=\"lesson-index\">{index}.</span> {self.escape(lesson.title)}</a></li>")
        return f'<aside class="lesson-sidebar" aria-label="Aulas do curso"><h2>Aulas</h2><ol>{"".join(items)}</ol></aside>'
