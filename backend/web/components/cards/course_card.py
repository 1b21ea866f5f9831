"""
CourseCard component for the public catalog grid.
"""

from typing import Optional

from ..base import Component


class CourseCard(Component):
    def __init__(self, course_id: str, title: str, *, description: Optional[str] = None, image_url: Optional[str] = None):
        self.course_id = course_id
        self.title = title
        self.description = description
        self.image_url = image_url

    def render(self) -> str:
        href = f"/courses/{self.escape(self.course_id)}"
        if self.image_url:
            media = f'<img class="course-card__image" src="{self.escape(self.image_url)}" alt="" loading="lazy">'
        else:
            media = '<div class="course-card__image course-card__image--placeholder" aria-hidden="true"></div>'
        desc = f'<p class="course-card__description">{self.escape(self.description)}</p>' if self.description else ""
        return (
            '<article class="course-card">'
            f'<a class="course-card__link" href="{href}">'
            f"{media}"
            f'<h2 class="course-card__title">{self.escape(self.title)}</h2>'
            "</a>"
            f"{desc}"
            f'<a class="btn btn-primary" href="{href}">Ver curso</a>'
            "</article>"
        )
