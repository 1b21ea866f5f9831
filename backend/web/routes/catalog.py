"""
Public catalog pages: course list, course detail with lesson player.

Unknown courses redirect to the course list and unknown lessons to the
course's first lesson. Backend read failures render an error page with the
backend's message; nothing is retried automatically.
"""
from __future__ import annotations

from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Request
from fastapi.responses import RedirectResponse

from backend.catalog.errors import BackendQueryError, NotFound
from backend.catalog.navigation import navigate
from backend.web import services
from backend.web.components import CourseCard, ErrorPage, LessonPlayer, LessonSidebar
from backend.web.components.base import Component
from backend.web.rendering import render_page


catalog_router = APIRouter()


def _error_page(request: Request, exc: BackendQueryError, retry_href: str):
    return render_page(request, "Erro", ErrorPage(exc.message, retry_href=retry_href).render(), status_code=502)


@catalog_router.get("/", include_in_schema=False)
async def index():
    return RedirectResponse(url="/courses", status_code=302)


@catalog_router.get("/courses", include_in_schema=False)
async def courses_index(request: Request):
    try:
        courses = await services.get_reader().list_courses()
    except BackendQueryError as exc:
        return _error_page(request, exc, "/courses")
    if courses:
        cards = "".join(
            CourseCard(c.id, c.title, description=c.description, image_url=c.image_url).render() for c in courses
        )
        body = f'<div class="course-grid">{cards}</div>'
    else:
        body = '<p class="empty-state">Nenhum curso disponível no momento.</p>'
    content = f'<section class="catalog"><h1>Nossos cursos</h1>{body}</section>'
    return render_page(request, "Cursos", content)


@catalog_router.get("/courses/{course_id}", include_in_schema=False)
async def course_detail(request: Request, course_id: str):
    return await _render_course(request, course_id, None)


@catalog_router.get("/courses/{course_id}/{lesson_id}", include_in_schema=False)
async def course_lesson(request: Request, course_id: str, lesson_id: str):
    return await _render_course(request, course_id, lesson_id)


async def _render_course(request: Request, course_id: str, lesson_id: Optional[str]):
    reader = services.get_reader()
    course_href = f"/courses/{quote(course_id, safe='')}"
    try:
        course = await reader.get_course(course_id)
        lessons = await reader.list_lessons(course_id)
    except NotFound:
        return RedirectResponse(url="/courses", status_code=302)
    except BackendQueryError as exc:
        return _error_page(request, exc, course_href)

    nav = navigate(lessons, lesson_id)
    if not nav.found:
        return RedirectResponse(url=course_href, status_code=302)

    esc = Component.escape
    header = f'<header class="course-header"><h1>{esc(course.title)}</h1>'
    if course.description:
        header += f'<p class="course-description">{esc(course.description)}</p>'
    header += "</header>"

    if nav.current is None:
        main = '<p class="empty-state">Este curso ainda não tem aulas publicadas.</p>'
        sidebar = ""
    else:
        main = LessonPlayer(
            course.id, nav.current, previous=nav.previous, next_=nav.next, position=nav.position, total=len(lessons)
        ).render()
        sidebar = LessonSidebar(course.id, lessons, nav.current.id).render()

    crumbs = [("/courses", "Cursos"), (course_href, course.title)]
    if nav.current is not None and lesson_id is not None:
        crumbs.append((f"{course_href}/{quote(nav.current.id, safe='')}", nav.current.title))
    content = f'<section class="course-detail">{header}<div class="course-layout">{main}{sidebar}</div></section>'
    title = nav.current.title if nav.current is not None and lesson_id is not None else course.title
    return render_page(request, title, content, crumbs=crumbs)
