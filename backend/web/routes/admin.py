"""
Admin area: dashboard plus course and lesson management.

Access is enforced by the session gate middleware; every handler here runs
for a signed-in admin only. All POSTs carry the per-session CSRF token.

Error presentation:
    - ValidationError: the form is shown again (400) with field messages and
      the submitted values.
    - BackendWriteError / UploadError / BackendQueryError: the previous view is
      shown again with the backend's message in an alert.
    - NotFound: redirect to the surrounding list.
    Successful writes redirect (303) back to the list with a flash code.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote
import logging

from fastapi import APIRouter, Request
from fastapi.responses import RedirectResponse
from starlette.datastructures import UploadFile

from backend.catalog.errors import (
    BackendQueryError,
    BackendWriteError,
    CatalogError,
    NotFound,
    UploadError,
    ValidationError,
)
from backend.catalog.forms import parse_course_form, parse_lesson_form
from backend.catalog.services import ImageUpload
from backend.web import services
from backend.web.components import (
    Alert,
    ConfirmDelete,
    CourseForm,
    CourseTable,
    ErrorPage,
    LessonForm,
    LessonTable,
    flash_banner,
)
from backend.web.components.base import Component
from backend.web.csrf import validate_csrf
from backend.web.rendering import csrf_token_for, render_page, session_id


logger = logging.getLogger("academy.web.admin")

admin_router = APIRouter(prefix="/admin")

COURSE_TEXT_FIELDS = ("title", "description", "image_url", "order")
LESSON_TEXT_FIELDS = ("title", "description", "youtube_video_id", "order")

_ADMIN_CRUMBS = [("/admin", "Painel"), ("/admin/courses", "Cursos")]


def _q(value: str) -> str:
    return quote(str(value), safe="")


def _course_href(course_id: str) -> str:
    return f"/admin/courses/{_q(course_id)}"


def _lessons_href(course_id: str) -> str:
    return f"{_course_href(course_id)}/lessons"


def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url=url, status_code=303)


def _failure_status(exc: CatalogError) -> int:
    if isinstance(exc, (ValidationError, UploadError)):
        return 400
    return 502


def _failure_message(exc: CatalogError) -> str:
    if isinstance(exc, UploadError):
        return f"Falha no envio da imagem: {exc.message}"
    if isinstance(exc, BackendWriteError):
        if exc.partial:
            return f"A operação foi aplicada só em parte; confira a ordem. Detalhe: {exc.message}"
        return f"Não foi possível salvar: {exc.message}"
    if isinstance(exc, BackendQueryError):
        return f"Não foi possível carregar os dados: {exc.message}"
    return exc.message


def _form_values(form: Any, fields: Tuple[str, ...]) -> Dict[str, str]:
    values = {}
    for name in fields:
        value = form.get(name)
        values[name] = value if isinstance(value, str) else ""
    return values


def _file_rows(form: Any) -> List[Tuple[str, str]]:
    names = [str(v) for v in form.getlist("file_name")]
    urls = [str(v) for v in form.getlist("file_url")]
    width = max(len(names), len(urls))
    names += [""] * (width - len(names))
    urls += [""] * (width - len(urls))
    return [(n, u) for n, u in zip(names, urls) if n.strip() or u.strip()]


async def _image_upload(form: Any) -> Optional[ImageUpload]:
    upload = form.get("image")
    if not isinstance(upload, UploadFile) or not upload.filename:
        return None
    data = await upload.read()
    return ImageUpload(filename=upload.filename, data=data, content_type=upload.content_type or "application/octet-stream")


async def _checked_form(request: Request):
    """Return (form, None) or (None, 403 response) after the CSRF check."""
    form = await request.form()
    if not validate_csrf(session_id(request), str(form.get("csrf_token") or "")):
        logger.warning("CSRF check failed on %s", request.url.path)
        return None, render_page(request, "Erro", Alert("Requisição inválida (CSRF).").render(), status_code=403)
    return form, None


def _course_values(course) -> Dict[str, str]:
    return {
        "title": course.title,
        "description": course.description or "",
        "image_url": course.image_url or "",
        "order": "" if course.order is None else str(course.order),
    }


def _lesson_values(lesson) -> Dict[str, str]:
    return {
        "title": lesson.title,
        "description": lesson.description or "",
        "youtube_video_id": lesson.youtube_video_id,
        "order": "" if lesson.order is None else str(lesson.order),
    }


# --- Dashboard ---------------------------------------------------------------------


@admin_router.get("", include_in_schema=False)
async def dashboard(request: Request):
    user = request.state.user or {}
    try:
        courses = await services.get_reader().list_courses()
        summary = f"<p>{len(courses)} curso(s) cadastrado(s).</p>"
    except BackendQueryError as exc:
        summary = Alert(_failure_message(exc)).render()
    content = f"""
    <section class="admin-dashboard">
        <h1>Painel administrativo</h1>
        <p>Conectado como {Component.escape(user.get("email"))}.</p>
        {summary}
        <a class="btn btn-primary" href="/admin/courses">Gerenciar cursos</a>
    </section>
    """
    return render_page(request, "Painel", content, crumbs=[("/admin", "Painel")])


# --- Courses -------------------------------------------------------------------------


async def _courses_page(
    request: Request,
    *,
    values: Optional[Dict[str, str]] = None,
    errors: Optional[Dict[str, str]] = None,
    alert: Optional[str] = None,
    status_code: int = 200,
):
    token = csrf_token_for(request)
    list_alert = ""
    try:
        courses = await services.get_reader().list_courses()
        table = CourseTable(courses, token).render()
    except BackendQueryError as exc:
        table = ""
        list_alert = Alert(_failure_message(exc)).render()
    flash = flash_banner(request.query_params.get("ok"))
    form = CourseForm(action="/admin/courses", csrf_token=token, values=values, errors=errors, alert=alert).render()
    content = f"""
    <section class="admin-courses">
        <h1>Cursos</h1>
        {flash}{list_alert}
        {table}
        <h2>Novo curso</h2>
        {form}
    </section>
    """
    return render_page(request, "Gerenciar cursos", content, status_code=status_code, crumbs=_ADMIN_CRUMBS)


@admin_router.get("/courses", include_in_schema=False)
async def courses_admin(request: Request):
    return await _courses_page(request)


@admin_router.post("/courses", include_in_schema=False)
async def courses_create(request: Request):
    form, denied = await _checked_form(request)
    if denied:
        return denied
    values = _form_values(form, COURSE_TEXT_FIELDS)
    try:
        payload = parse_course_form(form)
        image = await _image_upload(form)
        writer = await services.get_writer(request.state.session)
        await writer.create_course(payload, image=image)
    except ValidationError as exc:
        return await _courses_page(request, values=values, errors=exc.field_errors, status_code=400)
    except (BackendWriteError, BackendQueryError, UploadError) as exc:
        return await _courses_page(request, values=values, alert=_failure_message(exc), status_code=_failure_status(exc))
    return _redirect("/admin/courses?ok=created")


async def _course_edit_page(request: Request, course_id: str, *, values, errors=None, alert=None, status_code=200):
    form = CourseForm(
        action=f"{_course_href(course_id)}/edit",
        csrf_token=csrf_token_for(request),
        values=values,
        errors=errors,
        alert=alert,
        submit_label="Salvar alterações",
    ).render()
    title = values.get("title") or "Curso"
    content = f'<section class="admin-course-edit"><h1>Editar curso</h1>{form}</section>'
    crumbs = _ADMIN_CRUMBS + [(f"{_course_href(course_id)}/edit", title)]
    return render_page(request, f"Editar {title}", content, status_code=status_code, crumbs=crumbs)


@admin_router.get("/courses/{course_id}/edit", include_in_schema=False)
async def course_edit(request: Request, course_id: str):
    try:
        course = await services.get_reader().get_course(course_id)
    except NotFound:
        return RedirectResponse(url="/admin/courses", status_code=302)
    except BackendQueryError as exc:
        return render_page(request, "Erro", ErrorPage(exc.message, retry_href=request.url.path).render(), status_code=502)
    return await _course_edit_page(request, course_id, values=_course_values(course))


@admin_router.post("/courses/{course_id}/edit", include_in_schema=False)
async def course_update(request: Request, course_id: str):
    form, denied = await _checked_form(request)
    if denied:
        return denied
    values = _form_values(form, COURSE_TEXT_FIELDS)
    try:
        payload = parse_course_form(form)
        image = await _image_upload(form)
        writer = await services.get_writer(request.state.session)
        await writer.update_course(course_id, payload, image=image)
    except ValidationError as exc:
        return await _course_edit_page(request, course_id, values=values, errors=exc.field_errors, status_code=400)
    except NotFound:
        return _redirect("/admin/courses")
    except (BackendWriteError, BackendQueryError, UploadError) as exc:
        return await _course_edit_page(
            request, course_id, values=values, alert=_failure_message(exc), status_code=_failure_status(exc)
        )
    return _redirect("/admin/courses?ok=updated")


def _course_confirm_page(request: Request, course, *, alert=None, status_code=200):
    dialog = ConfirmDelete(
        action=f"{_course_href(course.id)}/delete",
        cancel_href="/admin/courses",
        csrf_token=csrf_token_for(request),
        heading="Excluir curso",
        message=f'Excluir o curso "{course.title}"? Todas as aulas dele também serão excluídas.',
        alert=alert,
    ).render()
    return render_page(request, "Excluir curso", dialog, status_code=status_code, crumbs=_ADMIN_CRUMBS)


@admin_router.get("/courses/{course_id}/delete", include_in_schema=False)
async def course_delete_confirm(request: Request, course_id: str):
    try:
        course = await services.get_reader().get_course(course_id)
    except NotFound:
        return RedirectResponse(url="/admin/courses", status_code=302)
    except BackendQueryError as exc:
        return render_page(request, "Erro", ErrorPage(exc.message, retry_href=request.url.path).render(), status_code=502)
    return _course_confirm_page(request, course)


@admin_router.post("/courses/{course_id}/delete", include_in_schema=False)
async def course_delete(request: Request, course_id: str):
    form, denied = await _checked_form(request)
    if denied:
        return denied
    confirmed = str(form.get("confirm") or "") == "yes"
    try:
        writer = await services.get_writer(request.state.session)
        await writer.delete_course(course_id, confirmed=confirmed)
    except NotFound:
        return _redirect("/admin/courses")
    except (ValidationError, BackendWriteError, BackendQueryError) as exc:
        try:
            course = await services.get_reader().get_course(course_id)
        except CatalogError:
            return _redirect("/admin/courses")
        message = "Confirme a exclusão." if isinstance(exc, ValidationError) else _failure_message(exc)
        return _course_confirm_page(request, course, alert=message, status_code=_failure_status(exc))
    return _redirect("/admin/courses?ok=deleted")


@admin_router.post("/courses/{course_id}/move", include_in_schema=False)
async def course_move(request: Request, course_id: str):
    form, denied = await _checked_form(request)
    if denied:
        return denied
    direction = str(form.get("direction") or "")
    try:
        writer = await services.get_writer(request.state.session)
        result = await writer.move_course(course_id, direction)
    except NotFound:
        return _redirect("/admin/courses")
    except (ValidationError, BackendWriteError, BackendQueryError) as exc:
        message = "Direção inválida." if isinstance(exc, ValidationError) else _failure_message(exc)
        return await _courses_page(request, alert=message, status_code=_failure_status(exc))
    return _redirect("/admin/courses?ok=moved" if result.changed else "/admin/courses")


# --- Lessons -------------------------------------------------------------------------


async def _lessons_page(
    request: Request,
    course_id: str,
    *,
    values: Optional[Dict[str, str]] = None,
    files: Optional[List[Tuple[str, str]]] = None,
    errors: Optional[Dict[str, str]] = None,
    alert: Optional[str] = None,
    status_code: int = 200,
):
    reader = services.get_reader()
    try:
        course = await reader.get_course(course_id)
    except NotFound:
        return RedirectResponse(url="/admin/courses", status_code=302)
    except BackendQueryError as exc:
        return render_page(request, "Erro", ErrorPage(exc.message, retry_href=request.url.path).render(), status_code=502)
    token = csrf_token_for(request)
    list_alert = ""
    try:
        lessons = await reader.list_lessons(course_id)
        table = LessonTable(course.id, lessons, token).render()
    except BackendQueryError as exc:
        table = ""
        list_alert = Alert(_failure_message(exc)).render()
    form = LessonForm(
        action=_lessons_href(course_id),
        cancel_href=_lessons_href(course_id),
        csrf_token=token,
        values=values,
        files=files or [],
        errors=errors,
        alert=alert,
    ).render()
    content = f"""
    <section class="admin-lessons">
        <h1>Aulas de {Component.escape(course.title)}</h1>
        {flash_banner(request.query_params.get("ok"))}{list_alert}
        {table}
        <h2>Nova aula</h2>
        {form}
    </section>
    """
    crumbs = _ADMIN_CRUMBS + [(_lessons_href(course_id), course.title)]
    return render_page(request, f"Aulas - {course.title}", content, status_code=status_code, crumbs=crumbs)


@admin_router.get("/courses/{course_id}/lessons", include_in_schema=False)
async def lessons_admin(request: Request, course_id: str):
    return await _lessons_page(request, course_id)


@admin_router.post("/courses/{course_id}/lessons", include_in_schema=False)
async def lessons_create(request: Request, course_id: str):
    form, denied = await _checked_form(request)
    if denied:
        return denied
    values = _form_values(form, LESSON_TEXT_FIELDS)
    files = _file_rows(form)
    try:
        payload = parse_lesson_form(form)
        writer = await services.get_writer(request.state.session)
        await writer.create_lesson(course_id, payload)
    except ValidationError as exc:
        return await _lessons_page(request, course_id, values=values, files=files, errors=exc.field_errors, status_code=400)
    except NotFound:
        return _redirect("/admin/courses")
    except (BackendWriteError, BackendQueryError) as exc:
        return await _lessons_page(
            request, course_id, values=values, files=files, alert=_failure_message(exc), status_code=_failure_status(exc)
        )
    return _redirect(f"{_lessons_href(course_id)}?ok=created")


async def _lesson_or_redirect(request: Request, course_id: str, lesson_id: str):
    try:
        return await services.get_reader().get_lesson(course_id, lesson_id), None
    except NotFound:
        return None, RedirectResponse(url=_lessons_href(course_id), status_code=302)
    except BackendQueryError as exc:
        page = ErrorPage(exc.message, retry_href=request.url.path).render()
        return None, render_page(request, "Erro", page, status_code=502)


def _lesson_edit_page(request: Request, course_id: str, lesson_id: str, *, values, files, errors=None, alert=None, status_code=200):
    base = f"{_lessons_href(course_id)}/{_q(lesson_id)}"
    form = LessonForm(
        action=f"{base}/edit",
        cancel_href=_lessons_href(course_id),
        csrf_token=csrf_token_for(request),
        values=values,
        files=files,
        errors=errors,
        alert=alert,
        submit_label="Salvar alterações",
    ).render()
    title = values.get("title") or "Aula"
    content = f'<section class="admin-lesson-edit"><h1>Editar aula</h1>{form}</section>'
    crumbs = _ADMIN_CRUMBS + [(_lessons_href(course_id), "Aulas"), (f"{base}/edit", title)]
    return render_page(request, f"Editar {title}", content, status_code=status_code, crumbs=crumbs)


@admin_router.get("/courses/{course_id}/lessons/{lesson_id}/edit", include_in_schema=False)
async def lesson_edit(request: Request, course_id: str, lesson_id: str):
    lesson, fallback = await _lesson_or_redirect(request, course_id, lesson_id)
    if fallback is not None:
        return fallback
    files = [(f.name, f.url) for f in lesson.download_files]
    return _lesson_edit_page(request, course_id, lesson_id, values=_lesson_values(lesson), files=files)


@admin_router.post("/courses/{course_id}/lessons/{lesson_id}/edit", include_in_schema=False)
async def lesson_update(request: Request, course_id: str, lesson_id: str):
    form, denied = await _checked_form(request)
    if denied:
        return denied
    values = _form_values(form, LESSON_TEXT_FIELDS)
    files = _file_rows(form)
    try:
        payload = parse_lesson_form(form)
        writer = await services.get_writer(request.state.session)
        await writer.update_lesson(course_id, lesson_id, payload)
    except ValidationError as exc:
        return _lesson_edit_page(
            request, course_id, lesson_id, values=values, files=files, errors=exc.field_errors, status_code=400
        )
    except NotFound:
        return _redirect(_lessons_href(course_id))
    except (BackendWriteError, BackendQueryError) as exc:
        return _lesson_edit_page(
            request, course_id, lesson_id, values=values, files=files,
            alert=_failure_message(exc), status_code=_failure_status(exc),
        )
    return _redirect(f"{_lessons_href(course_id)}?ok=updated")


def _lesson_confirm_page(request: Request, course_id: str, lesson, *, alert=None, status_code=200):
    dialog = ConfirmDelete(
        action=f"{_lessons_href(course_id)}/{_q(lesson.id)}/delete",
        cancel_href=_lessons_href(course_id),
        csrf_token=csrf_token_for(request),
        heading="Excluir aula",
        message=f'Excluir a aula "{lesson.title}"?',
        alert=alert,
    ).render()
    return render_page(request, "Excluir aula", dialog, status_code=status_code, crumbs=_ADMIN_CRUMBS)


@admin_router.get("/courses/{course_id}/lessons/{lesson_id}/delete", include_in_schema=False)
async def lesson_delete_confirm(request: Request, course_id: str, lesson_id: str):
    lesson, fallback = await _lesson_or_redirect(request, course_id, lesson_id)
    if fallback is not None:
        return fallback
    return _lesson_confirm_page(request, course_id, lesson)


@admin_router.post("/courses/{course_id}/lessons/{lesson_id}/delete", include_in_schema=False)
async def lesson_delete(request: Request, course_id: str, lesson_id: str):
    form, denied = await _checked_form(request)
    if denied:
        return denied
    confirmed = str(form.get("confirm") or "") == "yes"
    try:
        writer = await services.get_writer(request.state.session)
        await writer.delete_lesson(course_id, lesson_id, confirmed=confirmed)
    except NotFound:
        return _redirect(_lessons_href(course_id))
    except (ValidationError, BackendWriteError, BackendQueryError) as exc:
        lesson, fallback = await _lesson_or_redirect(request, course_id, lesson_id)
        if fallback is not None:
            return fallback
        message = "Confirme a exclusão." if isinstance(exc, ValidationError) else _failure_message(exc)
        return _lesson_confirm_page(request, course_id, lesson, alert=message, status_code=_failure_status(exc))
    return _redirect(f"{_lessons_href(course_id)}?ok=deleted")


@admin_router.post("/courses/{course_id}/lessons/{lesson_id}/move", include_in_schema=False)
async def lesson_move(request: Request, course_id: str, lesson_id: str):
    form, denied = await _checked_form(request)
    if denied:
        return denied
    direction = str(form.get("direction") or "")
    try:
        writer = await services.get_writer(request.state.session)
        result = await writer.move_lesson(course_id, lesson_id, direction)
    except NotFound:
        return _redirect(_lessons_href(course_id))
    except (ValidationError, BackendWriteError, BackendQueryError) as exc:
        message = "Direção inválida." if isinstance(exc, ValidationError) else _failure_message(exc)
        return await _lessons_page(request, course_id, alert=message, status_code=_failure_status(exc))
    target = _lessons_href(course_id)
    return _redirect(f"{target}?ok=moved" if result.changed else target)
