"""
Public catalog pages: course list, course detail with lesson player.

Checks status codes, redirects for unknown ids, the backend-error page, and
that backend text is escaped.
"""
from __future__ import annotations

import httpx
import pytest
from httpx import ASGITransport

from backend.catalog.repo import InMemoryCatalogRepo
from backend.web import main, services


pytestmark = pytest.mark.anyio("asyncio")


def _client() -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=ASGITransport(app=main.app), base_url="http://test")


def _course_with_lessons(repo, titles=("Introdução", "Fórmulas", "Gráficos")):
    course = repo.insert_course({"title": "Excel Essencial", "description": "Do zero ao avançado", "order": 1})
    lessons = [
        repo.insert_lesson(
            {"course_id": course["id"], "title": t, "youtube_video_id": "dQw4w9WgXcQ", "order": i + 1}
        )
        for i, t in enumerate(titles)
    ]
    return course, lessons


async def test_root_redirects_to_course_list():
    async with _client() as client:
        resp = await client.get("/")
    assert resp.status_code == 302
    assert resp.headers["location"] == "/courses"


async def test_course_list_shows_courses_in_order(repo):
    repo.insert_course({"title": "Power BI", "order": 2})
    repo.insert_course({"title": "Excel", "order": 1})
    async with _client() as client:
        resp = await client.get("/courses")

    assert resp.status_code == 200
    assert resp.text.index("Excel") < resp.text.index("Power BI")
    assert 'lang="pt-BR"' in resp.text


async def test_empty_catalog_shows_empty_state():
    async with _client() as client:
        resp = await client.get("/courses")
    assert resp.status_code == 200
    assert "Nenhum curso disponível" in resp.text


async def test_course_titles_are_escaped(repo):
    repo.insert_course({"title": "<script>alert(1)</script>"})
    async with _client() as client:
        resp = await client.get("/courses")
    assert "<script>alert(1)</script>" not in resp.text
    assert "&lt;script&gt;" in resp.text


async def test_course_detail_plays_the_first_lesson(repo):
    course, lessons = _course_with_lessons(repo)
    async with _client() as client:
        resp = await client.get(f"/courses/{course['id']}")

    assert resp.status_code == 200
    body = resp.text
    assert "https://www.youtube.com/embed/dQw4w9WgXcQ" in body
    assert "Aula 1 de 3" in body
    assert f'href="/courses/{course["id"]}/{lessons[1]["id"]}"' in body
    assert 'rel="prev"' not in body


async def test_middle_lesson_links_both_neighbours(repo):
    course, lessons = _course_with_lessons(repo)
    async with _client() as client:
        resp = await client.get(f"/courses/{course['id']}/{lessons[1]['id']}")

    assert resp.status_code == 200
    assert "Aula 2 de 3" in resp.text
    assert 'rel="prev"' in resp.text and 'rel="next"' in resp.text


async def test_lesson_downloads_are_listed(repo):
    course = repo.insert_course({"title": "Excel"})
    lesson = repo.insert_lesson(
        {
            "course_id": course["id"],
            "title": "Macros",
            "youtube_video_id": "dQw4w9WgXcQ",
            "download_files": [{"name": "Planilha de apoio", "url": "https://files.example.com/apoio.xlsx"}],
        }
    )
    async with _client() as client:
        resp = await client.get(f"/courses/{course['id']}/{lesson['id']}")
    assert "Planilha de apoio" in resp.text
    assert "https://files.example.com/apoio.xlsx" in resp.text


async def test_unknown_lesson_redirects_to_the_course(repo):
    course, _ = _course_with_lessons(repo)
    async with _client() as client:
        resp = await client.get(f"/courses/{course['id']}/00000000-0000-4000-8000-000000000000")
    assert resp.status_code == 302
    assert resp.headers["location"] == f"/courses/{course['id']}"


async def test_unknown_course_redirects_to_the_list():
    async with _client() as client:
        resp = await client.get("/courses/00000000-0000-4000-8000-000000000000")
    assert resp.status_code == 302
    assert resp.headers["location"] == "/courses"


async def test_course_without_lessons_renders_a_notice(repo):
    course = repo.insert_course({"title": "Em breve"})
    async with _client() as client:
        resp = await client.get(f"/courses/{course['id']}")
    assert resp.status_code == 200
    assert "ainda não tem aulas" in resp.text


async def test_backend_failure_shows_the_backend_message():
    class Offline(InMemoryCatalogRepo):
        def list_courses(self):
            raise ConnectionError("connection refused")

    services.set_repo(Offline())
    async with _client() as client:
        resp = await client.get("/courses")
    assert resp.status_code == 502
    assert "connection refused" in resp.text
    assert 'href="/courses"' in resp.text


async def test_unmatched_path_renders_not_found_page():
    async with _client() as client:
        resp = await client.get("/nao-existe")
    assert resp.status_code == 404
    assert "Página não encontrada" in resp.text


async def test_security_headers_allow_youtube_frames_only():
    async with _client() as client:
        resp = await client.get("/courses")
    csp = resp.headers["content-security-policy"]
    assert "frame-src https://www.youtube.com" in csp
    assert resp.headers["x-content-type-options"] == "nosniff"


async def test_health_is_public():
    async with _client() as client:
        resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "healthy"}


async def test_every_page_carries_the_consultancy_footer():
    async with _client() as client:
        resp = await client.get("/courses")
    body = resp.text
    assert "Consultoria em licitações públicas" in body
    assert 'href="mailto:contato@licitacaogc.com.br"' in body
    assert "(67) 99167-5629" in body
    assert "1.200+" in body


def test_footer_states_the_copyright_year():
    from backend.web.components import Footer

    assert "&copy; 2031 LGC Consultoria. Todos os direitos reservados." in Footer(year=2031).render()
