"""
Admin list tables for courses and lessons.

Each row offers reorder arrows (POST forms, disabled at the list edges),
edit, and delete. Delete links lead to the confirmation dialog; nothing is
deleted from this view directly.
"""

from typing import Sequence
from urllib.parse import quote

from .base import Component
from .forms import PostButton


def _q(value: str) -> str:
    return quote(str(value), safe="")


class _ReorderableTable(Component):
    caption = ""
    empty_text = ""

    def __init__(self, items: Sequence, csrf_token: str):
        self.items = list(items)
        self.csrf_token = csrf_token

    def _base_href(self, item) -> str:
        raise NotImplementedError

    def _extra_links(self, item) -> str:
        return ""

    def _row(self, index: int, item) -> str:
        base = self._base_href(item)
        up = PostButton(
            f"{base}/move", "↑", self.csrf_token, fields={"direction": "up"},
            disabled=index == 0, aria_label=f"Mover {item.title} para cima",
        ).render()
        down = PostButton(
            f"{base}/move", "↓", self.csrf_token, fields={"direction": "down"},
            disabled=index == len(self.items) - 1, aria_label=f"Mover {item.title} para baixo",
        ).render()
        order = self.escape(item.order) if item.order is not None else "&ndash;"
        return (
            f'<tr id="row-{self.escape(item.id)}">'
            f'<td class="col-order">{order}</td>'
            f'<td class="col-title">{self.escape(item.title)}</td>'
            f'<td class="col-actions">{up}{down}'
            f"{self._extra_links(item)}"
            f'<a class="btn btn-secondary" href="{base}/edit">Editar</a>'
            f'<a class="btn btn-danger" href="{base}/delete">Excluir</a>'
            "</td></tr>"
        )

    def render(self) -> str:
        if not self.items:
            return f'<p class="empty-state">{self.escape(self.empty_text)}</p>'
        rows = "".join(self._row(i, item) for i, item in enumerate(self.items))
        return (
            '<table class="admin-table">'
            f"<caption>{self.escape(self.caption)}</caption>"
            '<thead><tr><th scope="col">Ordem</th><th scope="col">Título</th><th scope="col">Ações</th></tr></thead>'
            f"<tbody>{rows}</tbody></table>"
        )


class CourseTable(_ReorderableTable):
    caption = "Cursos"
    empty_text = "Nenhum curso cadastrado."

    def _base_href(self, item) -> str:
        return f"/admin/courses/{_q(item.id)}"

    def _extra_links(self, item) -> str:
        return f'<a class="btn btn-secondary" href="/admin/courses/{_q(item.id)}/lessons">Aulas</a>'


class LessonTable(_ReorderableTable):
    caption = "Aulas"
    empty_text = "Este curso ainda não tem aulas."

    def __init__(self, course_id: str, items: Sequence, csrf_token: str):
        super().__init__(items, csrf_token)
        self.course_id = course_id

    def _base_href(self, item) -> str:
        return f"/admin/courses/{_q(self.course_id)}/lessons/{_q(item.id)}"
