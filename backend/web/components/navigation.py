"""
Top navigation bar.

Public visitors see the catalog link and a sign-in link; signed-in
administrators additionally see the admin area and a sign-out button (a POST
form, so a cross-site link cannot sign anyone out).
"""

from typing import Any, Dict, List, Optional, Tuple

from .base import Component


PUBLIC_LINKS: List[Tuple[str, str]] = [
    ("/courses", "Cursos"),
]

ADMIN_LINKS: List[Tuple[str, str]] = [
    ("/admin", "Painel"),
    ("/admin/courses", "Gerenciar cursos"),
]


class Navigation(Component):
    def __init__(
        self,
        user: Optional[Dict[str, Any]] = None,
        current_path: str = "/",
        csrf_token: Optional[str] = None,
    ):
        self.user = user
        self.current_path = current_path or "/"
        self.csrf_token = csrf_token

    def _active_href(self, links: List[Tuple[str, str]]) -> Optional[str]:
        """Best prefix match so /admin/courses/x highlights "Gerenciar cursos"."""
        best = None
        for href, _ in links:
            if self.current_path == href or self.current_path.startswith(href.rstrip("/") + "/"):
                if best is None or len(href) > len(best):
                    best = href
        return best

    def render(self) -> str:
        links = list(PUBLIC_LINKS) + (list(ADMIN_LINKS) if self.user else [])
        active = self._active_href(links)
        items = []
        for href, label in links:
            attrs = self.attributes(
                href=href,
                class_=self.classes("nav-link", active=href == active),
                aria_current="page" if href == active else None,
            )
            items.append(f"<li><a {attrs}>{self.escape(label)}</a></li>")
        items.append(f"<li>{self._render_session_control()}</li>")
        return (
            '<header class="site-header">'
            '<a class="brand" href="/courses">LGC Consultoria</a>'
            '<nav class="site-nav" aria-label="Navegação principal">'
            f'<ul>{"".join(items)}</ul>'
            "</nav>"
            "</header>"
        )

    def _render_session_control(self) -> str:
        if not self.user:
            return '<a class="nav-link" href="/login">Entrar</a>'
        email = self.escape(self.user.get("email"))
        token = self.escape(self.csrf_token or "")
        return (
            f'<span class="nav-user">{email}</span>'
            '<form method="post" action="/logout" class="inline-form">'
            f'<input type="hidden" name="csrf_token" value="{token}">'
            '<button type="submit" class="btn btn-link">Sair</button>'
            "</form>"
        )
