"""
Layout component: wraps page content into a complete HTML document.
"""

from typing import Any, Dict, Optional, Sequence, Tuple

from .base import Component
from .breadcrumbs import Breadcrumbs
from .footer import Footer
from .navigation import Navigation


class Layout(Component):
    def __init__(
        self,
        title: str,
        content: str,
        user: Optional[Dict[str, Any]] = None,
        current_path: str = "/",
        csrf_token: Optional[str] = None,
        crumbs: Sequence[Tuple[str, str]] = (),
        show_nav: bool = True,
        head_extra: str = "",
    ):
        """
        Args:
            title: Page title (escaped)
            content: Pre-rendered main content HTML
            user: Signed-in user dict (`id`, `email`) or None
            current_path: Request path, used for active link highlighting
            csrf_token: Token for the sign-out form in the navigation
            crumbs: Breadcrumb pairs (href, label)
            show_nav: Render the header navigation
            head_extra: Trusted markup appended to <head> (e.g. meta refresh)
        """
        self.title = title
        self.content = content
        self.user = user
        self.current_path = current_path
        self.csrf_token = csrf_token
        self.crumbs = crumbs
        self.show_nav = show_nav
        self.head_extra = head_extra

    def render(self) -> str:
        nav_html = Navigation(self.user, self.current_path, self.csrf_token).render() if self.show_nav else ""
        breadcrumb_html = Breadcrumbs(self.crumbs).render()
        return f"""<!DOCTYPE html>
<html lang="pt-BR">
<head>
    {self._render_head()}
</head>
<body>
    <a href="#main-content" class="skip-link">Pular para o conteúdo</a>
    {nav_html}
    <main id="main-content" class="main-content" role="main">
        {breadcrumb_html}
        {self.content}
    </main>
    {Footer().render()}
</body>
</html>"""

    def _render_head(self) -> str:
        return f"""
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <meta name="description" content="Cursos em vídeo da LGC Consultoria">
    <title>{self.escape(self.title)} - LGC Consultoria</title>
    <link rel="stylesheet" href="/static/css/academy.css?v=1">
    {self.head_extra}
    """
