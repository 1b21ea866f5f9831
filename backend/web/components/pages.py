"""
Small full-page bodies: not found, loading placeholder, backend error, and
flash/alert banners.
"""

from typing import Optional

from .base import Component


FLASH_MESSAGES = {
    "created": "Registro criado com sucesso.",
    "updated": "Alterações salvas.",
    "deleted": "Registro excluído.",
    "moved": "Ordem atualizada.",
}


class Alert(Component):
    def __init__(self, message: Optional[str], kind: str = "error"):
        self.message = message
        self.kind = kind

    def render(self) -> str:
        if not self.message:
            return ""
        role = "alert" if self.kind == "error" else "status"
        return f'<div class="alert alert-{self.escape(self.kind)}" role="{role}">{self.escape(self.message)}</div>'


def flash_banner(code: Optional[str]) -> str:
    return Alert(FLASH_MESSAGES.get(code or ""), kind="success").render()


class NotFoundPage(Component):
    def render(self) -> str:
        return """
        <section class="status-page">
            <h1>Página não encontrada</h1>
            <p>O endereço acessado não existe.</p>
            <a class="btn btn-primary" href="/courses">Voltar aos cursos</a>
        </section>
        """


class LoadingPage(Component):
    """Placeholder shown while the session cannot be resolved yet."""

    def render(self) -> str:
        return """
        <section class="status-page" aria-busy="true">
            <p class="loading">Carregando...</p>
        </section>
        """


class ErrorPage(Component):
    def __init__(self, message: str, retry_href: Optional[str] = None):
        self.message = message
        self.retry_href = retry_href

    def render(self) -> str:
        retry = (
            f'<a class="btn btn-primary" href="{self.escape(self.retry_href)}">Tentar novamente</a>'
            if self.retry_href
            else ""
        )
        return f"""
        <section class="status-page">
            <h1>Não foi possível carregar os dados</h1>
            {Alert(self.message).render()}
            {retry}
        </section>
        """
