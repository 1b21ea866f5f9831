"""
Lesson create/edit form with repeatable download-file rows.

Each attachment row posts one `file_name` and one `file_url`; the form always
offers a couple of empty rows for new attachments.
"""
from typing import Dict, List, Optional, Sequence, Tuple

from ..base import Component
from .fields import TextAreaField, TextInputField, hidden_input
from .submit import SubmitButton


EMPTY_FILE_ROWS = 2


class LessonForm(Component):
    def __init__(
        self,
        *,
        action: str,
        cancel_href: str,
        csrf_token: str,
        values: Optional[Dict[str, str]] = None,
        files: Sequence[Tuple[str, str]] = (),
        errors: Optional[Dict[str, str]] = None,
        submit_label: str = "Criar aula",
        alert: Optional[str] = None,
    ):
        self.action = action
        self.cancel_href = cancel_href
        self.csrf_token = csrf_token
        self.values = values or {}
        self.files: List[Tuple[str, str]] = list(files)
        self.errors = errors or {}
        self.submit_label = submit_label
        self.alert = alert

    def _render_files(self) -> str:
        rows = self.files + [("", "")] * EMPTY_FILE_ROWS
        items = []
        for i, (name, url) in enumerate(rows):
            name_attrs = self.attributes(
                type="text", name="file_name", value=name, placeholder="Nome do arquivo",
                class_="form-input", aria_label=f"Nome do arquivo {i + 1}",
            )
            url_attrs = self.attributes(
                type="url", name="file_url", value=url, placeholder="https://...",
                class_="form-input", aria_label=f"URL do arquivo {i + 1}",
            )
            items.append(f'<li class="download-row"><input {name_attrs}><input {url_attrs}></li>')
        error = self.errors.get("download_files")
        error_html = f'<p class="form-error" role="alert">{self.escape(error)}</p>' if error else ""
        return (
            '<fieldset class="form-field download-files">'
            "<legend>Arquivos para download</legend>"
            f'<ul class="download-rows">{"".join(items)}</ul>'
            f"{error_html}"
            "</fieldset>"
        )

    def render(self) -> str:
        v = self.values
        e = self.errors
        fields_html = "".join(
            [
                TextInputField("title", "Título", required=True, error_text=e.get("title")).render(
                    value=v.get("title", ""), maxlength="200"
                ),
                TextAreaField("description", "Descrição", error_text=e.get("description")).render(
                    value=v.get("description", "")
                ),
                TextInputField(
                    "youtube_video_id",
                    "Vídeo do YouTube",
                    required=True,
                    help_text="ID do vídeo ou link completo do YouTube.",
                    error_text=e.get("youtube_video_id"),
                ).render(value=v.get("youtube_video_id", "")),
                TextInputField(
                    "order",
                    "Ordem",
                    help_text="Vazio: a aula entra no fim da lista.",
                    error_text=e.get("order"),
                ).render(value=v.get("order", ""), input_type="number"),
                self._render_files(),
            ]
        )
        alert_html = f'<div class="alert alert-error" role="alert">{self.escape(self.alert)}</div>' if self.alert else ""
        return f"""
        <form method="post" action="{self.escape(self.action)}" class="lesson-form">
            {hidden_input("csrf_token", self.csrf_token)}
            {alert_html}
            {fields_html}
            <div class="form-actions">
                {SubmitButton(self.submit_label).render()}
                <a class="btn btn-secondary" href="{self.escape(self.cancel_href)}">Cancelar</a>
            </div>
        </form>
        """
