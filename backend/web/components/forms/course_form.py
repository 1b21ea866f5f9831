"""
Course create/edit form.

Used for both creating and editing; `action` and `submit_label` decide which.
The form is multipart so an image file can be uploaded; an uploaded file
takes precedence over the image URL field.
"""
from typing import Dict, Optional

from ..base import Component
from .fields import FileUploadField, TextAreaField, TextInputField, hidden_input
from .submit import SubmitButton


class CourseForm(Component):
    def __init__(
        self,
        *,
        action: str,
        csrf_token: str,
        values: Optional[Dict[str, str]] = None,
        errors: Optional[Dict[str, str]] = None,
        submit_label: str = "Criar curso",
        alert: Optional[str] = None,
    ):
        self.action = action
        self.csrf_token = csrf_token
        self.values = values or {}
        self.errors = errors or {}
        self.submit_label = submit_label
        self.alert = alert

    def render(self) -> str:
        v = self.values
        e = self.errors
        current_image = v.get("image_url") or ""
        preview = (
            f'<img class="course-image-preview" src="{self.escape(current_image)}" alt="Imagem atual do curso">'
            if current_image
            else ""
        )
        fields_html = "".join(
            [
                TextInputField("title", "Título", required=True, error_text=e.get("title")).render(
                    value=v.get("title", ""), maxlength="200"
                ),
                TextAreaField("description", "Descrição", error_text=e.get("description")).render(
                    value=v.get("description", "")
                ),
                preview,
                FileUploadField(
                    "image",
                    "Imagem (arquivo)",
                    help_text="Um arquivo enviado substitui a URL abaixo.",
                    error_text=e.get("image"),
                ).render(accept="image/*"),
                TextInputField(
                    "image_url",
                    "URL da imagem",
                    help_text="Deixe em branco para remover a imagem.",
                    error_text=e.get("image_url"),
                ).render(value=current_image, input_type="url", placeholder="https://..."),
                TextInputField(
                    "order",
                    "Ordem",
                    help_text="Vazio: o curso entra no fim da lista.",
                    error_text=e.get("order"),
                ).render(value=v.get("order", ""), input_type="number"),
            ]
        )
        alert_html = f'<div class="alert alert-error" role="alert">{self.escape(self.alert)}</div>' if self.alert else ""
        return f"""
        <form method="post" action="{self.escape(self.action)}" enctype="multipart/form-data" class="course-form">
            {hidden_input("csrf_token", self.csrf_token)}
            {alert_html}
            {fields_html}
            <div class="form-actions">
                {SubmitButton(self.submit_label).render()}
                <a class="btn btn-secondary" href="/admin/courses">Cancelar</a>
            </div>
        </form>
        """
