"""
Destructive-action confirmation.

Deletes are two-step: the admin first sees this dialog, and only its POST
(which carries `confirm=yes`) reaches the delete handler with confirmation.
"""
from typing import Optional

from ..base import Component
from .fields import hidden_input
from .submit import SubmitButton


class ConfirmDelete(Component):
    def __init__(
        self,
        *,
        action: str,
        cancel_href: str,
        csrf_token: str,
        heading: str,
        message: str,
        alert: Optional[str] = None,
    ):
        self.action = action
        self.cancel_href = cancel_href
        self.csrf_token = csrf_token
        self.heading = heading
        self.message = message
        self.alert = alert

    def render(self) -> str:
        alert_html = f'<div class="alert alert-error" role="alert">{self.escape(self.alert)}</div>' if self.alert else ""
        return f"""
        <section class="confirm-dialog" role="alertdialog" aria-labelledby="confirm-heading">
            <h1 id="confirm-heading">{self.escape(self.heading)}</h1>
            {alert_html}
            <p>{self.escape(self.message)}</p>
            <form method="post" action="{self.escape(self.action)}">
                {hidden_input("csrf_token", self.csrf_token)}
                {hidden_input("confirm", "yes")}
                <div class="form-actions">
                    {SubmitButton("Excluir", variant="danger").render()}
                    <a class="btn btn-secondary" href="{self.escape(self.cancel_href)}">Cancelar</a>
                </div>
            </form>
        </section>
        """
