"""Sign-in form (email + password)."""
from typing import Optional

from ..base import Component
from .fields import TextInputField, hidden_input
from .submit import SubmitButton


class LoginForm(Component):
    def __init__(self, *, csrf_token: str, email: str = "", next_path: str = "", error: Optional[str] = None):
        self.csrf_token = csrf_token
        self.email = email
        self.next_path = next_path
        self.error = error

    def render(self) -> str:
        error_html = f'<div class="alert alert-error" role="alert">{self.escape(self.error)}</div>' if self.error else ""
        return f"""
        <section class="login-card">
            <h1>Acesso administrativo</h1>
            {error_html}
            <form method="post" action="/login" class="login-form">
                {hidden_input("csrf_token", self.csrf_token)}
                {hidden_input("next", self.next_path)}
                {TextInputField("email", "E-mail", required=True).render(value=self.email, input_type="email", autocomplete="username")}
                {TextInputField("password", "Senha", required=True).render(input_type="password", autocomplete="current-password")}
                <div class="form-actions">{SubmitButton("Entrar").render()}</div>
            </form>
        </section>
        """
