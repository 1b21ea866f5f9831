"""
Button components for form actions.
"""

from typing import Optional

from ..base import Component
from .fields import hidden_input


class SubmitButton(Component):
    """Form submit button; `variant` selects the visual style (primary, danger, secondary)."""

    def __init__(
        self,
        label: str,
        *,
        variant: str = "primary",
        name: Optional[str] = None,
        value: Optional[str] = None,
        disabled: bool = False,
        aria_label: Optional[str] = None,
    ) -> None:
        self.label = label
        self.variant = variant
        self.name = name
        self.value = value
        self.disabled = disabled
        self.aria_label = aria_label

    def render(self) -> str:
        attrs = self.attributes(
            type="submit",
            class_=f"btn btn-{self.variant}",
            name=self.name,
            value=self.value,
            disabled=self.disabled,
            aria_label=self.aria_label,
        )
        return f"<button {attrs}>{self.escape(self.label)}</button>"


class PostButton(Component):
    """A one-button POST form (reorder arrows, sign-out style actions)."""

    def __init__(
        self,
        action: str,
        label: str,
        csrf_token: str,
        *,
        fields: Optional[dict] = None,
        variant: str = "secondary",
        disabled: bool = False,
        aria_label: Optional[str] = None,
    ) -> None:
        self.action = action
        self.label = label
        self.csrf_token = csrf_token
        self.fields = fields or {}
        self.variant = variant
        self.disabled = disabled
        self.aria_label = aria_label

    def render(self) -> str:
        hidden = "".join(hidden_input(k, v) for k, v in self.fields.items())
        button = SubmitButton(
            self.label, variant=self.variant, disabled=self.disabled, aria_label=self.aria_label
        ).render()
        return (
            f'<form method="post" action="{self.escape(self.action)}" class="inline-form">'
            f'{hidden_input("csrf_token", self.csrf_token)}{hidden}{button}</form>'
        )
