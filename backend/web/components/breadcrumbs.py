"""
Breadcrumb trail built from explicit (href, label) pairs.

Routes know the course and lesson titles, so they pass the crumbs instead of
the component guessing labels from the URL.
"""

from typing import List, Sequence, Tuple

from .base import Component


class Breadcrumbs(Component):
    def __init__(self, crumbs: Sequence[Tuple[str, str]]):
        self.crumbs: List[Tuple[str, str]] = list(crumbs)

    def render(self) -> str:
        if len(self.crumbs) <= 1:
            return ""
        items = []
        last_index = len(self.crumbs) - 1
        for index, (href, label) in enumerate(self.crumbs):
            escaped_label = self.escape(label)
            if index == last_index:
                items.append(f'<li class="breadcrumb-item" aria-current="page">{escaped_label}</li>')
            else:
                items.append(
                    f'<li class="breadcrumb-item"><a href="{self.escape(href)}" class="breadcrumb-link">{escaped_label}</a></li>'
                )
        return f'<nav class="breadcrumb" aria-label="Trilha de navegação"><ol>{"".join(items)}</ol></nav>'
