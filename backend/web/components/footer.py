"""
Site footer: who LGC Consultoria is, how to reach it, and its track record.
"""

from datetime import date
from typing import Optional, Sequence, Tuple

from .base import Component


CONTACT_EMAIL = "contato@licitacaogc.com.br"
CONTACT_PHONE = "(67) 99167-5629"

HIGHLIGHTS: Sequence[Tuple[str, str]] = (
    ("+12 anos", "de experiência no mercado"),
    ("R$ 650M", "em contratos conquistados"),
    ("1.200+", "licitações bem-sucedidas"),
)


class Footer(Component):
    def __init__(self, year: Optional[int] = None):
        self.year = year or date.today().year

    def _contact(self) -> str:
        phone_href = "tel:+55" + "".join(ch for ch in CONTACT_PHONE if ch.isdigit())
        return f"""
        <div class="footer-contact">
            <h3 class="footer-heading">Contato</h3>
            <ul class="footer-list">
                <li><a href="mailto:{CONTACT_EMAIL}">{CONTACT_EMAIL}</a></li>
                <li><a href="{phone_href}">{CONTACT_PHONE}</a></li>
                <li>Formulário de Diagnóstico</li>
            </ul>
        </div>"""

    def _highlights(self) -> str:
        items = "".join(
            f'<div class="footer-stat"><p class="footer-stat__value">{self.escape(value)}</p>'
            f'<p class="footer-stat__label">{self.escape(label)}</p></div>'
            for value, label in HIGHLIGHTS
        )
        return f'<div class="footer-stats">{items}</div>'

    def render(self) -> str:
        return f"""<footer class="site-footer" role="contentinfo">
    <div class="footer-grid">
        <div class="footer-about">
            <h2 class="footer-title">LGC Consultoria</h2>
            <p class="footer-tagline">Consultoria em licitações públicas</p>
            <p class="footer-text">Fundada em 2017, nossa missão é ser a parceira estratégica das empresas em processos licitatórios, oferecendo soluções completas que maximizem as chances de sucesso.</p>
        </div>
        {self._contact()}
    </div>
    {self._highlights()}
    <p class="footer-copy">&copy; {self.year} LGC Consultoria. Todos os direitos reservados.</p>
</footer>"""
