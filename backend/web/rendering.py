"""
Response helpers shared by the page routes.
"""
from __future__ import annotations

from typing import Dict, Optional, Sequence, Tuple

from fastapi import Request
from fastapi.responses import HTMLResponse

from backend.web.components import Layout
from backend.web.csrf import get_or_create_csrf_token


PRIVATE_CACHE = "private, no-store"


def current_user(request: Request) -> Optional[dict]:
    return getattr(request.state, "user", None)


def session_id(request: Request) -> Optional[str]:
    return getattr(request.state, "session_id", None)


def csrf_token_for(request: Request) -> str:
    sid = session_id(request)
    return get_or_create_csrf_token(sid) if sid else ""


def render_page(
    request: Request,
    title: str,
    content: str,
    *,
    status_code: int = 200,
    crumbs: Sequence[Tuple[str, str]] = (),
    headers: Optional[Dict[str, str]] = None,
    head_extra: str = "",
    private: bool = False,
) -> HTMLResponse:
    user = current_user(request)
    layout = Layout(
        title=title,
        content=content,
        user=user,
        current_path=request.url.path,
        csrf_token=csrf_token_for(request) if user else None,
        crumbs=crumbs,
        head_extra=head_extra,
    )
    response_headers = dict(headers or {})
    if private or user:
        response_headers["Cache-Control"] = PRIVATE_CACHE
    return HTMLResponse(layout.render(), status_code=status_code, headers=response_headers)
