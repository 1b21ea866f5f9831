"LGC Academy web app"
from __future__ import annotations

from pathlib import Path
import logging
import os
import sys

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException


def _should_load_dotenv() -> bool:
    """Decide if we should load a local .env file.

    - Never load under pytest to avoid contaminating the test env.
    - Allow explicit opt-out via ACADEMY_ENABLE_DOTENV (default true outside pytest).
    """
    if "pytest" in sys.modules or os.getenv("PYTEST_CURRENT_TEST"):
        return False
    flag = (os.getenv("ACADEMY_ENABLE_DOTENV", "true") or "").strip().lower()
    return flag in ("1", "true", "yes")


if _should_load_dotenv():
    from dotenv import load_dotenv

    load_dotenv()

from backend.web import config as _cfg

# Minimal production safety checks (fail-fast on insecure config)
_cfg.ensure_secure_config_on_startup()

from backend.identity_access.context import AuthContext
from backend.identity_access.gate import SessionGate, SessionStatus, gate_decision, is_protected_path
from backend.identity_access.stores import SessionStore
from backend.web.auth_utils import SESSION_COOKIE_NAME
from backend.web.components import LoadingPage, NotFoundPage
from backend.web.rendering import PRIVATE_CACHE, render_page
from backend.web.routes.admin import admin_router
from backend.web.routes.auth import auth_router
from backend.web.routes.catalog import catalog_router
from backend.web.wiring import wire_backends


logger = logging.getLogger("academy.web")

SETTINGS = _cfg.load_settings()

app = FastAPI(title="LGC Academy", description="Cursos em vídeo da LGC Consultoria", version="0.1.0")

static_dir = Path(__file__).parent / "static"
app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")

# --- Backends & auth context ----------------------------------------------------

_BACKENDS = wire_backends(SETTINGS)
app.state.settings = SETTINGS
app.state.auth_context = AuthContext(
    store=SessionStore(),
    auth_service=_BACKENDS.auth_service,
    session_ttl_seconds=SETTINGS.session_ttl_seconds,
)

LOADING_RETRY_SECONDS = 2


def _is_public_asset(path: str) -> bool:
    return path.startswith("/static/") or path in ("/health", "/favicon.ico")


def _loading_response(request: Request) -> HTMLResponse:
    response = render_page(
        request,
        "Carregando",
        LoadingPage().render(),
        status_code=503,
        headers={"Retry-After": str(LOADING_RETRY_SECONDS)},
        head_extra=f'<meta http-equiv="refresh" content="{LOADING_RETRY_SECONDS}">',
        private=True,
    )
    return response


@app.middleware("http")
async def session_gate(request: Request, call_next):
    path = request.url.path
    request.state.user = None
    request.state.session = None
    request.state.session_id = None
    if _is_public_asset(path):
        return await call_next(request)

    ctx: AuthContext = request.app.state.auth_context
    sid = request.cookies.get(SESSION_COOKIE_NAME)
    backend = ctx.backend(sid)
    async with SessionGate(backend) as gate:
        decision = gate_decision(gate.status, path)
        if decision.action == "loading":
            return _loading_response(request)
        if decision.action == "redirect":
            status = 302 if request.method in ("GET", "HEAD") else 303
            response = RedirectResponse(url=decision.location, status_code=status)
            response.headers["Cache-Control"] = PRIVATE_CACHE
            if sid and gate.status is SessionStatus.UNAUTHENTICATED:
                response.delete_cookie(SESSION_COOKIE_NAME, path="/")
            return response
        if gate.status is SessionStatus.AUTHENTICATED and gate.session is not None:
            request.state.user = {"id": gate.session.user_id, "email": gate.session.email}
            request.state.session = backend.record
            request.state.session_id = sid
        response = await call_next(request)
    if is_protected_path(path) or path in ("/login", "/logout"):
        response.headers["Cache-Control"] = PRIVATE_CACHE
    return response


@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)
    csp = (
        "default-src 'self'; script-src 'self'; style-src 'self'; "
        "img-src 'self' data: https:; frame-src https://www.youtube.com https://www.youtube-nocookie.com; "
        "font-src 'self' data:; connect-src 'self'; form-action 'self'; base-uri 'self'"
    )
    response.headers.setdefault("Content-Security-Policy", csp)
    response.headers.setdefault("X-Frame-Options", "SAMEORIGIN")
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
    if SETTINGS.prod_like:
        response.headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
    return response


@app.exception_handler(StarletteHTTPException)
async def not_found_view(request: Request, exc: StarletteHTTPException):
    if exc.status_code != 404:
        return await http_exception_handler(request, exc)
    return render_page(request, "Página não encontrada", NotFoundPage().render(), status_code=404)


@app.get("/health", include_in_schema=False)
async def health():
    return JSONResponse({"status": "healthy"}, headers={"Cache-Control": PRIVATE_CACHE})


app.include_router(catalog_router)
app.include_router(auth_router)
app.include_router(admin_router)
