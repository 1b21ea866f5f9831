"""
Sign-in and sign-out routes.

GET/POST /login: email + password form; the auth backend issues the tokens,
which stay server-side in the session store. A signed-in visitor never sees
this page: the session gate redirects them to /admin.

POST /logout: one sign-out call to the auth backend, then the session cookie
is cleared and the browser goes back to /login.
"""
from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import RedirectResponse

from backend.identity_access.context import AuthContext
from backend.identity_access.supabase_auth import AuthError
from backend.web.auth_utils import LOGIN_CSRF_COOKIE_NAME, SESSION_COOKIE_NAME, cookie_opts, safe_next_path
from backend.web.components import LoginForm
from backend.web.csrf import drop_csrf_token, new_login_token, validate_csrf, validate_login_token
from backend.web.rendering import PRIVATE_CACHE, render_page, session_id


logger = logging.getLogger("academy.web.auth")

auth_router = APIRouter()

LOGIN_TOKEN_MAX_AGE = 1800

_LOGIN_ERRORS = {
    "invalid_credentials": ("E-mail ou senha inválidos.", 400),
    "rate_limited": ("Muitas tentativas. Aguarde um pouco e tente novamente.", 429),
}


def _environment(request: Request) -> str:
    return request.app.state.settings.environment


def _login_page(request: Request, *, token: str, email: str = "", next_path: str = "", error: str | None = None, status_code: int = 200):
    form = LoginForm(csrf_token=token, email=email, next_path=next_path, error=error).render()
    response = render_page(request, "Entrar", form, status_code=status_code, private=True)
    opts = cookie_opts(_environment(request))
    response.set_cookie(
        key=LOGIN_CSRF_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=opts["secure"],
        samesite=opts["samesite"],
        path="/login",
        max_age=LOGIN_TOKEN_MAX_AGE,
    )
    return response


@auth_router.get("/login", include_in_schema=False)
async def login_form(request: Request, next: str | None = None):
    token = request.cookies.get(LOGIN_CSRF_COOKIE_NAME) or new_login_token()
    return _login_page(request, token=token, next_path=safe_next_path(next))


@auth_router.post("/login", include_in_schema=False)
async def login_submit(request: Request):
    form = await request.form()
    email = str(form.get("email") or "").strip()
    password = str(form.get("password") or "")
    next_path = safe_next_path(str(form.get("next") or ""))
    cookie_token = request.cookies.get(LOGIN_CSRF_COOKIE_NAME)
    if not validate_login_token(cookie_token, str(form.get("csrf_token") or "")):
        return _login_page(
            request, token=new_login_token(), email=email, next_path=next_path,
            error="Sessão do formulário expirou. Tente novamente.", status_code=403,
        )
    if not email or not password:
        return _login_page(
            request, token=cookie_token, email=email, next_path=next_path,
            error="Informe e-mail e senha.", status_code=400,
        )

    ctx: AuthContext = request.app.state.auth_context
    try:
        rec = await ctx.sign_in(email, password)
    except AuthError as exc:
        message, status = _LOGIN_ERRORS.get(exc.code, ("Serviço de autenticação indisponível.", 503))
        return _login_page(request, token=cookie_token, email=email, next_path=next_path, error=message, status_code=status)

    logger.info("Admin signed in")
    response = RedirectResponse(url=next_path, status_code=303)
    opts = cookie_opts(_environment(request))
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=rec.session_id,
        httponly=True,
        secure=opts["secure"],
        samesite=opts["samesite"],
        path="/",
        max_age=ctx.session_ttl_seconds,
    )
    response.delete_cookie(LOGIN_CSRF_COOKIE_NAME, path="/login")
    response.headers["Cache-Control"] = PRIVATE_CACHE
    return response


@auth_router.post("/logout", include_in_schema=False)
async def logout(request: Request):
    sid = session_id(request)
    if sid:
        form = await request.form()
        if not validate_csrf(sid, str(form.get("csrf_token") or "")):
            return render_page(request, "Erro", "<p>Requisição inválida.</p>", status_code=403, private=True)
        ctx: AuthContext = request.app.state.auth_context
        await ctx.sign_out(sid)
        drop_csrf_token(sid)
    response = RedirectResponse(url="/login", status_code=303)
    response.delete_cookie(SESSION_COOKIE_NAME, path="/")
    response.headers["Cache-Control"] = PRIVATE_CACHE
    return response
