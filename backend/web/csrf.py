"""
CSRF tokens for form posts.

Signed-in admins get one synchronizer token per server session. The login
form has no session yet; it uses a double-submit token stored in a
short-lived cookie scoped to /login.
"""
from __future__ import annotations

from typing import Dict, Optional
import hmac
import secrets


_CSRF_BY_SESSION: Dict[str, str] = {}


def get_or_create_csrf_token(session_id: str) -> str:
    token = _CSRF_BY_SESSION.get(session_id)
    if not token:
        token = secrets.token_urlsafe(24)
        _CSRF_BY_SESSION[session_id] = token
    return token


def validate_csrf(session_id: Optional[str], form_value: Optional[str]) -> bool:
    if not session_id or not form_value:
        return False
    expected = _CSRF_BY_SESSION.get(session_id)
    if not expected:
        return False
    return hmac.compare_digest(expected, str(form_value))


def drop_csrf_token(session_id: Optional[str]) -> None:
    if session_id:
        _CSRF_BY_SESSION.pop(session_id, None)


def new_login_token() -> str:
    return secrets.token_urlsafe(24)


def validate_login_token(cookie_value: Optional[str], form_value: Optional[str]) -> bool:
    if not cookie_value or not form_value:
        return False
    return hmac.compare_digest(str(cookie_value), str(form_value))
