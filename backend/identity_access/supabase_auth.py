"""
Sign-in, token refresh and sign-out against the backend auth service.

The backend (Supabase GoTrue) issues and refreshes all tokens; this module
only relays credentials and returns the resulting token pair. Each call uses a
fresh client from `client_factory` so one user's session never leaks into the
shared data client of the application.

Logging uses structlog events without credentials or tokens.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Protocol
import hmac
import secrets
import time

import structlog


logger = structlog.get_logger()


class AuthError(Exception):
    """Raised when the auth backend rejects or cannot serve a request."""

    def __init__(self, code: str, message: Optional[str] = None):
        super().__init__(code)
        self.code = code
        self.message = message or code


@dataclass(frozen=True)
class AuthTokens:
    user_id: str
    email: str
    access_token: str
    refresh_token: str
    expires_at: Optional[int] = None


class AuthServiceProtocol(Protocol):
    def sign_in(self, email: str, password: str) -> AuthTokens:
        ...

    def refresh(self, refresh_token: str) -> AuthTokens:
        ...

    def sign_out(self, access_token: str, refresh_token: str) -> None:
        ...


def _tokens_from_response(response: Any, fallback_email: str = "") -> AuthTokens:
    user = getattr(response, "user", None)
    session = getattr(response, "session", None)
    if user is None or session is None:
        raise AuthError("invalid_credentials")
    return AuthTokens(
        user_id=str(getattr(user, "id", "")),
        email=str(getattr(user, "email", None) or fallback_email),
        access_token=str(session.access_token),
        refresh_token=str(session.refresh_token),
        expires_at=getattr(session, "expires_at", None),
    )


def _error_code(exc: BaseException) -> str:
    status = getattr(exc, "status", None)
    if status in (400, 401, 422):
        return "invalid_credentials"
    if status == 429:
        return "rate_limited"
    return "auth_unavailable"


class SupabaseAuthService:
    def __init__(self, client_factory: Callable[[], Any]):
        self._client_factory = client_factory

    def sign_in(self, email: str, password: str) -> AuthTokens:
        client = self._client_factory()
        try:
            response = client.auth.sign_in_with_password({"email": email, "password": password})
        except Exception as exc:
            code = _error_code(exc)
            logger.warning("sign_in_failed", code=code, error=exc.__class__.__name__)
            raise AuthError(code, getattr(exc, "message", None)) from exc
        tokens = _tokens_from_response(response, fallback_email=email)
        logger.info("user_signed_in", user_id=tokens.user_id)
        return tokens

    def refresh(self, refresh_token: str) -> AuthTokens:
        client = self._client_factory()
        try:
            response = client.auth.refresh_session(refresh_token)
        except Exception as exc:
            code = "refresh_failed" if _error_code(exc) == "invalid_credentials" else "auth_unavailable"
            logger.warning("session_refresh_failed", code=code, error=exc.__class__.__name__)
            raise AuthError(code) from exc
        tokens = _tokens_from_response(response)
        logger.info("session_refreshed", user_id=tokens.user_id)
        return tokens

    def sign_out(self, access_token: str, refresh_token: str) -> None:
        client = self._client_factory()
        try:
            client.auth.set_session(access_token, refresh_token)
            client.auth.sign_out()
        except Exception as exc:
            logger.warning("sign_out_failed", error=exc.__class__.__name__)
            raise AuthError("sign_out_failed") from exc
        logger.info("user_signed_out")


class LocalAuthService:
    """Development auth service with a fixed set of accounts.

    Tokens are random opaque strings; nothing here is suitable for production
    and the startup guard refuses it in prod-like environments.
    """

    def __init__(self, accounts: Dict[str, str], token_ttl_seconds: int = 3600):
        self._accounts = {k.strip().lower(): v for k, v in accounts.items()}
        self._token_ttl_seconds = token_ttl_seconds
        self._refresh: Dict[str, str] = {}

    def _issue(self, email: str) -> AuthTokens:
        refresh_token = secrets.token_urlsafe(24)
        self._refresh[refresh_token] = email
        return AuthTokens(
            user_id=f"local:{email}",
            email=email,
            access_token=secrets.token_urlsafe(24),
            refresh_token=refresh_token,
            expires_at=int(time.time()) + self._token_ttl_seconds,
        )

    def sign_in(self, email: str, password: str) -> AuthTokens:
        key = (email or "").strip().lower()
        expected = self._accounts.get(key)
        if expected is None or not hmac.compare_digest(expected, password or ""):
            logger.warning("sign_in_failed", code="invalid_credentials")
            raise AuthError("invalid_credentials")
        logger.info("user_signed_in", user_id=f"local:{key}")
        return self._issue(key)

    def refresh(self, refresh_token: str) -> AuthTokens:
        email = self._refresh.pop(refresh_token, None)
        if email is None:
            raise AuthError("refresh_failed")
        return self._issue(email)

    def sign_out(self, access_token: str, refresh_token: str) -> None:
        self._refresh.pop(refresh_token, None)


__all__ = [
    "AuthError",
    "AuthTokens",
    "AuthServiceProtocol",
    "SupabaseAuthService",
    "LocalAuthService",
]
