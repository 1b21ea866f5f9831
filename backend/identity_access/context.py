"""
Application-wide auth context.

Created once when the application starts and kept on `app.state`. It owns
the session store and the auth service, hands out per-request gates, and
performs sign-in/sign-out. Nothing here is a bare module-level global; tests
build their own context.
"""
from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from typing import Callable, Optional
import logging

import anyio

from .gate import SessionChangeCallback, SessionGate, SessionInfo
from .stores import SessionRecord, SessionStore
from .supabase_auth import AuthError, AuthServiceProtocol


logger = logging.getLogger("academy.identity_access")


def _info(rec: Optional[SessionRecord]) -> Optional[SessionInfo]:
    if rec is None:
        return None
    return SessionInfo(user_id=rec.user_id, email=rec.email)


class StoreSessionBackend:
    """Session accessor for one browser session id.

    An expired access token is refreshed once through the auth service. A
    rejected refresh ends the session; an unreachable auth service is raised
    so the gate stays ``unknown``.
    """

    def __init__(self, store: SessionStore, session_id: Optional[str], auth_service: AuthServiceProtocol) -> None:
        self._store = store
        self._session_id = session_id
        self._auth = auth_service
        self.record: Optional[SessionRecord] = None

    async def get_session(self) -> Optional[SessionInfo]:
        if not self._session_id:
            return None
        rec = self._store.get(self._session_id)
        if rec is None:
            return None
        if rec.token_expired():
            try:
                tokens = await anyio.to_thread.run_sync(partial(self._auth.refresh, rec.refresh_token))
            except AuthError as exc:
                if exc.code != "refresh_failed":
                    raise
                self._store.delete(rec.session_id)
                return None
            rec = self._store.replace_tokens(
                rec.session_id,
                access_token=tokens.access_token,
                refresh_token=tokens.refresh_token,
                token_expires_at=tokens.expires_at,
            )
            if rec is None:
                return None
        self.record = rec
        return _info(rec)

    def on_auth_state_change(self, callback: SessionChangeCallback) -> Callable[[], None]:
        if not self._session_id:
            return lambda: None

        def relay(event: str, rec: Optional[SessionRecord]) -> None:
            self.record = rec
            callback(event, _info(rec))

        return self._store.subscribe(self._session_id, relay)

    async def sign_out(self) -> None:
        """End the backend session, then drop the local one (notifies ``SIGNED_OUT``)."""
        if not self._session_id:
            return
        rec = self._store.get(self._session_id)
        if rec is None:
            return
        try:
            await anyio.to_thread.run_sync(partial(self._auth.sign_out, rec.access_token, rec.refresh_token))
        except AuthError as exc:
            # The local session ends either way.
            logger.warning("Backend sign-out failed: %s", exc.code)
        finally:
            self._store.delete(rec.session_id)


@dataclass
class AuthContext:
    store: SessionStore
    auth_service: AuthServiceProtocol
    session_ttl_seconds: int = 3600

    def backend(self, session_id: Optional[str]) -> StoreSessionBackend:
        return StoreSessionBackend(self.store, session_id, self.auth_service)

    def gate(self, session_id: Optional[str]) -> SessionGate:
        return SessionGate(self.backend(session_id))

    async def sign_in(self, email: str, password: str) -> SessionRecord:
        tokens = await anyio.to_thread.run_sync(partial(self.auth_service.sign_in, email, password))
        return self.store.create(
            user_id=tokens.user_id,
            email=tokens.email,
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            token_expires_at=tokens.expires_at,
            ttl_seconds=self.session_ttl_seconds,
        )

    async def sign_out(self, session_id: Optional[str]) -> None:
        await self.backend(session_id).sign_out()


__all__ = ["AuthContext", "StoreSessionBackend"]
