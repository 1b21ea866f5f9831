"""
In-memory session store.

Why: Keep backend tokens server-side. The browser only carries an opaque
session id in an HttpOnly cookie; the access/refresh tokens issued by the
auth backend never leave the server.

Change notifications: views that gate on a session subscribe per session id
and are told when the session is signed out or its tokens are refreshed.
The subscription returns an unsubscribe callable.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional
import logging
import secrets
import threading
import time


logger = logging.getLogger("academy.identity_access")

SIGNED_OUT = "SIGNED_OUT"
TOKEN_REFRESHED = "TOKEN_REFRESHED"

SessionListener = Callable[[str, Optional["SessionRecord"]], None]


def _now() -> int:
    return int(time.time())


@dataclass
class SessionRecord:
    session_id: str
    user_id: str
    email: str
    access_token: str
    refresh_token: str
    token_expires_at: Optional[int] = None
    expires_at: Optional[int] = None

    def token_expired(self, now: Optional[int] = None) -> bool:
        if self.token_expires_at is None:
            return False
        return self.token_expires_at <= (now if now is not None else _now())


class SessionStore:
    def __init__(self):
        self._data: Dict[str, SessionRecord] = {}
        self._listeners: Dict[str, List[SessionListener]] = {}
        self._lock = threading.Lock()

    def create(
        self,
        *,
        user_id: str,
        email: str,
        access_token: str,
        refresh_token: str,
        token_expires_at: Optional[int] = None,
        ttl_seconds: int = 3600,
    ) -> SessionRecord:
        sid = secrets.token_urlsafe(24)
        rec = SessionRecord(
            session_id=sid,
            user_id=user_id,
            email=email,
            access_token=access_token,
            refresh_token=refresh_token,
            token_expires_at=token_expires_at,
            expires_at=_now() + ttl_seconds,
        )
        with self._lock:
            self._data[sid] = rec
        return rec

    def get(self, session_id: str) -> Optional[SessionRecord]:
        with self._lock:
            rec = self._data.get(session_id)
            if not rec:
                return None
            if rec.expires_at and rec.expires_at < _now():
                self._data.pop(session_id, None)
                expired = True
            else:
                expired = False
        if expired:
            self._notify(session_id, SIGNED_OUT, None)
            return None
        return rec

    def replace_tokens(
        self, session_id: str, *, access_token: str, refresh_token: str, token_expires_at: Optional[int]
    ) -> Optional[SessionRecord]:
        with self._lock:
            rec = self._data.get(session_id)
            if rec is None:
                return None
            rec.access_token = access_token
            rec.refresh_token = refresh_token
            rec.token_expires_at = token_expires_at
        self._notify(session_id, TOKEN_REFRESHED, rec)
        return rec

    def delete(self, session_id: str) -> None:
        with self._lock:
            existed = self._data.pop(session_id, None) is not None
        if existed:
            self._notify(session_id, SIGNED_OUT, None)

    def subscribe(self, session_id: str, listener: SessionListener) -> Callable[[], None]:
        with self._lock:
            self._listeners.setdefault(session_id, []).append(listener)

        def unsubscribe() -> None:
            with self._lock:
                bucket = self._listeners.get(session_id) or []
                if listener in bucket:
                    bucket.remove(listener)
                if not bucket:
                    self._listeners.pop(session_id, None)

        return unsubscribe

    def listener_count(self, session_id: str) -> int:
        with self._lock:
            return len(self._listeners.get(session_id) or [])

    def _notify(self, session_id: str, event: str, rec: Optional[SessionRecord]) -> None:
        with self._lock:
            listeners = list(self._listeners.get(session_id) or [])
        for listener in listeners:
            try:
                listener(event, rec)
            except Exception as exc:
                logger.warning("Session listener failed on %s: %s", event, exc.__class__.__name__)


__all__ = ["SessionRecord", "SessionStore", "SIGNED_OUT", "TOKEN_REFRESHED"]
