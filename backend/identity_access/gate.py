"""
Session gate for the admin area.

The gate tracks one of three states:

- ``unknown``: the session has not been resolved yet (or resolving failed),
- ``authenticated`` / ``unauthenticated``: resolved; afterwards the gate
  follows change notifications from the auth backend directly.

Usage mirrors a view's mount/unmount lifecycle::

    async with SessionGate(backend) as gate:
        decision = gate_decision(gate.status, request.url.path)

Entering resolves the session once and subscribes to changes; leaving
unsubscribes. `gate_decision` is a pure function of (status, path).
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Protocol
from urllib.parse import quote
import logging


logger = logging.getLogger("academy.identity_access.gate")

LOGIN_PATH = "/login"
ADMIN_PATH = "/admin"


class SessionStatus(str, Enum):
    UNKNOWN = "unknown"
    AUTHENTICATED = "authenticated"
    UNAUTHENTICATED = "unauthenticated"


@dataclass(frozen=True)
class SessionInfo:
    user_id: str
    email: str


SessionChangeCallback = Callable[[str, Optional[SessionInfo]], None]


class AuthBackendProtocol(Protocol):
    async def get_session(self) -> Optional[SessionInfo]:
        ...

    def on_auth_state_change(self, callback: SessionChangeCallback) -> Callable[[], None]:
        ...

    async def sign_out(self) -> None:
        ...


class SessionGate:
    def __init__(self, backend: AuthBackendProtocol) -> None:
        self._backend = backend
        self.status = SessionStatus.UNKNOWN
        self.session: Optional[SessionInfo] = None
        self._unsubscribe: Optional[Callable[[], None]] = None

    async def __aenter__(self) -> "SessionGate":
        await self.resolve()
        self._unsubscribe = self._backend.on_auth_state_change(self._on_change)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def resolve(self) -> SessionStatus:
        if self.status is not SessionStatus.UNKNOWN:
            return self.status
        try:
            session = await self._backend.get_session()
        except Exception as exc:
            # Leave the gate unresolved; protected views show the loading state.
            logger.warning("Session lookup failed: %s", exc.__class__.__name__)
            return self.status
        self._apply(session)
        return self.status

    def _on_change(self, event: str, session: Optional[SessionInfo]) -> None:
        logger.debug("Session change: %s", event)
        self._apply(session)

    def _apply(self, session: Optional[SessionInfo]) -> None:
        self.session = session
        self.status = SessionStatus.AUTHENTICATED if session is not None else SessionStatus.UNAUTHENTICATED


@dataclass(frozen=True)
class GateDecision:
    action: str  # "allow" | "redirect" | "loading"
    location: Optional[str] = None


ALLOW = GateDecision("allow")
LOADING = GateDecision("loading")


def is_protected_path(path: str) -> bool:
    return path == ADMIN_PATH or path.startswith(ADMIN_PATH + "/")


def gate_decision(status: SessionStatus, path: str) -> GateDecision:
    if is_protected_path(path):
        if status is SessionStatus.UNKNOWN:
            return LOADING
        if status is SessionStatus.UNAUTHENTICATED:
            return GateDecision("redirect", f"{LOGIN_PATH}?next={quote(path, safe='/')}")
        return ALLOW
    if path == LOGIN_PATH and status is SessionStatus.AUTHENTICATED:
        return GateDecision("redirect", ADMIN_PATH)
    return ALLOW


__all__ = [
    "SessionStatus",
    "SessionInfo",
    "SessionGate",
    "AuthBackendProtocol",
    "GateDecision",
    "gate_decision",
    "is_protected_path",
]
