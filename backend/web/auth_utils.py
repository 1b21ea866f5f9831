"""
Shared cookie helpers for the session and login cookies.

The helpers are pure: callers pass the environment and get the cookie flags.
"""

from __future__ import annotations


SESSION_COOKIE_NAME = "academy_session"
LOGIN_CSRF_COOKIE_NAME = "academy_login_csrf"


def cookie_opts(environment: str) -> dict:
    """Return hardened cookie flags, identical for dev and prod.

    Returns a mapping with keys:
      - secure: True
      - samesite: "lax"  # cookie still sent on top-level navigation back to the site
    """
    return {"secure": True, "samesite": "lax"}


def safe_next_path(value: str | None, default: str = "/admin") -> str:
    """Only same-site admin paths are accepted as post-login targets."""
    candidate = (value or "").strip()
    if not candidate.startswith("/admin") or candidate.startswith("//") or "\\" in candidate:
        return default
    return candidate
