"""
Configuration and startup security checks for the academy web app.

Settings come from environment variables (optionally loaded from a local
`.env` by `main`). `ensure_secure_config_on_startup` refuses to start a
production or staging deployment with obviously unsafe settings; development
stays permissive and falls back to in-memory backends.
"""
from __future__ import annotations

from dataclasses import dataclass
import os


PLACEHOLDER_PREFIXES = ("CHANGE_ME", "DUMMY", "YOUR_")


def _is_prod_like(env: str) -> bool:
    env_l = (env or "").lower()
    return env_l in {"prod", "production", "stage", "staging"}


def _int_env(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise SystemExit(f"Refusing to start: {name} must be an integer (got {raw!r}).") from None


@dataclass(frozen=True)
class Settings:
    environment: str = "dev"
    supabase_url: str = ""
    supabase_anon_key: str = ""
    storage_bucket: str = "course-images"
    catalog_backend: str = "auto"
    cache_ttl_seconds: int = 60
    session_ttl_seconds: int = 3600
    max_image_bytes: int = 5 * 1024 * 1024
    dev_admin_email: str = ""
    dev_admin_password: str = ""

    @property
    def prod_like(self) -> bool:
        return _is_prod_like(self.environment)

    @property
    def supabase_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_anon_key)

    @property
    def use_supabase(self) -> bool:
        if self.catalog_backend == "memory":
            return False
        if self.catalog_backend == "supabase":
            return True
        return self.supabase_configured


def load_settings() -> Settings:
    backend = (os.getenv("CATALOG_BACKEND") or "auto").strip().lower()
    if backend not in ("auto", "supabase", "memory"):
        raise SystemExit(f"Refusing to start: CATALOG_BACKEND must be auto, supabase or memory (got {backend!r}).")
    return Settings(
        environment=(os.getenv("ACADEMY_ENV") or "dev").strip().lower(),
        supabase_url=(os.getenv("SUPABASE_URL") or "").strip(),
        supabase_anon_key=(os.getenv("SUPABASE_ANON_KEY") or "").strip(),
        storage_bucket=(os.getenv("SUPABASE_STORAGE_BUCKET") or "course-images").strip(),
        catalog_backend=backend,
        cache_ttl_seconds=_int_env("CATALOG_CACHE_TTL_SECONDS", 60),
        session_ttl_seconds=_int_env("SESSION_TTL_SECONDS", 3600),
        max_image_bytes=_int_env("MAX_IMAGE_BYTES", 5 * 1024 * 1024),
        dev_admin_email=(os.getenv("ACADEMY_DEV_ADMIN_EMAIL") or "").strip(),
        dev_admin_password=os.getenv("ACADEMY_DEV_ADMIN_PASSWORD") or "",
    )


def ensure_secure_config_on_startup() -> None:
    """Fail fast on insecure production configuration.

    Checks (prod-like environments only):
    - SUPABASE_URL and SUPABASE_ANON_KEY are set and not placeholders.
    - SUPABASE_URL uses https.
    - The in-memory catalog backend is not forced.
    - No development admin account is configured.
    """
    settings = load_settings()
    if not settings.prod_like:
        return

    if not settings.supabase_url:
        raise SystemExit("Refusing to start: SUPABASE_URL is unset in production.")
    key = settings.supabase_anon_key
    if not key or key.upper().startswith(PLACEHOLDER_PREFIXES):
        raise SystemExit("Refusing to start: SUPABASE_ANON_KEY is unset or a placeholder in production.")
    if not settings.supabase_url.lower().startswith("https://"):
        raise SystemExit("Refusing to start: SUPABASE_URL must use https in production.")
    if settings.catalog_backend == "memory":
        raise SystemExit("Refusing to start: CATALOG_BACKEND=memory is not allowed in production/staging.")
    if settings.dev_admin_email or settings.dev_admin_password:
        raise SystemExit(
            "Refusing to start: ACADEMY_DEV_ADMIN_EMAIL/ACADEMY_DEV_ADMIN_PASSWORD must not be set in production/staging."
        )
