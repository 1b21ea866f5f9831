"""
Pytest configuration for backend tests.

Why: Force AnyIO to use the asyncio backend and give every test a clean
in-memory catalog, storage and auth context. The app is wired once at import
time; the fixtures below swap the holders it reads from.
"""
import importlib
import sys
import time
from pathlib import Path

import pytest

# Ensure the repository root is importable when pytest runs from elsewhere
REPO_ROOT = Path(__file__).resolve().parents[2]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


ADMIN_EMAIL = "admin@lgc.test"
ADMIN_PASSWORD = "senha-forte-123"

_ENV_VARS = (
    "ACADEMY_ENV",
    "SUPABASE_URL",
    "SUPABASE_ANON_KEY",
    "SUPABASE_STORAGE_BUCKET",
    "CATALOG_BACKEND",
    "CATALOG_CACHE_TTL_SECONDS",
    "SESSION_TTL_SECONDS",
    "MAX_IMAGE_BYTES",
    "ACADEMY_DEV_ADMIN_EMAIL",
    "ACADEMY_DEV_ADMIN_PASSWORD",
)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch):
    """Start every test from a development environment without Supabase.

    Why:
        `backend.web.main` runs the startup guard on import; a leaked
        ACADEMY_ENV=prod from the shell would abort collection.
    """
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture(autouse=True)
def _reset_catalog_services(_isolate_env):
    """Replace the catalog holders with fresh in-memory backends per test."""
    from backend.catalog.repo import InMemoryCatalogRepo
    from backend.catalog.storage import InMemoryStorageAdapter
    from backend.web import services

    services.set_repo(InMemoryCatalogRepo())
    services.set_storage_adapter(InMemoryStorageAdapter())
    services.set_session_backends(None)
    services.configure(bucket="course-images", cache_ttl_seconds=60, max_image_bytes=5 * 1024 * 1024)
    yield
    services.reset_cache()


@pytest.fixture(autouse=True)
def _reset_auth_context(_isolate_env):
    """Give the app a fresh session store and a local auth service with one admin."""
    from backend.identity_access.context import AuthContext
    from backend.identity_access.stores import SessionStore
    from backend.identity_access.supabase_auth import LocalAuthService

    main = importlib.import_module("backend.web.main")
    main.app.state.auth_context = AuthContext(
        store=SessionStore(),
        auth_service=LocalAuthService({ADMIN_EMAIL: ADMIN_PASSWORD}),
    )
    yield


@pytest.fixture
def repo():
    from backend.web import services

    return services.REPO


@pytest.fixture
def storage():
    from backend.web import services

    return services.STORAGE


@pytest.fixture
def auth_context():
    main = importlib.import_module("backend.web.main")
    return main.app.state.auth_context


@pytest.fixture
def admin_session(auth_context):
    """A signed-in admin session (tokens valid for an hour)."""
    return auth_context.store.create(
        user_id="local:" + ADMIN_EMAIL,
        email=ADMIN_EMAIL,
        access_token="access-1",
        refresh_token="refresh-1",
        token_expires_at=int(time.time()) + 3600,
    )


@pytest.fixture
def admin_credentials():
    return ADMIN_EMAIL, ADMIN_PASSWORD
