"""
Security config guard and backend wiring.

Production/staging must fail fast on missing or placeholder Supabase
settings, forced in-memory backends, or a development admin account.
Development stays permissive and falls back to in-memory backends.
"""
from __future__ import annotations

import importlib

import pytest

from backend.catalog.repo import InMemoryCatalogRepo
from backend.catalog.repo_supabase import SupabaseCatalogRepo
from backend.catalog.storage import InMemoryStorageAdapter
from backend.identity_access.supabase_auth import LocalAuthService, SupabaseAuthService


def _cfg():
    from backend.web import config as cfg

    return importlib.reload(cfg)


def _prod_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ACADEMY_ENV", "prod")
    monkeypatch.setenv("SUPABASE_URL", "https://lgc.supabase.co")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "eyJhbGciOiJIUzI1NiJ9.real")


def test_prod_with_complete_settings_starts(monkeypatch: pytest.MonkeyPatch):
    _prod_env(monkeypatch)
    _cfg().ensure_secure_config_on_startup()


@pytest.mark.parametrize(
    "name, value",
    [
        ("SUPABASE_URL", ""),
        ("SUPABASE_ANON_KEY", ""),
        ("SUPABASE_ANON_KEY", "CHANGE_ME"),
        ("SUPABASE_URL", "http://lgc.supabase.co"),
        ("CATALOG_BACKEND", "memory"),
        ("ACADEMY_DEV_ADMIN_EMAIL", "admin@lgc.test"),
    ],
)
def test_prod_guard_refuses_unsafe_settings(monkeypatch: pytest.MonkeyPatch, name: str, value: str):
    _prod_env(monkeypatch)
    monkeypatch.setenv(name, value)
    with pytest.raises(SystemExit):
        _cfg().ensure_secure_config_on_startup()


def test_staging_is_treated_like_prod(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("ACADEMY_ENV", "staging")
    with pytest.raises(SystemExit):
        _cfg().ensure_secure_config_on_startup()


def test_dev_allows_missing_supabase(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("ACADEMY_ENV", "dev")
    _cfg().ensure_secure_config_on_startup()


def test_invalid_numeric_setting_aborts(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("CATALOG_CACHE_TTL_SECONDS", "soon")
    with pytest.raises(SystemExit):
        _cfg().load_settings()


def test_catalog_backend_selection(monkeypatch: pytest.MonkeyPatch):
    cfg = _cfg()
    assert not cfg.load_settings().use_supabase
    monkeypatch.setenv("SUPABASE_URL", "https://lgc.supabase.co")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "key")
    assert cfg.load_settings().use_supabase
    monkeypatch.setenv("CATALOG_BACKEND", "memory")
    assert not cfg.load_settings().use_supabase


def test_memory_wiring_registers_the_dev_admin(monkeypatch: pytest.MonkeyPatch):
    from backend.web import services, wiring

    monkeypatch.setenv("ACADEMY_DEV_ADMIN_EMAIL", "dev@lgc.test")
    monkeypatch.setenv("ACADEMY_DEV_ADMIN_PASSWORD", "dev-pw")
    wired = wiring.wire_backends(_cfg().load_settings())

    assert wired.mode == "memory"
    assert isinstance(wired.auth_service, LocalAuthService)
    assert wired.auth_service.sign_in("dev@lgc.test", "dev-pw").email == "dev@lgc.test"
    assert isinstance(services.REPO, InMemoryCatalogRepo)
    assert isinstance(services.STORAGE, InMemoryStorageAdapter)


def test_supabase_wiring_uses_the_client(monkeypatch: pytest.MonkeyPatch):
    from backend.web import services, wiring

    monkeypatch.setenv("SUPABASE_URL", "https://lgc.supabase.co")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "key")
    monkeypatch.setenv("SUPABASE_STORAGE_BUCKET", "imagens")
    monkeypatch.setattr(wiring, "_create_client", lambda settings, isolated=False: object())

    wired = wiring.wire_backends(_cfg().load_settings())

    assert wired.mode == "supabase"
    assert isinstance(wired.auth_service, SupabaseAuthService)
    assert isinstance(services.REPO, SupabaseCatalogRepo)
    assert services.BUCKET == "imagens"
    assert services.SESSION_BACKENDS is not None


def test_dev_falls_back_to_memory_when_the_client_cannot_be_created(monkeypatch: pytest.MonkeyPatch):
    from backend.web import services, wiring

    def broken(settings, isolated=False):
        raise ValueError("Invalid API key")

    monkeypatch.setenv("SUPABASE_URL", "https://lgc.supabase.co")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "key")
    monkeypatch.setattr(wiring, "_create_client", broken)

    wired = wiring.wire_backends(_cfg().load_settings())

    assert wired.mode == "memory"
    assert isinstance(services.REPO, InMemoryCatalogRepo)


def test_prod_does_not_fall_back(monkeypatch: pytest.MonkeyPatch):
    from backend.web import wiring

    def broken(settings, isolated=False):
        raise ValueError("Invalid API key")

    _prod_env(monkeypatch)
    monkeypatch.setattr(wiring, "_create_client", broken)

    with pytest.raises(ValueError):
        wiring.wire_backends(_cfg().load_settings())
