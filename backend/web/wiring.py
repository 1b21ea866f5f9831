"""
Startup wiring of catalog, storage and auth backends.

Why:
    The app runs against Supabase when it is configured and falls back to
    in-memory backends for local development otherwise. This module makes
    that choice once and fills the holders in `backend.web.services`.

Behavior:
    - `CATALOG_BACKEND=memory` forces the in-memory backends.
    - `CATALOG_BACKEND=supabase` (or `auto` with URL + anon key present) wires
      the shared anon client for reads and a per-session client for writes,
      so row-level security sees the signed-in admin.
    - When the Supabase client cannot be created outside production, a warning
      is logged and the in-memory backends are used. In production the error
      propagates and startup aborts.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict
import logging

from backend.catalog.repo import InMemoryCatalogRepo
from backend.catalog.repo_supabase import SupabaseCatalogRepo
from backend.catalog.storage import InMemoryStorageAdapter
from backend.catalog.storage_supabase import SupabaseStorageAdapter
from backend.identity_access.stores import SessionRecord
from backend.identity_access.supabase_auth import AuthServiceProtocol, LocalAuthService, SupabaseAuthService
from backend.web import services
from backend.web.config import Settings


logger = logging.getLogger("academy.web")


@dataclass
class WiredBackends:
    mode: str
    auth_service: AuthServiceProtocol


def _create_client(settings: Settings, *, isolated: bool = False) -> Any:
    from supabase import ClientOptions, create_client

    if isolated:
        # Per-user clients must not persist or auto-refresh sessions.
        options = ClientOptions(persist_session=False, auto_refresh_token=False)
        return create_client(settings.supabase_url, settings.supabase_anon_key, options=options)
    return create_client(settings.supabase_url, settings.supabase_anon_key)


def _session_backends(settings: Settings, rec: SessionRecord):
    client = _create_client(settings, isolated=True)
    client.auth.set_session(rec.access_token, rec.refresh_token)
    return SupabaseCatalogRepo(client), SupabaseStorageAdapter(client)


def _wire_memory(settings: Settings) -> WiredBackends:
    services.set_repo(InMemoryCatalogRepo())
    services.set_storage_adapter(InMemoryStorageAdapter())
    services.set_session_backends(None)
    accounts: Dict[str, str] = {}
    if settings.dev_admin_email and settings.dev_admin_password:
        accounts[settings.dev_admin_email] = settings.dev_admin_password
    else:
        logger.warning("No ACADEMY_DEV_ADMIN_EMAIL/PASSWORD configured; admin sign-in is unavailable")
    return WiredBackends(mode="memory", auth_service=LocalAuthService(accounts, token_ttl_seconds=settings.session_ttl_seconds))


def wire_backends(settings: Settings) -> WiredBackends:
    services.configure(
        bucket=settings.storage_bucket,
        cache_ttl_seconds=settings.cache_ttl_seconds,
        max_image_bytes=settings.max_image_bytes,
    )
    if not settings.use_supabase:
        logger.info("Catalog backend: in-memory")
        return _wire_memory(settings)
    try:
        client = _create_client(settings)
    except Exception as exc:
        if settings.prod_like:
            raise
        logger.warning(
            "Supabase client unavailable, using in-memory backends: %s: %s", exc.__class__.__name__, str(exc)
        )
        return _wire_memory(settings)

    services.set_repo(SupabaseCatalogRepo(client))
    services.set_storage_adapter(SupabaseStorageAdapter(client))
    services.set_session_backends(lambda rec: _session_backends(settings, rec))
    logger.info("Catalog backend: Supabase")
    return WiredBackends(
        mode="supabase",
        auth_service=SupabaseAuthService(lambda: _create_client(settings, isolated=True)),
    )


__all__ = ["WiredBackends", "wire_backends"]
