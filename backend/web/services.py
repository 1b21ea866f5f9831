"""
Catalog service holders for the web layer.

The routes build readers and writers from module-level holders that startup
wiring fills (Supabase or in-memory) and tests replace through the setters.
All readers and writers share one `QueryCache`, so a write invalidates what
every later request reads.
"""
from __future__ import annotations

from functools import partial
from typing import Any, Callable, Optional, Tuple

import anyio

from backend.catalog.cache import QueryCache
from backend.catalog.errors import BackendWriteError
from backend.catalog.repo import CatalogRepoProtocol, InMemoryCatalogRepo
from backend.catalog.services import CatalogReader, CatalogWriter
from backend.catalog.storage import NullStorageAdapter, StorageAdapterProtocol
from backend.identity_access.stores import SessionRecord


SessionBackendsFactory = Callable[[SessionRecord], Tuple[CatalogRepoProtocol, StorageAdapterProtocol]]

REPO: CatalogRepoProtocol = InMemoryCatalogRepo()
STORAGE: StorageAdapterProtocol = NullStorageAdapter()
CACHE = QueryCache(ttl_seconds=60)
BUCKET = "course-images"
MAX_IMAGE_BYTES = 5 * 1024 * 1024
SESSION_BACKENDS: Optional[SessionBackendsFactory] = None


def set_repo(repo: CatalogRepoProtocol) -> None:
    global REPO
    REPO = repo
    CACHE.clear()


def set_storage_adapter(adapter: StorageAdapterProtocol) -> None:
    global STORAGE
    STORAGE = adapter


def set_session_backends(factory: Optional[SessionBackendsFactory]) -> None:
    """Writes run with the signed-in user's credentials when a factory is set."""
    global SESSION_BACKENDS
    SESSION_BACKENDS = factory


def configure(*, bucket: Optional[str] = None, cache_ttl_seconds: Optional[float] = None, max_image_bytes: Optional[int] = None) -> None:
    global BUCKET, MAX_IMAGE_BYTES
    if bucket:
        BUCKET = bucket
    if cache_ttl_seconds is not None:
        CACHE.ttl_seconds = float(cache_ttl_seconds)
    if max_image_bytes is not None:
        MAX_IMAGE_BYTES = int(max_image_bytes)


def reset_cache() -> None:
    CACHE.clear()


def get_reader() -> CatalogReader:
    return CatalogReader(repo=REPO, cache=CACHE)


async def get_writer(session: Optional[SessionRecord]) -> CatalogWriter:
    repo: Any = REPO
    storage: Any = STORAGE
    factory = SESSION_BACKENDS
    if factory is not None and session is not None:
        try:
            repo, storage = await anyio.to_thread.run_sync(partial(factory, session))
        except Exception as exc:
            raise BackendWriteError(str(exc) or exc.__class__.__name__) from exc
    return CatalogWriter(
        repo=repo,
        cache=CACHE,
        storage=storage,
        bucket=BUCKET,
        max_image_bytes=MAX_IMAGE_BYTES,
        reader=CatalogReader(repo=REPO, cache=CACHE),
    )
