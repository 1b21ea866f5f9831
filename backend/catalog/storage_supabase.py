"""
Supabase-backed storage adapter for course images.

Duck-typed over the supabase client: expects `.storage.from_(bucket)` (or a
bare storage client exposing `.from_(bucket)`) returning a bucket proxy with

- upload(path, file, file_options) -> Any
- get_public_url(path) -> str | {publicURL | publicUrl | public_url}
- remove([path]) -> Any

The bucket is expected to be public: course images are shown to anonymous
visitors.
"""
from __future__ import annotations

from typing import Any, Dict

import structlog

from .storage import StorageAdapterProtocol


logger = structlog.get_logger()


class SupabaseStorageAdapter(StorageAdapterProtocol):
    def __init__(self, client: Any):
        self._client = client

    def _bucket(self, bucket: str) -> Any:
        c = self._client
        storage = getattr(c, "storage", None)
        if storage is not None and hasattr(storage, "from_"):
            return storage.from_(bucket)
        if hasattr(c, "from_"):
            return c.from_(bucket)
        raise RuntimeError("invalid_supabase_client")

    @staticmethod
    def _first_key(d: Dict[str, Any], *keys: str) -> Any:
        for k in keys:
            if k in d and d[k] is not None:
                return d[k]
        return None

    @staticmethod
    def _norm_key(bucket: str, key: str) -> str:
        # Paths are relative to the bucket; storage3 prepends the bucket id itself.
        norm_key = key.lstrip("/")
        prefix = f"{bucket}/"
        if norm_key.startswith(prefix):
            norm_key = norm_key[len(prefix):]
        return norm_key

    def put_object(self, *, bucket: str, key: str, body: bytes, content_type: str) -> None:
        b = self._bucket(bucket)
        norm_key = self._norm_key(bucket, key)
        # Client versions differ on kebab or camel case option names.
        opts = {"content-type": content_type, "contentType": content_type, "upsert": "false"}
        b.upload(norm_key, body, opts)
        logger.info("storage_object_uploaded", bucket=bucket, key=norm_key, size=len(body))

    def public_url(self, *, bucket: str, key: str) -> str:
        b = self._bucket(bucket)
        res = b.get_public_url(self._norm_key(bucket, key))
        url = None
        if isinstance(res, str):
            url = res
        elif isinstance(res, dict):
            url = self._first_key(res, "publicURL", "publicUrl", "public_url")
            data = res.get("data")
            if url is None and isinstance(data, dict):
                url = self._first_key(data, "publicURL", "publicUrl", "public_url")
        if not url:
            raise RuntimeError("failed_to_resolve_public_url")
        # Some client versions append a bare "?" to public URLs.
        return str(url).rstrip("?")

    def delete_object(self, *, bucket: str, key: str) -> None:
        b = self._bucket(bucket)
        norm_key = self._norm_key(bucket, key)
        b.remove([norm_key])
        logger.info("storage_object_removed", bucket=bucket, key=norm_key)


__all__ = ["SupabaseStorageAdapter"]
