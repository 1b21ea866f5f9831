"""
Storage adapter contract for course images.

Images live in a public bucket of the backend's file store. The catalog only
needs to upload an object, resolve its public URL, and remove an object it
replaced. Implementations raise on failure; the write model turns those
failures into `UploadError`.
"""
from __future__ import annotations

from typing import Protocol


class StorageAdapterProtocol(Protocol):
    def put_object(self, *, bucket: str, key: str, body: bytes, content_type: str) -> None:
        ...

    def public_url(self, *, bucket: str, key: str) -> str:
        ...

    def delete_object(self, *, bucket: str, key: str) -> None:
        ...


class NullStorageAdapter:
    """Adapter used when no file store is configured."""

    def put_object(self, *, bucket: str, key: str, body: bytes, content_type: str) -> None:
        raise RuntimeError("storage_adapter_not_configured")

    def public_url(self, *, bucket: str, key: str) -> str:
        raise RuntimeError("storage_adapter_not_configured")

    def delete_object(self, *, bucket: str, key: str) -> None:
        raise RuntimeError("storage_adapter_not_configured")


class InMemoryStorageAdapter:
    """Keeps uploaded objects in a dict; public URLs point at a fake host."""

    def __init__(self, base_url: str = "http://storage.local") -> None:
        self.base_url = base_url.rstrip("/")
        self.objects: dict[tuple[str, str], tuple[bytes, str]] = {}

    def put_object(self, *, bucket: str, key: str, body: bytes, content_type: str) -> None:
        self.objects[(bucket, key)] = (bytes(body), content_type)

    def public_url(self, *, bucket: str, key: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{bucket}/{key}"

    def delete_object(self, *, bucket: str, key: str) -> None:
        self.objects.pop((bucket, key), None)


__all__ = ["StorageAdapterProtocol", "NullStorageAdapter", "InMemoryStorageAdapter"]
