"""
Catalog error taxonomy.

Adapters translate client exceptions into these types; routes catch them at
the boundary and choose a view (message, redirect, or re-rendered form).
Every error carries a short machine-readable `code` plus an optional detail
message from the backend.
"""
from __future__ import annotations

from typing import Dict, Optional


class CatalogError(Exception):
    code = "catalog_error"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.code
        super().__init__(self.message)


class BackendQueryError(CatalogError):
    """A read failed (network or backend fault), not an empty result."""

    code = "backend_query_error"


class NotFound(CatalogError):
    """The query was well formed but no row matched."""

    code = "not_found"

    def __init__(self, kind: str, ident: str) -> None:
        self.kind = kind
        self.ident = ident
        super().__init__(f"{kind}_not_found")


class BackendWriteError(CatalogError):
    """Insert/update/delete rejected by the backend.

    `partial` is set when a multi-step write could not be fully undone.
    """

    code = "backend_write_error"

    def __init__(self, message: Optional[str] = None, *, partial: bool = False) -> None:
        self.partial = partial
        super().__init__(message)


class UploadError(CatalogError):
    code = "upload_error"


class ValidationError(CatalogError):
    """Form payload rejected before any backend call."""

    code = "validation_error"

    def __init__(self, field_errors: Dict[str, str]) -> None:
        self.field_errors = dict(field_errors)
        super().__init__(", ".join(sorted(self.field_errors)) or self.code)


__all__ = [
    "CatalogError",
    "BackendQueryError",
    "NotFound",
    "BackendWriteError",
    "UploadError",
    "ValidationError",
]
