"""
Storage keys for course images.

Convention:
    courses/{epoch_ms}-{random hex}{.ext}

The timestamp plus random suffix keeps keys collision resistant without a
backend round trip; the original file's extension is kept (lowercased, only
alphanumerics) so the store can infer the content type.
"""
from __future__ import annotations

from typing import Optional
from urllib.parse import unquote, urlparse
import os
import secrets
import time


IMAGE_PREFIX = "courses"


def _sanitize_ext_from_filename(filename: str | None, default_ext: str = "") -> str:
    if not filename:
        ext = default_ext
    else:
        _, ext = os.path.splitext(os.path.basename(filename))
    ext = (ext or default_ext or "").lower()
    ext = "".join(ch for ch in ext if ch.isalnum() or ch == ".")
    ext = "." + ext.strip(".") if ext.strip(".") else ""
    return ext[:10]


def make_course_image_key(*, filename: str | None, epoch_ms: int | None = None, random_hex: str | None = None) -> str:
    ms = int(time.time() * 1000) if epoch_ms is None else int(epoch_ms)
    suffix = (random_hex or "").strip() or secrets.token_hex(6)
    return f"{IMAGE_PREFIX}/{ms}-{suffix}{_sanitize_ext_from_filename(filename)}"


def key_from_public_url(url: str | None, bucket: str) -> Optional[str]:
    """Return the object key when `url` is a public URL of `bucket`, else None.

    Public URLs look like `<host>/storage/v1/object/public/<bucket>/<key>`.
    Foreign links (manually entered image URLs) yield None.
    """
    if not url:
        return None
    path = unquote(urlparse(url).path or "")
    marker = f"/object/public/{bucket}/"
    idx = path.find(marker)
    if idx < 0:
        return None
    key = path[idx + len(marker):].strip("/")
    return key or None


__all__ = ["make_course_image_key", "key_from_public_url"]
