"""
Form payload validation for the admin course and lesson forms.

Why:
    Validation happens before any backend call. The pydantic models normalize
    the raw form strings (trimming, blank -> None, integer parsing) and the
    parse helpers convert pydantic's error list into the catalog's
    `ValidationError` with one message per form field.

Download files:
    The lesson form posts attachments as repeated `file_name` / `file_url`
    fields (one pair per row). Fully blank rows are ignored; a half-filled row
    or a non-http(s) URL is a field error on `download_files`.
"""
from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import parse_qs, urlparse
import re

from pydantic import BaseModel, ValidationError as PydanticValidationError, field_validator

from .errors import ValidationError
from .models import DownloadFile, dump_download_files


TITLE_MAX = 200
_VIDEO_ID_RE = re.compile(r"^[A-Za-z0-9_-]{11}$")
_YOUTUBE_HOSTS = {"youtube.com", "www.youtube.com", "m.youtube.com", "youtube-nocookie.com", "www.youtube-nocookie.com"}


def is_http_url(value: str) -> bool:
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def extract_youtube_id(value: str) -> Optional[str]:
    """Return the video id for a raw id or a pasted YouTube link."""
    raw = (value or "").strip()
    if not raw:
        return None
    if "/" not in raw and "." not in raw:
        return raw if _VIDEO_ID_RE.match(raw) else None
    candidate = raw if "://" in raw else f"https://{raw}"
    parsed = urlparse(candidate)
    host = (parsed.hostname or "").lower()
    segments = [s for s in parsed.path.split("/") if s]
    vid = None
    if host in ("youtu.be", "www.youtu.be"):
        vid = segments[0] if segments else None
    elif host in _YOUTUBE_HOSTS:
        if segments[:1] == ["watch"]:
            vid = (parse_qs(parsed.query).get("v") or [None])[0]
        elif len(segments) >= 2 and segments[0] in ("embed", "shorts", "live", "v"):
            vid = segments[1]
    if vid and _VIDEO_ID_RE.match(vid):
        return vid
    return None


def _blank_to_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class _CatalogForm(BaseModel):
    title: str
    description: Optional[str] = None
    order: Optional[int] = None

    @field_validator("title", mode="before")
    @classmethod
    def _title(cls, v: Any) -> str:
        text = str(v or "").strip()
        if not text:
            raise ValueError("Informe um título.")
        if len(text) > TITLE_MAX:
            raise ValueError(f"O título deve ter no máximo {TITLE_MAX} caracteres.")
        return text

    @field_validator("description", mode="before")
    @classmethod
    def _description(cls, v: Any) -> Optional[str]:
        return _blank_to_none(v)

    @field_validator("order", mode="before")
    @classmethod
    def _order(cls, v: Any) -> Optional[int]:
        text = _blank_to_none(v)
        if text is None:
            return None
        try:
            return int(text)
        except ValueError:
            raise ValueError("A ordem deve ser um número inteiro.") from None


class CourseForm(_CatalogForm):
    image_url: Optional[str] = None

    @field_validator("image_url", mode="before")
    @classmethod
    def _image_url(cls, v: Any) -> Optional[str]:
        text = _blank_to_none(v)
        if text is not None and not is_http_url(text):
            raise ValueError("Informe uma URL válida (http ou https).")
        return text

    def to_values(self) -> Dict[str, Any]:
        return {"title": self.title, "description": self.description, "image_url": self.image_url}


class LessonForm(_CatalogForm):
    youtube_video_id: str
    download_files: List[DownloadFile] = []

    @field_validator("youtube_video_id", mode="before")
    @classmethod
    def _video(cls, v: Any) -> str:
        if not str(v or "").strip():
            raise ValueError("Informe o ID do vídeo do YouTube.")
        vid = extract_youtube_id(str(v))
        if vid is None:
            raise ValueError("ID ou link do YouTube inválido.")
        return vid

    @field_validator("download_files", mode="before")
    @classmethod
    def _files(cls, v: Any) -> List[DownloadFile]:
        rows: List[DownloadFile] = []
        for name, url in v or []:
            name = (name or "").strip()
            url = (url or "").strip()
            if not name and not url:
                continue
            if not name or not url:
                raise ValueError("Cada arquivo precisa de nome e URL.")
            if not is_http_url(url):
                raise ValueError(f"URL inválida para o arquivo \"{name}\".")
            rows.append(DownloadFile(name=name, url=url))
        return rows

    def to_values(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "youtube_video_id": self.youtube_video_id,
            "download_files": dump_download_files(self.download_files),
        }


def _getlist(data: Any, key: str) -> List[str]:
    if hasattr(data, "getlist"):
        return [str(v) for v in data.getlist(key)]
    value = data.get(key) if isinstance(data, Mapping) else None
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    return [str(value)]


def _text(data: Any, key: str) -> Any:
    value = data.get(key) if data is not None else None
    # Upload fields share the form; only plain strings are text input.
    return value if isinstance(value, str) or value is None else None


def _field_errors(exc: PydanticValidationError) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    for err in exc.errors():
        field = str(err["loc"][0]) if err.get("loc") else "form"
        ctx_error = (err.get("ctx") or {}).get("error")
        message = str(ctx_error) if ctx_error is not None else "Valor inválido."
        errors.setdefault(field, message)
    return errors


def parse_course_form(data: Mapping[str, Any]) -> CourseForm:
    try:
        return CourseForm.model_validate(
            {
                "title": _text(data, "title"),
                "description": _text(data, "description"),
                "image_url": _text(data, "image_url"),
                "order": _text(data, "order"),
            }
        )
    except PydanticValidationError as exc:
        raise ValidationError(_field_errors(exc)) from None


def parse_lesson_form(data: Mapping[str, Any]) -> LessonForm:
    names = _getlist(data, "file_name")
    urls = _getlist(data, "file_url")
    width = max(len(names), len(urls))
    names += [""] * (width - len(names))
    urls += [""] * (width - len(urls))
    try:
        return LessonForm.model_validate(
            {
                "title": _text(data, "title"),
                "description": _text(data, "description"),
                "youtube_video_id": _text(data, "youtube_video_id"),
                "download_files": list(zip(names, urls)),
                "order": _text(data, "order"),
            }
        )
    except PydanticValidationError as exc:
        raise ValidationError(_field_errors(exc)) from None


__all__ = [
    "CourseForm",
    "LessonForm",
    "parse_course_form",
    "parse_lesson_form",
    "extract_youtube_id",
    "is_http_url",
]
