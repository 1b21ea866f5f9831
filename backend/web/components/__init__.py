# Academy component system: pure Python components for HTML generation

from .base import Component
from .layout import Layout
from .footer import Footer
from .cards import CourseCard
from .forms import (
    FormField,
    TextAreaField,
    FileUploadField,
    TextInputField,
    SubmitButton,
    PostButton,
    CourseForm,
    LessonForm,
    ConfirmDelete,
    LoginForm,
)
from .lesson_player import LessonPlayer, LessonSidebar, youtube_embed_url
from .admin_tables import CourseTable, LessonTable
from .pages import Alert, NotFoundPage, LoadingPage, ErrorPage, flash_banner

__all__ = [
    "Component",
    "Layout",
    "Footer",
    "CourseCard",
    "FormField",
    "TextAreaField",
    "FileUploadField",
    "TextInputField",
    "SubmitButton",
    "PostButton",
    "CourseForm",
    "LessonForm",
    "ConfirmDelete",
    "LoginForm",
    "LessonPlayer",
    "LessonSidebar",
    "youtube_embed_url",
    "CourseTable",
    "LessonTable",
    "Alert",
    "NotFoundPage",
    "LoadingPage",
    "ErrorPage",
    "flash_banner",
]
