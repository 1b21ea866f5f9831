"""
Form components: field wrappers, buttons, and the admin/login forms.
"""

from .fields import FormField, TextAreaField, FileUploadField, TextInputField, hidden_input
from .submit import SubmitButton, PostButton
from .course_form import CourseForm
from .lesson_form import LessonForm
from .confirm_delete import ConfirmDelete
from .login_form import LoginForm

__all__ = [
    "FormField",
    "TextAreaField",
    "FileUploadField",
    "TextInputField",
    "hidden_input",
    "SubmitButton",
    "PostButton",
    "CourseForm",
    "LessonForm",
    "ConfirmDelete",
    "LoginForm",
]
