from .course_card import CourseCard

__all__ = ["CourseCard"]
