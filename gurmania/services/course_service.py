"""
Read-side helpers that assemble course -> module -> lesson -> quiz trees.
"""

from typing import Optional

from sqlalchemy.orm import Session, selectinload

from gurmania.models.models import Course, Lesson, Module, Quiz, Question, User
from gurmania.utils.errors import ForbiddenError, NotFoundError


def is_course_staff(course: Course, user: User) -> bool:
    """Course owner and admins bypass enrollment, publication and gating checks."""
    return course.instructor_id == user.id or user.is_admin


def _tree_query(db: Session):
    return db.query(Course).options(
        selectinload(Course.modules)
        .selectinload(Module.lessons)
        .selectinload(Lesson.quiz),
    )


def load_course_tree(db: Session, course_id: str) -> Optional[Course]:
    return _tree_query(db).filter(Course.id == course_id, Course.deleted_at.is_(None)).first()


def get_visible_course(db: Session, course_id: str, user: User) -> Course:
    """Course tree the user may see; unpublished courses are staff-only."""
    course = load_course_tree(db, course_id)
    if course is None:
        raise NotFoundError("Course not found")
    if not course.published and not is_course_staff(course, user):
        raise ForbiddenError("Course is not available")
    return course


def list_published_courses(db: Session, search: Optional[str] = None) -> list[Course]:
    query = _tree_query(db).filter(Course.published.is_(True), Course.deleted_at.is_(None))
    if search:
        query = query.filter(Course.title.ilike(f"%{search.strip()}%"))
    return query.order_by(Course.created_at.desc()).all()


def all_lessons(course: Course) -> list[Lesson]:
    return [lesson for module in course.modules for lesson in module.lessons]


def find_lesson(course: Course, lesson_id: str) -> tuple[Module, Lesson]:
    for module in course.modules:
        for lesson in module.lessons:
            if lesson.id == lesson_id:
                return module, lesson
    raise NotFoundError("Lesson not found")


def load_quiz(db: Session, quiz_id: str) -> Optional[Quiz]:
    return (
        db.query(Quiz)
        .options(selectinload(Quiz.questions).selectinload(Question.options))
        .filter(Quiz.id == quiz_id)
        .first()
    )
