"""
Learner progress: enrollment, lesson completion and the state fed to the gating evaluator.
"""

from __future__ import annotations

from typing import Optional
from uuid import uuid4

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from gurmania.models.models import Course, Lesson, Progress, Review, User
from gurmania.schemas.lesson_schemas import CompletionOutcome
from gurmania.services import certificate_service
from gurmania.services.course_service import all_lessons, find_lesson, is_course_staff
from gurmania.services.gating import GatingEvaluator, LearnerState, lesson_completed, quiz_passed
from gurmania.services.quiz_service import latest_scores_by_quiz
from gurmania.utils.dates import utcnow
from gurmania.utils.errors import CertificateExistsError, ForbiddenError, NotEnrolledError, QuizNotPassedError
from gurmania.utils.logger import get_logger

logger = get_logger("progress")


def progress_rows(db: Session, user_id: int, course_id: str) -> list[Progress]:
    return db.query(Progress).filter(Progress.user_id == user_id, Progress.course_id == course_id).all()


def is_enrolled(db: Session, user_id: int, course_id: str) -> bool:
    return (
        db.query(Progress.id)
        .filter(Progress.user_id == user_id, Progress.course_id == course_id)
        .first()
        is not None
    )


def enroll(db: Session, user: User, course: Course) -> bool:
    """Create the enrollment marker. Returns False when the learner was already enrolled."""
    if not course.published:
        raise ForbiddenError("Course is not available")
    if is_enrolled(db, user.id, course.id):
        return False
    db.add(Progress(id=str(uuid4()), user_id=user.id, course_id=course.id, lesson_id=None))
    try:
        db.commit()
    except IntegrityError:
        # A concurrent request inserted the marker first.
        db.rollback()
        return False
    logger.info("enrolled user_id=%s course_id=%s", user.id, course.id)
    return True


def load_learner_state(db: Session, user_id: int, course: Course) -> LearnerState:
    """
    Collect completed lessons and passed quizzes for one learner on one course.
    Quiz lessons count as completed only while their newest submission passes.
    """
    lessons = all_lessons(course)
    rows = progress_rows(db, user_id, course.id)
    flagged = {p.lesson_id for p in rows if p.lesson_id and p.completed}

    quiz_ids = [lesson.quiz.id for lesson in lessons if lesson.quiz is not None]
    latest = latest_scores_by_quiz(db, quiz_ids, user_id)

    completed: set[str] = set()
    passed: set[str] = set()
    for lesson in lessons:
        score = latest.get(lesson.quiz.id) if lesson.quiz is not None else None
        if lesson.quiz is not None and quiz_passed(lesson.quiz.passing_score, score):
            passed.add(lesson.id)
        if lesson_completed(lesson, lesson.id in flagged, score):
            completed.add(lesson.id)

    return LearnerState.build(completed, passed, has_activity=bool(rows) or bool(latest))


def evaluator_for(db: Session, user: User, course: Course) -> GatingEvaluator:
    state = load_learner_state(db, user.id, course)
    return GatingEvaluator(course.modules, state)


def ensure_lesson_access(db: Session, user: User, course: Course, lesson_id: str) -> Optional[GatingEvaluator]:
    """
    Enrollment and gating checks for learners. Staff get through unconditionally
    and receive None instead of an evaluator.
    """
    if is_course_staff(course, user):
        return None
    if not is_enrolled(db, user.id, course.id):
        raise NotEnrolledError("Enroll in the course before opening its lessons")
    evaluator = evaluator_for(db, user, course)
    evaluator.ensure_lesson_accessible(lesson_id)
    return evaluator


def can_complete_lesson(db: Session, user: User, course: Course, lesson: Lesson) -> bool:
    """
    Lessons without a quiz may always be completed by an enrolled learner.
    Quiz lessons only when the newest submission passes. Raises LessonLockedError
    when the lesson sits behind an unpassed quiz.
    """
    evaluator = ensure_lesson_access(db, user, course, lesson.id)
    if lesson.quiz is None:
        return True
    if evaluator is not None:
        return lesson.id in evaluator.state.passed_quiz_lesson_ids
    latest = latest_scores_by_quiz(db, [lesson.quiz.id], user.id)
    return quiz_passed(lesson.quiz.passing_score, latest.get(lesson.quiz.id))


def _upsert_progress(db: Session, user_id: int, course_id: str, lesson_id: str, completed: bool) -> Progress:
    progress = (
        db.query(Progress)
        .filter(Progress.user_id == user_id, Progress.course_id == course_id, Progress.lesson_id == lesson_id)
        .first()
    )
    if progress is None:
        progress = Progress(id=str(uuid4()), user_id=user_id, course_id=course_id, lesson_id=lesson_id)
    progress.completed = completed
    progress.percent = 100 if completed else 0
    progress.last_accessed_at = utcnow()
    db.add(progress)
    return progress


def set_lesson_completion(
    db: Session, user: User, course: Course, lesson_id: str, completed: bool
) -> tuple[Progress, LearnerState, CompletionOutcome]:
    _, lesson = find_lesson(course, lesson_id)
    if completed and not can_complete_lesson(db, user, course, lesson):
        raise QuizNotPassedError("Pass the lesson quiz before marking the lesson as completed")
    if not completed and not is_course_staff(course, user) and not is_enrolled(db, user.id, course.id):
        raise NotEnrolledError("Enroll in the course before tracking progress")

    progress = _upsert_progress(db, user.id, course.id, lesson.id, completed)
    db.commit()
    state = load_learner_state(db, user.id, course)
    outcome = completion_outcome(db, user, course, state) if completed else CompletionOutcome()
    return progress, state, outcome


def sync_quiz_progress(db: Session, user: User, lesson: Lesson, course_id: str, passed: bool) -> None:
    """Mirror the newest quiz result onto the lesson's progress row."""
    existing = (
        db.query(Progress)
        .filter(Progress.user_id == user.id, Progress.course_id == course_id, Progress.lesson_id == lesson.id)
        .first()
    )
    if passed or existing is not None:
        _upsert_progress(db, user.id, course_id, lesson.id, passed)


def completion_outcome(db: Session, user: User, course: Course, state: LearnerState) -> CompletionOutcome:
    """
    After the last lesson: issue the certificate (an existing one is reused) and
    tell the client whether to ask for a course review.
    """
    if not certificate_service.course_completed(course, state):
        return CompletionOutcome()

    try:
        certificate = certificate_service.issue_certificate(db, user, course, state)
    except CertificateExistsError as exc:
        certificate = exc.certificate

    has_review = (
        db.query(Review.id).filter(Review.user_id == user.id, Review.course_id == course.id).first() is not None
    )
    return CompletionOutcome(
        course_completed=True,
        certificate_id=certificate.id,
        prompt_review=not has_review and course.instructor_id != user.id,
    )


def time_spent(rows: list[Progress]) -> int:
    return sum(p.time_spent_sec or 0 for p in rows)

