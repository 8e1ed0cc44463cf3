"""
Course reviews: one per learner and course, re-queued for moderation on every edit.
"""

from typing import Optional
from uuid import uuid4

from sqlalchemy import case, or_
from sqlalchemy.orm import Session

from gurmania.models.models import Course, Review, ReviewStatus, User
from gurmania.services import certificate_service
from gurmania.services.gating import LearnerState
from gurmania.utils.errors import GurmaniaError, NotFoundError
from gurmania.utils.dates import utcnow
from gurmania.utils.logger import get_logger

logger = get_logger("review")


def list_reviews(db: Session, course_id: str, viewer_id: int) -> list[Review]:
    """Approved reviews plus the viewer's own, newest first."""
    return (
        db.query(Review)
        .filter(
            Review.course_id == course_id,
            or_(Review.status == ReviewStatus.APPROVED, Review.user_id == viewer_id),
        )
        .order_by(Review.created_at.desc())
        .all()
    )


def upsert_review(
    db: Session,
    user: User,
    course: Course,
    state: LearnerState,
    rating: int,
    comment: Optional[str],
) -> tuple[Review, bool]:
    """Returns the stored review and whether it was newly created."""
    if not course.published:
        raise GurmaniaError("Unpublished courses cannot be reviewed")
    if course.instructor_id == user.id:
        raise GurmaniaError("You cannot review your own course")
    if not certificate_service.course_completed(course, state):
        raise GurmaniaError("Complete every lesson before reviewing the course")

    review = db.query(Review).filter(Review.user_id == user.id, Review.course_id == course.id).first()
    created = review is None
    if created:
        review = Review(id=str(uuid4()), user_id=user.id, course_id=course.id)
    review.rating = rating
    review.comment = comment or None
    review.status = ReviewStatus.PENDING
    review.updated_at = utcnow()
    db.add(review)
    db.commit()
    db.refresh(review)
    logger.info("review saved user_id=%s course_id=%s rating=%s created=%s", user.id, course.id, rating, created)
    return review, created


def parse_review_status(value: str) -> ReviewStatus:
    try:
        return ReviewStatus(value.upper())
    except ValueError:
        raise GurmaniaError(f"Invalid review status: {value}")


def moderation_queue(db: Session, status: Optional[ReviewStatus] = None) -> list[Review]:
    """Every review for admins; pending ones sort first."""
    query = db.query(Review)
    if status is not None:
        query = query.filter(Review.status == status)
    pending_first = case((Review.status == ReviewStatus.PENDING, 0), else_=1)
    return query.order_by(pending_first, Review.created_at.desc()).all()


def set_review_status(db: Session, review_id: str, status: ReviewStatus, moderator: User) -> Review:
    review = db.query(Review).filter(Review.id == review_id).first()
    if review is None:
        raise NotFoundError("Review not found")
    review.status = status
    db.add(review)
    db.commit()
    db.refresh(review)
    logger.info("review moderated id=%s status=%s by user_id=%s", review.id, status.value, moderator.id)
    return review


def reviews_for_instructor(db: Session, instructor: User) -> list[tuple[Course, list[Review]]]:
    """The instructor's live courses by title, each with its reviews newest first."""
    courses = (
        db.query(Course)
        .filter(Course.instructor_id == instructor.id, Course.deleted_at.is_(None))
        .order_by(Course.title.asc())
        .all()
    )
    if not courses:
        return []
    reviews = (
        db.query(Review)
        .filter(Review.course_id.in_([c.id for c in courses]))
        .order_by(Review.created_at.desc())
        .all()
    )
    by_course: dict[str, list[Review]] = {c.id: [] for c in courses}
    for review in reviews:
        by_course[review.course_id].append(review)
    return [(course, by_course[course.id]) for course in courses]
