from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from gurmania.config import get_db
from gurmania.models.models import Review, User
from gurmania.schemas.certificate_schemas import (
    CourseReviews,
    InstructorReviewsResponse,
    ReviewListResponse,
    ReviewRequest,
    ReviewResponse,
    ReviewStatusRequest,
)
from gurmania.services.course_service import get_visible_course
from gurmania.services.progress_service import load_learner_state
from gurmania.services.review_service import (
    list_reviews,
    moderation_queue,
    parse_review_status,
    reviews_for_instructor,
    set_review_status,
    upsert_review,
)
from gurmania.utils.auth import get_current_user, require_admin, require_instructor
from gurmania.utils.common import display_name, iso_format

review_routes = APIRouter()


def review_response(review: Review) -> ReviewResponse:
    return ReviewResponse(
        id=review.id,
        course_id=review.course_id,
        user_id=review.user_id,
        user_name=display_name(review.user) if review.user else None,
        rating=review.rating,
        comment=review.comment,
        status=review.status.value,
        created_at=iso_format(review.created_at),
    )


@review_routes.get("/courses/{course_id}/reviews", response_model=ReviewListResponse)
async def get_reviews(
    course_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> ReviewListResponse:
    course = get_visible_course(db, course_id, current_user)
    return ReviewListResponse(reviews=[review_response(r) for r in list_reviews(db, course.id, current_user.id)])


@review_routes.post("/courses/{course_id}/reviews", response_model=ReviewResponse)
async def save_review(
    course_id: str,
    req: ReviewRequest,
    response: Response,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> ReviewResponse:
    """Create or replace the caller's review; every edit goes back to moderation."""
    course = get_visible_course(db, course_id, current_user)
    state = load_learner_state(db, current_user.id, course)
    review, created = upsert_review(db, current_user, course, state, req.rating, req.comment)
    if created:
        response.status_code = status.HTTP_201_CREATED
    return review_response(review)


@review_routes.get("/instructor/reviews", response_model=InstructorReviewsResponse)
async def get_instructor_reviews(
    current_user: User = Depends(require_instructor),
    db: Session = Depends(get_db)
) -> InstructorReviewsResponse:
    return InstructorReviewsResponse(
        courses=[
            CourseReviews(course_id=course.id, title=course.title, reviews=[review_response(r) for r in reviews])
            for course, reviews in reviews_for_instructor(db, current_user)
        ]
    )


@review_routes.get("/admin/reviews", response_model=ReviewListResponse)
async def get_moderation_queue(
    status_filter: Optional[str] = Query(None, alias="status"),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
) -> ReviewListResponse:
    """All reviews, pending first; ``status`` narrows to one moderation state."""
    wanted = parse_review_status(status_filter) if status_filter else None
    return ReviewListResponse(reviews=[review_response(r) for r in moderation_queue(db, wanted)])


@review_routes.patch("/admin/reviews/{review_id}", response_model=ReviewResponse)
async def moderate_review(
    review_id: str,
    req: ReviewStatusRequest,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
) -> ReviewResponse:
    review = set_review_status(db, review_id, parse_review_status(req.status), current_user)
    return review_response(review)
