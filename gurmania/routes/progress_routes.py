"""
Learner progress endpoints.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from gurmania.config import get_db
from gurmania.models.models import User
from gurmania.schemas.lesson_schemas import CourseProgressResponse, ProgressUpdateResponse, UpdateProgressRequest
from gurmania.services import certificate_service
from gurmania.services.course_service import all_lessons, get_visible_course
from gurmania.services.progress_service import load_learner_state, progress_rows, set_lesson_completion, time_spent
from gurmania.utils.auth import get_current_user

progress_routes = APIRouter()


@progress_routes.get("/progress", response_model=CourseProgressResponse)
async def get_progress(
    course_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> CourseProgressResponse:
    course = get_visible_course(db, course_id, current_user)
    rows = progress_rows(db, current_user.id, course.id)
    state = load_learner_state(db, current_user.id, course)
    lessons = all_lessons(course)
    return CourseProgressResponse(
        course_id=course.id,
        is_enrolled=bool(rows),
        completed_lessons=[lesson.id for lesson in lessons if lesson.id in state.completed_lesson_ids],
        total_lessons=len(lessons),
        course_completed=certificate_service.course_completed(course, state),
        time_spent_sec=time_spent(rows),
    )


@progress_routes.post("/progress", response_model=ProgressUpdateResponse)
async def update_progress(
    req: UpdateProgressRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> ProgressUpdateResponse:
    """Mark a lesson complete or not. Quiz lessons need a passing newest submission."""
    course = get_visible_course(db, req.course_id, current_user)
    progress, state, outcome = set_lesson_completion(db, current_user, course, req.lesson_id, req.completed)
    lessons = all_lessons(course)
    return ProgressUpdateResponse(
        success=True,
        lesson_id=progress.lesson_id,
        completed=progress.lesson_id in state.completed_lesson_ids,
        completed_lessons=[lesson.id for lesson in lessons if lesson.id in state.completed_lesson_ids],
        outcome=outcome,
    )
