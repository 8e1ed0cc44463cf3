"""
Course catalogue, detail and enrollment endpoints.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from gurmania.config import get_db
from gurmania.models.models import Course, User
from gurmania.schemas.course_schemas import (
    CourseDetailResponse,
    CourseListResponse,
    CourseResponse,
    EnrollResponse,
    LessonSummary,
    ModuleResponse,
)
from gurmania.services.course_service import all_lessons, get_visible_course, is_course_staff, list_published_courses
from gurmania.services.gating import GatingEvaluator
from gurmania.services.progress_service import enroll, is_enrolled, load_learner_state
from gurmania.utils.auth import get_current_user
from gurmania.utils.common import display_name, iso_format, progress_percentage

course_routes = APIRouter()


def course_response(course: Course) -> CourseResponse:
    return CourseResponse(
        id=course.id,
        title=course.title,
        description=course.description,
        difficulty=course.difficulty.value,
        published=bool(course.published),
        instructor_id=course.instructor_id,
        instructor_name=display_name(course.instructor) if course.instructor else None,
        module_count=len(course.modules),
        lesson_count=len(all_lessons(course)),
        created_at=iso_format(course.created_at),
    )


@course_routes.get("/courses", response_model=CourseListResponse)
async def list_courses(
    search: Optional[str] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> CourseListResponse:
    """Published catalogue, newest first."""
    return CourseListResponse(courses=[course_response(c) for c in list_published_courses(db, search)])


@course_routes.get("/courses/{course_id}", response_model=CourseDetailResponse)
async def get_course(
    course_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> CourseDetailResponse:
    """Course tree with the caller's completion and the modules still locked for them."""
    course = get_visible_course(db, course_id, current_user)
    state = load_learner_state(db, current_user.id, course)
    if is_course_staff(course, current_user):
        locked: set[str] = set()
    else:
        locked = GatingEvaluator(course.modules, state).locked_module_ids()

    lessons = all_lessons(course)
    completed = [lesson.id for lesson in lessons if lesson.id in state.completed_lesson_ids]
    modules = [
        ModuleResponse(
            id=m.id,
            title=m.title,
            description=m.description,
            order_index=m.order_index,
            locked=m.id in locked,
            lessons=[
                LessonSummary(
                    id=lesson.id,
                    title=lesson.title,
                    order_index=lesson.order_index,
                    duration_min=lesson.duration_min,
                    has_quiz=lesson.quiz is not None,
                    completed=lesson.id in state.completed_lesson_ids,
                )
                for lesson in m.lessons
            ],
        )
        for m in course.modules
    ]
    return CourseDetailResponse(
        course=course_response(course),
        modules=modules,
        is_enrolled=is_enrolled(db, current_user.id, course.id),
        completed_lessons=completed,
        progress_percentage=progress_percentage(len(completed), len(lessons)),
        locked_modules=[m.id for m in course.modules if m.id in locked],
    )


@course_routes.post("/courses/{course_id}/enroll", response_model=EnrollResponse)
async def enroll_in_course(
    course_id: str,
    response: Response,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> EnrollResponse:
    course = get_visible_course(db, course_id, current_user)
    created = enroll(db, current_user, course)
    if created:
        response.status_code = status.HTTP_201_CREATED
        return EnrollResponse(message="Enrolled", enrolled=True)
    return EnrollResponse(message="Already enrolled", enrolled=True)
