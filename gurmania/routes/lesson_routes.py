"""
Lesson detail endpoint. Learners must be enrolled and past the quiz gate.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from gurmania.config import get_db
from gurmania.models.models import User
from gurmania.schemas.lesson_schemas import (
    IngredientResponse,
    LessonDetailResponse,
    LessonLink,
    LessonNavigation,
    QuizSummary,
)
from gurmania.services.course_service import all_lessons, find_lesson, get_visible_course
from gurmania.services.progress_service import ensure_lesson_access, load_learner_state
from gurmania.utils.auth import get_current_user

lesson_routes = APIRouter()


@lesson_routes.get("/courses/{course_id}/lessons/{lesson_id}", response_model=LessonDetailResponse)
async def get_lesson(
    course_id: str,
    lesson_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> LessonDetailResponse:
    course = get_visible_course(db, course_id, current_user)
    module, lesson = find_lesson(course, lesson_id)
    evaluator = ensure_lesson_access(db, current_user, course, lesson.id)
    state = evaluator.state if evaluator is not None else load_learner_state(db, current_user.id, course)

    ordered = all_lessons(course)
    position = next(i for i, item in enumerate(ordered) if item.id == lesson.id)
    previous_lesson = ordered[position - 1] if position > 0 else None
    next_lesson = ordered[position + 1] if position + 1 < len(ordered) else None

    quiz = lesson.quiz
    return LessonDetailResponse(
        id=lesson.id,
        title=lesson.title,
        description=lesson.description,
        video_url=lesson.video_url,
        steps=lesson.steps or [],
        duration_min=lesson.duration_min,
        ingredients=[
            IngredientResponse(id=i.id, name=i.name, quantity=i.quantity, unit=i.unit, optional=bool(i.optional))
            for i in lesson.ingredients
        ],
        module=LessonLink(id=module.id, title=module.title),
        course=LessonLink(id=course.id, title=course.title),
        navigation=LessonNavigation(
            previous_lesson=LessonLink(id=previous_lesson.id, title=previous_lesson.title) if previous_lesson else None,
            next_lesson=LessonLink(id=next_lesson.id, title=next_lesson.title) if next_lesson else None,
        ),
        quiz=QuizSummary(id=quiz.id, title=quiz.title, passing_score=quiz.passing_score) if quiz else None,
        is_completed=lesson.id in state.completed_lesson_ids,
        quiz_passed=lesson.id in state.passed_quiz_lesson_ids,
    )
