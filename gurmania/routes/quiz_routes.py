"""
Quiz fetch and submission endpoints.
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from gurmania.config import get_db
from gurmania.models.models import User
from gurmania.schemas.quiz_schemas import (
    QuizOptionResponse,
    QuizQuestionResponse,
    QuizResponse,
    QuizSubmissionResponse,
)
from gurmania.services.course_service import get_visible_course, load_quiz
from gurmania.services.progress_service import (
    completion_outcome,
    ensure_lesson_access,
    load_learner_state,
    sync_quiz_progress,
)
from gurmania.services.quiz_service import (
    ordered_questions,
    parse_answers,
    record_submission,
    score_submission,
    validate_answers,
)
from gurmania.utils.auth import get_current_user
from gurmania.utils.errors import InvalidSubmissionError, NotFoundError

quiz_routes = APIRouter()


def _accessible_quiz(db: Session, quiz_id: str, user: User):
    quiz = load_quiz(db, quiz_id)
    if quiz is None:
        raise NotFoundError("Quiz not found")
    lesson = quiz.lesson
    course = get_visible_course(db, lesson.module.course_id, user)
    ensure_lesson_access(db, user, course, lesson.id)
    return quiz, course


@quiz_routes.get("/quizzes/{quiz_id}", response_model=QuizResponse)
async def get_quiz(
    quiz_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> QuizResponse:
    """Questions and options without correctness; shuffled when the quiz is randomized."""
    quiz, course = _accessible_quiz(db, quiz_id, current_user)
    return QuizResponse(
        id=quiz.id,
        title=quiz.title,
        passing_score=quiz.passing_score,
        randomized=bool(quiz.randomized),
        lesson_id=quiz.lesson_id,
        module_id=quiz.lesson.module_id,
        course_id=course.id,
        questions=[
            QuizQuestionResponse(
                id=q.id,
                text=q.text,
                type=q.type,
                options=[QuizOptionResponse(id=o.id, text=o.text) for o in q.options],
            )
            for q in ordered_questions(quiz)
        ],
    )


@quiz_routes.post("/quizzes/{quiz_id}/submit", response_model=QuizSubmissionResponse)
async def submit_quiz(
    quiz_id: str,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> QuizSubmissionResponse:
    """
    Score a submission and store it as a new row. The newest submission decides
    whether the lesson counts as completed and whether the next module opens.
    """
    quiz, course = _accessible_quiz(db, quiz_id, current_user)

    try:
        payload = await request.json()
    except ValueError:
        raise InvalidSubmissionError("Request body must be JSON")
    answers = parse_answers(payload)
    validate_answers(quiz, answers)

    result = score_submission(quiz, answers)
    submission = record_submission(db, quiz, current_user, result)
    sync_quiz_progress(db, current_user, quiz.lesson, course.id, result.passed)
    db.commit()

    outcome = completion_outcome(db, current_user, course, load_learner_state(db, current_user.id, course))
    return QuizSubmissionResponse(
        submission_id=submission.id,
        attempt=submission.attempt,
        score=result.score,
        passed=result.passed,
        correct_answers=result.correct_answers,
        total_questions=result.total_questions,
        passing_score=quiz.passing_score,
        outcome=outcome,
    )
