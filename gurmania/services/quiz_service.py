"""
Quiz scoring and submission.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Any, Mapping, Optional
from uuid import uuid4

from pydantic import ValidationError
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from gurmania.models.models import Quiz, QuizSubmission, User
from gurmania.schemas.quiz_schemas import QuizSubmitRequest
from gurmania.services.gating import quiz_passed
from gurmania.utils.errors import ConflictError, InvalidSubmissionError
from gurmania.utils.logger import get_logger

logger = get_logger("quiz")


@dataclass(frozen=True)
class ScoreResult:
    score: int
    passed: bool
    correct_answers: int
    total_questions: int


def percent_half_up(correct: int, total: int) -> int:
    """Integer percentage rounded half up, e.g. 1/8 -> 13."""
    if total <= 0:
        return 0
    return (200 * correct + total) // (2 * total)


def parse_answers(payload: Any) -> dict[str, set[str]]:
    """
    Validate a decoded submission body against ``QuizSubmitRequest``.
    Malformed bodies are a 400 here rather than FastAPI's 422.
    """
    try:
        body = QuizSubmitRequest.model_validate(payload)
    except ValidationError as e:
        logger.debug("rejected quiz body: %s", e.errors())
        raise InvalidSubmissionError("Invalid answer format")
    return {question_id: set(selected) for question_id, selected in body.answers.items()}


def validate_answers(quiz: Any, answers: Mapping[str, set[str]]) -> None:
    """Reject answers naming questions outside the quiz or options of another question."""
    options_by_question = {q.id: {o.id for o in q.options} for q in quiz.questions}
    for question_id, selected in answers.items():
        valid_options = options_by_question.get(question_id)
        if valid_options is None:
            raise InvalidSubmissionError(f"Unknown question: {question_id}")
        unknown = set(selected) - valid_options
        if unknown:
            raise InvalidSubmissionError(f"Unknown option for question {question_id}")


def score_submission(quiz: Any, answers: Mapping[str, set[str]]) -> ScoreResult:
    """
    All-or-nothing per question: the selected set must equal the set of
    correct options exactly. Unanswered questions count as wrong.
    """
    total = len(quiz.questions)
    correct = 0
    for question in quiz.questions:
        expected = {o.id for o in question.options if o.is_correct}
        if set(answers.get(question.id, ())) == expected:
            correct += 1

    score = percent_half_up(correct, total)
    return ScoreResult(
        score=score,
        passed=quiz_passed(quiz.passing_score, score),
        correct_answers=correct,
        total_questions=total,
    )


def _next_attempt(db: Session, quiz_id: str, user_id: int) -> int:
    current = (
        db.query(func.max(QuizSubmission.attempt))
        .filter(QuizSubmission.quiz_id == quiz_id, QuizSubmission.user_id == user_id)
        .scalar()
    )
    return (current or 0) + 1


def record_submission(db: Session, quiz: Quiz, user: User, result: ScoreResult) -> QuizSubmission:
    """Persist a new submission row. Earlier rows are kept as history."""
    submission = QuizSubmission(
        id=str(uuid4()),
        quiz_id=quiz.id,
        user_id=user.id,
        score=result.score,
        attempt=_next_attempt(db, quiz.id, user.id),
    )
    db.add(submission)
    try:
        db.flush()
    except IntegrityError:
        # Two submissions from the same learner claimed the same attempt number.
        db.rollback()
        raise ConflictError("Another submission for this quiz is in progress, try again")
    logger.info(
        "quiz submitted quiz_id=%s user_id=%s attempt=%s score=%s passed=%s",
        quiz.id,
        user.id,
        submission.attempt,
        result.score,
        result.passed,
    )
    return submission


def latest_scores_by_quiz(db: Session, quiz_ids: list[str], user_id: int) -> dict[str, int]:
    """Score of the highest attempt per quiz for one learner."""
    if not quiz_ids:
        return {}
    rows = (
        db.query(QuizSubmission)
        .filter(QuizSubmission.quiz_id.in_(quiz_ids), QuizSubmission.user_id == user_id)
        .order_by(QuizSubmission.attempt.desc())
        .all()
    )
    latest: dict[str, int] = {}
    for row in rows:
        latest.setdefault(row.quiz_id, row.score)
    return latest


def ordered_questions(quiz: Quiz, rng: Optional[random.Random] = None) -> list:
    questions = list(quiz.questions)
    if quiz.randomized:
        (rng or random).shuffle(questions)
    return questions
