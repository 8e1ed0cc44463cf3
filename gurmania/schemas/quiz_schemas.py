"""
Quiz schemas. Learner-facing payloads never carry option correctness.
"""

from pydantic import BaseModel
from typing import Optional

from gurmania.schemas.lesson_schemas import CompletionOutcome


class QuizOptionResponse(BaseModel):
    id: str
    text: str


class QuizQuestionResponse(BaseModel):
    id: str
    text: str
    type: str
    options: list[QuizOptionResponse]


class QuizResponse(BaseModel):
    id: str
    title: str
    passing_score: Optional[int] = None
    randomized: bool
    lesson_id: str
    module_id: str
    course_id: str
    questions: list[QuizQuestionResponse]


class QuizSubmissionResponse(BaseModel):
    submission_id: str
    attempt: int
    score: int
    passed: bool
    correct_answers: int
    total_questions: int
    passing_score: Optional[int] = None
    outcome: CompletionOutcome


class QuizSubmitRequest(BaseModel):
    """``answers`` maps question ids to the selected option ids."""
    answers: dict[str, list[str]]
