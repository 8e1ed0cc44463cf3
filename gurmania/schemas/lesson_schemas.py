"""
Lesson detail and learner progress schemas.
"""

from pydantic import BaseModel
from typing import Optional


class IngredientResponse(BaseModel):
    id: str
    name: str
    quantity: Optional[str] = None
    unit: Optional[str] = None
    optional: bool = False


class LessonLink(BaseModel):
    id: str
    title: str


class LessonNavigation(BaseModel):
    previous_lesson: Optional[LessonLink] = None
    next_lesson: Optional[LessonLink] = None


class QuizSummary(BaseModel):
    id: str
    title: str
    passing_score: Optional[int] = None


class LessonDetailResponse(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    video_url: Optional[str] = None
    steps: list[str] = []
    duration_min: Optional[int] = None
    ingredients: list[IngredientResponse]
    module: LessonLink
    course: LessonLink
    navigation: LessonNavigation
    quiz: Optional[QuizSummary] = None
    is_completed: bool
    quiz_passed: bool


class UpdateProgressRequest(BaseModel):
    course_id: str
    lesson_id: str
    completed: bool


class CompletionOutcome(BaseModel):
    """Side effects reported when a learner finishes the last lesson of a course."""
    course_completed: bool = False
    certificate_id: Optional[str] = None
    prompt_review: bool = False


class ProgressUpdateResponse(BaseModel):
    success: bool
    lesson_id: str
    completed: bool
    completed_lessons: list[str]
    outcome: CompletionOutcome


class CourseProgressResponse(BaseModel):
    course_id: str
    is_enrolled: bool
    completed_lessons: list[str]
    total_lessons: int
    course_completed: bool
    time_spent_sec: int
