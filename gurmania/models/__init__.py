"""
Data models. Single import surface for DB entities.

Learning (gurmania.models.models):
- User, Course, Module, Lesson, LessonIngredient, Quiz, Question, QuestionOption,
  QuizSubmission, Progress, Certificate, Review
- UserRole, Difficulty, ReviewStatus

Workshops (gurmania.models.workshop):
- Workshop, WorkshopLessonRequirement, Reservation, ReservationStatus, SkillLevel
"""

from gurmania.models.models import (
    User,
    Course,
    Module,
    Lesson,
    LessonIngredient,
    Quiz,
    Question,
    QuestionOption,
    QuizSubmission,
    Progress,
    Certificate,
    Review,
    UserRole,
    Difficulty,
    ReviewStatus,
)
from gurmania.models.workshop import (
    Workshop,
    WorkshopLessonRequirement,
    Reservation,
    ReservationStatus,
    SkillLevel,
)

__all__ = [
    "User",
    "Course",
    "Module",
    "Lesson",
    "LessonIngredient",
    "Quiz",
    "Question",
    "QuestionOption",
    "QuizSubmission",
    "Progress",
    "Certificate",
    "Review",
    "UserRole",
    "Difficulty",
    "ReviewStatus",
    "Workshop",
    "WorkshopLessonRequirement",
    "Reservation",
    "ReservationStatus",
    "SkillLevel",
]
