"""
Pytest configuration and shared fixtures for the test suite.
Ensures proper Python path and provides common fixtures for unit and integration tests.
"""
import os
import sys
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional
from uuid import uuid4

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Add project root to Python path for imports
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

# Keep the app module from touching a real database or log directory on import.
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("LOG_DIR", str(project_root / "logs" / "tests"))


@dataclass
class QuizSetup:
    passing_score: Optional[int] = 70
    questions: int = 5


class Factory:
    """Builds users, course trees, enrollments and workshops in one session."""

    def __init__(self, db):
        self.db = db

    def user(self, email: Optional[str] = None, role=None, name: Optional[str] = None, password: Optional[str] = None):
        from gurmania.models import User, UserRole
        from gurmania.utils.jwt import get_password_hash

        user = User(
            email=email or f"user-{uuid4().hex[:8]}@example.com",
            name=name,
            role=role or UserRole.STUDENT,
            hashed_password=get_password_hash(password) if password else None,
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    def instructor(self, **kwargs):
        from gurmania.models import UserRole
        return self.user(role=UserRole.INSTRUCTOR, **kwargs)

    def course(self, instructor, modules, published: bool = True, title: str = "Pasta from scratch"):
        """
        ``modules`` is a list of lesson lists; each lesson entry is None for a
        plain lesson or a dict of QuizSetup fields for a lesson ending in a quiz,
        e.g. {"passing_score": 70, "questions": 5}.
        """
        from gurmania.models import Course, Lesson, Module, Question, QuestionOption, Quiz

        course = Course(id=str(uuid4()), instructor_id=instructor.id, title=title, published=published)
        for m_index, lessons in enumerate(modules, start=1):
            module = Module(id=str(uuid4()), title=f"Module {m_index}", order_index=m_index)
            for l_index, setup in enumerate(lessons, start=1):
                lesson = Lesson(id=str(uuid4()), title=f"Lesson {m_index}.{l_index}", order_index=l_index)
                if setup is not None:
                    setup = QuizSetup(**setup)
                    lesson.quiz = Quiz(
                        id=str(uuid4()),
                        title=f"Quiz {m_index}.{l_index}",
                        passing_score=setup.passing_score,
                        questions=[
                            Question(
                                id=str(uuid4()),
                                text=f"Question {q_index}",
                                order_index=q_index,
                                options=[
                                    QuestionOption(id=str(uuid4()), text="right", is_correct=True, order_index=1),
                                    QuestionOption(id=str(uuid4()), text="wrong", is_correct=False, order_index=2),
                                ],
                            )
                            for q_index in range(1, setup.questions + 1)
                        ],
                    )
                module.lessons.append(lesson)
            course.modules.append(module)
        self.db.add(course)
        self.db.commit()
        self.db.refresh(course)
        return course

    def enroll(self, user, course):
        from gurmania.models import Progress
        self.db.add(Progress(id=str(uuid4()), user_id=user.id, course_id=course.id, lesson_id=None))
        self.db.commit()

    def workshop(
        self,
        instructor,
        start_time: datetime,
        duration_min: Optional[int] = 60,
        capacity: Optional[int] = None,
        required_lessons=(),
        started_at: Optional[datetime] = None,
        course=None,
    ):
        from gurmania.models import Workshop, WorkshopLessonRequirement

        workshop = Workshop(
            id=str(uuid4()),
            instructor_id=instructor.id,
            course_id=course.id if course is not None else None,
            title="Fresh pasta live",
            start_time=start_time,
            duration_min=duration_min,
            capacity=capacity,
            started_at=started_at,
            required_lessons=[WorkshopLessonRequirement(lesson_id=lesson.id) for lesson in required_lessons],
        )
        workshop.stream_url = f"https://meet.jit.si/gurmania-{workshop.id}"
        self.db.add(workshop)
        self.db.commit()
        self.db.refresh(workshop)
        return workshop


def answers_for(quiz, correct: int) -> dict:
    """Submission body answering the first ``correct`` questions right and the rest wrong."""
    answers = {}
    for index, question in enumerate(quiz.questions):
        right = [o.id for o in question.options if o.is_correct]
        wrong = [o.id for o in question.options if not o.is_correct]
        answers[question.id] = right if index < correct else wrong[:1]
    return {"answers": answers}


# ----- In-memory DB (for tests that need DB without touching real DB) -----
@pytest.fixture
def in_memory_engine():
    """In-memory SQLite shared by every session of one test."""
    return create_engine(
        "sqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


@pytest.fixture
def session_factory(in_memory_engine):
    import gurmania.models  # noqa: F401
    from gurmania.config import Base
    Base.metadata.create_all(in_memory_engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=in_memory_engine)


@pytest.fixture
def db_session(session_factory):
    """Create an in-memory database session."""
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def factory(db_session):
    return Factory(db_session)


@pytest.fixture
def answers():
    return answers_for
