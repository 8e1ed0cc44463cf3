from gurmania.config import Base
from gurmania.utils.dates import utcnow
from sqlalchemy import Column, Integer, String, JSON, DateTime, ForeignKey, Text, Boolean, Index, UniqueConstraint, text, Enum as SQLEnum
from sqlalchemy.orm import relationship
from enum import Enum


class UserRole(str, Enum):
    STUDENT = "STUDENT"
    INSTRUCTOR = "INSTRUCTOR"
    ADMIN = "ADMIN"


class Difficulty(str, Enum):
    EASY = "EASY"
    MEDIUM = "MEDIUM"
    HARD = "HARD"


class ReviewStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=True)
    hashed_password = Column(String)
    role = Column(SQLEnum(UserRole), default=UserRole.STUDENT, nullable=False)
    preferences = Column(JSON)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class Course(Base):
    __tablename__ = "courses"
    id = Column(String, primary_key=True, index=True)  # uuid
    instructor_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    difficulty = Column(SQLEnum(Difficulty), default=Difficulty.EASY, nullable=False)
    published = Column(Boolean, default=False, nullable=False)
    deleted_at = Column(DateTime, nullable=True)  # soft delete
    created_at = Column(DateTime, default=utcnow, nullable=False)

    instructor = relationship("User", backref="courses", foreign_keys=[instructor_id])
    modules = relationship(
        "Module",
        backref="course",
        cascade="all, delete-orphan",
        order_by="Module.order_index",
    )


class Module(Base):
    __tablename__ = "modules"
    id = Column(String, primary_key=True, index=True)  # uuid
    course_id = Column(String, ForeignKey("courses.id"), index=True, nullable=False)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    order_index = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    lessons = relationship(
        "Lesson",
        backref="module",
        cascade="all, delete-orphan",
        order_by="Lesson.order_index",
    )


class Lesson(Base):
    __tablename__ = "lessons"
    id = Column(String, primary_key=True, index=True)  # uuid
    module_id = Column(String, ForeignKey("modules.id"), index=True, nullable=False)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    video_url = Column(String, nullable=True)
    steps = Column(JSON, nullable=True)  # list[str]
    duration_min = Column(Integer, nullable=True)
    order_index = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    quiz = relationship("Quiz", backref="lesson", uselist=False, cascade="all, delete-orphan")
    ingredients = relationship("LessonIngredient", backref="lesson", cascade="all, delete-orphan")


class LessonIngredient(Base):
    __tablename__ = "lesson_ingredients"
    id = Column(String, primary_key=True, index=True)  # uuid
    lesson_id = Column(String, ForeignKey("lessons.id"), index=True, nullable=False)
    name = Column(String, nullable=False)
    quantity = Column(String, nullable=True)
    unit = Column(String, nullable=True)
    optional = Column(Boolean, default=False, nullable=False)


class Quiz(Base):
    __tablename__ = "quizzes"
    id = Column(String, primary_key=True, index=True)  # uuid
    lesson_id = Column(String, ForeignKey("lessons.id"), unique=True, index=True, nullable=False)
    title = Column(String, nullable=False)
    passing_score = Column(Integer, nullable=True)  # percent; None means any submission passes
    randomized = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    questions = relationship(
        "Question",
        backref="quiz",
        cascade="all, delete-orphan",
        order_by="Question.order_index",
    )
    submissions = relationship("QuizSubmission", backref="quiz", cascade="all, delete-orphan")


class Question(Base):
    __tablename__ = "questions"
    id = Column(String, primary_key=True, index=True)  # uuid
    quiz_id = Column(String, ForeignKey("quizzes.id"), index=True, nullable=False)
    text = Column(Text, nullable=False)
    type = Column(String, default="SINGLE", nullable=False)  # SINGLE|MULTIPLE
    order_index = Column(Integer, nullable=False, default=0)

    options = relationship(
        "QuestionOption",
        backref="question",
        cascade="all, delete-orphan",
        order_by="QuestionOption.order_index",
    )


class QuestionOption(Base):
    __tablename__ = "question_options"
    id = Column(String, primary_key=True, index=True)  # uuid
    question_id = Column(String, ForeignKey("questions.id"), index=True, nullable=False)
    text = Column(String, nullable=False)
    is_correct = Column(Boolean, default=False, nullable=False)
    order_index = Column(Integer, nullable=False, default=0)


class QuizSubmission(Base):
    """Append-only; the highest attempt per (user, quiz) decides pass/fail."""
    __tablename__ = "quiz_submissions"
    __table_args__ = (UniqueConstraint("quiz_id", "user_id", "attempt", name="uq_submission_attempt"),)
    id = Column(String, primary_key=True, index=True)  # uuid
    quiz_id = Column(String, ForeignKey("quizzes.id"), index=True, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    score = Column(Integer, nullable=False)
    attempt = Column(Integer, nullable=False, default=1)  # 1-based per (user, quiz); orders submissions
    submitted_at = Column(DateTime, default=utcnow, nullable=False)

    user = relationship("User", backref="quiz_submissions", foreign_keys=[user_id])


class Progress(Base):
    __tablename__ = "progress"
    __table_args__ = (
        UniqueConstraint("user_id", "course_id", "lesson_id", name="uq_progress_user_course_lesson"),
        # NULLs are distinct in the constraint above, so the enrollment marker needs its own index.
        Index(
            "uq_progress_enrollment",
            "user_id",
            "course_id",
            unique=True,
            sqlite_where=text("lesson_id IS NULL"),
            postgresql_where=text("lesson_id IS NULL"),
        ),
    )
    id = Column(String, primary_key=True, index=True)  # uuid
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    course_id = Column(String, ForeignKey("courses.id"), index=True, nullable=False)
    lesson_id = Column(String, ForeignKey("lessons.id"), index=True, nullable=True)  # NULL row marks enrollment
    completed = Column(Boolean, default=False, nullable=False)
    percent = Column(Integer, default=0, nullable=False)
    time_spent_sec = Column(Integer, default=0, nullable=False)
    last_accessed_at = Column(DateTime, default=utcnow, nullable=False)

    user = relationship("User", backref="progress", foreign_keys=[user_id])


class Certificate(Base):
    __tablename__ = "certificates"
    __table_args__ = (UniqueConstraint("user_id", "course_id", name="uq_certificate_user_course"),)
    id = Column(String, primary_key=True, index=True)  # uuid
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    course_id = Column(String, ForeignKey("courses.id"), index=True, nullable=False)
    code = Column(String, unique=True, nullable=False)
    pdf_url = Column(String, nullable=True)  # filled in by the external renderer
    issued_at = Column(DateTime, default=utcnow, nullable=False)

    user = relationship("User", backref="certificates", foreign_keys=[user_id])
    course = relationship("Course", foreign_keys=[course_id])


class Review(Base):
    __tablename__ = "reviews"
    __table_args__ = (UniqueConstraint("user_id", "course_id", name="uq_review_user_course"),)
    id = Column(String, primary_key=True, index=True)  # uuid
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    course_id = Column(String, ForeignKey("courses.id"), index=True, nullable=False)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)
    status = Column(SQLEnum(ReviewStatus), default=ReviewStatus.PENDING, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)

    user = relationship("User", backref="reviews", foreign_keys=[user_id])
