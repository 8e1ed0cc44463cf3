"""
Live workshop models: sessions, their lesson prerequisites and seat reservations.

Workshop state (upcoming/live/ended) is derived from start_time and duration at
read time; see gurmania.services.workshop_service.workshop_status.
"""

from gurmania.config import Base
from gurmania.utils.dates import utcnow
from sqlalchemy import Column, String, Integer, Text, DateTime, ForeignKey, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.orm import relationship
from enum import Enum


class SkillLevel(str, Enum):
    BEGINNER = "BEGINNER"
    INTERMEDIATE = "INTERMEDIATE"
    ADVANCED = "ADVANCED"


class ReservationStatus(str, Enum):
    RESERVED = "RESERVED"
    CANCELLED = "CANCELLED"


class Workshop(Base):
    __tablename__ = "workshops"

    id = Column(String, primary_key=True, index=True)  # uuid
    instructor_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    course_id = Column(String, ForeignKey("courses.id"), index=True, nullable=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    start_time = Column(DateTime, nullable=False, index=True)
    duration_min = Column(Integer, nullable=True)
    capacity = Column(Integer, nullable=True)  # None means unlimited
    skill_level = Column(SQLEnum(SkillLevel), nullable=False, default=SkillLevel.BEGINNER)
    stream_url = Column(String, nullable=True)
    recording_url = Column(String, nullable=True)
    started_at = Column(DateTime, nullable=True)  # stamped by the instructor's "start"
    created_at = Column(DateTime, default=utcnow, nullable=False)

    instructor = relationship("User", foreign_keys=[instructor_id])
    course = relationship("Course", foreign_keys=[course_id])
    required_lessons = relationship(
        "WorkshopLessonRequirement",
        backref="workshop",
        cascade="all, delete-orphan",
        order_by="WorkshopLessonRequirement.id",
    )
    reservations = relationship("Reservation", backref="workshop", cascade="all, delete-orphan")


class WorkshopLessonRequirement(Base):
    __tablename__ = "workshop_lesson_requirements"
    __table_args__ = (UniqueConstraint("workshop_id", "lesson_id", name="uq_workshop_lesson"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    workshop_id = Column(String, ForeignKey("workshops.id"), index=True, nullable=False)
    lesson_id = Column(String, ForeignKey("lessons.id"), index=True, nullable=False)

    lesson = relationship("Lesson", foreign_keys=[lesson_id])


class Reservation(Base):
    __tablename__ = "reservations"
    __table_args__ = (UniqueConstraint("workshop_id", "user_id", name="uq_reservation_workshop_user"),)

    id = Column(String, primary_key=True, index=True)  # uuid
    workshop_id = Column(String, ForeignKey("workshops.id"), index=True, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    status = Column(SQLEnum(ReservationStatus), default=ReservationStatus.RESERVED, nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)

    user = relationship("User", foreign_keys=[user_id])
