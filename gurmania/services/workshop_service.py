"""
Live workshops: time-derived status, join window, seat reservations.

Seat accounting is left to the database. Reserving locks the workshop row and
inserts conditionally on the current RESERVED count, so two requests racing
for the last seat cannot both succeed.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, Optional
from urllib.parse import urlparse
from uuid import uuid4

from sqlalchemy import func, insert, literal, select, true, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from gurmania.config import settings
from gurmania.models.models import Course, Lesson, Module, Progress, User, UserRole
from gurmania.models.workshop import (
    Reservation,
    ReservationStatus,
    SkillLevel,
    Workshop,
    WorkshopLessonRequirement,
)
from gurmania.utils.dates import utcnow
from gurmania.utils.errors import (
    CapacityExceededError,
    ForbiddenError,
    GurmaniaError,
    MissingPrerequisitesError,
    NotFoundError,
)
from gurmania.utils.logger import get_logger, log_duration

logger = get_logger("workshop")

UPCOMING = "upcoming"
LIVE = "live"
ENDED = "ended"


# ----- time window -----

def workshop_end_time(workshop: Any) -> datetime:
    minutes = workshop.duration_min or settings.workshop_default_duration_minutes
    return workshop.start_time + timedelta(minutes=minutes)


def workshop_status(workshop: Any, now: Optional[datetime] = None) -> str:
    now = now or utcnow()
    if now > workshop_end_time(workshop):
        return ENDED
    if now >= workshop.start_time:
        return LIVE
    return UPCOMING


def join_deadline(workshop: Any) -> datetime:
    return workshop_end_time(workshop) + timedelta(minutes=settings.workshop_join_grace_minutes)


def is_workshop_host(workshop: Any, user: Any) -> bool:
    return workshop.instructor_id == user.id or user.role == UserRole.ADMIN


def can_join(workshop: Any, user: Any, reservation: Any = None, now: Optional[datetime] = None) -> bool:
    """
    Hosts always may join. Attendees need a RESERVED seat, a workshop the host
    has started, and must arrive before the end of the session plus grace.
    """
    if is_workshop_host(workshop, user):
        return True
    if reservation is None or reservation.status != ReservationStatus.RESERVED:
        return False
    if workshop.started_at is None:
        return False
    now = now or utcnow()
    return now < join_deadline(workshop)


def room_name(workshop_id: str) -> str:
    return f"gurmania-{workshop_id}"


def stream_url(workshop_id: str) -> str:
    return f"{settings.jitsi_base_url.rstrip('/')}/{room_name(workshop_id)}"


def jitsi_domain() -> str:
    parsed = urlparse(settings.jitsi_base_url)
    return parsed.netloc or settings.jitsi_base_url.split("//", 1)[-1].rstrip("/")


# ----- queries -----

def _workshop_query(db: Session):
    return db.query(Workshop).options(
        selectinload(Workshop.required_lessons).selectinload(WorkshopLessonRequirement.lesson),
        selectinload(Workshop.reservations),
        selectinload(Workshop.instructor),
    )


def get_workshop(db: Session, workshop_id: str) -> Workshop:
    workshop = _workshop_query(db).filter(Workshop.id == workshop_id).first()
    if workshop is None:
        raise NotFoundError("Workshop not found")
    return workshop


def list_workshops(
    db: Session,
    *,
    instructor_id: Optional[int] = None,
    course_id: Optional[str] = None,
    include_past: bool = False,
    now: Optional[datetime] = None,
) -> list[Workshop]:
    query = _workshop_query(db)
    if instructor_id is not None:
        query = query.filter(Workshop.instructor_id == instructor_id)
    if course_id:
        query = query.filter(Workshop.course_id == course_id)
    if not include_past:
        cutoff = (now or utcnow()) - timedelta(hours=2)
        query = query.filter(Workshop.start_time >= cutoff)
    return query.order_by(Workshop.start_time.asc()).all()


def active_reservations(workshop: Workshop) -> list[Reservation]:
    return [r for r in workshop.reservations if r.status == ReservationStatus.RESERVED]


def reservation_for(workshop: Workshop, user_id: int) -> Optional[Reservation]:
    return next((r for r in workshop.reservations if r.user_id == user_id), None)


def completed_lesson_ids(db: Session, user_id: int, lesson_ids: Iterable[str]) -> set[str]:
    lesson_ids = list(lesson_ids)
    if not lesson_ids:
        return set()
    rows = (
        db.query(Progress.lesson_id)
        .filter(Progress.user_id == user_id, Progress.lesson_id.in_(lesson_ids), Progress.completed.is_(True))
        .all()
    )
    return {row.lesson_id for row in rows}


def missing_lessons(db: Session, workshop: Workshop, user_id: int) -> list[Lesson]:
    required = [req.lesson for req in workshop.required_lessons]
    done = completed_lesson_ids(db, user_id, [lesson.id for lesson in required])
    return [lesson for lesson in required if lesson.id not in done]


def visibility_error(workshop: Workshop, user: User, now: Optional[datetime] = None) -> Optional[GurmaniaError]:
    """
    Learners lose sight of a workshop once it ended, and of a running one
    they hold no seat in. Returns the error to raise, or None when visible.
    """
    if is_workshop_host(workshop, user):
        return None
    status = workshop_status(workshop, now)
    if status == ENDED:
        return NotFoundError("Workshop has ended")
    reservation = reservation_for(workshop, user.id)
    reserved = reservation is not None and reservation.status == ReservationStatus.RESERVED
    if status == LIVE and not reserved:
        return ForbiddenError("Workshop has already started")
    return None


# ----- authoring -----

def _validate_course(db: Session, course_id: Optional[str], user: User) -> None:
    if not course_id:
        return
    course = db.query(Course).filter(Course.id == course_id, Course.deleted_at.is_(None)).first()
    if course is None:
        raise NotFoundError("Course not found")
    if course.instructor_id != user.id and user.role != UserRole.ADMIN:
        raise ForbiddenError("Insufficient permissions")


def _validate_lessons(db: Session, lesson_ids: list[str], course_id: Optional[str]) -> list[str]:
    """Keep ids that exist; when the workshop is tied to a course they must all belong to it."""
    if not lesson_ids:
        return []
    lessons = (
        db.query(Lesson)
        .join(Module, Module.id == Lesson.module_id)
        .filter(Lesson.id.in_(lesson_ids))
        .all()
    )
    if course_id and any(lesson.module.course_id != course_id for lesson in lessons):
        raise GurmaniaError("Selected lessons do not belong to the selected course")
    return list(dict.fromkeys(lesson.id for lesson in lessons))


def _skill_level(value: str) -> SkillLevel:
    try:
        return SkillLevel(value.upper())
    except ValueError:
        raise GurmaniaError(f"Invalid skill level: {value}")


def create_workshop(db: Session, user: User, data: Any) -> Workshop:
    if user.role not in (UserRole.INSTRUCTOR, UserRole.ADMIN):
        raise ForbiddenError("Insufficient permissions")
    _validate_course(db, data.course_id, user)
    lesson_ids = _validate_lessons(db, data.required_lesson_ids, data.course_id)

    workshop_id = str(uuid4())
    workshop = Workshop(
        id=workshop_id,
        instructor_id=user.id,
        course_id=data.course_id or None,
        title=data.title,
        description=data.description,
        start_time=_naive_utc(data.start_time),
        duration_min=data.duration_min,
        capacity=data.capacity,
        skill_level=_skill_level(data.skill_level),
        stream_url=stream_url(workshop_id),
        recording_url=data.recording_url,
        required_lessons=[WorkshopLessonRequirement(lesson_id=lid) for lid in lesson_ids],
    )
    db.add(workshop)
    db.commit()
    logger.info("workshop created id=%s instructor_id=%s capacity=%s", workshop_id, user.id, data.capacity)
    return get_workshop(db, workshop_id)


def update_workshop(db: Session, user: User, workshop: Workshop, data: Any) -> Workshop:
    if not is_workshop_host(workshop, user):
        raise ForbiddenError("Insufficient permissions")
    _validate_course(db, data.course_id, user)

    if data.required_lesson_ids is not None:
        lesson_ids = _validate_lessons(db, data.required_lesson_ids, data.course_id or workshop.course_id)
        workshop.required_lessons = []
        db.flush()
        workshop.required_lessons = [WorkshopLessonRequirement(lesson_id=lid) for lid in lesson_ids]

    for name in ("title", "description", "duration_min", "capacity", "course_id", "recording_url"):
        value = getattr(data, name)
        if value is not None:
            setattr(workshop, name, value)
    if data.start_time is not None:
        workshop.start_time = _naive_utc(data.start_time)
    if data.skill_level is not None:
        workshop.skill_level = _skill_level(data.skill_level)
    if not workshop.stream_url:
        workshop.stream_url = stream_url(workshop.id)

    db.add(workshop)
    db.commit()
    return get_workshop(db, workshop.id)


def delete_workshop(db: Session, user: User, workshop: Workshop) -> None:
    if not is_workshop_host(workshop, user):
        raise ForbiddenError("Insufficient permissions")
    db.delete(workshop)
    db.commit()
    logger.info("workshop deleted id=%s by user_id=%s", workshop.id, user.id)


def start_workshop(db: Session, user: User, workshop: Workshop) -> datetime:
    """Stamp started_at once; later calls return the original stamp."""
    if not is_workshop_host(workshop, user):
        raise ForbiddenError("Insufficient permissions")
    if workshop.started_at is None:
        workshop.started_at = utcnow()
        db.add(workshop)
        db.commit()
        logger.info("workshop started id=%s", workshop.id)
    return workshop.started_at


# ----- reservations -----

def _seat_available(workshop_id: str, capacity: Optional[int]):
    """SQL predicate: true while RESERVED seats are below capacity."""
    if capacity is None:
        return true()
    reserved_count = (
        select(func.count(Reservation.id))
        .where(Reservation.workshop_id == workshop_id, Reservation.status == ReservationStatus.RESERVED)
        .correlate(None)
        .scalar_subquery()
    )
    return reserved_count < capacity


def reserve_seat(db: Session, user: User, workshop_id: str) -> tuple[Reservation, bool]:
    """
    Claim a seat. Returns (reservation, created). An already RESERVED seat is
    returned as is; a CANCELLED one is reactivated if capacity allows.
    """
    with log_duration(logger, f"reserve workshop={workshop_id} user={user.id}"):
        workshop = db.query(Workshop).filter(Workshop.id == workshop_id).with_for_update().first()
        if workshop is None:
            raise NotFoundError("Workshop not found")

        if not is_workshop_host(workshop, user):
            missing = missing_lessons(db, workshop, user.id)
            if missing:
                raise MissingPrerequisitesError(
                    "Complete the prerequisite lessons before reserving",
                    [lesson.title for lesson in missing],
                )

        existing = (
            db.query(Reservation)
            .filter(Reservation.workshop_id == workshop_id, Reservation.user_id == user.id)
            .first()
        )
        if existing is not None and existing.status == ReservationStatus.RESERVED:
            db.rollback()
            return existing, False

        now = utcnow()
        seat_free = _seat_available(workshop_id, workshop.capacity)
        if existing is not None:
            result = db.execute(
                update(Reservation)
                .where(Reservation.id == existing.id, seat_free)
                .values(status=ReservationStatus.RESERVED, updated_at=now)
                .execution_options(synchronize_session=False)
            )
            reservation_id = existing.id
        else:
            reservation_id = str(uuid4())
            columns = Reservation.__table__.c
            result = db.execute(
                insert(Reservation).from_select(
                    ["id", "workshop_id", "user_id", "status", "created_at", "updated_at"],
                    select(
                        literal(reservation_id, columns.id.type),
                        literal(workshop_id, columns.workshop_id.type),
                        literal(user.id, columns.user_id.type),
                        literal(ReservationStatus.RESERVED, columns.status.type),
                        literal(now, columns.created_at.type),
                        literal(now, columns.updated_at.type),
                    ).where(seat_free),
                )
            )

        if result.rowcount == 0:
            db.rollback()
            logger.warning("workshop full id=%s capacity=%s user_id=%s", workshop_id, workshop.capacity, user.id)
            raise CapacityExceededError("No seats left")

        try:
            db.commit()
        except IntegrityError:
            # Same user raced themselves; the other request already holds the row.
            db.rollback()
            existing = (
                db.query(Reservation)
                .filter(Reservation.workshop_id == workshop_id, Reservation.user_id == user.id)
                .one()
            )
            return existing, False

    reservation = db.query(Reservation).filter(Reservation.id == reservation_id).one()
    db.refresh(reservation)
    return reservation, True


def cancel_reservation(db: Session, user: User, workshop_id: str) -> Reservation:
    reservation = (
        db.query(Reservation)
        .filter(Reservation.workshop_id == workshop_id, Reservation.user_id == user.id)
        .first()
    )
    if reservation is None:
        raise NotFoundError("Reservation not found")
    reservation.status = ReservationStatus.CANCELLED
    reservation.updated_at = utcnow()
    db.add(reservation)
    db.commit()
    db.refresh(reservation)
    logger.info("reservation cancelled workshop_id=%s user_id=%s", workshop_id, user.id)
    return reservation


def can_join_workshop(db: Session, workshop_id: str, user: User, now: Optional[datetime] = None) -> bool:
    workshop = get_workshop(db, workshop_id)
    return can_join(workshop, user, reservation_for(workshop, user.id), now)


def _naive_utc(value: datetime) -> datetime:
    """Store timestamps as naive UTC like every other DateTime column."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
