"""
Live workshop endpoints: scheduling, reservations, join window and calendar export.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from gurmania.config import get_db, settings
from gurmania.models.models import User
from gurmania.models.workshop import Reservation, ReservationStatus, Workshop
from gurmania.schemas.workshop_schemas import (
    CreateWorkshopRequest,
    JitsiTokenResponse,
    JoinWorkshopResponse,
    LessonRef,
    ReservationResponse,
    StartWorkshopResponse,
    UpdateWorkshopRequest,
    WorkshopListResponse,
    WorkshopResponse,
)
from gurmania.services import workshop_service
from gurmania.utils.auth import get_current_user
from gurmania.utils.calendar import workshop_ics
from gurmania.utils.common import display_name, iso_format
from gurmania.utils.dates import utcnow
from gurmania.utils.errors import ForbiddenError
from gurmania.utils.jwt import create_jitsi_token
from gurmania.utils.logger import get_logger

logger = get_logger("workshop")

workshop_routes = APIRouter()


def workshop_response(db: Session, workshop: Workshop, user: User, now: Optional[datetime] = None) -> WorkshopResponse:
    host = workshop_service.is_workshop_host(workshop, user)
    reservation = workshop_service.reservation_for(workshop, user.id)
    is_reserved = reservation is not None and reservation.status == ReservationStatus.RESERVED
    missing = [] if host else workshop_service.missing_lessons(db, workshop, user.id)
    return WorkshopResponse(
        id=workshop.id,
        title=workshop.title,
        description=workshop.description,
        start_time=iso_format(workshop.start_time),
        end_time=iso_format(workshop_service.workshop_end_time(workshop)),
        started_at=iso_format(workshop.started_at),
        duration_min=workshop.duration_min,
        capacity=workshop.capacity,
        skill_level=workshop.skill_level.value,
        status=workshop_service.workshop_status(workshop, now),
        stream_url=workshop.stream_url if host or is_reserved else None,
        recording_url=workshop.recording_url,
        course_id=workshop.course_id,
        instructor_id=workshop.instructor_id,
        instructor_name=display_name(workshop.instructor) if workshop.instructor else None,
        required_lessons=[LessonRef(id=r.lesson.id, title=r.lesson.title) for r in workshop.required_lessons],
        missing_lessons=[LessonRef(id=lesson.id, title=lesson.title) for lesson in missing],
        reserved_count=len(workshop_service.active_reservations(workshop)),
        is_reserved=is_reserved,
        is_instructor=host,
    )


def reservation_response(reservation: Reservation) -> ReservationResponse:
    return ReservationResponse(
        id=reservation.id,
        workshop_id=reservation.workshop_id,
        user_id=reservation.user_id,
        status=reservation.status.value,
    )


def _visible_workshop(db: Session, workshop_id: str, user: User) -> Workshop:
    workshop = workshop_service.get_workshop(db, workshop_id)
    error = workshop_service.visibility_error(workshop, user)
    if error is not None:
        raise error
    return workshop


@workshop_routes.get("/workshops", response_model=WorkshopListResponse)
async def list_workshops(
    course_id: Optional[str] = None,
    include_past: bool = False,
    mine: bool = False,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> WorkshopListResponse:
    """Upcoming workshops. Learners do not see ended ones or running ones they hold no seat in."""
    now = utcnow()
    workshops = workshop_service.list_workshops(
        db,
        instructor_id=current_user.id if mine else None,
        course_id=course_id,
        include_past=include_past,
        now=now,
    )
    visible = [w for w in workshops if workshop_service.visibility_error(w, current_user, now) is None]
    return WorkshopListResponse(workshops=[workshop_response(db, w, current_user, now) for w in visible])


@workshop_routes.post("/workshops", response_model=WorkshopResponse, status_code=status.HTTP_201_CREATED)
async def create_workshop(
    req: CreateWorkshopRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> WorkshopResponse:
    workshop = workshop_service.create_workshop(db, current_user, req)
    return workshop_response(db, workshop, current_user)


@workshop_routes.get("/workshops/{workshop_id}", response_model=WorkshopResponse)
async def get_workshop(
    workshop_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> WorkshopResponse:
    workshop = _visible_workshop(db, workshop_id, current_user)
    return workshop_response(db, workshop, current_user)


@workshop_routes.patch("/workshops/{workshop_id}", response_model=WorkshopResponse)
async def update_workshop(
    workshop_id: str,
    req: UpdateWorkshopRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> WorkshopResponse:
    workshop = workshop_service.get_workshop(db, workshop_id)
    workshop = workshop_service.update_workshop(db, current_user, workshop, req)
    return workshop_response(db, workshop, current_user)


@workshop_routes.delete("/workshops/{workshop_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_workshop(
    workshop_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> Response:
    workshop = workshop_service.get_workshop(db, workshop_id)
    workshop_service.delete_workshop(db, current_user, workshop)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@workshop_routes.post("/workshops/{workshop_id}/start", response_model=StartWorkshopResponse)
async def start_workshop(
    workshop_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> StartWorkshopResponse:
    """Stamp the start time; repeated calls return the first stamp."""
    workshop = workshop_service.get_workshop(db, workshop_id)
    started_at = workshop_service.start_workshop(db, current_user, workshop)
    return StartWorkshopResponse(started_at=iso_format(started_at))


@workshop_routes.get("/workshops/{workshop_id}/join", response_model=JoinWorkshopResponse)
async def join_workshop(
    workshop_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> JoinWorkshopResponse:
    workshop = workshop_service.get_workshop(db, workshop_id)
    allowed = workshop_service.can_join_workshop(db, workshop.id, current_user)
    return JoinWorkshopResponse(
        can_join=allowed,
        stream_url=(workshop.stream_url or workshop_service.stream_url(workshop.id)) if allowed else None,
        room_name=workshop_service.room_name(workshop.id),
    )


@workshop_routes.post("/workshops/{workshop_id}/reserve", response_model=ReservationResponse)
async def reserve_workshop(
    workshop_id: str,
    response: Response,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> ReservationResponse:
    reservation, created = workshop_service.reserve_seat(db, current_user, workshop_id)
    if created:
        response.status_code = status.HTTP_201_CREATED
    return reservation_response(reservation)


@workshop_routes.delete("/workshops/{workshop_id}/reserve", response_model=ReservationResponse)
async def cancel_reservation(
    workshop_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> ReservationResponse:
    reservation = workshop_service.cancel_reservation(db, current_user, workshop_id)
    return reservation_response(reservation)


@workshop_routes.get("/workshops/{workshop_id}/calendar")
async def workshop_calendar(
    workshop_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> Response:
    workshop = workshop_service.get_workshop(db, workshop_id)
    join_url = f"{settings.app_url.rstrip('/')}/app/workshops/{workshop.id}"
    ics = workshop_ics(
        workshop_id=workshop.id,
        title=workshop.title,
        description=workshop.description,
        start=workshop.start_time,
        end=workshop_service.workshop_end_time(workshop),
        join_url=join_url,
    )
    return Response(
        content=ics,
        media_type="text/calendar; charset=utf-8",
        headers={"Content-Disposition": f"attachment; filename=workshop-{workshop.id}.ics"},
    )


@workshop_routes.get("/workshops/{workshop_id}/jitsi-token", response_model=JitsiTokenResponse)
async def jitsi_token(
    workshop_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> JitsiTokenResponse:
    """Moderator token for the workshop room. Hosts only."""
    workshop = workshop_service.get_workshop(db, workshop_id)
    if not workshop_service.is_workshop_host(workshop, current_user):
        raise ForbiddenError("Insufficient permissions")
    if not settings.jitsi_app_id or not settings.jitsi_app_secret:
        logger.error("jitsi token requested but JITSI_APP_ID/JITSI_APP_SECRET are not set")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Video conference token is not configured")

    token = create_jitsi_token(
        room=workshop_service.room_name(workshop.id),
        domain=workshop_service.jitsi_domain(),
        user_name=display_name(current_user),
        user_email=current_user.email,
        app_id=settings.jitsi_app_id,
        app_secret=settings.jitsi_app_secret,
    )
    return JitsiTokenResponse(token=token)
