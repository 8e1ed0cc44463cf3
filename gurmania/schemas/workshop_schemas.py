"""
Live workshop schemas.
"""

from datetime import datetime
from pydantic import BaseModel, Field
from typing import Optional


class LessonRef(BaseModel):
    id: str
    title: str


class CreateWorkshopRequest(BaseModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    start_time: datetime
    duration_min: Optional[int] = Field(default=None, gt=0)
    capacity: Optional[int] = Field(default=None, gt=0)
    skill_level: str = "BEGINNER"
    course_id: Optional[str] = None
    required_lesson_ids: list[str] = []
    recording_url: Optional[str] = None


class UpdateWorkshopRequest(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    start_time: Optional[datetime] = None
    duration_min: Optional[int] = Field(default=None, gt=0)
    capacity: Optional[int] = Field(default=None, gt=0)
    skill_level: Optional[str] = None
    course_id: Optional[str] = None
    required_lesson_ids: Optional[list[str]] = None
    recording_url: Optional[str] = None


class WorkshopResponse(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    start_time: str
    end_time: str
    started_at: Optional[str] = None
    duration_min: Optional[int] = None
    capacity: Optional[int] = None
    skill_level: str
    status: str  # upcoming|live|ended
    stream_url: Optional[str] = None
    recording_url: Optional[str] = None
    course_id: Optional[str] = None
    instructor_id: int
    instructor_name: Optional[str] = None
    required_lessons: list[LessonRef]
    missing_lessons: list[LessonRef]
    reserved_count: int
    is_reserved: bool
    is_instructor: bool


class WorkshopListResponse(BaseModel):
    workshops: list[WorkshopResponse]


class ReservationResponse(BaseModel):
    id: str
    workshop_id: str
    user_id: int
    status: str


class StartWorkshopResponse(BaseModel):
    started_at: str


class JoinWorkshopResponse(BaseModel):
    can_join: bool
    stream_url: Optional[str] = None
    room_name: str


class JitsiTokenResponse(BaseModel):
    token: str
