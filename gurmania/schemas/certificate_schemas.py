"""
Certificate and course review schemas.
"""

from pydantic import BaseModel, Field
from typing import Optional


class CertificateResponse(BaseModel):
    id: str
    course_id: str
    code: str
    pdf_url: Optional[str] = None
    issued_at: str
    has_certificate: bool = True


class ReviewRequest(BaseModel):
    rating: int = Field(ge=1, le=5)
    comment: Optional[str] = Field(default=None, max_length=2000)


class ReviewResponse(BaseModel):
    id: str
    course_id: str
    user_id: int
    user_name: Optional[str] = None
    rating: int
    comment: Optional[str] = None
    status: str
    created_at: str


class ReviewListResponse(BaseModel):
    reviews: list[ReviewResponse]


class ReviewStatusRequest(BaseModel):
    status: str


class CourseReviews(BaseModel):
    course_id: str
    title: str
    reviews: list[ReviewResponse]


class InstructorReviewsResponse(BaseModel):
    courses: list[CourseReviews]
