"""
Certificate issuance. PDF rendering and delivery happen outside this service;
the record only stores the url the renderer reports back.
"""

import secrets
from typing import Optional
from uuid import uuid4

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from gurmania.models.models import Certificate, Course, User
from gurmania.services.course_service import all_lessons
from gurmania.services.gating import LearnerState
from gurmania.utils.errors import CertificateExistsError, GurmaniaError
from gurmania.utils.logger import get_logger

logger = get_logger("certificate")


def course_completed(course: Course, state: LearnerState) -> bool:
    lesson_ids = {lesson.id for lesson in all_lessons(course)}
    return bool(lesson_ids) and lesson_ids <= state.completed_lesson_ids


def get_certificate(db: Session, user_id: int, course_id: str) -> Optional[Certificate]:
    return db.query(Certificate).filter(Certificate.user_id == user_id, Certificate.course_id == course_id).first()


def _certificate_code() -> str:
    return f"GUR-{secrets.token_hex(4).upper()}"


def issue_certificate(db: Session, user: User, course: Course, state: LearnerState) -> Certificate:
    """
    Create the learner's certificate for ``course``.

    Raises CertificateExistsError (409) carrying the stored record when one was
    already issued, and a 400 error with completed/total counts while lessons remain.
    """
    existing = get_certificate(db, user.id, course.id)
    if existing is not None:
        raise CertificateExistsError("Certificate already issued", existing)

    lesson_ids = {lesson.id for lesson in all_lessons(course)}
    if not lesson_ids:
        raise GurmaniaError("Course has no lessons")
    if not course_completed(course, state):
        raise GurmaniaError(
            "Complete every lesson before requesting a certificate",
            extra={"completed": len(lesson_ids & state.completed_lesson_ids), "total": len(lesson_ids)},
        )

    certificate = Certificate(id=str(uuid4()), user_id=user.id, course_id=course.id, code=_certificate_code())
    db.add(certificate)
    try:
        db.commit()
    except IntegrityError:
        # Concurrent request won the unique (user, course) slot.
        db.rollback()
        raise CertificateExistsError("Certificate already issued", get_certificate(db, user.id, course.id))
    db.refresh(certificate)
    logger.info("certificate issued user_id=%s course_id=%s code=%s", user.id, course.id, certificate.code)
    return certificate
