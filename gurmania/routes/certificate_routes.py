"""
Course completion certificates.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from starlette.responses import JSONResponse

from gurmania.config import get_db
from gurmania.models.models import Certificate, User
from gurmania.schemas.certificate_schemas import CertificateResponse
from gurmania.services.certificate_service import get_certificate, issue_certificate
from gurmania.services.course_service import get_visible_course
from gurmania.services.progress_service import load_learner_state
from gurmania.utils.auth import get_current_user
from gurmania.utils.common import iso_format
from gurmania.utils.errors import CertificateExistsError

certificate_routes = APIRouter()


def certificate_response(certificate: Certificate) -> CertificateResponse:
    return CertificateResponse(
        id=certificate.id,
        course_id=certificate.course_id,
        code=certificate.code,
        pdf_url=certificate.pdf_url,
        issued_at=iso_format(certificate.issued_at),
    )


@certificate_routes.get("/courses/{course_id}/certificate", response_model=CertificateResponse)
async def read_certificate(
    course_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    certificate = get_certificate(db, current_user.id, course_id)
    if certificate is None:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"has_certificate": False})
    return certificate_response(certificate)


@certificate_routes.post(
    "/courses/{course_id}/certificate",
    response_model=CertificateResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_certificate(
    course_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Issue the certificate once every lesson is completed. A repeat request gets 409 and the stored record."""
    course = get_visible_course(db, course_id, current_user)
    state = load_learner_state(db, current_user.id, course)
    try:
        certificate = issue_certificate(db, current_user, course, state)
    except CertificateExistsError as exc:
        return JSONResponse(
            status_code=exc.status_code,
            content={**exc.to_payload(), "certificate": certificate_response(exc.certificate).model_dump()},
        )
    return certificate_response(certificate)
