from typing import Optional
from fastapi import HTTPException, Cookie, Response, status, Depends
from sqlalchemy.orm import Session

from gurmania.config import get_db, settings
from gurmania.models.models import User, UserRole
from gurmania.schemas.auth_schemas import AuthTokenPayload
from gurmania.utils.jwt import verify_token, get_password_hash, create_access_token, verify_password
from gurmania.utils.logger import get_logger

logger = get_logger("auth")


def get_current_user(access_token: Optional[str] = Cookie(None), db: Session = Depends(get_db)) -> User:
    if not access_token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing token",
        )

    payload = verify_token(access_token)
    user = get_user_by_email(payload.sub, db)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found"
        )
    return user


def require_instructor(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role not in (UserRole.INSTRUCTOR, UserRole.ADMIN):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Instructor access required")
    return current_user


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != UserRole.ADMIN:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return current_user


def set_auth_cookie(response: Response, user: User) -> None:
    token = create_access_token(AuthTokenPayload(sub=user.email, role=user.role.value))
    response.set_cookie(
        key="access_token",
        value=token,
        httponly=True,
        secure=False,
        samesite="lax",
        max_age=settings.access_token_expire_minutes * 60,
    )


def clear_auth_cookie(response: Response) -> None:
    response.delete_cookie(
        key="access_token",
        httponly=True,
        secure=False,
        samesite="lax"
    )


def get_user_by_email(email: str, db: Session) -> User | None:
    return db.query(User).filter(User.email == email.strip().lower()).first()


def create_user(email: str, password: str, db: Session, name: Optional[str] = None, role: UserRole = UserRole.STUDENT) -> User:
    user = User(email=email.strip().lower(), name=name, hashed_password=get_password_hash(password), role=role)
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("user created id=%s role=%s", user.id, user.role.value)
    return user


def authenticate_user(email: str, password: str, db: Session) -> User | None:
    user = get_user_by_email(email, db)
    if not user or not verify_password(password, user.hashed_password):
        return None
    return user
