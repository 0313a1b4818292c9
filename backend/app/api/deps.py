from fastapi import Depends, HTTPException, status
from fastapi_jwt import JwtAccessBearerCookie, JwtAuthorizationCredentials
from sqlmodel import Session
from app.db.session import engine
from app.models.user import User, UserRole
from app.core.config import settings

# JWT in an HttpOnly cookie
access_security = JwtAccessBearerCookie(
    secret_key=settings.SECRET_KEY,
    auto_error=False,
    access_expires_delta=settings.jwt_expires_delta
)


def get_db():
    with Session(engine) as session:
        yield session


def unauthorized(detail: str = "Unauthorized") -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def issue_session_cookie(response, user: User) -> None:
    """Sign the user's id and role into the access cookie"""
    subject = {"id": user.id, "role": user.role.value}
    access_token = access_security.create_access_token(subject=subject)
    access_security.set_access_cookie(response, access_token)


def get_current_user_optional(
    credentials: JwtAuthorizationCredentials = Depends(access_security),
    db: Session = Depends(get_db)
) -> User | None:
    if credentials is None:
        return None

    user_id = credentials.subject.get("id")
    if not user_id:
        return None

    user = db.get(User, int(user_id))
    if not user or not user.is_active:
        return None
    return user


def get_current_user(
    user: User | None = Depends(get_current_user_optional)
) -> User:
    if user is None:
        raise unauthorized("Not authenticated")
    return user


def admin_required(
    current_user: User | None = Depends(get_current_user_optional)
) -> User:
    if current_user is None or current_user.role != UserRole.ADMIN:
        raise unauthorized()
    return current_user


def vendor_required(
    current_user: User | None = Depends(get_current_user_optional)
) -> User:
    if current_user is None or current_user.role != UserRole.VENDOR:
        raise unauthorized()
    return current_user
