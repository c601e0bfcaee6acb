"""Auth: login, logout and the current user.

The token is returned in the body and set as an httpOnly cookie. Wrong
passwords, unknown emails and inactive accounts all get the same 401.
"""
from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from arbati.api.deps import get_db, get_current_user
from arbati.core.audit import AuditLog
from arbati.core.config import settings
from arbati.core.exceptions import BusinessError
from arbati.core.permissions import permissions_for_role
from arbati.core.security import verify_password, create_access_token
from arbati.models.user import User, UserStatus
from arbati.schemas.user import LoginRequest, TokenResponse, UserResponse

router = APIRouter()


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else ""


@router.post("/login", response_model=TokenResponse)
def login(data: LoginRequest, request: Request, response: Response, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == data.email).first()
    if not user or not verify_password(data.password, user.hashed_password):
        AuditLog.log_authentication("failed_login", data.email, _client_ip(request), False, "bad credentials")
        raise BusinessError.unauthorized(f"bad credentials for {data.email}")
    if user.status != UserStatus.ACTIVE:
        AuditLog.log_authentication("failed_login", data.email, _client_ip(request), False, f"status {user.status.value}")
        raise BusinessError.unauthorized(f"inactive account {data.email}")

    token = create_access_token(subject=str(user.id))
    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        secure=settings.SECURE_COOKIES,
        httponly=True,
        samesite=settings.SAME_SITE_COOKIE,
    )
    AuditLog.log_authentication("login", user.email, _client_ip(request), True)
    return TokenResponse(access_token=token)


@router.post("/logout")
def logout(request: Request, response: Response, current_user: User = Depends(get_current_user)):
    response.delete_cookie(
        key=settings.AUTH_COOKIE_NAME,
        secure=settings.SECURE_COOKIES,
        httponly=True,
        samesite=settings.SAME_SITE_COOKIE,
    )
    AuditLog.log_authentication("logout", current_user.email, _client_ip(request), True)
    return {"message": "Logged out successfully"}


@router.get("/me")
def me(current_user: User = Depends(get_current_user)):
    """Current user with the permissions of their role."""
    data = UserResponse.model_validate(current_user).model_dump(mode="json")
    data["permissions"] = sorted(permissions_for_role(current_user.role))
    return data
