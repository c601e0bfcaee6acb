"""FastAPI dependencies: DB session, current user from JWT, permission checks.

The JWT is read from the Authorization header first, then from the
httpOnly cookie set at login.
"""
from typing import Callable, Generator, Optional

from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session, sessionmaker

from arbati.core.audit import AuditLog
from arbati.core.config import settings
from arbati.core.exceptions import BusinessError
from arbati.core.permissions import has_permission, permissions_for_role
from arbati.core.security import decode_access_token
from arbati.db.session import SessionLocal
from arbati.models.user import User, UserStatus

security = HTTPBearer(auto_error=False)


def get_session_factory() -> sessionmaker:
    """Session factory for work that opens its own sessions (threaded loaders)."""
    return SessionLocal


def get_db(session_factory: sessionmaker = Depends(get_session_factory)) -> Generator[Session, None, None]:
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


def get_current_user_id(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> int:
    token = None
    if credentials:
        token = credentials.credentials
    elif settings.AUTH_COOKIE_NAME in request.cookies:
        token = request.cookies[settings.AUTH_COOKIE_NAME]

    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    sub = decode_access_token(token)
    if not sub:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        return int(sub)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")


def get_current_user(
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
) -> User:
    """Load the current user. Suspended or deleted accounts lose access immediately."""
    user = db.query(User).filter(User.id == user_id).first()
    if not user or user.status != UserStatus.ACTIVE:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return user


def require_permission(permission: str) -> Callable[..., User]:
    """
    Dependency factory gating a route on one permission.

    Usage:
        @router.delete("/{customer_id}")
        def delete(..., user: User = Depends(require_permission(CUSTOMERS_DELETE))):
    """

    def checker(request: Request, user: User = Depends(get_current_user)) -> User:
        if not has_permission(permissions_for_role(user.role), permission):
            AuditLog.log_access_denied(permission, user.id, user.role.value, request.url.path)
            raise BusinessError.forbidden(f"user {user.id} lacks {permission}")
        return user

    return checker
