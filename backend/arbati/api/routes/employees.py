"""Employees: back-office users managed by admins. Deleting marks the account DELETED."""
from fastapi import APIRouter, Depends
from sqlalchemy import or_
from sqlalchemy.orm import Session

from arbati.api.deps import get_db, require_permission
from arbati.core.audit import AuditLog
from arbati.core.exceptions import BusinessError
from arbati.core.pagination import PageParams, apply_sort, paginate
from arbati.core.permissions import EMPLOYEES_MANAGE, EMPLOYEES_VIEW
from arbati.core.security import get_password_hash
from arbati.models.user import User, UserRole, UserStatus
from arbati.schemas.user import EmployeeCreate, EmployeeUpdate, UserResponse

router = APIRouter()

SORT_COLUMNS = {
    "name": User.name,
    "email": User.email,
    "role": User.role,
    "createdAt": User.created_at,
}


def _serialize(user: User) -> dict:
    return UserResponse.model_validate(user).model_dump(mode="json")


def _load(db: Session, employee_id: int) -> User:
    user = db.query(User).filter(User.id == employee_id, User.status != UserStatus.DELETED).first()
    if not user:
        raise BusinessError.not_found("Employee")
    return user


def _guard_developer_role(current_user: User, role: UserRole | None) -> None:
    if role == UserRole.DEVELOPER and current_user.role != UserRole.DEVELOPER:
        raise BusinessError.forbidden(f"user {current_user.id} tried to grant DEVELOPER")


@router.get("")
def list_employees(
    params: PageParams = Depends(),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(EMPLOYEES_VIEW)),
):
    q = db.query(User).filter(User.status != UserStatus.DELETED)
    if params.search:
        term = f"%{params.search}%"
        q = q.filter(or_(User.name.ilike(term), User.email.ilike(term), User.phone.ilike(term)))
    q = apply_sort(q, params, SORT_COLUMNS, default="createdAt", default_order="desc")
    rows, pagination = paginate(q, params)
    return {"employees": [_serialize(u) for u in rows], "pagination": pagination}


@router.post("", status_code=201)
def create_employee(
    data: EmployeeCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(EMPLOYEES_MANAGE)),
):
    _guard_developer_role(current_user, data.role)
    if db.query(User).filter(User.email == data.email).first():
        raise BusinessError.conflict("Email already registered")
    user = User(
        email=data.email,
        hashed_password=get_password_hash(data.password),
        name=data.name,
        phone=data.phone,
        role=data.role,
        status=data.status,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    AuditLog.log_action("create", "employee", user.id, current_user, changes={"role": user.role.value})
    return _serialize(user)


@router.put("/{employee_id}")
def update_employee(
    employee_id: int,
    data: EmployeeUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(EMPLOYEES_MANAGE)),
):
    user = _load(db, employee_id)
    _guard_developer_role(current_user, data.role)
    changes = data.model_dump(exclude_unset=True)
    password = changes.pop("password", None)
    old_role = user.role
    for field, value in changes.items():
        setattr(user, field, value)
    if password:
        user.hashed_password = get_password_hash(password)
    db.commit()
    db.refresh(user)
    # never log the password
    AuditLog.log_action("update", "employee", user.id, current_user, changes=changes)
    if user.role != old_role:
        AuditLog.log_role_change(user.id, current_user, old_role.value, user.role.value)
    return _serialize(user)


@router.delete("/{employee_id}")
def delete_employee(
    employee_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(EMPLOYEES_MANAGE)),
):
    user = _load(db, employee_id)
    if user.id == current_user.id:
        raise BusinessError.bad_request("You cannot delete your own account")
    user.status = UserStatus.DELETED
    db.commit()
    AuditLog.log_action("delete", "employee", employee_id, current_user)
    return {"message": "Employee deleted"}
