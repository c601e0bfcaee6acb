"""Product categories with Arabic and Kurdish names."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from arbati.api.deps import get_db, require_permission
from arbati.core.audit import AuditLog
from arbati.core.exceptions import BusinessError
from arbati.core.permissions import PRODUCTS_EDIT, PRODUCTS_VIEW
from arbati.models.product import Category, Product
from arbati.models.user import User
from arbati.schemas.product import CategoryCreate, CategoryUpdate

router = APIRouter()


def serialize_category(c: Category) -> dict:
    return {"id": c.id, "name": c.name, "nameAr": c.name_ar, "nameKu": c.name_ku}


def _load(db: Session, category_id: int) -> Category:
    category = db.query(Category).filter(Category.id == category_id).first()
    if not category:
        raise BusinessError.not_found("Category")
    return category


def _ensure_unique_name(db: Session, name: str, exclude_id: int | None = None) -> None:
    q = db.query(Category).filter(Category.name == name)
    if exclude_id is not None:
        q = q.filter(Category.id != exclude_id)
    if q.first():
        raise BusinessError.conflict("Category already exists")


@router.get("")
def list_categories(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(PRODUCTS_VIEW)),
):
    return {"categories": [serialize_category(c) for c in db.query(Category).order_by(Category.name.asc()).all()]}


@router.post("", status_code=201)
def create_category(
    data: CategoryCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(PRODUCTS_EDIT)),
):
    _ensure_unique_name(db, data.name)
    category = Category(**data.model_dump())
    db.add(category)
    db.commit()
    db.refresh(category)
    AuditLog.log_action("create", "category", category.id, current_user)
    return serialize_category(category)


@router.put("/{category_id}")
def update_category(
    category_id: int,
    data: CategoryUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(PRODUCTS_EDIT)),
):
    category = _load(db, category_id)
    changes = data.model_dump(exclude_unset=True)
    if "name" in changes:
        _ensure_unique_name(db, changes["name"], exclude_id=category.id)
    for field, value in changes.items():
        setattr(category, field, value)
    db.commit()
    db.refresh(category)
    AuditLog.log_action("update", "category", category.id, current_user, changes=changes)
    return serialize_category(category)


@router.delete("/{category_id}")
def delete_category(
    category_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(PRODUCTS_EDIT)),
):
    category = _load(db, category_id)
    if db.query(Product).filter(Product.category_id == category_id).first():
        raise BusinessError.bad_request("Category still has products and cannot be deleted")
    db.delete(category)
    db.commit()
    AuditLog.log_action("delete", "category", category_id, current_user)
    return {"message": "Category deleted"}
