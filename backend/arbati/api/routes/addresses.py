"""Named customer locations. Names are unique."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from arbati.api.deps import get_db, require_permission
from arbati.core.audit import AuditLog
from arbati.core.exceptions import BusinessError
from arbati.core.permissions import CUSTOMERS_EDIT, CUSTOMERS_VIEW
from arbati.models.customer import Address, Customer
from arbati.models.user import User
from arbati.schemas.customer import AddressCreate, AddressUpdate

router = APIRouter()


def serialize_address(a: Address) -> dict:
    return {"id": a.id, "name": a.name, "description": a.description}


def _load(db: Session, address_id: int) -> Address:
    address = db.query(Address).filter(Address.id == address_id).first()
    if not address:
        raise BusinessError.not_found("Address")
    return address


@router.get("")
def list_addresses(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(CUSTOMERS_VIEW)),
):
    return {"addresses": [serialize_address(a) for a in db.query(Address).order_by(Address.name.asc()).all()]}


@router.post("", status_code=201)
def create_address(
    data: AddressCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(CUSTOMERS_EDIT)),
):
    if db.query(Address).filter(Address.name == data.name).first():
        raise BusinessError.conflict("Address already exists")
    address = Address(**data.model_dump())
    db.add(address)
    db.commit()
    db.refresh(address)
    AuditLog.log_action("create", "address", address.id, current_user)
    return serialize_address(address)


@router.put("/{address_id}")
def update_address(
    address_id: int,
    data: AddressUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(CUSTOMERS_EDIT)),
):
    address = _load(db, address_id)
    changes = data.model_dump(exclude_unset=True)
    if "name" in changes and changes["name"] != address.name:
        if db.query(Address).filter(Address.name == changes["name"]).first():
            raise BusinessError.conflict("Address already exists")
    for field, value in changes.items():
        setattr(address, field, value)
    db.commit()
    db.refresh(address)
    AuditLog.log_action("update", "address", address.id, current_user, changes=changes)
    return serialize_address(address)


@router.delete("/{address_id}")
def delete_address(
    address_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(CUSTOMERS_EDIT)),
):
    address = _load(db, address_id)
    if db.query(Customer).filter(Customer.address_id == address_id).first():
        raise BusinessError.bad_request("Address is used by customers and cannot be deleted")
    db.delete(address)
    db.commit()
    AuditLog.log_action("delete", "address", address_id, current_user)
    return {"message": "Address deleted"}
