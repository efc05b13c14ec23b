from fastapi import APIRouter, Depends
from typing import Optional
from sqlalchemy import select
from sqlalchemy.orm import Session

from storefront.api.deps import PageParams, get_current_user, get_db, page_params, require_admin
from storefront.core.errors import ValidationFailed
from storefront.core.responses import Envelope, Paginated, paginate
from storefront.db.models import User, UserAddress
from storefront.schemas import UserAddressCreate, UserAddressRead, UserAddressUpdate
from storefront.services import addresses as address_service

router = APIRouter()
admin_router = APIRouter(dependencies=[Depends(require_admin)])

def _list(db: Session, pg: PageParams, user_id: Optional[int], default: Optional[bool]) -> Paginated[UserAddressRead]:
    stmt = select(UserAddress)
    if user_id is not None: stmt = stmt.where(UserAddress.user_id == user_id)
    if default is not None: stmt = stmt.where(UserAddress.is_default.is_(default))
    stmt = stmt.order_by(UserAddress.is_default.desc(), UserAddress.created_at.desc(), UserAddress.id.desc())
    return paginate(db, stmt, UserAddressRead, pg.page, pg.per_page, "User addresses retrieved successfully.")

def _read(address: UserAddress, message: str) -> Envelope[UserAddressRead]:
    return Envelope(data=UserAddressRead.model_validate(address), message=message)


# --- storefront ---

@router.get("", response_model=Paginated[UserAddressRead])
def list_my_addresses(user: User = Depends(get_current_user), db: Session = Depends(get_db),
                      pg: PageParams = Depends(page_params), default: Optional[bool] = None):
    return _list(db, pg, user.id, default)

@router.post("", response_model=Envelope[UserAddressRead], status_code=201)
def create_my_address(payload: UserAddressCreate, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    address = address_service.create_address(db, user.id, payload.model_dump(exclude={"user_id"}))
    return _read(address, "User address created successfully.")

@router.get("/{address_id}", response_model=Envelope[UserAddressRead])
def show_my_address(address_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return _read(address_service.get_address(db, address_id, owner_id=user.id), "User address retrieved successfully.")

@router.put("/{address_id}", response_model=Envelope[UserAddressRead])
@router.patch("/{address_id}", response_model=Envelope[UserAddressRead])
def update_my_address(address_id: int, payload: UserAddressUpdate, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    address = address_service.get_address(db, address_id, owner_id=user.id)
    address = address_service.update_address(db, address, payload.model_dump(exclude_unset=True, exclude_none=True))
    return _read(address, "User address updated successfully.")

@router.delete("/{address_id}", response_model=Envelope)
def delete_my_address(address_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    address_service.delete_address(db, address_service.get_address(db, address_id, owner_id=user.id))
    return Envelope(message="User address deleted successfully.")


# --- admin ---

@admin_router.get("", response_model=Paginated[UserAddressRead])
def list_addresses(db: Session = Depends(get_db), pg: PageParams = Depends(page_params),
                   user_id: Optional[int] = None, default: Optional[bool] = None):
    return _list(db, pg, user_id, default)

@admin_router.post("", response_model=Envelope[UserAddressRead], status_code=201)
def create_address(payload: UserAddressCreate, db: Session = Depends(get_db)):
    if payload.user_id is None:
        raise ValidationFailed({"user_id": ["The user is required."]})
    address = address_service.create_address(db, payload.user_id, payload.model_dump(exclude={"user_id"}))
    return _read(address, "User address created successfully.")

@admin_router.get("/{address_id}", response_model=Envelope[UserAddressRead])
def show_address(address_id: int, db: Session = Depends(get_db)):
    return _read(address_service.get_address(db, address_id), "User address retrieved successfully.")

@admin_router.put("/{address_id}", response_model=Envelope[UserAddressRead])
@admin_router.patch("/{address_id}", response_model=Envelope[UserAddressRead])
def update_address(address_id: int, payload: UserAddressUpdate, db: Session = Depends(get_db)):
    address = address_service.get_address(db, address_id)
    address = address_service.update_address(db, address, payload.model_dump(exclude_unset=True, exclude_none=True))
    return _read(address, "User address updated successfully.")

@admin_router.delete("/{address_id}", response_model=Envelope)
def delete_address(address_id: int, db: Session = Depends(get_db)):
    address_service.delete_address(db, address_service.get_address(db, address_id))
    return Envelope(message="User address deleted successfully.")
