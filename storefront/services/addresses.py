"""
Address book writes.

At most one address per user is the default. Writes that set ``is_default``
first clear the flag on the user's other addresses, in the same transaction.
A partial unique index on ``user_addresses`` rejects anything that slips past.
"""
import logging
from typing import Any, Dict, Optional

from sqlalchemy import exists, select, update
from sqlalchemy.orm import Session

from storefront.core.errors import ConflictError, ForbiddenError, NotFoundError, OperationFailed
from storefront.db.models import Order, User, UserAddress

logger = logging.getLogger(__name__)


def _clear_default(db: Session, user_id: int, keep_id: Optional[int] = None) -> None:
    stmt = update(UserAddress).where(UserAddress.user_id == user_id, UserAddress.is_default.is_(True))
    if keep_id is not None:
        stmt = stmt.where(UserAddress.id != keep_id)
    db.execute(stmt.values(is_default=False).execution_options(synchronize_session="fetch"))


def get_address(db: Session, address_id: int, owner_id: Optional[int] = None) -> UserAddress:
    address = db.get(UserAddress, address_id)
    if address is None:
        raise NotFoundError("User address not found.")
    if owner_id is not None and address.user_id != owner_id:
        raise ForbiddenError("Forbidden")
    return address


def create_address(db: Session, user_id: int, fields: Dict[str, Any]) -> UserAddress:
    if db.get(User, user_id) is None:
        raise NotFoundError("User not found.")
    try:
        if fields.get("is_default"):
            _clear_default(db, user_id)
        address = UserAddress(user_id=user_id, **fields)
        db.add(address)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error("Failed to create address for user %s: %s", user_id, e, exc_info=True)
        raise OperationFailed(f"Failed to create address: {e}") from e

    db.refresh(address)
    if address.is_default:
        logger.info("Address %s is now the default for user %s", address.id, user_id)
    return address


def update_address(db: Session, address: UserAddress, fields: Dict[str, Any]) -> UserAddress:
    try:
        if fields.get("is_default"):
            _clear_default(db, address.user_id, keep_id=address.id)
        for k, v in fields.items():
            setattr(address, k, v)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error("Failed to update address %s: %s", address.id, e, exc_info=True)
        raise OperationFailed(f"Failed to update address: {e}") from e

    db.refresh(address)
    if fields.get("is_default"):
        logger.info("Address %s is now the default for user %s", address.id, address.user_id)
    return address


def delete_address(db: Session, address: UserAddress) -> None:
    """Delete an address that no order points at.

    Removing the default leaves the user without one; nothing is promoted.
    """
    if db.execute(select(exists().where(Order.user_address_id == address.id))).scalar():
        logger.warning("Refused to delete address %s: referenced by orders", address.id)
        raise ConflictError("Cannot delete address that is used in orders.")
    address_id, user_id = address.id, address.user_id
    try:
        db.delete(address)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error("Failed to delete address %s: %s", address_id, e, exc_info=True)
        raise OperationFailed(f"Failed to delete address: {e}") from e

    logger.info("Deleted address %s of user %s", address_id, user_id)
