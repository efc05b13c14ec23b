"""
Order placement and lifecycle.

An order is built from either the caller's cart rows or an explicit list of
line items. The order row, its details and the removal of consumed cart rows
are committed together; any failure rolls all of it back.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from storefront.core.errors import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    OperationFailed,
    StorefrontError,
)
from storefront.db.models import (
    DELETABLE_ORDER_STATUSES,
    Cart,
    Order,
    OrderDetail,
    OrderStatus,
    Product,
    User,
    UserAddress,
)
from storefront.schemas import OrderDetailIn
from storefront.services import storage

logger = logging.getLogger(__name__)


@dataclass
class LineItem:
    product_id: int
    quantity: int
    price_cents: int

    @property
    def subtotal_cents(self) -> int:
        return self.quantity * self.price_cents


def _shipping_address(db: Session, user_id: int, address_id: int) -> UserAddress:
    address = db.get(UserAddress, address_id)
    if not address or address.user_id != user_id:
        raise NotFoundError("Shipping address not found.")
    return address


def _lines_from_cart(db: Session, user_id: int, cart_ids: Sequence[int]) -> List[Cart]:
    stmt = select(Cart).where(Cart.id.in_(cart_ids), Cart.user_id == user_id).order_by(Cart.id)
    return list(db.execute(stmt).scalars())


def _lines_from_details(db: Session, details: Sequence[OrderDetailIn]) -> List[LineItem]:
    lines = []
    for d in details:
        if db.get(Product, d.product_id) is None:
            raise NotFoundError(f"Product {d.product_id} not found.")
        lines.append(LineItem(d.product_id, d.quantity, d.price_cents))
    return lines


def place_order(
    db: Session,
    *,
    user_id: int,
    user_address_id: int,
    cart_ids: Optional[Sequence[int]] = None,
    order_details: Optional[Sequence[OrderDetailIn]] = None,
    status: Optional[OrderStatus] = None,
    payment_proof: Optional[storage.Upload] = None,
) -> Order:
    """Create an order and its line items in one transaction.

    With ``cart_ids`` the line items come from the user's cart rows, priced at
    the product's current price, and those rows are deleted. Otherwise
    ``order_details`` supplies product, quantity and unit price directly.
    The total is fixed here and never recomputed.
    """
    if payment_proof is not None:
        storage.validate_upload(payment_proof, 'payment_proof', storage.PAYMENT_PROOF_TYPES)
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found.")
    _shipping_address(db, user.id, user_address_id)

    stored_proof: Optional[str] = None
    try:
        consumed: List[Cart] = []
        if cart_ids:
            consumed = _lines_from_cart(db, user.id, cart_ids)
            if not consumed:
                raise BadRequestError("No valid cart items found.")
            lines = [LineItem(c.product_id, c.quantity, c.product.price_cents) for c in consumed]
        else:
            lines = _lines_from_details(db, order_details or [])
            if not lines:
                raise BadRequestError("Order details are required when cart IDs are not provided.")

        order = Order(
            user_id=user.id,
            user_address_id=user_address_id,
            total_price_cents=sum(line.subtotal_cents for line in lines),
            status=status or OrderStatus.PENDING,
        )
        order.details = [
            OrderDetail(product_id=line.product_id, quantity=line.quantity, price_cents=line.price_cents)
            for line in lines
        ]
        if payment_proof is not None:
            stored_proof = storage.store_payment_proof(payment_proof)
            order.payment_proof = stored_proof
        db.add(order)
        for cart in consumed:
            db.delete(cart)
        db.commit()
    except StorefrontError:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        _discard_proof(stored_proof)
        logger.error("Failed to create order for user %s: %s", user_id, e, exc_info=True)
        raise OperationFailed(f"Failed to create order: {e}") from e

    db.refresh(order)
    logger.info(
        "Created order %s for user %s: %d line items, total %d cents%s",
        order.id, user.id, len(lines), order.total_price_cents,
        f", consumed cart rows {[c.id for c in consumed]}" if consumed else "",
    )
    return order


def _discard_proof(url: Optional[str]) -> None:
    """Remove a stored proof; failures are logged, not raised."""
    if not url:
        return
    try:
        storage.remove_objects([storage.object_key(url)])
    except Exception as e:
        logger.warning("Could not remove payment proof %s: %s", url, e)


def get_order(db: Session, order_id: int, owner_id: Optional[int] = None) -> Order:
    order = db.get(Order, order_id)
    if order is None:
        raise NotFoundError("Order not found.")
    if owner_id is not None and order.user_id != owner_id:
        raise ForbiddenError("Forbidden")
    return order


def update_order(
    db: Session,
    order: Order,
    *,
    user_address_id: Optional[int] = None,
    status: Optional[OrderStatus] = None,
    payment_proof: Optional[storage.Upload] = None,
) -> Order:
    if payment_proof is not None:
        storage.validate_upload(payment_proof, 'payment_proof', storage.PAYMENT_PROOF_TYPES)
    if user_address_id is not None:
        _shipping_address(db, order.user_id, user_address_id)

    previous_proof = order.payment_proof
    stored_proof: Optional[str] = None
    try:
        if user_address_id is not None:
            order.user_address_id = user_address_id
        if status is not None:
            order.status = status
        if payment_proof is not None:
            stored_proof = storage.store_payment_proof(payment_proof)
            order.payment_proof = stored_proof
        db.commit()
    except Exception as e:
        db.rollback()
        _discard_proof(stored_proof)
        logger.error("Failed to update order %s: %s", order.id, e, exc_info=True)
        raise OperationFailed(f"Failed to update order: {e}") from e

    if stored_proof and previous_proof:
        _discard_proof(previous_proof)
    db.refresh(order)
    logger.info("Updated order %s (status=%s)", order.id, order.status.value)
    return order


def delete_order(db: Session, order: Order) -> None:
    if order.status not in DELETABLE_ORDER_STATUSES:
        logger.warning("Refused to delete order %s in status %s", order.id, order.status.value)
        raise ConflictError("Cannot delete orders that are paid, shipped, or completed.")
    order_id, proof = order.id, order.payment_proof
    try:
        db.delete(order)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error("Failed to delete order %s: %s", order_id, e, exc_info=True)
        raise OperationFailed(f"Failed to delete order: {e}") from e

    _discard_proof(proof)
    logger.info("Deleted order %s", order_id)
