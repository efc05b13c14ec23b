from fastapi import APIRouter, Depends, Request
from typing import Optional
from sqlalchemy import select
from sqlalchemy.orm import Session

from storefront.api.deps import PageParams, get_current_user, get_db, page_params, parse_payload, read_payload, require_admin
from storefront.core.errors import ForbiddenError, ValidationFailed
from storefront.core.responses import Envelope, Paginated, paginate
from storefront.db.models import Order, OrderStatus, Role, User
from storefront.schemas import OrderCreate, OrderRead, OrderUpdate
from storefront.services import orders as order_service

router = APIRouter()
admin_router = APIRouter(dependencies=[Depends(require_admin)])

def _list(db: Session, pg: PageParams, user_id: Optional[int], status: Optional[OrderStatus]) -> Paginated[OrderRead]:
    stmt = select(Order)
    if user_id is not None: stmt = stmt.where(Order.user_id == user_id)
    if status is not None: stmt = stmt.where(Order.status == status)
    stmt = stmt.order_by(Order.created_at.desc(), Order.id.desc())
    return paginate(db, stmt, OrderRead, pg.page, pg.per_page, "Orders retrieved successfully.")

def _place(db: Session, user_id: int, payload: OrderCreate, proof) -> Envelope[OrderRead]:
    order = order_service.place_order(
        db,
        user_id=user_id,
        user_address_id=payload.user_address_id,
        cart_ids=payload.cart_ids,
        order_details=payload.order_details,
        status=payload.status,
        payment_proof=proof,
    )
    return Envelope(data=OrderRead.model_validate(order), message="Order created successfully.")


# --- storefront ---

@router.get("", response_model=Paginated[OrderRead])
def list_my_orders(user: User = Depends(get_current_user), db: Session = Depends(get_db),
                   pg: PageParams = Depends(page_params), status: Optional[OrderStatus] = None):
    return _list(db, pg, user.id, status)

@router.post("", response_model=Envelope[OrderRead], status_code=201)
async def place_my_order(request: Request, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    data, proof = await read_payload(request, "payment_proof")
    payload = parse_payload(OrderCreate, data)
    # customers always order for themselves
    return _place(db, user.id, payload, proof)

@router.get("/{order_id}", response_model=Envelope[OrderRead])
def show_my_order(order_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    order = order_service.get_order(db, order_id, owner_id=user.id)
    return Envelope(data=OrderRead.model_validate(order), message="Order retrieved successfully.")

@router.put("/{order_id}", response_model=Envelope[OrderRead])
@router.patch("/{order_id}", response_model=Envelope[OrderRead])
@router.post("/{order_id}", response_model=Envelope[OrderRead])  # multipart clients spoof PUT via _method
async def update_my_order(order_id: int, request: Request, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    order = order_service.get_order(db, order_id, owner_id=user.id)
    data, proof = await read_payload(request, "payment_proof")
    payload = parse_payload(OrderUpdate, data)
    if payload.status is not None and user.role != Role.ADMIN.value:
        raise ForbiddenError("The order status can only be changed by an administrator.")
    order = order_service.update_order(db, order, user_address_id=payload.user_address_id,
                                       status=payload.status, payment_proof=proof)
    return Envelope(data=OrderRead.model_validate(order), message="Order updated successfully.")


# --- admin ---

@admin_router.get("", response_model=Paginated[OrderRead])
def list_orders(db: Session = Depends(get_db), pg: PageParams = Depends(page_params),
                user_id: Optional[int] = None, status: Optional[OrderStatus] = None):
    return _list(db, pg, user_id, status)

@admin_router.post("", response_model=Envelope[OrderRead], status_code=201)
async def create_order(request: Request, db: Session = Depends(get_db)):
    data, proof = await read_payload(request, "payment_proof")
    payload = parse_payload(OrderCreate, data)
    if payload.user_id is None:
        raise ValidationFailed({"user_id": ["The user is required."]})
    return _place(db, payload.user_id, payload, proof)

@admin_router.get("/{order_id}", response_model=Envelope[OrderRead])
def show_order(order_id: int, db: Session = Depends(get_db)):
    order = order_service.get_order(db, order_id)
    return Envelope(data=OrderRead.model_validate(order), message="Order retrieved successfully.")

@admin_router.put("/{order_id}", response_model=Envelope[OrderRead])
@admin_router.patch("/{order_id}", response_model=Envelope[OrderRead])
@admin_router.post("/{order_id}", response_model=Envelope[OrderRead])
async def update_order(order_id: int, request: Request, db: Session = Depends(get_db)):
    order = order_service.get_order(db, order_id)
    data, proof = await read_payload(request, "payment_proof")
    payload = parse_payload(OrderUpdate, data)
    order = order_service.update_order(db, order, user_address_id=payload.user_address_id,
                                       status=payload.status, payment_proof=proof)
    return Envelope(data=OrderRead.model_validate(order), message="Order updated successfully.")

@admin_router.delete("/{order_id}", response_model=Envelope)
def delete_order(order_id: int, db: Session = Depends(get_db)):
    order_service.delete_order(db, order_service.get_order(db, order_id))
    return Envelope(message="Order deleted successfully.")
