from fastapi import APIRouter, Depends, HTTPException
from typing import Optional
from sqlalchemy import select
from sqlalchemy.orm import Session

from storefront.api.deps import PageParams, get_current_user, get_db, page_params, require_admin
from storefront.core.responses import Envelope, Paginated, paginate
from storefront.db.models import Order, OrderDetail, User
from storefront.schemas import OrderDetailRead

# Line items are written only by order placement; both surfaces are read-only.
router = APIRouter()
admin_router = APIRouter(dependencies=[Depends(require_admin)])

def _list(db: Session, pg: PageParams, order_id: Optional[int], user_id: Optional[int]) -> Paginated[OrderDetailRead]:
    stmt = select(OrderDetail)
    if user_id is not None: stmt = stmt.join(Order).where(Order.user_id == user_id)
    if order_id is not None: stmt = stmt.where(OrderDetail.order_id == order_id)
    stmt = stmt.order_by(OrderDetail.id.desc())
    return paginate(db, stmt, OrderDetailRead, pg.page, pg.per_page, "Order details retrieved successfully.")

def _get(db: Session, detail_id: int) -> OrderDetail:
    obj = db.get(OrderDetail, detail_id)
    if not obj: raise HTTPException(status_code=404, detail="Order detail not found.")
    return obj

@router.get("", response_model=Paginated[OrderDetailRead])
def list_my_order_details(user: User = Depends(get_current_user), db: Session = Depends(get_db),
                          pg: PageParams = Depends(page_params), order_id: Optional[int] = None):
    return _list(db, pg, order_id, user.id)

@router.get("/{detail_id}", response_model=Envelope[OrderDetailRead])
def show_my_order_detail(detail_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    obj = _get(db, detail_id)
    if obj.order.user_id != user.id: raise HTTPException(status_code=403, detail="Forbidden")
    return Envelope(data=OrderDetailRead.model_validate(obj), message="Order detail retrieved successfully.")

@admin_router.get("", response_model=Paginated[OrderDetailRead])
def list_order_details(db: Session = Depends(get_db), pg: PageParams = Depends(page_params), order_id: Optional[int] = None):
    return _list(db, pg, order_id, None)

@admin_router.get("/{detail_id}", response_model=Envelope[OrderDetailRead])
def show_order_detail(detail_id: int, db: Session = Depends(get_db)):
    return Envelope(data=OrderDetailRead.model_validate(_get(db, detail_id)), message="Order detail retrieved successfully.")
