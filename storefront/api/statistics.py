from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from storefront.api.deps import get_db, require_admin
from storefront.core.responses import Envelope
from storefront.db.models import REVENUE_ORDER_STATUSES, GuestMessage, Order, OrderStatus, Product, User
from storefront.schemas import GuestMessageStats, OverviewStats

admin_router = APIRouter(dependencies=[Depends(require_admin)])

@admin_router.get("/overview", response_model=Envelope[OverviewStats])
def overview(db: Session = Depends(get_db)):
    by_status = dict(db.execute(select(Order.status, func.count(Order.id)).group_by(Order.status)).all())
    revenue = db.execute(
        select(func.coalesce(func.sum(Order.total_price_cents), 0)).where(Order.status.in_(REVENUE_ORDER_STATUSES))
    ).scalar_one()
    stats = OverviewStats(
        users=db.execute(select(func.count(User.id))).scalar_one(),
        products=db.execute(select(func.count(Product.id))).scalar_one(),
        orders=sum(by_status.values()),
        revenue_cents=int(revenue),
        orders_by_status={s.value: by_status.get(s, 0) for s in OrderStatus},
    )
    return Envelope(data=stats, message="Statistics retrieved successfully.")

@admin_router.get("/guest-messages", response_model=Envelope[GuestMessageStats])
def guest_messages(db: Session = Depends(get_db)):
    total = db.execute(select(func.count(GuestMessage.id))).scalar_one()
    unread = db.execute(select(func.count(GuestMessage.id)).where(GuestMessage.is_read.is_(False))).scalar_one()
    return Envelope(data=GuestMessageStats(total=total, unread=unread, read=total - unread), message="Statistics retrieved successfully.")
