from fastapi import APIRouter, Depends, HTTPException
from typing import Optional
from sqlalchemy import select
from sqlalchemy.orm import Session

from storefront.api.deps import PageParams, get_db, page_params, require_admin
from storefront.core.responses import Envelope, Paginated, paginate
from storefront.db.models import GuestMessage
from storefront.schemas import GuestMessageCreate, GuestMessageRead, GuestMessageUpdate

router = APIRouter()
admin_router = APIRouter(dependencies=[Depends(require_admin)])

def _get(db: Session, message_id: int) -> GuestMessage:
    obj = db.get(GuestMessage, message_id)
    if not obj: raise HTTPException(status_code=404, detail="Guest message not found.")
    return obj

@router.post("", response_model=Envelope[GuestMessageRead], status_code=201)
def send_message(payload: GuestMessageCreate, db: Session = Depends(get_db)):
    obj = GuestMessage(name=payload.name, email=str(payload.email), message=payload.message)
    db.add(obj); db.commit(); db.refresh(obj)
    return Envelope(data=GuestMessageRead.model_validate(obj), message="Message sent successfully.")

@admin_router.get("", response_model=Paginated[GuestMessageRead])
def list_messages(db: Session = Depends(get_db), pg: PageParams = Depends(page_params), is_read: Optional[bool] = None):
    stmt = select(GuestMessage)
    if is_read is not None: stmt = stmt.where(GuestMessage.is_read.is_(is_read))
    stmt = stmt.order_by(GuestMessage.created_at.desc(), GuestMessage.id.desc())
    return paginate(db, stmt, GuestMessageRead, pg.page, pg.per_page, "Guest messages retrieved successfully.")

@admin_router.get("/{message_id}", response_model=Envelope[GuestMessageRead])
def show_message(message_id: int, db: Session = Depends(get_db)):
    return Envelope(data=GuestMessageRead.model_validate(_get(db, message_id)), message="Guest message retrieved successfully.")

@admin_router.put("/{message_id}", response_model=Envelope[GuestMessageRead])
@admin_router.patch("/{message_id}", response_model=Envelope[GuestMessageRead])
def update_message(message_id: int, payload: GuestMessageUpdate, db: Session = Depends(get_db)):
    obj = _get(db, message_id)
    obj.is_read = payload.is_read
    db.add(obj); db.commit(); db.refresh(obj)
    return Envelope(data=GuestMessageRead.model_validate(obj), message="Guest message updated successfully.")

@admin_router.delete("/{message_id}", response_model=Envelope)
def delete_message(message_id: int, db: Session = Depends(get_db)):
    db.delete(_get(db, message_id)); db.commit()
    return Envelope(message="Guest message deleted successfully.")
