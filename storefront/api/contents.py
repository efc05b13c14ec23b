from fastapi import APIRouter, Body, Depends, HTTPException
from typing import Any, Dict
from sqlalchemy.orm import Session

from storefront.api.deps import get_db, require_admin
from storefront.core.responses import Envelope
from storefront.schemas import ContentRead
from storefront.store import content_store

router = APIRouter()
admin_router = APIRouter(dependencies=[Depends(require_admin)])

@router.get("", response_model=Envelope[Dict[str, Any]])
def list_contents(db: Session = Depends(get_db)):
    return Envelope(data=content_store.get_all(db), message="Contents retrieved successfully.")

@router.get("/{key}", response_model=Envelope[ContentRead])
def get_content(key: str, db: Session = Depends(get_db)):
    value = content_store.get(db, key)
    if value is None:
        raise HTTPException(status_code=404, detail="Content not found.")
    return Envelope(data=ContentRead(key=key, value=value), message="Content retrieved successfully.")

@admin_router.put("/{key}", response_model=Envelope[ContentRead])
def save_content(key: str, value: Dict[str, Any] = Body(...), db: Session = Depends(get_db)):
    row = content_store.save(db, key, value)
    return Envelope(data=ContentRead(key=row.key, value=row.value), message="Content saved successfully.")

@admin_router.delete("/{key}", response_model=Envelope)
def delete_content(key: str, db: Session = Depends(get_db)):
    if not content_store.delete(db, key):
        raise HTTPException(status_code=404, detail="Content not found.")
    return Envelope(message="Content deleted successfully.")
