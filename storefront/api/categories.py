from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session
from typing import List
from storefront.api.deps import get_db, require_admin
from storefront.core.responses import Envelope
from storefront.db.models import Category, Product
from storefront.schemas import CategoryCreate, CategoryRead, CategoryUpdate

router = APIRouter()
admin_router = APIRouter(dependencies=[Depends(require_admin)])

def _get(db: Session, category_id: int) -> Category:
    obj = db.get(Category, category_id)
    if not obj: raise HTTPException(status_code=404, detail='Category not found.')
    return obj

@router.get('', response_model=Envelope[List[CategoryRead]])
@admin_router.get('', response_model=Envelope[List[CategoryRead]])
def list_categories(db: Session = Depends(get_db)):
    rows = db.execute(select(Category).order_by(Category.name)).scalars().all()
    return Envelope(data=[CategoryRead.model_validate(c) for c in rows], message='Categories retrieved successfully.')

@router.get('/{category_id}', response_model=Envelope[CategoryRead])
@admin_router.get('/{category_id}', response_model=Envelope[CategoryRead])
def get_category(category_id: int, db: Session = Depends(get_db)):
    return Envelope(data=CategoryRead.model_validate(_get(db, category_id)), message='Category retrieved successfully.')

@admin_router.post('', response_model=Envelope[CategoryRead], status_code=201)
def create_category(payload: CategoryCreate, db: Session = Depends(get_db)):
    if db.query(Category).filter(Category.name == payload.name).first():
        raise HTTPException(status_code=409, detail='Category already exists')
    obj = Category(**payload.model_dump())
    db.add(obj); db.commit(); db.refresh(obj)
    return Envelope(data=CategoryRead.model_validate(obj), message='Category created successfully.')

@admin_router.put('/{category_id}', response_model=Envelope[CategoryRead])
@admin_router.patch('/{category_id}', response_model=Envelope[CategoryRead])
def update_category(category_id: int, payload: CategoryUpdate, db: Session = Depends(get_db)):
    obj = _get(db, category_id)
    fields = payload.model_dump(exclude_unset=True)
    if 'name' in fields and db.query(Category).filter(Category.name == fields['name'], Category.id != obj.id).first():
        raise HTTPException(status_code=409, detail='Category already exists')
    for k, v in fields.items(): setattr(obj, k, v)
    db.add(obj); db.commit(); db.refresh(obj)
    return Envelope(data=CategoryRead.model_validate(obj), message='Category updated successfully.')

@admin_router.delete('/{category_id}', response_model=Envelope)
def delete_category(category_id: int, db: Session = Depends(get_db)):
    obj = _get(db, category_id)
    if db.query(Product).filter(Product.category_id == obj.id).first():
        raise HTTPException(status_code=409, detail='Cannot delete category that still has products.')
    db.delete(obj); db.commit()
    return Envelope(message='Category deleted successfully.')
