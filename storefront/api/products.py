import logging
from fastapi import APIRouter, Depends, HTTPException, UploadFile, File
from typing import Optional
from sqlalchemy.orm import Session
from sqlalchemy import select, or_, func
from storefront.api.deps import PageParams, get_db, page_params, require_admin
from storefront.core.responses import Envelope, Paginated, paginate
from storefront.db import models
from storefront.schemas import ProductCreate, ProductUpdate, ProductRead
from storefront.services import storage

logger = logging.getLogger(__name__)

router = APIRouter()
admin_router = APIRouter(dependencies=[Depends(require_admin)])

SORTS = {
    'price-asc': models.Product.price_cents.asc(),
    'price-desc': models.Product.price_cents.desc(),
    'name-asc': models.Product.name.asc(),
    'name-desc': models.Product.name.desc(),
    'newest': models.Product.created_at.desc(),
}

def _get(db: Session, product_id: int) -> models.Product:
    obj = db.get(models.Product, product_id)
    if not obj: raise HTTPException(status_code=404, detail='Product not found.')
    return obj

def _check_category(db: Session, category_id: Optional[int]):
    if category_id is not None and not db.get(models.Category, category_id):
        raise HTTPException(status_code=404, detail='Category not found.')

@router.get('', response_model=Paginated[ProductRead])
@admin_router.get('', response_model=Paginated[ProductRead])
def list_products(db: Session = Depends(get_db), pg: PageParams = Depends(page_params),
                  search: Optional[str] = None, category_id: Optional[int] = None, sort: Optional[str] = None):
    stmt = select(models.Product)
    if search:
        like = f"%{search.lower()}%"
        stmt = stmt.where(or_(func.lower(models.Product.name).like(like), func.lower(models.Product.description).like(like)))
    if category_id is not None: stmt = stmt.where(models.Product.category_id == category_id)
    stmt = stmt.order_by(SORTS.get(sort, models.Product.created_at.desc()), models.Product.id.desc())
    return paginate(db, stmt, ProductRead, pg.page, pg.per_page, 'Products retrieved successfully.')

@router.get('/{product_id}', response_model=Envelope[ProductRead])
@admin_router.get('/{product_id}', response_model=Envelope[ProductRead])
def get_product(product_id: int, db: Session = Depends(get_db)):
    return Envelope(data=ProductRead.model_validate(_get(db, product_id)), message='Product retrieved successfully.')

@admin_router.post('', response_model=Envelope[ProductRead], status_code=201)
def create_product(payload: ProductCreate, db: Session = Depends(get_db)):
    _check_category(db, payload.category_id)
    obj = models.Product(**payload.model_dump())
    db.add(obj); db.commit(); db.refresh(obj)
    logger.info("Created product %s", obj.id)
    return Envelope(data=ProductRead.model_validate(obj), message='Product created successfully.')

@admin_router.put('/{product_id}', response_model=Envelope[ProductRead])
@admin_router.patch('/{product_id}', response_model=Envelope[ProductRead])
def update_product(product_id: int, payload: ProductUpdate, db: Session = Depends(get_db)):
    obj = _get(db, product_id)
    fields = payload.model_dump(exclude_unset=True)
    if 'category_id' in fields: _check_category(db, fields['category_id'])
    for k, v in fields.items(): setattr(obj, k, v)
    db.add(obj); db.commit(); db.refresh(obj)
    return Envelope(data=ProductRead.model_validate(obj), message='Product updated successfully.')

@admin_router.post('/{product_id}/image', response_model=Envelope[ProductRead])
async def upload_product_image(product_id: int, file: UploadFile = File(...), db: Session = Depends(get_db)):
    obj = _get(db, product_id)
    upload = storage.Upload(filename=file.filename or '', content_type=file.content_type or 'application/octet-stream', data=await file.read())
    storage.validate_upload(upload, 'image', storage.PRODUCT_IMAGE_TYPES)
    old_key = obj.image_key
    obj.image_key, obj.image_url = storage.store_product_image(upload)
    db.add(obj); db.commit(); db.refresh(obj)
    if old_key: storage.remove_objects([old_key])
    return Envelope(data=ProductRead.model_validate(obj), message='Product image uploaded successfully.')

@admin_router.delete('/{product_id}', response_model=Envelope)
def delete_product(product_id: int, db: Session = Depends(get_db)):
    obj = _get(db, product_id)
    if db.query(models.OrderDetail).filter(models.OrderDetail.product_id == obj.id).first():
        raise HTTPException(status_code=409, detail='Cannot delete product that appears in orders.')
    image_key = obj.image_key
    db.delete(obj); db.commit()
    if image_key: storage.remove_objects([image_key])
    logger.info("Deleted product %s", product_id)
    return Envelope(message='Product deleted successfully.')
