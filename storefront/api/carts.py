from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import delete, select
from sqlalchemy.orm import Session
from typing import List, Optional

from storefront.api.deps import PageParams, get_current_user, get_db, page_params, require_admin
from storefront.core.responses import Envelope, Paginated, paginate
from storefront.db.models import Cart, Product, User
from storefront.schemas import MAX_QUANTITY, CartCreate, CartRead, CartUpdate

router = APIRouter()
admin_router = APIRouter(dependencies=[Depends(require_admin)])

def _get(db: Session, cart_id: int, owner: Optional[User] = None) -> Cart:
    cart = db.get(Cart, cart_id)
    if not cart:
        raise HTTPException(status_code=404, detail="Cart item not found.")
    if owner is not None and cart.user_id != owner.id:
        raise HTTPException(status_code=403, detail="Forbidden")
    return cart

@router.get("", response_model=Envelope[List[CartRead]])
def get_my_cart(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    rows = db.execute(select(Cart).where(Cart.user_id == user.id).order_by(Cart.id)).scalars().all()
    return Envelope(data=[CartRead.model_validate(c) for c in rows], message="Carts retrieved successfully.")

@router.get("/{cart_id}", response_model=Envelope[CartRead])
def get_cart_item(cart_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return Envelope(data=CartRead.model_validate(_get(db, cart_id, user)), message="Cart retrieved successfully.")

@router.post("", response_model=Envelope[CartRead], status_code=201)
def add_item(payload: CartCreate, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    if not db.get(Product, payload.product_id):
        raise HTTPException(status_code=404, detail="Product not found.")
    # one row per product; adding again bumps the quantity
    cart = db.execute(
        select(Cart).where(Cart.user_id == user.id, Cart.product_id == payload.product_id)
    ).scalar_one_or_none()
    if cart:
        cart.quantity = min(MAX_QUANTITY, cart.quantity + payload.quantity)
    else:
        cart = Cart(user_id=user.id, product_id=payload.product_id, quantity=payload.quantity)
    db.add(cart); db.commit(); db.refresh(cart)
    return Envelope(data=CartRead.model_validate(cart), message="Item added to cart.")

@router.put("/{cart_id}", response_model=Envelope[CartRead])
@router.patch("/{cart_id}", response_model=Envelope[CartRead])
def update_item(cart_id: int, payload: CartUpdate, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    cart = _get(db, cart_id, user)
    cart.quantity = payload.quantity
    db.add(cart); db.commit(); db.refresh(cart)
    return Envelope(data=CartRead.model_validate(cart), message="Cart updated successfully.")

@router.delete("/{cart_id}", response_model=Envelope)
def remove_item(cart_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    db.delete(_get(db, cart_id, user)); db.commit()
    return Envelope(message="Item removed from cart.")

@router.delete("", response_model=Envelope)
def clear(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    db.execute(delete(Cart).where(Cart.user_id == user.id)); db.commit()
    return Envelope(message="Cart cleared successfully.")

@admin_router.get("", response_model=Paginated[CartRead])
def admin_list_carts(db: Session = Depends(get_db), pg: PageParams = Depends(page_params), user_id: Optional[int] = None):
    stmt = select(Cart)
    if user_id is not None: stmt = stmt.where(Cart.user_id == user_id)
    stmt = stmt.order_by(Cart.id.desc())
    return paginate(db, stmt, CartRead, pg.page, pg.per_page, "Carts retrieved successfully.")

@admin_router.get("/{cart_id}", response_model=Envelope[CartRead])
def admin_show_cart(cart_id: int, db: Session = Depends(get_db)):
    return Envelope(data=CartRead.model_validate(_get(db, cart_id)), message="Cart retrieved successfully.")
