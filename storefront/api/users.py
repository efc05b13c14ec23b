import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from storefront.api.deps import PageParams, get_current_user, get_db, page_params, require_admin
from storefront.core.errors import ConflictError
from storefront.core.responses import Envelope, Paginated, paginate
from storefront.core.security import hash_password
from storefront.db.models import DELETABLE_ORDER_STATUSES, Order, Role, User
from storefront.schemas import UserCreate, UserDetailRead, UserRead, UserUpdate

logger = logging.getLogger(__name__)

router = APIRouter()
admin_router = APIRouter(dependencies=[Depends(require_admin)])

RECENT_ORDERS = 5

SORTS = {
    'name-asc': User.name.asc(),
    'name-desc': User.name.desc(),
    'created-asc': User.created_at.asc(),
    'created-desc': User.created_at.desc(),
}


def _detail(user: User, recent_only: bool = False) -> UserDetailRead:
    detail = UserDetailRead.model_validate(user)
    if recent_only:
        detail.orders = detail.orders[:RECENT_ORDERS]
    return detail


def _apply_update(db: Session, user: User, payload: UserUpdate, allow_role: bool) -> User:
    fields = payload.model_dump(exclude_unset=True)
    if not allow_role:
        fields.pop('role', None)
    if 'email' in fields:
        fields['email'] = str(fields['email'])
        taken = db.query(User).filter(User.email == fields['email'], User.id != user.id).first()
        if taken:
            raise HTTPException(status_code=409, detail='Email already registered')
    if 'password' in fields:
        user.password_hash = hash_password(fields.pop('password'))
    if 'role' in fields:
        fields['role'] = fields['role'].value
    for k, v in fields.items(): setattr(user, k, v)
    db.add(user); db.commit(); db.refresh(user)
    return user


# --- storefront: the signed-in user ---

@router.get('/me', response_model=Envelope[UserDetailRead])
def show_me(user: User = Depends(get_current_user)):
    return Envelope(data=_detail(user, recent_only=True), message='User retrieved successfully.')


@router.put('/me', response_model=Envelope[UserDetailRead])
def update_me(payload: UserUpdate, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    user = _apply_update(db, user, payload, allow_role=False)
    return Envelope(data=_detail(user, recent_only=True), message='User updated successfully.')


# --- admin ---

@admin_router.get('', response_model=Paginated[UserRead])
def list_users(db: Session = Depends(get_db), pg: PageParams = Depends(page_params),
               search: Optional[str] = None, role: Optional[Role] = None, sort: Optional[str] = None):
    stmt = select(User)
    if search:
        like = f"%{search.lower()}%"
        stmt = stmt.where(or_(func.lower(User.name).like(like), func.lower(User.email).like(like)))
    if role is not None:
        stmt = stmt.where(User.role == role.value)
    stmt = stmt.order_by(SORTS.get(sort, User.created_at.desc()), User.id.desc())
    return paginate(db, stmt, UserRead, pg.page, pg.per_page, 'Users retrieved successfully.')


@admin_router.post('', response_model=Envelope[UserRead], status_code=201)
def create_user(payload: UserCreate, db: Session = Depends(get_db)):
    if db.query(User).filter(User.email == str(payload.email)).first():
        raise HTTPException(status_code=409, detail='Email already registered')
    user = User(name=payload.name, email=str(payload.email),
                password_hash=hash_password(payload.password), role=payload.role.value)
    db.add(user); db.commit(); db.refresh(user)
    logger.info("Admin created user %s (%s)", user.id, user.role)
    return Envelope(data=UserRead.model_validate(user), message='User created successfully.')


@admin_router.get('/{user_id}', response_model=Envelope[UserDetailRead])
def show_user(user_id: int, db: Session = Depends(get_db)):
    user = db.get(User, user_id)
    if not user: raise HTTPException(status_code=404, detail='User not found.')
    return Envelope(data=_detail(user), message='User retrieved successfully.')


@admin_router.put('/{user_id}', response_model=Envelope[UserDetailRead])
@admin_router.patch('/{user_id}', response_model=Envelope[UserDetailRead])
def update_user(user_id: int, payload: UserUpdate, db: Session = Depends(get_db)):
    user = db.get(User, user_id)
    if not user: raise HTTPException(status_code=404, detail='User not found.')
    user = _apply_update(db, user, payload, allow_role=True)
    return Envelope(data=_detail(user), message='User updated successfully.')


@admin_router.delete('/{user_id}', response_model=Envelope)
def delete_user(user_id: int, db: Session = Depends(get_db)):
    user = db.get(User, user_id)
    if not user: raise HTTPException(status_code=404, detail='User not found.')
    if user.role == Role.ADMIN.value:
        admins = db.query(User).filter(User.role == Role.ADMIN.value).count()
        if admins <= 1:
            raise HTTPException(status_code=403, detail='Cannot delete the last admin user.')
    # settled orders must not cascade away with their user
    settled = db.query(Order).filter(Order.user_id == user.id, Order.status.notin_(DELETABLE_ORDER_STATUSES)).first()
    if settled:
        logger.warning("Refused to delete user %s: has order %s in status %s", user.id, settled.id, settled.status.value)
        raise ConflictError('Cannot delete user with paid, shipped, or completed orders.')
    db.delete(user); db.commit()
    logger.info("Admin deleted user %s", user_id)
    return Envelope(message='User deleted successfully.')
