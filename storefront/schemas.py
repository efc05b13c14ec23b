from pydantic import BaseModel, EmailStr, Field, model_validator
from typing import Any, Dict, List, Optional
from datetime import datetime
from storefront.db.models import OrderStatus, Role

MAX_PRICE_CENTS = 99_999_999
MAX_QUANTITY = 999

# --- auth / users ---
class RegisterPayload(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(min_length=8)
class LoginPayload(BaseModel):
    email: EmailStr
    password: str
class UserRead(BaseModel):
    id: int
    name: str
    email: EmailStr
    role: Role
    created_at: datetime
    class Config: from_attributes = True
class TokenRead(BaseModel):
    access_token: str
    token_type: str = 'bearer'
    expires_at: datetime
    user: UserRead
class UserCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(min_length=8)
    role: Role = Role.USER
class UserUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(default=None, min_length=8)
    role: Optional[Role] = None

# --- catalog ---
class CategoryBase(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    description: Optional[str] = ''
class CategoryCreate(CategoryBase): pass
class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    description: Optional[str] = None
class CategoryRead(CategoryBase):
    id: int
    class Config: from_attributes = True
class ProductBase(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = ''
    price_cents: int = Field(ge=0, le=MAX_PRICE_CENTS)
    stock: int = Field(default=0, ge=0)
    category_id: Optional[int] = None
class ProductCreate(ProductBase): pass
class ProductUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    price_cents: Optional[int] = Field(default=None, ge=0, le=MAX_PRICE_CENTS)
    stock: Optional[int] = Field(default=None, ge=0)
    category_id: Optional[int] = None
class ProductRead(ProductBase):
    id: int
    image_url: Optional[str] = None
    category: Optional[CategoryRead] = None
    created_at: datetime
    class Config: from_attributes = True
class ProductBrief(BaseModel):
    id: int
    name: str
    price_cents: int
    image_url: Optional[str] = None
    class Config: from_attributes = True

# --- cart ---
class CartCreate(BaseModel):
    product_id: int
    quantity: int = Field(default=1, ge=1, le=MAX_QUANTITY)
class CartUpdate(BaseModel):
    quantity: int = Field(ge=1, le=MAX_QUANTITY)
class CartRead(BaseModel):
    id: int
    user_id: int
    product_id: int
    quantity: int
    product: ProductBrief
    class Config: from_attributes = True

# --- addresses ---
class UserAddressBase(BaseModel):
    label: Optional[str] = Field(default='', max_length=120)
    recipient_name: str = Field(min_length=1, max_length=255)
    phone: str = Field(min_length=5, max_length=32)
    address_line_1: str = Field(min_length=1, max_length=255)
    address_line_2: Optional[str] = Field(default='', max_length=255)
    city: str = Field(min_length=1, max_length=120)
    state: str = Field(min_length=1, max_length=120)
    postal_code: str = Field(min_length=1, max_length=32)
    country: str = Field(default='Indonesia', max_length=120)
    is_default: bool = False
class UserAddressCreate(UserAddressBase):
    # only honoured on the admin surface
    user_id: Optional[int] = None
class UserAddressUpdate(BaseModel):
    label: Optional[str] = Field(default=None, max_length=120)
    recipient_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    phone: Optional[str] = Field(default=None, min_length=5, max_length=32)
    address_line_1: Optional[str] = Field(default=None, min_length=1, max_length=255)
    address_line_2: Optional[str] = Field(default=None, max_length=255)
    city: Optional[str] = Field(default=None, min_length=1, max_length=120)
    state: Optional[str] = Field(default=None, min_length=1, max_length=120)
    postal_code: Optional[str] = Field(default=None, min_length=1, max_length=32)
    country: Optional[str] = Field(default=None, max_length=120)
    is_default: Optional[bool] = None
class UserAddressRead(UserAddressBase):
    id: int
    user_id: int
    created_at: datetime
    class Config: from_attributes = True

# --- orders ---
class OrderDetailIn(BaseModel):
    product_id: int
    quantity: int = Field(ge=1, le=MAX_QUANTITY)
    price_cents: int = Field(ge=0, le=MAX_PRICE_CENTS)
class OrderCreate(BaseModel):
    user_id: Optional[int] = None
    user_address_id: int
    cart_ids: Optional[List[int]] = Field(default=None, min_length=1)
    order_details: Optional[List[OrderDetailIn]] = Field(default=None, min_length=1)
    status: Optional[OrderStatus] = None

    @model_validator(mode='after')
    def _needs_line_items(self):
        if not self.cart_ids and not self.order_details:
            raise ValueError('Order details are required when cart IDs are not provided.')
        return self
class OrderUpdate(BaseModel):
    user_address_id: Optional[int] = None
    status: Optional[OrderStatus] = None
class OrderDetailRead(BaseModel):
    id: int
    order_id: int
    product_id: int
    quantity: int
    price_cents: int
    product: Optional[ProductBrief] = None
    class Config: from_attributes = True
class OrderRead(BaseModel):
    id: int
    user_id: int
    user_address_id: int
    total_price_cents: int
    payment_proof: Optional[str] = None
    status: OrderStatus
    created_at: datetime
    updated_at: datetime
    shipping_address: Optional[UserAddressRead] = None
    details: List[OrderDetailRead] = []
    class Config: from_attributes = True
class OrderSummary(BaseModel):
    id: int
    total_price_cents: int
    status: OrderStatus
    created_at: datetime
    class Config: from_attributes = True

class UserDetailRead(UserRead):
    addresses: List[UserAddressRead] = []
    default_address: Optional[UserAddressRead] = None
    orders: List[OrderSummary] = []

# --- guest messages ---
class GuestMessageCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    message: str = Field(min_length=1, max_length=5000)
class GuestMessageUpdate(BaseModel):
    is_read: bool
class GuestMessageRead(GuestMessageCreate):
    id: int
    is_read: bool
    created_at: datetime
    class Config: from_attributes = True

# --- statistics ---
class GuestMessageStats(BaseModel):
    total: int
    unread: int
    read: int
class OverviewStats(BaseModel):
    users: int
    products: int
    orders: int
    revenue_cents: int
    orders_by_status: Dict[str, int]

# --- contents ---
class ContentRead(BaseModel):
    key: str
    value: Any
