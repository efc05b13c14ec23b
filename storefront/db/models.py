from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Integer, String, Text, Boolean, DateTime, ForeignKey, BigInteger, Index, JSON, Enum as SAEnum, text
from datetime import datetime
from enum import Enum
from typing import Optional
from storefront.db.session import Base


def _utcnow() -> datetime:
    return datetime.utcnow()


class Role(str, Enum):
    ADMIN = "admin"
    USER = "user"


class OrderStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    SHIPPED = "shipped"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Only these may be deleted; everything else has money attached.
DELETABLE_ORDER_STATUSES = (OrderStatus.PENDING, OrderStatus.CANCELLED)
REVENUE_ORDER_STATUSES = (OrderStatus.PAID, OrderStatus.SHIPPED, OrderStatus.COMPLETED)


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(DateTime(), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(), default=_utcnow, onupdate=_utcnow)


class User(TimestampMixin, Base):
    __tablename__ = 'users'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(32), default=Role.USER.value)

    addresses = relationship('UserAddress', back_populates='user', cascade='all, delete-orphan',
                             order_by=lambda: [UserAddress.is_default.desc(), UserAddress.id.desc()])
    carts = relationship('Cart', back_populates='user', cascade='all, delete-orphan')
    orders = relationship('Order', back_populates='user', cascade='all, delete-orphan',
                          order_by='Order.id.desc()')

    @property
    def default_address(self) -> Optional['UserAddress']:
        return next((a for a in self.addresses if a.is_default), None)


class Category(TimestampMixin, Base):
    __tablename__ = 'categories'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(120), unique=True, nullable=False)
    description: Mapped[str] = mapped_column(Text, default='')
    products = relationship('Product', back_populates='category')


class Product(TimestampMixin, Base):
    __tablename__ = 'products'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    category_id: Mapped[Optional[int]] = mapped_column(ForeignKey('categories.id'), nullable=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, default='')
    price_cents: Mapped[int] = mapped_column(BigInteger, nullable=False)
    stock: Mapped[int] = mapped_column(Integer, default=0)
    image_key: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    image_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    category = relationship('Category', back_populates='products')
    carts = relationship('Cart', back_populates='product', cascade='all, delete-orphan')


class Cart(TimestampMixin, Base):
    __tablename__ = 'carts'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey('users.id', ondelete='CASCADE'), index=True)
    product_id: Mapped[int] = mapped_column(ForeignKey('products.id', ondelete='CASCADE'))
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    user = relationship('User', back_populates='carts')
    product = relationship('Product', back_populates='carts')


class UserAddress(TimestampMixin, Base):
    __tablename__ = 'user_addresses'
    # Backstop for the single-default rule enforced in services.addresses.
    __table_args__ = (
        Index('uq_user_addresses_one_default', 'user_id', unique=True,
              postgresql_where=text('is_default'), sqlite_where=text('is_default = 1')),
    )
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey('users.id', ondelete='CASCADE'), index=True)
    label: Mapped[str] = mapped_column(String(120), default='')
    recipient_name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(32), nullable=False)
    address_line_1: Mapped[str] = mapped_column(String(255), nullable=False)
    address_line_2: Mapped[str] = mapped_column(String(255), default='')
    city: Mapped[str] = mapped_column(String(120), nullable=False)
    state: Mapped[str] = mapped_column(String(120), nullable=False)
    postal_code: Mapped[str] = mapped_column(String(32), nullable=False)
    country: Mapped[str] = mapped_column(String(120), default='Indonesia')
    is_default: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    user = relationship('User', back_populates='addresses')
    orders = relationship('Order', back_populates='shipping_address')


class Order(TimestampMixin, Base):
    __tablename__ = 'orders'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey('users.id', ondelete='CASCADE'), index=True)
    user_address_id: Mapped[int] = mapped_column(ForeignKey('user_addresses.id'), index=True)
    total_price_cents: Mapped[int] = mapped_column(BigInteger, nullable=False)
    payment_proof: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    status: Mapped[OrderStatus] = mapped_column(SAEnum(OrderStatus, name='order_status'), default=OrderStatus.PENDING)
    user = relationship('User', back_populates='orders')
    shipping_address = relationship('UserAddress', back_populates='orders')
    details = relationship('OrderDetail', back_populates='order', cascade='all, delete-orphan',
                           order_by='OrderDetail.id')


class OrderDetail(TimestampMixin, Base):
    __tablename__ = 'order_details'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    order_id: Mapped[int] = mapped_column(ForeignKey('orders.id', ondelete='CASCADE'), index=True)
    product_id: Mapped[int] = mapped_column(ForeignKey('products.id'))
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    price_cents: Mapped[int] = mapped_column(BigInteger, nullable=False)
    order = relationship('Order', back_populates='details')
    product = relationship('Product')


class Content(TimestampMixin, Base):
    __tablename__ = 'contents'
    key: Mapped[str] = mapped_column(String(191), primary_key=True)
    value: Mapped[dict] = mapped_column(JSON, nullable=False)


class GuestMessage(TimestampMixin, Base):
    __tablename__ = 'guest_messages'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
