# provide dataclass models

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import StrEnum
from typing import Literal, Optional, Tuple

Role = Literal["customer", "admin"]


class OrderStatus(StrEnum):
    PENDING = "pending"
    PAID = "paid"
    SHIPPED = "shipped"
    CANCELLED = "cancelled"


class PaymentMethod(StrEnum):
    COD = "cod"
    PAYPAL = "paypal"
    DEBIT = "debit"
    CC = "cc"


@dataclass(frozen=True)
class User:
    id: int
    username: str
    email: str
    role: Role
    pwd_hash: str = field(repr=False)
    pwd_salt: str = field(repr=False)
    created_at: datetime


@dataclass(frozen=True)
class Category:
    id: int
    name: str
    description: str


@dataclass(frozen=True)
class Product:
    id: int
    category_id: int
    name: str
    description: str
    price: Decimal
    stock: int
    image_url: str
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class CartItem:
    id: int
    cart_id: int
    product_id: int
    quantity: int


@dataclass(frozen=True)
class Cart:
    id: int
    user_id: int
    created_at: datetime
    items: Tuple[CartItem, ...] = ()


@dataclass(frozen=True)
class OrderItem:
    id: int
    order_id: int
    product_id: int
    quantity: int
    price: Decimal  # unit price at time of purchase

    @property
    def subtotal(self) -> Decimal:
        return self.price * self.quantity


@dataclass(frozen=True)
class Order:
    id: int
    user_id: int
    status: OrderStatus
    total_price: Decimal
    payment_method: PaymentMethod
    bank_name: Optional[str]
    created_at: datetime
    updated_at: datetime
    items: Tuple[OrderItem, ...] = ()


@dataclass(frozen=True)
class CartLine:
    """A cart item together with the product it reserves."""

    item: CartItem
    product: Product

    @property
    def subtotal(self) -> Decimal:
        return self.product.price * self.item.quantity


class ShopRequestStatus(StrEnum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


@dataclass(frozen=True)
class Feedback:
    id: int
    user_id: int
    product_id: int
    comment: str
    rating: int  # 1..5
    created_at: datetime
    username: str = ""


@dataclass(frozen=True)
class ShopRequest:
    id: int
    user_id: int
    shop_name: str
    description: str
    status: ShopRequestStatus
    rejection_reason: str
    created_at: datetime
    updated_at: datetime
    username: str = ""


@dataclass(frozen=True)
class Shop:
    id: int
    user_id: int
    request_id: Optional[int]
    shop_name: str
    description: str
    is_active: bool
    created_at: datetime
    updated_at: datetime
