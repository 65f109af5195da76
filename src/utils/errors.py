# domain error taxonomy shared by the db, services and views packages
from __future__ import annotations

from typing import Optional


class ShopError(Exception):
    """
    Base class for every caller-visible failure.

    `kind` is a stable machine-readable identifier; `message` is meant for humans.
    """

    kind = "shop_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


# ---------------------------
# Resource absence
# ---------------------------


class ProductNotFound(ShopError):
    kind = "product_not_found"

    def __init__(self, product_id: int) -> None:
        super().__init__(f"product not found: {product_id}")
        self.product_id = product_id


class CategoryNotFound(ShopError):
    kind = "category_not_found"

    def __init__(self, category_id: int) -> None:
        super().__init__(f"category not found: {category_id}")
        self.category_id = category_id


class CartNotFound(ShopError):
    kind = "cart_not_found"

    def __init__(self, user_id: int) -> None:
        super().__init__(f"cart not found for user {user_id}")
        self.user_id = user_id


class CartItemNotFound(ShopError):
    kind = "cart_item_not_found"

    def __init__(self, cart_item_id: int) -> None:
        super().__init__(f"cart item not found: {cart_item_id}")
        self.cart_item_id = cart_item_id


class OrderNotFound(ShopError):
    kind = "order_not_found"

    def __init__(self, order_id: int) -> None:
        super().__init__(f"order not found: {order_id}")
        self.order_id = order_id


class UserNotFound(ShopError):
    kind = "user_not_found"

    def __init__(self, user_id: int) -> None:
        super().__init__(f"user not found: {user_id}")
        self.user_id = user_id


class FeedbackNotFound(ShopError):
    kind = "feedback_not_found"

    def __init__(self, feedback_id: int) -> None:
        super().__init__(f"feedback not found: {feedback_id}")
        self.feedback_id = feedback_id


class ShopRequestNotFound(ShopError):
    kind = "shop_request_not_found"

    def __init__(self, request_id: int) -> None:
        super().__init__(f"shop request not found: {request_id}")
        self.request_id = request_id


class ShopNotFound(ShopError):
    kind = "shop_not_found"

    def __init__(self, shop_id: int) -> None:
        super().__init__(f"shop not found: {shop_id}")
        self.shop_id = shop_id


# ---------------------------
# Business rules
# ---------------------------


class InsufficientStock(ShopError):
    kind = "insufficient_stock"

    def __init__(
        self, product_id: int, product_name: str, available: int, requested: int
    ) -> None:
        super().__init__(
            f"insufficient stock for product: {product_name} "
            f"(available: {available}, requested: {requested})"
        )
        self.product_id = product_id
        self.product_name = product_name
        self.available = available
        self.requested = requested


class EmptyCart(ShopError):
    kind = "empty_cart"

    def __init__(self, user_id: int) -> None:
        super().__init__("cannot place order with empty cart")
        self.user_id = user_id


class InvalidQuantity(ShopError):
    kind = "invalid_quantity"

    def __init__(self, quantity: int) -> None:
        super().__init__(f"quantity must be positive, got {quantity}")
        self.quantity = quantity


class Unauthorized(ShopError):
    kind = "unauthorized"


class InvalidTransition(ShopError):
    kind = "invalid_transition"

    def __init__(self, order_id: int, current: str, requested: str) -> None:
        super().__init__(
            f"invalid status transition for order {order_id}: {current} -> {requested}"
        )
        self.order_id = order_id
        self.current = current
        self.requested = requested


class InvalidState(ShopError):
    kind = "invalid_state"

    def __init__(self, order_id: int, status: str) -> None:
        super().__init__(f"cannot cancel order {order_id} in status '{status}'")
        self.order_id = order_id
        self.status = status


class RequestAlreadyProcessed(ShopError):
    kind = "request_already_processed"

    def __init__(self, request_id: int, status: str) -> None:
        super().__init__("shop request has already been processed")
        self.request_id = request_id
        self.status = status


class PaymentFailed(ShopError):
    kind = "payment_failed"

    def __init__(self, method: str, reason: str) -> None:
        super().__init__(f"payment failed: {reason}")
        self.method = method
        self.reason = reason


# ---------------------------
# Accounts & input
# ---------------------------


class ValidationError(ShopError):
    kind = "validation_error"

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class EmailTaken(ShopError):
    kind = "email_taken"

    def __init__(self, email: str) -> None:
        super().__init__(f"email or username already registered: {email}")
        self.email = email


class InvalidCredentials(ShopError):
    kind = "invalid_credentials"

    def __init__(self) -> None:
        super().__init__("invalid email or password")


# ---------------------------
# Storage
# ---------------------------


class PersistenceError(ShopError):
    kind = "persistence_error"
