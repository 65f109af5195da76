# checkout, order history and the order status state machine
from __future__ import annotations

from decimal import Decimal
from typing import Callable, Dict, FrozenSet, List, Optional, Tuple

import aiosqlite

from db import models
from db.carts import CartStore
from db.database import Database
from db.models import OrderStatus
from db.orders import OrderStore
from db.products import ProductStore
from services.payment import parse_payment_method, simulate_payment
from utils.errors import (
    EmptyCart,
    InsufficientStock,
    InvalidState,
    InvalidTransition,
    OrderNotFound,
    ProductNotFound,
    Unauthorized,
)
from utils.logger import get_logger

_logger = get_logger(__name__)

PaymentGateway = Callable[[str], OrderStatus]

TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PAID, OrderStatus.CANCELLED}),
    OrderStatus.PAID: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

TERMINAL_STATUSES = frozenset(s for s, nxt in TRANSITIONS.items() if not nxt)


def is_valid_transition(current: str, requested: str) -> bool:
    """True only for the pairs listed in TRANSITIONS; unknown statuses are never valid."""
    try:
        return OrderStatus(requested) in TRANSITIONS[OrderStatus(current)]
    except ValueError:
        return False


class OrderService:
    """
    Turns a cart into an order and moves orders through their statuses.

    Checkout consumes the stock reserved at add-to-cart time; it never
    decrements stock a second time. Cancellation hands the stock back.
    """

    def __init__(
        self,
        database: Database,
        payment: PaymentGateway = simulate_payment,
        products: Callable[[aiosqlite.Connection], ProductStore] = ProductStore,
        carts: Callable[[aiosqlite.Connection], CartStore] = CartStore,
        orders: Callable[[aiosqlite.Connection], OrderStore] = OrderStore,
    ) -> None:
        self.database = database
        self.payment = payment
        self.products = products
        self.carts = carts
        self.orders = orders

    async def place_order(
        self, user_id: int, payment_method: str, bank_name: Optional[str] = None
    ) -> models.Order:
        async with self.database.transaction() as conn:
            carts = self.carts(conn)
            cart = await carts.find_with_items(user_id)
            if cart is None or not cart.items:
                raise EmptyCart(user_id)

            found = await self.products(conn).get_by_ids(
                item.product_id for item in cart.items
            )
            by_id = {p.id: p for p in found}

            total = Decimal("0")
            snapshot: List[Tuple[int, int, Decimal]] = []
            for item in cart.items:
                product = by_id.get(item.product_id)
                if product is None:
                    raise ProductNotFound(item.product_id)
                if product.stock < item.quantity:
                    _logger.warning(
                        f"Checkout rejected for user {user_id}: {product.name} "
                        f"has {product.stock}, line wants {item.quantity}"
                    )
                    raise InsufficientStock(
                        product.id, product.name, product.stock, item.quantity
                    )
                total += product.price * item.quantity
                snapshot.append((product.id, item.quantity, product.price))

            status = self.payment(payment_method)
            method = parse_payment_method(payment_method)

            orders = self.orders(conn)
            order = await orders.create(
                user_id, status, total, method, bank_name or None
            )
            items = [
                await orders.create_item(order.id, product_id, quantity, price)
                for product_id, quantity, price in snapshot
            ]
            await carts.clear_items(cart.id)

        _logger.info(
            f"Order {order.id} placed by user {user_id}: {len(items)} line(s), "
            f"total {total}, {method.value} -> {status.value}"
        )
        return models.Order(
            id=order.id,
            user_id=order.user_id,
            status=order.status,
            total_price=order.total_price,
            payment_method=order.payment_method,
            bank_name=order.bank_name,
            created_at=order.created_at,
            updated_at=order.updated_at,
            items=tuple(items),
        )

    async def cancel_order(self, order_id: int, user_id: int) -> None:
        """
        Customer cancellation: restore stock for every line, then mark the order
        cancelled, all inside one transaction.
        """
        async with self.database.transaction() as conn:
            orders = self.orders(conn)
            order = await orders.find_by_id(order_id)
            if order is None:
                raise OrderNotFound(order_id)
            if order.user_id != user_id:
                raise Unauthorized(f"order {order_id} does not belong to user {user_id}")
            if order.status in TERMINAL_STATUSES:
                raise InvalidState(order_id, order.status.value)

            products = self.products(conn)
            for item in await orders.find_items_by_order_id(order_id):
                if not await products.adjust_stock(item.product_id, item.quantity):
                    raise ProductNotFound(item.product_id)

            if not await orders.update_status(
                order_id, OrderStatus.CANCELLED, expected=order.status
            ):
                raise InvalidState(order_id, order.status.value)

        _logger.info(f"Order {order_id} cancelled by user {user_id}; stock restored")

    async def update_order_status(self, order_id: int, new_status: str) -> models.Order:
        """Administrative transition; only the status column changes."""
        async with self.database.transaction() as conn:
            orders = self.orders(conn)
            order = await orders.find_by_id(order_id)
            if order is None:
                raise OrderNotFound(order_id)
            if not is_valid_transition(order.status, new_status):
                _logger.warning(
                    f"Rejected transition for order {order_id}: {order.status} -> {new_status}"
                )
                raise InvalidTransition(order_id, order.status.value, str(new_status))

            status = OrderStatus(new_status)
            if not await orders.update_status(order_id, status, expected=order.status):
                raise InvalidTransition(order_id, order.status.value, status.value)
            updated = await orders.find_by_id(order_id)

        _logger.info(f"Order {order_id} moved {order.status} -> {status}")
        return updated

    async def get_order(
        self, order_id: int, user_id: Optional[int] = None
    ) -> models.Order:
        """Order with its items. When `user_id` is given, ownership is enforced."""
        async with self.database.connect() as conn:
            order = await self.orders(conn).find_by_id(order_id)
        if order is None:
            raise OrderNotFound(order_id)
        if user_id is not None and order.user_id != user_id:
            raise Unauthorized(f"order {order_id} does not belong to user {user_id}")
        return order

    async def list_orders(self, user_id: int) -> List[models.Order]:
        async with self.database.connect() as conn:
            return await self.orders(conn).find_by_user(user_id)

    async def list_all_orders(
        self, status: Optional[str] = None
    ) -> List[models.Order]:
        async with self.database.connect() as conn:
            return await self.orders(conn).find_all(
                OrderStatus(status) if status else None
            )
