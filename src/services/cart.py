# cart operations; stock is reserved when an item is added, released when it is removed
from __future__ import annotations

from typing import Callable, List

import aiosqlite

from db import models
from db.carts import CartStore
from db.database import Database
from db.products import ProductStore
from utils.errors import (
    CartItemNotFound,
    CartNotFound,
    InsufficientStock,
    InvalidQuantity,
    ProductNotFound,
    Unauthorized,
)
from utils.logger import get_logger

_logger = get_logger(__name__)

ProductStoreFactory = Callable[[aiosqlite.Connection], ProductStore]
CartStoreFactory = Callable[[aiosqlite.Connection], CartStore]


class CartService:
    """
    Keeps `product.stock` equal to the quantity not promised to any cart.

    Every mutation runs in one database transaction, so a failure after the
    stock decrement rolls the decrement back with the rest.
    """

    def __init__(
        self,
        database: Database,
        products: ProductStoreFactory = ProductStore,
        carts: CartStoreFactory = CartStore,
    ) -> None:
        self.database = database
        self.products = products
        self.carts = carts

    async def add_to_cart(
        self, user_id: int, product_id: int, quantity: int
    ) -> models.CartItem:
        if quantity <= 0:
            raise InvalidQuantity(quantity)

        async with self.database.transaction() as conn:
            products = self.products(conn)
            product = await products.get_by_id(product_id)
            if product is None:
                raise ProductNotFound(product_id)
            if product.stock < quantity:
                _logger.warning(
                    f"Add to cart rejected: {product.name} has {product.stock}, "
                    f"user {user_id} wants {quantity}"
                )
                raise InsufficientStock(product.id, product.name, product.stock, quantity)

            if not await products.adjust_stock(product_id, -quantity):
                current = await products.get_by_id(product_id)
                available = current.stock if current else 0
                raise InsufficientStock(product.id, product.name, available, quantity)

            carts = self.carts(conn)
            cart = await carts.find_or_create(user_id)
            item = await carts.create_item(cart.id, product_id, quantity)

        _logger.info(
            f"User {user_id} reserved {quantity} x product {product_id} (cart item {item.id})"
        )
        return item

    async def remove_from_cart(self, cart_item_id: int, user_id: int) -> None:
        async with self.database.transaction() as conn:
            carts = self.carts(conn)
            item = await carts.find_item(cart_item_id)
            if item is None:
                raise CartItemNotFound(cart_item_id)

            cart = await carts.find_basic(user_id)
            if cart is None or item.cart_id != cart.id:
                raise Unauthorized(
                    f"cart item {cart_item_id} does not belong to user {user_id}"
                )

            # restoring is the same atomic delta, run in reverse
            if not await self.products(conn).adjust_stock(item.product_id, item.quantity):
                raise ProductNotFound(item.product_id)
            await carts.delete_item(cart_item_id)

        _logger.info(
            f"User {user_id} released {item.quantity} x product {item.product_id} "
            f"(cart item {cart_item_id})"
        )

    async def clear_cart(self, user_id: int) -> int:
        """
        Delete every item in the user's cart and return how many were removed.

        Stock is deliberately not restored: after checkout the reservation has
        been consumed, and admin clears restore stock separately.
        """
        async with self.database.transaction() as conn:
            carts = self.carts(conn)
            cart = await carts.find_basic(user_id)
            if cart is None:
                raise CartNotFound(user_id)
            removed = await carts.clear_items(cart.id)
        _logger.info(f"Cleared {removed} item(s) from cart of user {user_id}")
        return removed

    async def get_cart(self, user_id: int) -> models.Cart:
        async with self.database.transaction() as conn:
            carts = self.carts(conn)
            cart = await carts.find_or_create(user_id)
            items = await carts.list_items(cart.id)
        return models.Cart(
            id=cart.id, user_id=cart.user_id, created_at=cart.created_at, items=tuple(items)
        )

    async def list_lines(self, user_id: int) -> List[models.CartLine]:
        """Cart items with their products, loaded in one batch."""
        async with self.database.connect() as conn:
            cart = await self.carts(conn).find_with_items(user_id)
            if cart is None or not cart.items:
                return []
            products = await self.products(conn).get_by_ids(
                item.product_id for item in cart.items
            )
        by_id = {p.id: p for p in products}
        return [
            models.CartLine(item=item, product=by_id[item.product_id])
            for item in cart.items
            if item.product_id in by_id
        ]

    async def count_items(self, user_id: int) -> int:
        async with self.database.connect() as conn:
            carts = self.carts(conn)
            cart = await carts.find_basic(user_id)
            return await carts.count_items(cart.id) if cart else 0
