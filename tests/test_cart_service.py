import asyncio
import unittest
from decimal import Decimal

import aiosqlite

from shop_case import BP_MONITOR, JANE_ID, OXIMETER, WALKER, ShopTestCase

from db.carts import CartStore
from services.cart import CartService
from utils.errors import (
    CartItemNotFound,
    CartNotFound,
    InsufficientStock,
    InvalidQuantity,
    PersistenceError,
    ProductNotFound,
    Unauthorized,
)


class BrokenCartStore(CartStore):
    """Fails after the stock decrement has already been issued."""

    async def create_item(self, cart_id, product_id, quantity):
        raise aiosqlite.OperationalError("disk I/O error")


class CartServiceTestCase(ShopTestCase):
    # ---------- Reserving stock ----------

    async def test_add_reserves_stock(self):
        item = await self.services.cart.add_to_cart(JANE_ID, WALKER, 2)
        self.assertEqual(item.product_id, WALKER)
        self.assertEqual(item.quantity, 2)
        self.assertEqual(await self.stock_of(WALKER), 8)

        cart = await self.services.cart.get_cart(JANE_ID)
        self.assertEqual([i.id for i in cart.items], [item.id])
        self.assertEqual(await self.services.cart.count_items(JANE_ID), 1)

    async def test_same_product_twice_makes_two_lines(self):
        first = await self.services.cart.add_to_cart(JANE_ID, WALKER, 1)
        second = await self.services.cart.add_to_cart(JANE_ID, WALKER, 3)
        self.assertNotEqual(first.id, second.id)
        self.assertEqual(await self.stock_of(WALKER), 6)
        self.assertEqual(await self.services.cart.count_items(JANE_ID), 2)

    async def test_whole_stock_can_be_reserved(self):
        await self.services.cart.add_to_cart(JANE_ID, WALKER, 10)
        self.assertEqual(await self.stock_of(WALKER), 0)
        with self.assertRaises(InsufficientStock):
            await self.services.cart.add_to_cart(JANE_ID, WALKER, 1)

    async def test_add_rejects_bad_input(self):
        for qty in (0, -3):
            with self.subTest(qty=qty):
                with self.assertRaises(InvalidQuantity):
                    await self.services.cart.add_to_cart(JANE_ID, WALKER, qty)

        with self.assertRaises(ProductNotFound):
            await self.services.cart.add_to_cart(JANE_ID, 999999, 1)

        with self.assertRaises(InsufficientStock) as ctx:
            await self.services.cart.add_to_cart(JANE_ID, WALKER, 11)
        self.assertEqual(ctx.exception.available, 10)
        self.assertEqual(ctx.exception.requested, 11)
        self.assertIn("Folding Walker", ctx.exception.message)

        self.assertEqual(await self.stock_of(WALKER), 10)
        self.assertEqual(await self.count_rows("cart_items"), 0)

    async def test_concurrent_adds_never_oversell(self):
        results = await asyncio.gather(
            *(self.services.cart.add_to_cart(JANE_ID, WALKER, 3) for _ in range(4)),
            return_exceptions=True,
        )
        failures = [r for r in results if isinstance(r, Exception)]
        self.assertEqual(len(failures), 1)
        self.assertIsInstance(failures[0], InsufficientStock)
        self.assertEqual(await self.stock_of(WALKER), 1)
        self.assertEqual(await self.count_rows("cart_items"), 3)

    async def test_failure_after_decrement_rolls_back(self):
        service = CartService(self.database, carts=BrokenCartStore)
        with self.assertRaises(PersistenceError):
            await service.add_to_cart(JANE_ID, BP_MONITOR, 5)
        self.assertEqual(await self.stock_of(BP_MONITOR), 25)
        self.assertEqual(await self.count_rows("cart_items"), 0)

    # ---------- Releasing stock ----------

    async def test_remove_restores_stock(self):
        item = await self.services.cart.add_to_cart(JANE_ID, WALKER, 4)
        await self.services.cart.remove_from_cart(item.id, JANE_ID)
        self.assertEqual(await self.stock_of(WALKER), 10)
        self.assertEqual(await self.services.cart.count_items(JANE_ID), 0)

        with self.assertRaises(CartItemNotFound):
            await self.services.cart.remove_from_cart(item.id, JANE_ID)

    async def test_remove_checks_ownership(self):
        item = await self.services.cart.add_to_cart(JANE_ID, WALKER, 2)
        bob = await self.new_customer("bob")

        # bob has no cart at all
        with self.assertRaises(Unauthorized):
            await self.services.cart.remove_from_cart(item.id, bob)

        # bob has a cart, just not this one
        await self.services.cart.add_to_cart(bob, OXIMETER, 1)
        with self.assertRaises(Unauthorized):
            await self.services.cart.remove_from_cart(item.id, bob)

        self.assertEqual(await self.stock_of(WALKER), 8)

    async def test_clear_cart_keeps_stock_reserved(self):
        await self.services.cart.add_to_cart(JANE_ID, WALKER, 2)
        await self.services.cart.add_to_cart(JANE_ID, OXIMETER, 5)

        self.assertEqual(await self.services.cart.clear_cart(JANE_ID), 2)
        self.assertEqual(await self.services.cart.count_items(JANE_ID), 0)
        self.assertEqual(await self.stock_of(WALKER), 8)
        self.assertEqual(await self.stock_of(OXIMETER), 35)

        carol = await self.new_customer("carol")
        with self.assertRaises(CartNotFound):
            await self.services.cart.clear_cart(carol)

    # ---------- Reading ----------

    async def test_list_lines(self):
        self.assertEqual(await self.services.cart.list_lines(JANE_ID), [])

        await self.services.cart.add_to_cart(JANE_ID, WALKER, 2)
        await self.services.cart.add_to_cart(JANE_ID, OXIMETER, 3)
        lines = await self.services.cart.list_lines(JANE_ID)

        self.assertEqual([line.product.id for line in lines], [WALKER, OXIMETER])
        self.assertEqual(lines[0].subtotal, Decimal("178.00"))
        self.assertEqual(lines[1].subtotal, Decimal("73.50"))


if __name__ == "__main__":
    unittest.main()
