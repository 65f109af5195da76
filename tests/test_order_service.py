import unittest
from decimal import Decimal

import aiosqlite

from shop_case import ADMIN_ID, BP_MONITOR, JANE_ID, OXIMETER, WALKER, ShopTestCase

from db.models import OrderStatus, PaymentMethod
from db.orders import OrderStore
from db.products import ProductStore
from services.orders import TRANSITIONS, OrderService, is_valid_transition
from services.payment import simulate_payment
from utils.errors import (
    EmptyCart,
    InsufficientStock,
    InvalidState,
    InvalidTransition,
    OrderNotFound,
    PaymentFailed,
    PersistenceError,
    ProductNotFound,
    Unauthorized,
)


def approve(method):
    return simulate_payment(method, draw=lambda: 0.0)


def decline(method):
    return simulate_payment(method, draw=lambda: 0.999)


class BrokenOrderStore(OrderStore):
    async def create_item(self, order_id, product_id, quantity, price):
        raise aiosqlite.OperationalError("database is locked")


class OrderServiceTestCase(ShopTestCase):
    def setUp(self):
        super().setUp()
        self.orders = OrderService(self.database, payment=approve)

    async def place_walker_order(self, qty=2, method="cod"):
        await self.services.cart.add_to_cart(JANE_ID, WALKER, qty)
        return await self.orders.place_order(JANE_ID, method)

    # ---------- Checkout ----------

    async def test_cod_checkout_consumes_reservation(self):
        order = await self.place_walker_order(2, "cod")

        self.assertEqual(order.status, OrderStatus.PENDING)
        self.assertEqual(order.payment_method, PaymentMethod.COD)
        self.assertEqual(order.total_price, Decimal("178.00"))
        self.assertEqual(len(order.items), 1)
        self.assertEqual(order.items[0].price, Decimal("89.00"))
        self.assertEqual(order.items[0].quantity, 2)

        # reserved at add time, not decremented a second time
        self.assertEqual(await self.stock_of(WALKER), 8)
        self.assertEqual(await self.services.cart.count_items(JANE_ID), 0)

    async def test_online_payment_is_paid(self):
        await self.services.cart.add_to_cart(JANE_ID, WALKER, 1)
        await self.services.cart.add_to_cart(JANE_ID, OXIMETER, 2)
        order = await self.orders.place_order(JANE_ID, "cc", bank_name="First National")

        self.assertEqual(order.status, OrderStatus.PAID)
        self.assertEqual(order.bank_name, "First National")
        self.assertEqual(order.total_price, Decimal("138.00"))
        self.assertEqual(sum(i.subtotal for i in order.items), order.total_price)

        stored = await self.orders.get_order(order.id, JANE_ID)
        self.assertEqual(stored.total_price, Decimal("138.00"))
        self.assertEqual([i.product_id for i in stored.items], [WALKER, OXIMETER])

    async def test_empty_cart(self):
        with self.assertRaises(EmptyCart) as ctx:
            await self.orders.place_order(JANE_ID, "cod")
        self.assertEqual(str(ctx.exception), "cannot place order with empty cart")
        self.assertEqual(await self.count_rows("orders"), 0)

    async def test_live_stock_below_line_quantity(self):
        await self.services.cart.add_to_cart(JANE_ID, WALKER, 2)
        await self.services.catalog.restock(WALKER, -7)  # 8 -> 1

        with self.assertRaises(InsufficientStock) as ctx:
            await self.orders.place_order(JANE_ID, "cod")
        self.assertEqual(ctx.exception.available, 1)
        self.assertEqual(ctx.exception.requested, 2)

        self.assertEqual(await self.count_rows("orders"), 0)
        self.assertEqual(await self.services.cart.count_items(JANE_ID), 1)

    async def test_declined_payment_leaves_no_trace(self):
        orders = OrderService(self.database, payment=decline)
        await self.services.cart.add_to_cart(JANE_ID, WALKER, 2)

        with self.assertRaises(PaymentFailed) as ctx:
            await orders.place_order(JANE_ID, "paypal")
        self.assertEqual(ctx.exception.reason, "insufficient funds")

        self.assertEqual(await self.count_rows("orders"), 0)
        self.assertEqual(await self.count_rows("order_items"), 0)
        self.assertEqual(await self.services.cart.count_items(JANE_ID), 1)
        self.assertEqual(await self.stock_of(WALKER), 8)

    async def test_unsupported_payment_method(self):
        await self.services.cart.add_to_cart(JANE_ID, WALKER, 1)
        with self.assertRaises(PaymentFailed):
            await self.orders.place_order(JANE_ID, "bitcoin")
        self.assertEqual(await self.count_rows("orders"), 0)

    async def test_storage_failure_mid_checkout_rolls_back(self):
        orders = OrderService(self.database, payment=approve, orders=BrokenOrderStore)
        await self.services.cart.add_to_cart(JANE_ID, WALKER, 2)

        with self.assertRaises(PersistenceError):
            await orders.place_order(JANE_ID, "cod")

        self.assertEqual(await self.count_rows("orders"), 0)
        self.assertEqual(await self.services.cart.count_items(JANE_ID), 1)
        self.assertEqual(await self.stock_of(WALKER), 8)

    async def test_price_snapshot_survives_repricing(self):
        order = await self.place_walker_order(1)
        await self.services.catalog.update_price(WALKER, "99.00")

        stored = await self.orders.get_order(order.id)
        self.assertEqual(stored.items[0].price, Decimal("89.00"))
        self.assertEqual(stored.total_price, Decimal("89.00"))

    # ---------- Cancellation ----------

    async def test_cancel_restores_stock_once(self):
        orders = OrderService(self.database, payment=approve)
        await self.services.cart.add_to_cart(JANE_ID, WALKER, 2)
        order = await orders.place_order(JANE_ID, "debit")
        self.assertEqual(order.status, OrderStatus.PAID)
        self.assertEqual(await self.stock_of(WALKER), 8)

        await orders.cancel_order(order.id, JANE_ID)
        self.assertEqual(await self.stock_of(WALKER), 10)
        self.assertEqual((await orders.get_order(order.id)).status, OrderStatus.CANCELLED)

        with self.assertRaises(InvalidState):
            await orders.cancel_order(order.id, JANE_ID)
        self.assertEqual(await self.stock_of(WALKER), 10)

    async def place_three_line_order(self):
        await self.services.cart.add_to_cart(JANE_ID, WALKER, 2)
        await self.services.cart.add_to_cart(JANE_ID, OXIMETER, 3)
        await self.services.cart.add_to_cart(JANE_ID, BP_MONITOR, 1)
        return await self.orders.place_order(JANE_ID, "cod")

    async def stocks(self):
        return [await self.stock_of(pid) for pid in (WALKER, OXIMETER, BP_MONITOR)]

    async def test_cancel_restores_every_line(self):
        order = await self.place_three_line_order()
        self.assertEqual(len(order.items), 3)
        self.assertEqual(await self.stocks(), [8, 37, 24])

        await self.orders.cancel_order(order.id, JANE_ID)
        self.assertEqual(await self.stocks(), [10, 40, 25])

    async def test_cancel_is_all_or_nothing(self):
        order = await self.place_three_line_order()
        restores = []

        class SecondRestoreFails(ProductStore):
            async def adjust_stock(self, product_id, delta):
                if delta > 0:
                    restores.append(product_id)
                    if len(restores) == 2:
                        return False
                return await super().adjust_stock(product_id, delta)

        flaky = OrderService(self.database, payment=approve, products=SecondRestoreFails)
        with self.assertRaises(ProductNotFound):
            await flaky.cancel_order(order.id, JANE_ID)

        self.assertEqual(len(restores), 2)
        self.assertEqual(await self.stocks(), [8, 37, 24])
        self.assertEqual((await self.orders.get_order(order.id)).status, OrderStatus.PENDING)

        # a clean retry still restores everything exactly once
        await self.orders.cancel_order(order.id, JANE_ID)
        self.assertEqual(await self.stocks(), [10, 40, 25])

    async def test_cancel_rules(self):
        order = await self.place_walker_order(2)

        with self.assertRaises(OrderNotFound):
            await self.orders.cancel_order(424242, JANE_ID)

        with self.assertRaises(Unauthorized):
            await self.orders.cancel_order(order.id, ADMIN_ID)

        await self.orders.update_order_status(order.id, "paid")
        await self.orders.update_order_status(order.id, "shipped")
        with self.assertRaises(InvalidState):
            await self.orders.cancel_order(order.id, JANE_ID)
        self.assertEqual(await self.stock_of(WALKER), 8)

    # ---------- Status machine ----------

    def test_transition_table(self):
        allowed = {
            ("pending", "paid"),
            ("pending", "cancelled"),
            ("paid", "shipped"),
            ("paid", "cancelled"),
        }
        for current in OrderStatus:
            for requested in OrderStatus:
                with self.subTest(current=current, requested=requested):
                    self.assertEqual(
                        is_valid_transition(current, requested),
                        (current.value, requested.value) in allowed,
                    )
        self.assertFalse(is_valid_transition("pending", "refunded"))
        self.assertFalse(is_valid_transition("lost", "paid"))
        self.assertFalse(TRANSITIONS[OrderStatus.SHIPPED])

    async def test_update_order_status(self):
        order = await self.place_walker_order(2)

        with self.assertRaises(InvalidTransition):
            await self.orders.update_order_status(order.id, "shipped")
        with self.assertRaises(InvalidTransition):
            await self.orders.update_order_status(order.id, "refunded")
        with self.assertRaises(OrderNotFound):
            await self.orders.update_order_status(424242, "paid")

        paid = await self.orders.update_order_status(order.id, "paid")
        self.assertEqual(paid.status, OrderStatus.PAID)
        shipped = await self.orders.update_order_status(order.id, OrderStatus.SHIPPED)
        self.assertEqual(shipped.status, OrderStatus.SHIPPED)

        for status in ("pending", "paid", "cancelled"):
            with self.assertRaises(InvalidTransition):
                await self.orders.update_order_status(order.id, status)

    async def test_admin_cancel_only_changes_status(self):
        order = await self.place_walker_order(2)
        await self.orders.update_order_status(order.id, "cancelled")
        self.assertEqual(await self.stock_of(WALKER), 8)

    # ---------- History ----------

    async def test_history_queries(self):
        first = await self.place_walker_order(1)
        second = await self.place_walker_order(1)
        bob = await self.new_customer("bob")
        await self.services.cart.add_to_cart(bob, OXIMETER, 1)
        third = await self.orders.place_order(bob, "cod")

        mine = await self.orders.list_orders(JANE_ID)
        self.assertEqual([o.id for o in mine], [second.id, first.id])
        self.assertTrue(all(o.items for o in mine))

        everything = await self.orders.list_all_orders()
        self.assertEqual({o.id for o in everything}, {first.id, second.id, third.id})

        await self.orders.update_order_status(first.id, "paid")
        paid = await self.orders.list_all_orders("paid")
        self.assertEqual([o.id for o in paid], [first.id])

        with self.assertRaises(Unauthorized):
            await self.orders.get_order(third.id, JANE_ID)


if __name__ == "__main__":
    unittest.main()
