import unittest

from shop_case import BP_MONITOR, JANE_ID, OXIMETER, ShopTestCase

from db.database import Database
from db.models import ShopRequestStatus
from db.shops import ShopRequestStore
from utils.errors import (
    FeedbackNotFound,
    ProductNotFound,
    RequestAlreadyProcessed,
    ShopNotFound,
    ShopRequestNotFound,
    ValidationError,
)

DESCRIPTION = "Home care supplies for the east side"


class FeedbackTestCase(ShopTestCase):
    async def test_give_feedback(self):
        feedback = await self.services.feedback.give_feedback(
            JANE_ID, BP_MONITOR, 4, "  Accurate and easy to read  "
        )
        self.assertEqual(feedback.rating, 4)
        self.assertEqual(feedback.comment, "Accurate and easy to read")
        self.assertEqual(feedback.username, "jane")

        stored = await self.services.feedback.get_feedback(feedback.id)
        self.assertEqual(stored, feedback)

    async def test_rating_bounds(self):
        for rating in (0, 6, -1, 3.5, True, "5"):
            with self.subTest(rating=rating):
                with self.assertRaises(ValidationError) as ctx:
                    await self.services.feedback.give_feedback(JANE_ID, BP_MONITOR, rating, "ok")
                self.assertEqual(ctx.exception.field, "rating")
        for rating in (1, 5):
            await self.services.feedback.give_feedback(JANE_ID, BP_MONITOR, rating, "ok")
        self.assertEqual(await self.count_rows("feedback"), 2)

    async def test_comment_required(self):
        with self.assertRaises(ValidationError) as ctx:
            await self.services.feedback.give_feedback(JANE_ID, BP_MONITOR, 3, "   ")
        self.assertEqual(ctx.exception.field, "comment")

    async def test_product_must_exist(self):
        with self.assertRaises(ProductNotFound):
            await self.services.feedback.give_feedback(JANE_ID, 999999, 5, "great")
        self.assertEqual(await self.count_rows("feedback"), 0)

        with self.assertRaises(FeedbackNotFound):
            await self.services.feedback.get_feedback(424242)

    async def test_listing(self):
        bob = await self.new_customer("bob")
        feedback = self.services.feedback
        first = await feedback.give_feedback(JANE_ID, BP_MONITOR, 5, "works well")
        second = await feedback.give_feedback(bob, BP_MONITOR, 2, "cuff too small")
        third = await feedback.give_feedback(JANE_ID, OXIMETER, 4, "fast reading")

        on_monitor = await feedback.list_for_product(BP_MONITOR)
        self.assertEqual([f.id for f in on_monitor], [second.id, first.id])
        self.assertEqual([f.username for f in on_monitor], ["bob", "jane"])

        self.assertEqual([f.id for f in await feedback.list_for_user(JANE_ID)], [third.id, first.id])
        self.assertEqual(len(await feedback.list_all()), 3)
        self.assertEqual(await feedback.list_for_product(OXIMETER + 1000), [])


class ShopRequestTestCase(ShopTestCase):
    async def test_create_request_validation(self):
        shops = self.services.shops
        cases = [
            ("ab", DESCRIPTION, "shop_name"),
            ("x" * 101, DESCRIPTION, "shop_name"),
            ("Care Corner", "too short", "description"),
            ("Care Corner", "y" * 501, "description"),
        ]
        for name, description, field in cases:
            with self.subTest(field=field, name=name[:5]):
                with self.assertRaises(ValidationError) as ctx:
                    await shops.create_request(JANE_ID, name, description)
                self.assertEqual(ctx.exception.field, field)
        self.assertEqual(await self.count_rows("shop_requests"), 0)

        request = await shops.create_request(JANE_ID, "  abc ", "0123456789")
        self.assertEqual(request.shop_name, "abc")
        self.assertEqual(request.status, ShopRequestStatus.PENDING)
        self.assertEqual(request.rejection_reason, "")
        self.assertEqual(request.username, "jane")

    async def test_approve_creates_shop(self):
        shops = self.services.shops
        request = await shops.create_request(JANE_ID, "Care Corner", DESCRIPTION)

        shop = await shops.approve_request(request.id)
        self.assertEqual(shop.user_id, JANE_ID)
        self.assertEqual(shop.shop_name, "Care Corner")
        self.assertEqual(shop.description, DESCRIPTION)
        self.assertEqual(shop.request_id, request.id)
        self.assertTrue(shop.is_active)
        self.assertEqual((await shops.get_request(request.id)).status, ShopRequestStatus.APPROVED)

        with self.assertRaises(RequestAlreadyProcessed) as ctx:
            await shops.approve_request(request.id)
        self.assertEqual(ctx.exception.status, "approved")
        self.assertEqual(str(ctx.exception), "shop request has already been processed")
        with self.assertRaises(RequestAlreadyProcessed):
            await shops.reject_request(request.id, "changed my mind")

        self.assertEqual(await self.count_rows("shops"), 1)
        self.assertEqual([s.id for s in await shops.shops_for_user(JANE_ID)], [shop.id])
        self.assertEqual(await shops.get_shop(shop.id), shop)

    async def test_reject_records_reason(self):
        shops = self.services.shops
        request = await shops.create_request(JANE_ID, "Care Corner", DESCRIPTION)

        rejected = await shops.reject_request(request.id, "  duplicate of an existing shop ")
        self.assertEqual(rejected.status, ShopRequestStatus.REJECTED)
        self.assertEqual(rejected.rejection_reason, "duplicate of an existing shop")

        with self.assertRaises(RequestAlreadyProcessed):
            await shops.approve_request(request.id)
        with self.assertRaises(RequestAlreadyProcessed):
            await shops.reject_request(request.id)
        self.assertEqual(await self.count_rows("shops"), 0)

        with self.assertRaises(ValidationError):
            await shops.reject_request(request.id, "z" * 501)

    async def test_listing_by_status(self):
        shops = self.services.shops
        bob = await self.new_customer("bob")
        first = await shops.create_request(JANE_ID, "Care Corner", DESCRIPTION)
        second = await shops.create_request(bob, "Mobility Plus", DESCRIPTION)
        third = await shops.create_request(JANE_ID, "Rehab Depot", DESCRIPTION)
        await shops.approve_request(first.id)
        await shops.reject_request(second.id, "incomplete")

        self.assertEqual({r.id for r in await shops.list_requests()}, {first.id, second.id, third.id})
        self.assertEqual([r.id for r in await shops.list_requests("pending")], [third.id])
        self.assertEqual([r.id for r in await shops.list_requests("approved")], [first.id])
        self.assertEqual([r.id for r in await shops.list_requests("rejected")], [second.id])
        with self.assertRaises(ValidationError):
            await shops.list_requests("archived")

        self.assertEqual([r.id for r in await shops.list_user_requests(JANE_ID)], [third.id, first.id])
        self.assertEqual(await shops.shops_for_user(bob), [])

    async def test_missing_ids(self):
        shops = self.services.shops
        with self.assertRaises(ShopRequestNotFound):
            await shops.approve_request(424242)
        with self.assertRaises(ShopRequestNotFound):
            await shops.reject_request(424242, "nope")
        with self.assertRaises(ShopRequestNotFound):
            await shops.get_request(424242)
        with self.assertRaises(ShopNotFound):
            await shops.get_shop(424242)
        with self.assertRaises(ShopNotFound):
            await shops.set_active(424242, False)

    async def test_activate_and_deactivate(self):
        shops = self.services.shops
        request = await shops.create_request(JANE_ID, "Care Corner", DESCRIPTION)
        shop = await shops.approve_request(request.id)

        closed = await shops.set_active(shop.id, False)
        self.assertFalse(closed.is_active)
        self.assertEqual(await shops.list_shops(active=True), [])
        self.assertEqual([s.id for s in await shops.list_shops(active=False)], [shop.id])

        reopened = await shops.set_active(shop.id, True)
        self.assertTrue(reopened.is_active)
        self.assertEqual(len(await shops.list_shops()), 1)

    async def test_status_update_respects_expected(self):
        request = await self.services.shops.create_request(JANE_ID, "Care Corner", DESCRIPTION)
        async with self.database.transaction() as conn:
            store = ShopRequestStore(conn)
            self.assertFalse(
                await store.update_status(
                    request.id,
                    ShopRequestStatus.APPROVED,
                    expected=ShopRequestStatus.REJECTED,
                )
            )
            self.assertTrue(
                await store.update_status(
                    request.id,
                    ShopRequestStatus.REJECTED,
                    reason="late",
                    expected=ShopRequestStatus.PENDING,
                )
            )
        stored = await self.services.shops.get_request(request.id)
        self.assertEqual((stored.status, stored.rejection_reason), (ShopRequestStatus.REJECTED, "late"))

    async def test_older_database_gains_new_tables(self):
        async with self.database.connect() as conn:
            await conn.executescript(
                "DROP TABLE shops; DROP TABLE shop_requests; DROP TABLE feedback;"
            )

        upgraded = Database(self.db_path, timeout=10.0)
        async with upgraded.connect() as conn:
            cur = await conn.execute(
                "SELECT COUNT(*) FROM sqlite_master WHERE type = 'table' "
                "AND name IN ('shops', 'shop_requests', 'feedback');"
            )
            row = await cur.fetchone()
            await cur.close()
        self.assertEqual(row[0], 3)
        self.assertEqual(await self.count_rows("products"), 7)


if __name__ == "__main__":
    unittest.main()
