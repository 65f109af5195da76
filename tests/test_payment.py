import unittest

from shop_case import ROOT  # noqa: F401  (puts src/ on sys.path)

from db.models import OrderStatus, PaymentMethod
from services.payment import (
    PAYMENT_RULES,
    parse_payment_method,
    payment_method_label,
    simulate_payment,
)
from utils.errors import PaymentFailed


class PaymentTestCase(unittest.TestCase):
    def test_cod_is_always_pending(self):
        for draw in (0.0, 0.5, 0.999999):
            self.assertEqual(simulate_payment("cod", draw=lambda: draw), OrderStatus.PENDING)

    def test_success_is_strictly_below_rate(self):
        cases = [
            ("paypal", 0.95, "insufficient funds"),
            ("debit", 0.90, "card declined"),
            ("cc", 0.92, "credit limit exceeded"),
        ]
        for method, rate, reason in cases:
            with self.subTest(method=method):
                self.assertEqual(
                    simulate_payment(method, draw=lambda: rate - 0.0001), OrderStatus.PAID
                )
                with self.assertRaises(PaymentFailed) as ctx:
                    simulate_payment(method, draw=lambda: rate)
                self.assertEqual(ctx.exception.reason, reason)
                self.assertEqual(ctx.exception.method, method)
                self.assertEqual(str(ctx.exception), f"payment failed: {reason}")

    def test_unsupported_method(self):
        with self.assertRaises(PaymentFailed) as ctx:
            simulate_payment("bitcoin", draw=lambda: 0.0)
        self.assertEqual(ctx.exception.reason, "unsupported payment method")
        self.assertEqual(ctx.exception.kind, "payment_failed")

    def test_method_must_match_exactly(self):
        for method in (" COD ", "COD", "PayPal", "cc "):
            with self.subTest(method=method):
                with self.assertRaises(PaymentFailed) as ctx:
                    simulate_payment(method, draw=lambda: 0.0)
                self.assertEqual(ctx.exception.reason, "unsupported payment method")

    def test_parse_and_labels(self):
        self.assertIs(parse_payment_method("paypal"), PaymentMethod.PAYPAL)
        self.assertEqual(payment_method_label("cc"), "Credit Card")
        self.assertEqual(payment_method_label("cod"), "Cash on Delivery")
        self.assertEqual(payment_method_label("barter"), "barter")
        self.assertEqual(set(PAYMENT_RULES), set(PaymentMethod))


if __name__ == "__main__":
    unittest.main()
