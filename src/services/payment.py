"""
Simulated payment gateway.

Each method succeeds with a fixed probability; the random draw is a seam so
tests can force either outcome.
"""

import random
from typing import Callable, Dict, NamedTuple, Optional

from db.models import OrderStatus, PaymentMethod
from utils.errors import PaymentFailed
from utils.logger import get_logger

_logger = get_logger(__name__)

Draw = Callable[[], float]


class PaymentRule(NamedTuple):
    success_rate: float
    status_on_success: OrderStatus
    failure_reason: Optional[str]


PAYMENT_RULES: Dict[PaymentMethod, PaymentRule] = {
    PaymentMethod.COD: PaymentRule(1.00, OrderStatus.PENDING, None),
    PaymentMethod.PAYPAL: PaymentRule(0.95, OrderStatus.PAID, "insufficient funds"),
    PaymentMethod.DEBIT: PaymentRule(0.90, OrderStatus.PAID, "card declined"),
    PaymentMethod.CC: PaymentRule(0.92, OrderStatus.PAID, "credit limit exceeded"),
}

PAYMENT_LABELS: Dict[PaymentMethod, str] = {
    PaymentMethod.COD: "Cash on Delivery",
    PaymentMethod.PAYPAL: "PayPal",
    PaymentMethod.DEBIT: "Debit Card",
    PaymentMethod.CC: "Credit Card",
}


def parse_payment_method(method: str) -> PaymentMethod:
    try:
        return PaymentMethod(method)
    except ValueError:
        raise PaymentFailed(str(method), "unsupported payment method") from None


def payment_method_label(method: str) -> str:
    try:
        return PAYMENT_LABELS[PaymentMethod(method)]
    except ValueError:
        return str(method)


def simulate_payment(method: str, draw: Draw = random.random) -> OrderStatus:
    """
    Return the initial order status for a successful payment.

    Raises PaymentFailed with the gateway's reason on a declined draw, or for a
    method the gateway does not support. A draw strictly below the success
    rate succeeds.
    """
    pm = parse_payment_method(method)
    rule = PAYMENT_RULES[pm]
    if rule.failure_reason is None or draw() < rule.success_rate:
        return rule.status_on_success
    _logger.warning(f"Simulated {pm.value} payment declined: {rule.failure_reason}")
    raise PaymentFailed(pm.value, rule.failure_reason)
