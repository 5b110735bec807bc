"""Preview fee payments: pricing, webhook signatures, reconciliation. Re-exports for stable public API."""

from figurine_bot.services.payments.pricing import (
    allocate_expected_amount,
    build_checkout_url,
    format_brl,
)
from figurine_bot.services.payments.reconciliation import (
    PaymentNotification,
    PaymentReconciler,
    parse_payment_notification,
)
from figurine_bot.services.payments.signature import verify_payment_signature

__all__ = [
    "PaymentNotification",
    "PaymentReconciler",
    "allocate_expected_amount",
    "build_checkout_url",
    "format_brl",
    "parse_payment_notification",
    "verify_payment_signature",
]
