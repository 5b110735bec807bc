"""
PIX provider webhook signature verification.

The provider signs the exact raw request body with HMAC-SHA1 using the shared
webhook secret and sends the base64-encoded digest in a header
(x-openpix-signature by default).
"""

import base64
import hashlib
import hmac
import logging

logger = logging.getLogger(__name__)


def compute_payment_signature(payload: bytes, secret: str) -> str:
    digest = hmac.new(secret.encode("utf-8"), payload, hashlib.sha1).digest()
    return base64.b64encode(digest).decode("ascii")


def verify_payment_signature(
    payload: bytes,
    signature_header: str | None,
    secret: str | None,
) -> bool:
    """
    Verify a payment webhook signature using HMAC-SHA1 (base64 digest).

    Args:
        payload: Raw request body (bytes), exactly as received
        signature_header: Signature header value
        secret: Configured webhook secret

    Returns:
        True if signature is valid, False otherwise. A missing secret rejects
        every request: unsigned payment notifications are never trusted.
    """
    if not secret:
        logger.warning(
            "Payment webhook secret not configured - rejecting notification. "
            "Set PAYMENT_WEBHOOK_SECRET to accept payment webhooks."
        )
        return False

    if not signature_header:
        logger.warning("Missing signature header in payment webhook")
        return False

    expected = compute_payment_signature(payload, secret)

    # Use constant-time comparison to prevent timing attacks
    is_valid = hmac.compare_digest(signature_header.strip().encode(), expected.encode())

    if not is_valid:
        logger.warning(
            "Invalid payment webhook signature - request rejected. "
            "This may indicate a spoofed request or misconfigured secret."
        )

    return is_valid
