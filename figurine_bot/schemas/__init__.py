"""
Pydantic schemas for API responses.
"""

from figurine_bot.schemas.webhooks import (
    HealthResponse,
    IntegrationStatus,
    PaymentWebhookError,
    PaymentWebhookResponse,
    WebhookAck,
)

__all__ = [
    "WebhookAck",
    "PaymentWebhookResponse",
    "PaymentWebhookError",
    "IntegrationStatus",
    "HealthResponse",
]
