"""
Webhook and probe response schemas.
"""

from pydantic import BaseModel


class WebhookAck(BaseModel):
    """Immediate acknowledgement for the chat gateway."""

    received: bool = True


class PaymentWebhookResponse(BaseModel):
    received: bool = True
    matched: bool


class PaymentWebhookError(BaseModel):
    error: str


class IntegrationStatus(BaseModel):
    chat_gateway_configured: bool
    chat_dry_run: bool
    openai_configured: bool
    catalog_configured: bool
    payment_webhook_secret_configured: bool


class HealthResponse(BaseModel):
    ok: bool = True
    integrations: IntegrationStatus
