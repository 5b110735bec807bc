import json
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import JSONResponse, Response

from figurine_bot.core.runtime import Runtime, get_runtime
from figurine_bot.middleware.correlation_id import get_correlation_id, set_correlation_id
from figurine_bot.schemas.webhooks import PaymentWebhookError, PaymentWebhookResponse, WebhookAck
from figurine_bot.services.payments.reconciliation import parse_payment_notification
from figurine_bot.services.payments.signature import verify_payment_signature

logger = logging.getLogger(__name__)

router = APIRouter()


def _payment_error_response(status_code: int, error: str, **content_extras) -> JSONResponse:
    """Build JSONResponse for payment webhook errors: {"error": ...}."""
    content: dict = {"error": error, **content_extras}
    return JSONResponse(status_code=status_code, content=content)


async def _process_inbound_background(
    runtime: Runtime, payload: dict, correlation_id: str | None = None
) -> None:
    """Background job: run the chat flow for one inbound message. Never raises."""
    set_correlation_id(correlation_id)
    try:
        await runtime.conversation.handle_inbound(payload)
    except Exception as e:
        logger.error(
            f"Inbound chat processing failed correlation_id={correlation_id}: {e}",
            exc_info=True,
        )


async def _payment_confirmed_background(
    runtime: Runtime, phone: str, correlation_id: str | None = None
) -> None:
    """Background job: confirmation message + preview generation. Never raises."""
    set_correlation_id(correlation_id)
    try:
        await runtime.conversation.on_payment_confirmed(phone)
    except Exception as e:
        logger.error(
            f"Post-payment flow failed for {phone} correlation_id={correlation_id}: {e}",
            exc_info=True,
        )


@router.post("/webhook", response_model=WebhookAck)
async def chat_inbound(
    request: Request,
    background_tasks: BackgroundTasks,
    runtime: Runtime = Depends(get_runtime),
):
    correlation_id = get_correlation_id(request)
    logger.info(
        f"chat.inbound_received correlation_id={correlation_id}",
        extra={"correlation_id": correlation_id, "event_type": "chat.inbound_received"},
    )

    # The gateway expects an immediate 200; processing continues after the response
    raw_body = await request.body()
    try:
        payload = json.loads(raw_body.decode("utf-8")) if raw_body else None
    except (ValueError, UnicodeDecodeError) as e:
        logger.warning(f"Invalid JSON payload in chat webhook: {e}")
        return WebhookAck()

    if isinstance(payload, dict):
        background_tasks.add_task(_process_inbound_background, runtime, payload, correlation_id)
    return WebhookAck()


@router.post(
    "/payment-webhook",
    response_model=PaymentWebhookResponse,
    responses={400: {"model": PaymentWebhookError}, 401: {"model": PaymentWebhookError}},
)
async def payment_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    runtime: Runtime = Depends(get_runtime),
):
    correlation_id = get_correlation_id(request)
    raw_body = await request.body()
    settings = runtime.settings
    signature = request.headers.get(settings.payment_signature_header)

    if not verify_payment_signature(raw_body, signature, settings.payment_webhook_secret):
        return _payment_error_response(401, "Invalid signature")

    try:
        payload = json.loads(raw_body.decode("utf-8"))
    except (ValueError, UnicodeDecodeError) as e:
        logger.warning(f"Invalid JSON payload in payment webhook: {e}")
        return _payment_error_response(400, "Invalid JSON payload")

    notification = parse_payment_notification(payload)
    logger.info(
        f"payment.notification_received correlation_id={correlation_id} "
        f"amount={notification.amount_cents} ref={notification.external_ref}",
        extra={"correlation_id": correlation_id, "event_type": "payment.notification_received"},
    )

    # Marking paid happens inside the request so a repeated delivery sees the session as settled
    phone = runtime.reconciler.reconcile(notification)
    if phone is None:
        return PaymentWebhookResponse(matched=False)

    runtime.nudges.cancel(phone)
    background_tasks.add_task(_payment_confirmed_background, runtime, phone, correlation_id)
    return PaymentWebhookResponse(matched=True)


@router.get("/payment-webhook")
def payment_webhook_probe():
    # Provider dashboards probe the URL with GET before enabling it
    return Response(status_code=200)
