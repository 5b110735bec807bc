import logging

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse

from figurine_bot.api.webhooks import router as webhooks_router
from figurine_bot.core.config import settings
from figurine_bot.core.runtime import build_runtime
from figurine_bot.middleware.correlation_id import CorrelationIdMiddleware
from figurine_bot.schemas.webhooks import HealthResponse, IntegrationStatus

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Figurine Preview Bot")

# Tag every request (and the background jobs it starts) with a correlation id
app.add_middleware(CorrelationIdMiddleware)


@app.on_event("startup")
async def startup_event():
    """Build the runtime (unless one was installed already) and log what is enabled."""
    if getattr(app.state, "runtime", None) is None:
        app.state.runtime = build_runtime(settings)

    # Log enabled integrations summary (no secrets)
    logger.info(
        "Startup: Configuration loaded - "
        f"Environment: {settings.app_env}, "
        f"Chat dry-run: {settings.chat_dry_run}, "
        f"Data dir: {settings.data_dir}"
    )
    if settings.app_env == "production" and not settings.payment_webhook_secret:
        logger.warning(
            "PAYMENT_WEBHOOK_SECRET is not set - every payment webhook will be rejected "
            "and no preview will ever be unlocked."
        )


@app.on_event("shutdown")
async def shutdown_event():
    runtime = getattr(app.state, "runtime", None)
    if runtime is not None:
        runtime.nudges.cancel_all()
        logger.info("Shutdown: pending nudges cancelled")


@app.get("/", response_class=PlainTextResponse)
def root():
    return "3DFANS webhook online"


@app.get("/health", response_model=HealthResponse)
def health():
    """
    Health check endpoint with integration visibility.

    Returns 200 immediately - used for basic liveness checks.
    """
    return HealthResponse(
        integrations=IntegrationStatus(
            chat_gateway_configured=bool(settings.zapi_instance and settings.zapi_token),
            chat_dry_run=settings.chat_dry_run,
            openai_configured=bool(settings.openai_api_key),
            catalog_configured=bool(settings.shopify_domain and settings.shopify_storefront_token),
            payment_webhook_secret_configured=bool(settings.payment_webhook_secret),
        )
    )


app.include_router(webhooks_router)
