"""
Process-wide runtime: the stores, guards, clients and services one worker uses.

Built once at startup and kept on app.state; routes reach it through the
get_runtime dependency so tests can swap in a runtime with fakes.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from fastapi import Request

from figurine_bot.core.config import Settings
from figurine_bot.services.contact_log import CONTACTS_FILENAME, ContactLog
from figurine_bot.services.conversation.conversation import ConversationService
from figurine_bot.services.guards import (
    BusyNoticeGuard,
    DuplicateGuard,
    NudgeScheduler,
    PreviewInFlight,
)
from figurine_bot.services.integrations.openai_assistant import AssistantClient
from figurine_bot.services.integrations.openai_images import PreviewImageGenerator
from figurine_bot.services.integrations.shopify_catalog import ShopifyCatalog
from figurine_bot.services.integrations.zapi_client import ZapiClient
from figurine_bot.services.memory_store import MEMORY_FILENAME, MemoryStore
from figurine_bot.services.messaging.message_composer import MessageComposer
from figurine_bot.services.messaging.outbound import Messenger
from figurine_bot.services.payments.reconciliation import PaymentReconciler
from figurine_bot.services.preview import PreviewService
from figurine_bot.services.reference_store import REFS_FILENAME, ReferenceStore
from figurine_bot.services.session_store import InMemorySessionStore, SessionStore

logger = logging.getLogger(__name__)


@dataclass
class Runtime:
    settings: Settings
    session_store: SessionStore
    reference_store: ReferenceStore
    nudges: NudgeScheduler
    reconciler: PaymentReconciler
    conversation: ConversationService


def build_runtime(
    settings: Settings,
    gateway=None,
    image_generator=None,
    assistant=None,
    catalog=None,
    session_store: SessionStore | None = None,
) -> Runtime:
    """
    Wire the runtime from settings. Collaborators may be passed in (tests use
    a capturing gateway and a fake image generator); the rest are built from
    configuration.
    """
    data_dir = Path(settings.data_dir)
    composer = MessageComposer(settings.prompts_dir)

    if gateway is None:
        gateway = ZapiClient(settings)
    if image_generator is None:
        image_generator = PreviewImageGenerator(
            settings.openai_api_key,
            model=settings.openai_image_model,
            download_timeout_seconds=settings.image_timeout_seconds,
        )
    if assistant is None:
        assistant = AssistantClient(
            settings.openai_api_key,
            system_prompt=lambda: composer.system_prompt,
            model=settings.openai_chat_model,
            timeout_seconds=settings.text_timeout_seconds,
        )
    if catalog is None:
        catalog = ShopifyCatalog(
            settings.shopify_domain,
            settings.shopify_storefront_token,
            api_version=settings.shopify_api_version,
            public_domain=settings.shop_public_domain,
            max_results=settings.catalog_max_results,
            timeout_seconds=settings.catalog_timeout_seconds,
        )

    if session_store is None:
        session_store = InMemorySessionStore()
    reference_store = ReferenceStore(data_dir / REFS_FILENAME)
    messenger = Messenger(gateway, composer)
    in_flight = PreviewInFlight()
    nudges = NudgeScheduler()

    preview = PreviewService(
        session_store,
        messenger,
        image_generator,
        in_flight,
        step_delay_ms=settings.preview_step_delay_ms,
    )
    conversation = ConversationService(
        settings=settings,
        session_store=session_store,
        messenger=messenger,
        reference_store=reference_store,
        memory_store=MemoryStore(data_dir / MEMORY_FILENAME),
        contact_log=ContactLog(data_dir / CONTACTS_FILENAME),
        duplicate_guard=DuplicateGuard(
            settings.duplicate_window_seconds, settings.guard_cache_max_entries
        ),
        busy_guard=BusyNoticeGuard(
            settings.busy_notice_interval_seconds, settings.guard_cache_max_entries
        ),
        in_flight=in_flight,
        nudges=nudges,
        preview=preview,
        assistant=assistant,
        catalog=catalog,
    )
    reconciler = PaymentReconciler(
        session_store,
        reference_store,
        match_window_minutes=settings.payment_match_window_minutes,
    )

    logger.info(
        "Runtime ready - "
        f"chat dry-run: {getattr(gateway, 'dry_run', 'n/a')}, "
        f"previews: {getattr(image_generator, 'enabled', 'n/a')}, "
        f"assistant: {getattr(assistant, 'enabled', 'n/a')}, "
        f"catalog: {getattr(catalog, 'enabled', 'n/a')}, "
        f"payment secret set: {bool(settings.payment_webhook_secret)}"
    )

    return Runtime(
        settings=settings,
        session_store=session_store,
        reference_store=reference_store,
        nudges=nudges,
        reconciler=reconciler,
        conversation=conversation,
    )


def get_runtime(request: Request) -> Runtime:
    """FastAPI dependency: the runtime built at startup."""
    return request.app.state.runtime
