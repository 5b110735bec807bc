"""
Conversation orchestration - runs one inbound chat message through the flow.

    extract -> normalize -> duplicate guard -> contact log -> busy guard
            -> cancel nudge -> classify -> transition -> save -> effects

All IO lives here; the decision of what to do lives in state_machine.
"""

import logging
import random
from datetime import UTC, datetime, timedelta
from typing import Any

from figurine_bot.constants.states import ConversationState, EventKind, MiniSize
from figurine_bot.core.config import Settings
from figurine_bot.core.exceptions import CatalogSearchError
from figurine_bot.services.contact_log import ContactLog
from figurine_bot.services.conversation.state_machine import (
    AssistantReply,
    Effect,
    Event,
    Reply,
    SchedulePaymentNudge,
    SearchCatalog,
    SendImage,
    SendRaw,
    StartPreview,
    TeachAnswer,
    TransitionContext,
    classify_event,
    payment_link_params,
    transition,
)
from figurine_bot.services.guards import (
    BusyNoticeGuard,
    DuplicateGuard,
    NudgeScheduler,
    PreviewInFlight,
)
from figurine_bot.services.memory_store import MemoryStore
from figurine_bot.services.messaging.outbound import Messenger
from figurine_bot.services.payload_extraction import (
    extract_contact_name,
    extract_display_name,
    extract_image_url,
    extract_phone,
    extract_text,
    is_from_me,
    is_group_message,
)
from figurine_bot.services.payments.pricing import allocate_expected_amount
from figurine_bot.services.payments.reconciliation import is_eligible
from figurine_bot.services.preview import PreviewService
from figurine_bot.services.reference_store import ReferenceStore
from figurine_bot.services.session_store import SessionStore
from figurine_bot.services.text_normalization import normalize_phone, normalize_text

logger = logging.getLogger(__name__)


class ConversationService:
    def __init__(
        self,
        settings: Settings,
        session_store: SessionStore,
        messenger: Messenger,
        reference_store: ReferenceStore,
        memory_store: MemoryStore,
        contact_log: ContactLog,
        duplicate_guard: DuplicateGuard,
        busy_guard: BusyNoticeGuard,
        in_flight: PreviewInFlight,
        nudges: NudgeScheduler,
        preview: PreviewService,
        assistant,
        catalog,
        rng: random.Random | None = None,
    ):
        self.settings = settings
        self.session_store = session_store
        self.messenger = messenger
        self.reference_store = reference_store
        self.memory_store = memory_store
        self.contact_log = contact_log
        self.duplicate_guard = duplicate_guard
        self.busy_guard = busy_guard
        self.in_flight = in_flight
        self.nudges = nudges
        self.preview = preview
        self.assistant = assistant
        self.catalog = catalog
        self._rng = rng or random.SystemRandom()
        self._admin_phones = {
            normalize_phone(p, settings.default_country_code) for p in settings.admin_phone_set()
        }

    # --- Inbound ---

    async def handle_inbound(self, payload: Any) -> None:
        """Process one chat gateway webhook payload. Malformed payloads are dropped silently."""
        if not isinstance(payload, dict) or is_from_me(payload) or is_group_message(payload):
            return

        phone = normalize_phone(extract_phone(payload), self.settings.default_country_code)
        if not phone:
            logger.debug("Inbound payload without phone - ignoring")
            return

        raw_text = extract_text(payload)
        text = normalize_text(raw_text)
        image_url = extract_image_url(payload)
        if not text and not image_url:
            logger.debug(f"Inbound payload from {phone} without text or image - ignoring")
            return

        if self.duplicate_guard.is_duplicate(phone, raw_text or image_url):
            logger.info(f"Duplicate message from {phone} suppressed")
            return

        self.contact_log.record(phone, extract_display_name(payload))

        if self.in_flight.is_busy(phone):
            if self.busy_guard.should_notify(phone):
                await self.messenger.send_reply(phone, "busy_notice")
            logger.info(f"Preview in progress for {phone} - message dropped")
            return

        self.nudges.cancel(phone)

        contact_name = extract_contact_name(payload)
        session = self.session_store.get(phone)
        event = classify_event(session, text, image_url, is_admin=phone in self._admin_phones)
        try:
            ctx = self._build_context(phone, event, contact_name)
        except OSError as e:
            logger.error(f"Could not persist payment reference for {phone}: {e}", exc_info=True)
            await self.messenger.send_reply(phone, "reference_store_failed")
            return

        result = transition(session, event, ctx)
        self.session_store.save(phone, result.session)
        logger.info(
            f"{phone}: {session.state.value} --{event.kind.value}--> {result.session.state.value}"
        )

        await self.apply_effects(phone, result.effects, contact_name)

    def _build_context(
        self,
        phone: str,
        event: Event,
        contact_name: str | None,
    ) -> TransitionContext:
        s = self.settings
        now = datetime.now(UTC)
        return TransitionContext(
            now=now,
            allocate_amount=lambda: self.allocate_amount(phone, now),
            contact_name=contact_name,
            reference=(
                self.reference_store.get_or_create_ref(phone)
                if event.kind == EventKind.PHOTO
                else None
            ),
            memory_answer=(
                self.memory_store.get_answer(event.text)
                if event.kind in (EventKind.FREE_TEXT, EventKind.PAID)
                else None
            ),
            assistant_enabled=self.assistant.enabled,
            checkout_base_url=s.preview_checkout_url,
            pix_qr_url=s.preview_pix_qr_url,
            max_link_resends=s.payment_link_max_resends,
            link_cooldown_seconds=s.payment_link_cooldown_seconds,
            size_links={
                MiniSize.SIZE_16: s.appmax_link_16,
                MiniSize.SIZE_21: s.appmax_link_21,
            },
        )

    def allocate_amount(self, phone: str, now: datetime) -> int:
        """Unique due amount, avoiding amounts other in-window pending sessions hold."""
        s = self.settings
        window = timedelta(minutes=s.payment_match_window_minutes)
        taken = {
            session.expected_amount_cents
            for other, session in self.session_store.items()
            if other != phone and is_eligible(session, now, window)
        }
        return allocate_expected_amount(
            s.preview_base_fee_cents, s.preview_offset_max_cents, taken, self._rng
        )

    # --- Effects ---

    async def apply_effects(
        self,
        phone: str,
        effects: list[Effect],
        contact_name: str | None = None,
    ) -> None:
        for effect in effects:
            if isinstance(effect, Reply):
                await self.messenger.send_reply(phone, effect.key, **effect.params)
            elif isinstance(effect, SendRaw):
                await self.messenger.send_text(phone, effect.text)
            elif isinstance(effect, SendImage):
                caption = (
                    self.messenger.render(effect.caption_key, phone, **effect.caption_params)
                    if effect.caption_key
                    else ""
                )
                await self.messenger.send_image(phone, effect.url, caption)
            elif isinstance(effect, SchedulePaymentNudge):
                self.nudges.schedule(
                    phone,
                    self.settings.payment_nudge_delay_seconds,
                    lambda: self.send_payment_nudge(phone, contact_name),
                )
            elif isinstance(effect, SearchCatalog):
                await self.search_catalog(phone, effect.term)
            elif isinstance(effect, StartPreview):
                await self.preview.run(phone)
            elif isinstance(effect, TeachAnswer):
                self.memory_store.set_answer(effect.question, effect.answer)
            elif isinstance(effect, AssistantReply):
                await self.assistant_reply(phone, effect.text)
            else:
                logger.error(f"Unknown effect {effect!r} for {phone}")

    async def send_payment_nudge(self, phone: str, contact_name: str | None = None) -> None:
        """Re-engagement reminder; only if the customer is still at the payment step."""
        session = self.session_store.get(phone)
        if session.state != ConversationState.PAYMENT_PENDING:
            logger.debug(f"Nudge for {phone} skipped - state is {session.state.value}")
            return
        await self.messenger.send_reply(
            phone,
            "payment_nudge",
            nome=contact_name,
            **payment_link_params(session, self.settings.preview_checkout_url),
        )

    async def search_catalog(self, phone: str, term: str) -> None:
        try:
            items = await self.catalog.search(term)
        except CatalogSearchError as e:
            logger.error(f"Catalog search failed for {phone}: {e}", exc_info=True)
            await self.messenger.send_reply(phone, "catalog_error")
            return

        if not items:
            await self.messenger.send_reply(phone, "catalog_empty", term=term)
            return

        for item in items:
            caption = self.messenger.render(
                "catalog_item", phone, title=item.title, price=item.price_label, url=item.url
            )
            if item.image_url:
                await self.messenger.send_image(phone, item.image_url, caption)
            else:
                await self.messenger.send_text(phone, caption)

    async def assistant_reply(self, phone: str, text: str) -> None:
        answer = await self.assistant.reply(text)
        if answer:
            await self.messenger.send_text(phone, answer)
        else:
            await self.messenger.send_reply(phone, "main_menu_reprompt")

    # --- Payment side ---

    async def on_payment_confirmed(self, phone: str) -> None:
        """Runs after reconciliation marked phone's session paid."""
        self.nudges.cancel(phone)
        await self.messenger.send_reply(phone, "payment_confirmed")
        await self.preview.run(phone)
