"""
Conversation state machine - pure transition function for the chat flow.

    greeting -> product choice -> photo -> style -> payment -> preview -> size

`transition(session, event, ctx)` never performs IO: it returns the next
session plus a list of effects (replies to render, images to send, jobs to
start) that the orchestrator executes. Time, randomness and lookups that
need storage (memory answers, reference tokens) arrive through `ctx`.

Payment confirmation is not an inbound chat event; it reaches the session
through payment reconciliation, which flips PAYMENT_PENDING to
PREVIEW_PENDING and starts the preview job.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from figurine_bot.constants.states import (
    SIZE_PRICES_BRL,
    STYLE_LABELS,
    ConversationState,
    EventKind,
    MiniSize,
    MiniStyle,
    Mode,
)
from figurine_bot.services.conversation.intents import (
    is_human_request,
    is_menu_command,
    is_paid_assertion,
    parse_main_choice,
    parse_size,
    parse_style,
)
from figurine_bot.services.memory_store import is_teach_command, parse_teach_command
from figurine_bot.services.payments.pricing import build_checkout_url, format_brl
from figurine_bot.services.session_store import Session

# --- Effects ---


@dataclass(frozen=True)
class Reply:
    """Render a copy key. Params may themselves be Reply values (rendered first)."""

    key: str
    params: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SendRaw:
    text: str


@dataclass(frozen=True)
class SendImage:
    url: str
    caption_key: str | None = None
    caption_params: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SchedulePaymentNudge:
    pass


@dataclass(frozen=True)
class SearchCatalog:
    term: str


@dataclass(frozen=True)
class StartPreview:
    pass


@dataclass(frozen=True)
class TeachAnswer:
    question: str
    answer: str


@dataclass(frozen=True)
class AssistantReply:
    text: str


Effect = (
    Reply
    | SendRaw
    | SendImage
    | SchedulePaymentNudge
    | SearchCatalog
    | StartPreview
    | TeachAnswer
    | AssistantReply
)


# --- Inputs ---


@dataclass(frozen=True)
class Event:
    kind: EventKind
    text: str = ""
    image_url: str | None = None
    choice: str | None = None
    style: MiniStyle | None = None
    size: MiniSize | None = None


@dataclass(frozen=True)
class TransitionContext:
    now: datetime
    allocate_amount: Callable[[], int] = lambda: 0
    contact_name: str | None = None
    reference: str | None = None  # Customer's reference token, resolved for photo events
    memory_answer: str | None = None
    assistant_enabled: bool = False
    checkout_base_url: str = ""
    pix_qr_url: str | None = None
    max_link_resends: int = 3
    link_cooldown_seconds: float = 60
    size_links: dict[MiniSize, str | None] = field(default_factory=dict)


@dataclass(frozen=True)
class TransitionResult:
    session: Session
    effects: list[Effect] = field(default_factory=list)


def classify_event(
    session: Session,
    text: str,
    image_url: str | None = None,
    is_admin: bool = False,
) -> Event:
    """
    Turn one inbound message into an event, given where the customer is.

    Menu and human commands are recognized in every state; numeric choices
    are only choices in the states that offer them ("2" while awaiting style
    is a style, not the main-menu option).
    """
    state = session.state

    if state == ConversationState.UNSEEN:
        return Event(EventKind.GREETING, text=text, image_url=image_url)
    if image_url:
        return Event(EventKind.PHOTO, text=text, image_url=image_url)
    if is_menu_command(text):
        return Event(EventKind.MENU, text=text)
    if is_human_request(text):
        return Event(EventKind.HUMAN, text=text)
    if is_admin and is_teach_command(text):
        return Event(EventKind.TEACH, text=text)

    if state in (ConversationState.MAIN_MENU, ConversationState.MASCOT_BROWSING):
        choice = parse_main_choice(text)
        if choice:
            return Event(EventKind.MAIN_CHOICE, text=text, choice=choice)
    if state == ConversationState.AWAITING_STYLE:
        style = parse_style(text)
        if style:
            return Event(EventKind.STYLE_CHOICE, text=text, style=style)
    if state == ConversationState.AWAITING_SIZE:
        size = parse_size(text)
        if size:
            return Event(EventKind.SIZE_CHOICE, text=text, size=size)

    if is_paid_assertion(text):
        return Event(EventKind.PAID, text=text)
    return Event(EventKind.FREE_TEXT, text=text)


def payment_link_params(session: Session, checkout_base_url: str) -> dict[str, Any]:
    """Amount and checkout link for a session's pending preview fee."""
    return {
        "amount": format_brl(session.expected_amount_cents or 0),
        "checkout_url": build_checkout_url(
            checkout_base_url, session.preview_ref, session.expected_amount_cents
        ),
    }


def _welcome(ctx: TransitionContext) -> Reply:
    return Reply("welcome", {"nome": ctx.contact_name})


def _on_greeting(session: Session, event: Event, ctx: TransitionContext) -> TransitionResult:
    # First contact: welcome only, the message itself is not processed further
    return TransitionResult(session.update(greeted=True), [_welcome(ctx)])


def _on_menu(session: Session, event: Event, ctx: TransitionContext) -> TransitionResult:
    return TransitionResult(Session(greeted=True), [_welcome(ctx)])


def _on_human(session: Session, event: Event, ctx: TransitionContext) -> TransitionResult:
    return TransitionResult(session, [Reply("human_handoff")])


def _on_teach(session: Session, event: Event, ctx: TransitionContext) -> TransitionResult:
    parsed = parse_teach_command(event.text)
    if parsed is None:
        return TransitionResult(session, [Reply("teach_invalid")])
    question, answer = parsed
    return TransitionResult(
        session,
        [TeachAnswer(question, answer), Reply("teach_ack", {"question": question})],
    )


def _on_main_choice(session: Session, event: Event, ctx: TransitionContext) -> TransitionResult:
    if event.choice == "1":
        return TransitionResult(Session(greeted=True, mode=Mode.MASCOT), [Reply("menu_mascot")])
    return TransitionResult(Session(greeted=True, mode=Mode.FIGURINE), [Reply("menu_miniature")])


def _on_photo(session: Session, event: Event, ctx: TransitionContext) -> TransitionResult:
    state = session.state

    if state == ConversationState.PREVIEW_PENDING:
        # Paid but no preview yet (or the last attempt failed): retry with this photo
        return TransitionResult(
            session.update(last_image_url=event.image_url),
            [StartPreview()],
        )

    if state == ConversationState.PAYMENT_PENDING:
        amount = format_brl(session.expected_amount_cents or 0)
        return TransitionResult(
            session.update(last_image_url=event.image_url),
            [Reply("photo_updated_payment_pending", {"amount": amount})],
        )

    # Any other step: the photo starts (or restarts) the figurine cycle
    fresh = Session(
        greeted=True,
        mode=Mode.FIGURINE,
        photo_received=True,
        last_image_url=event.image_url,
        awaiting_style=True,
        preview_ref=ctx.reference or session.preview_ref,
    )
    return TransitionResult(fresh, [Reply("style_menu")])


def _on_style_choice(session: Session, event: Event, ctx: TransitionContext) -> TransitionResult:
    amount = ctx.allocate_amount()
    updated = session.update(
        mini_style=event.style,
        awaiting_style=False,
        preview_payment_pending=True,
        preview_paid=False,
        preview_sent=False,
        expected_amount_cents=amount,
        preview_created_at=ctx.now,
        preview_charge_sends=0,
        last_preview_charge_at=ctx.now,
    )
    link = payment_link_params(updated, ctx.checkout_base_url)

    effects: list[Effect] = [
        Reply("payment_link", {"style": STYLE_LABELS[event.style], **link}),
    ]
    if ctx.pix_qr_url:
        effects.append(SendImage(ctx.pix_qr_url, "pix_qr_caption", {"amount": link["amount"]}))
    effects.append(SchedulePaymentNudge())
    return TransitionResult(updated, effects)


def _on_size_choice(session: Session, event: Event, ctx: TransitionContext) -> TransitionResult:
    link = ctx.size_links.get(event.size)
    link_line = Reply("budget_link_line", {"link": link}) if link else Reply("budget_link_pending")
    return TransitionResult(
        session.update(mini_size=event.size),
        [
            Reply(
                "budget",
                {
                    "size": event.size.value,
                    "price": SIZE_PRICES_BRL[event.size],
                    "link_line": link_line,
                },
            )
        ],
    )


def _on_paid(session: Session, event: Event, ctx: TransitionContext) -> TransitionResult:
    if session.state == ConversationState.PAYMENT_PENDING:
        # Informational only: the webhook is the source of truth
        return TransitionResult(session, [Reply("payment_paid_ack")])
    return _on_free_text(session, event, ctx)


def _resend_payment_link(session: Session, ctx: TransitionContext) -> TransitionResult:
    if session.preview_charge_sends >= ctx.max_link_resends:
        return TransitionResult(session, [Reply("payment_already_sent")])

    last = session.last_preview_charge_at
    if last is not None and ctx.now - last < timedelta(seconds=ctx.link_cooldown_seconds):
        return TransitionResult(session, [Reply("payment_awaiting_confirmation")])

    updated = session.update(
        preview_charge_sends=session.preview_charge_sends + 1,
        last_preview_charge_at=ctx.now,
    )
    return TransitionResult(
        updated,
        [Reply("payment_link_resend", payment_link_params(updated, ctx.checkout_base_url))],
    )


def _on_free_text(session: Session, event: Event, ctx: TransitionContext) -> TransitionResult:
    state = session.state

    if state == ConversationState.MAIN_MENU:
        if ctx.memory_answer:
            return TransitionResult(session, [SendRaw(ctx.memory_answer)])
        if ctx.assistant_enabled and event.text:
            return TransitionResult(session, [AssistantReply(event.text)])
        return TransitionResult(session, [Reply("main_menu_reprompt")])

    if state == ConversationState.MASCOT_BROWSING:
        if ctx.memory_answer:
            return TransitionResult(session, [SendRaw(ctx.memory_answer)])
        return TransitionResult(session, [SearchCatalog(event.text)])

    if state == ConversationState.AWAITING_PHOTO:
        return TransitionResult(session, [Reply("photo_prompt")])
    if state == ConversationState.AWAITING_STYLE:
        return TransitionResult(session, [Reply("style_menu_retry")])
    if state == ConversationState.PAYMENT_PENDING:
        return _resend_payment_link(session, ctx)
    if state == ConversationState.PREVIEW_PENDING:
        return TransitionResult(session, [Reply("preview_pending_hint")])
    if state == ConversationState.AWAITING_SIZE:
        return TransitionResult(session, [Reply("size_prompt")])
    return TransitionResult(session, [Reply("quoted_hint")])


_HANDLERS = {
    EventKind.GREETING: _on_greeting,
    EventKind.MENU: _on_menu,
    EventKind.HUMAN: _on_human,
    EventKind.TEACH: _on_teach,
    EventKind.MAIN_CHOICE: _on_main_choice,
    EventKind.PHOTO: _on_photo,
    EventKind.STYLE_CHOICE: _on_style_choice,
    EventKind.SIZE_CHOICE: _on_size_choice,
    EventKind.PAID: _on_paid,
    EventKind.FREE_TEXT: _on_free_text,
}


def transition(session: Session, event: Event, ctx: TransitionContext) -> TransitionResult:
    """Apply one inbound event to a session. Pure: returns the next session and effects."""
    return _HANDLERS[event.kind](session, event, ctx)
