"""
Payment reconciliation - match a verified PIX notification to a pending session.

The notification identifies the payer ambiguously: it may carry our reference
token (as correlation id / external id), and it always carries the amount.
Matching order:

1. Reference token that resolves to a phone whose session is awaiting exactly
   the notified amount.
2. Otherwise, the exact expected amount among sessions assigned within the
   match window, oldest assignment first.

Marking a session paid flips preview_payment_pending -> preview_paid, so a
repeated delivery of the same notification finds nothing eligible.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any

from figurine_bot.services.reference_store import ReferenceStore
from figurine_bot.services.session_store import Session, SessionStore

logger = logging.getLogger(__name__)

_AMOUNT_PATHS = (
    ("charge", "value"),
    ("pix", "value"),
    ("data", "amount"),
    ("amount",),
    ("value",),
)

_REF_PATHS = (
    ("charge", "correlationID"),
    ("external_id",),
    ("data", "external_id"),
    ("ref",),
    ("pix", "charge", "correlationID"),
)

# Provider events that announce something other than a settled payment
_NON_PAYMENT_EVENT_MARKERS = ("CREATED", "EXPIRED", "REFUND")
_PAID_STATUSES = frozenset({"COMPLETED", "PAID", "APPROVED", "CONFIRMED", "APROVADO"})


@dataclass(frozen=True)
class PaymentNotification:
    amount_cents: int | None
    external_ref: str | None
    event: str | None = None
    status: str | None = None


def _dig(payload: Any, path: tuple[str, ...]) -> Any:
    node = payload
    for key in path:
        if not isinstance(node, dict):
            return None
        node = node.get(key)
    return node


def _to_cents(value: Any) -> int | None:
    """
    Integers (and digit-only strings) are already cents; decimals are reais.

    Examples:
        1007     -> 1007
        "1007"   -> 1007
        10.07    -> 1007
        "10,07"  -> 1007
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return _reais_to_cents(str(value))
    if isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        if s.isdigit():
            return int(s)
        return _reais_to_cents(s.replace(",", "."))
    return None


def _reais_to_cents(text: str) -> int | None:
    try:
        reais = Decimal(text)
    except (InvalidOperation, ValueError):
        return None
    # NaN and Infinity parse as Decimals but are not amounts
    if not reais.is_finite():
        return None
    return int((reais * 100).quantize(Decimal("1")))


def extract_amount_cents(payload: dict) -> int | None:
    for path in _AMOUNT_PATHS:
        cents = _to_cents(_dig(payload, path))
        if cents is not None:
            return cents
    return None


def extract_external_ref(payload: dict) -> str | None:
    for path in _REF_PATHS:
        value = _dig(payload, path)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def parse_payment_notification(payload: Any) -> PaymentNotification:
    if not isinstance(payload, dict):
        return PaymentNotification(amount_cents=None, external_ref=None)

    event = payload.get("event")
    status = _dig(payload, ("charge", "status")) or payload.get("status")
    return PaymentNotification(
        amount_cents=extract_amount_cents(payload),
        external_ref=extract_external_ref(payload),
        event=event if isinstance(event, str) else None,
        status=status if isinstance(status, str) else None,
    )


def is_payment_event(notification: PaymentNotification) -> bool:
    """
    True unless the notification explicitly announces a non-payment
    (charge created/expired, refund) or a non-settled status.
    """
    if notification.event:
        upper = notification.event.upper()
        if any(marker in upper for marker in _NON_PAYMENT_EVENT_MARKERS):
            return False
    if notification.status:
        return notification.status.strip().upper() in _PAID_STATUSES
    return True


def is_eligible(session: Session, now: datetime, window: timedelta) -> bool:
    """Session awaiting payment with an amount assigned within the window."""
    if not session.is_awaiting_payment() or session.preview_created_at is None:
        return False
    return now - session.preview_created_at <= window


class PaymentReconciler:
    def __init__(
        self,
        session_store: SessionStore,
        reference_store: ReferenceStore,
        match_window_minutes: int = 30,
    ):
        self.session_store = session_store
        self.reference_store = reference_store
        self.window = timedelta(minutes=match_window_minutes)

    def find_match(self, notification: PaymentNotification, now: datetime) -> str | None:
        """Phone of the pending session this notification pays, or None."""
        if notification.external_ref:
            phone = self.reference_store.ref_to_phone(notification.external_ref)
            if phone is not None:
                session = self.session_store.get(phone)
                if (
                    is_eligible(session, now, self.window)
                    and session.expected_amount_cents == notification.amount_cents
                ):
                    return phone
                logger.info(
                    f"Payment reference {notification.external_ref} resolved to {phone} "
                    f"but session is not awaiting {notification.amount_cents} cents"
                )

        if notification.amount_cents is None:
            return None

        candidates = [
            (session.preview_created_at, phone)
            for phone, session in self.session_store.items()
            if is_eligible(session, now, self.window)
            and session.expected_amount_cents == notification.amount_cents
        ]
        if not candidates:
            return None

        candidates.sort()
        if len(candidates) > 1:
            logger.warning(
                f"Ambiguous payment of {notification.amount_cents} cents matches "
                f"{len(candidates)} sessions - choosing oldest assignment {candidates[0][1]}"
            )
        return candidates[0][1]

    def mark_paid(self, phone: str) -> Session:
        session = self.session_store.get(phone).update(
            preview_payment_pending=False,
            preview_paid=True,
        )
        self.session_store.save(phone, session)
        return session

    def reconcile(self, notification: PaymentNotification, now: datetime | None = None) -> str | None:
        """
        Find and mark the paid session. Returns the phone, or None when the
        notification matches nothing (unknown payer, expired window or a
        repeated delivery).
        """
        now = now or datetime.now(UTC)
        if not is_payment_event(notification):
            logger.info(
                f"Ignoring payment notification event={notification.event} "
                f"status={notification.status}"
            )
            return None

        phone = self.find_match(notification, now)
        if phone is None:
            logger.info(
                f"No pending session for payment amount={notification.amount_cents} "
                f"ref={notification.external_ref}"
            )
            return None

        self.mark_paid(phone)
        logger.info(f"Payment of {notification.amount_cents} cents matched to {phone}")
        return phone
