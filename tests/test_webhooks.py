"""
Tests for the HTTP surface: chat webhook, payment webhook, probes.
"""

from datetime import UTC, datetime

from figurine_bot.constants.states import ConversationState, MiniStyle, Mode
from figurine_bot.services.payments.signature import compute_payment_signature
from figurine_bot.services.session_store import Session
from tests.conftest import TEST_PAYMENT_SECRET
from tests.helpers.payment_webhook import build_signed_payment_webhook, create_charge_completed_event

PHONE = "5511999998888"


def pending_session(amount: int) -> Session:
    return Session(
        greeted=True,
        mode=Mode.FIGURINE,
        photo_received=True,
        last_image_url="https://cdn.example.com/photo.jpg",
        mini_style=MiniStyle.CARTOON,
        preview_payment_pending=True,
        expected_amount_cents=amount,
        preview_created_at=datetime.now(UTC),
    )


# --- payment webhook: probe ---


def test_payment_webhook_get_probe(client):
    assert client.get("/payment-webhook").status_code == 200


# --- chat webhook ---


def test_chat_webhook_acknowledges_and_processes(client, gateway, runtime):
    response = client.post("/webhook", json={"phone": PHONE, "text": {"message": "oi"}})

    assert response.status_code == 200
    assert response.json() == {"received": True}
    assert len(gateway.texts(PHONE)) == 1
    assert runtime.session_store.get(PHONE).state == ConversationState.MAIN_MENU


def test_chat_webhook_invalid_json_still_200(client, gateway):
    response = client.post(
        "/webhook", content=b"{not json", headers={"Content-Type": "application/json"}
    )
    assert response.status_code == 200
    assert response.json() == {"received": True}
    assert gateway.sent == []


def test_chat_webhook_empty_body_still_200(client, gateway):
    response = client.post("/webhook", content=b"")
    assert response.status_code == 200
    assert gateway.sent == []


def test_chat_webhook_non_object_payload_ignored(client, gateway):
    response = client.post("/webhook", json=[{"phone": PHONE}])
    assert response.status_code == 200
    assert gateway.sent == []


# --- payment webhook: signature ---


def test_payment_webhook_missing_signature_rejected(client, runtime):
    runtime.session_store.save(PHONE, pending_session(1007))
    response = client.post("/payment-webhook", json=create_charge_completed_event(1007))

    assert response.status_code == 401
    assert response.json() == {"error": "Invalid signature"}
    assert runtime.session_store.get(PHONE).preview_paid is False


def test_payment_webhook_wrong_signature_rejected(client, runtime):
    runtime.session_store.save(PHONE, pending_session(1007))
    body, headers = build_signed_payment_webhook(create_charge_completed_event(1007), "wrong_secret")

    response = client.post("/payment-webhook", content=body, headers=headers)

    assert response.status_code == 401
    assert runtime.session_store.get(PHONE).preview_paid is False


def test_payment_webhook_rejected_when_secret_not_configured(client, runtime):
    runtime.settings.payment_webhook_secret = None
    runtime.session_store.save(PHONE, pending_session(1007))
    body, headers = build_signed_payment_webhook(
        create_charge_completed_event(1007), TEST_PAYMENT_SECRET
    )

    response = client.post("/payment-webhook", content=body, headers=headers)

    assert response.status_code == 401
    assert runtime.session_store.get(PHONE).preview_paid is False


def test_payment_webhook_custom_signature_header(client, runtime):
    runtime.settings.payment_signature_header = "x-webhook-signature"
    runtime.session_store.save(PHONE, pending_session(1007))
    body, headers = build_signed_payment_webhook(
        create_charge_completed_event(1007), TEST_PAYMENT_SECRET, header_name="x-webhook-signature"
    )

    response = client.post("/payment-webhook", content=body, headers=headers)

    assert response.status_code == 200
    assert response.json()["matched"] is True


def test_payment_webhook_invalid_json(client):
    body = b"{not json"
    headers = {"x-openpix-signature": compute_payment_signature(body, TEST_PAYMENT_SECRET)}
    response = client.post("/payment-webhook", content=body, headers=headers)

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid JSON payload"}


# --- payment webhook: matching ---


def test_payment_webhook_unmatched_amount(client, runtime, gateway):
    runtime.session_store.save(PHONE, pending_session(1007))
    body, headers = build_signed_payment_webhook(
        create_charge_completed_event(1042), TEST_PAYMENT_SECRET
    )

    response = client.post("/payment-webhook", content=body, headers=headers)

    assert response.status_code == 200
    assert response.json() == {"received": True, "matched": False}
    assert runtime.session_store.get(PHONE).preview_paid is False
    assert gateway.sent == []


def test_payment_webhook_non_finite_amount_is_unmatched(client, runtime):
    runtime.session_store.save(PHONE, pending_session(1007))
    # json.dumps writes float("nan") as a bare NaN token, which json.loads accepts
    event = {"event": "OPENPIX:CHARGE_COMPLETED", "charge": {"value": float("nan"), "status": "COMPLETED"}}
    body, headers = build_signed_payment_webhook(event, TEST_PAYMENT_SECRET)

    response = client.post("/payment-webhook", content=body, headers=headers)

    assert response.status_code == 200
    assert response.json() == {"received": True, "matched": False}
    assert runtime.session_store.get(PHONE).preview_paid is False


def test_payment_webhook_match_confirms_and_generates(client, runtime, gateway, image_generator):
    runtime.session_store.save(PHONE, pending_session(1007))
    body, headers = build_signed_payment_webhook(
        create_charge_completed_event(1007), TEST_PAYMENT_SECRET
    )

    response = client.post("/payment-webhook", content=body, headers=headers)

    assert response.status_code == 200
    assert response.json() == {"received": True, "matched": True}
    assert gateway.texts(PHONE)[0].startswith("✅ Pagamento confirmado!")
    assert image_generator.calls == [("https://cdn.example.com/photo.jpg", MiniStyle.CARTOON)]
    assert runtime.session_store.get(PHONE).state == ConversationState.AWAITING_SIZE


def test_payment_webhook_non_payment_event_ignored(client, runtime):
    runtime.session_store.save(PHONE, pending_session(1007))
    event = {"event": "OPENPIX:CHARGE_CREATED", "charge": {"value": 1007, "status": "ACTIVE"}}
    body, headers = build_signed_payment_webhook(event, TEST_PAYMENT_SECRET)

    response = client.post("/payment-webhook", content=body, headers=headers)

    assert response.json()["matched"] is False
    assert runtime.session_store.get(PHONE).preview_payment_pending is True
