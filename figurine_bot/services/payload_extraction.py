"""
Best-effort field extraction from Z-API webhook payloads.

The gateway has shipped several payload shapes over time; each extractor
tries every known path and returns the first non-empty match, or None when
the payload carries nothing usable.
"""

from typing import Any

from figurine_bot.services.text_normalization import first_name

_PHONE_PATHS = (
    ("phone",),
    ("from",),
    ("text", "from"),
    ("sender",),
    ("chatId",),
    ("message", "from"),
    ("data", "phone"),
    ("data", "from"),
)

_TEXT_PATHS = (
    ("message",),
    ("text", "message"),
    ("text", "text"),
    ("text",),
    ("data", "message"),
    ("data", "text", "message"),
    ("data", "text"),
)

_IMAGE_PATHS = (
    ("image", "imageUrl"),
    ("image", "url"),
    ("imageUrl",),
    ("message", "image", "imageUrl"),
    ("message", "imageUrl"),
    ("message", "media", "url"),
    ("message", "mediaUrl"),
    ("media", "url"),
    ("mediaUrl",),
    ("data", "image", "imageUrl"),
    ("data", "media", "url"),
    ("data", "mediaUrl"),
)

_NAME_PATHS = (
    ("senderName",),
    ("pushName",),
    ("data", "senderName"),
    ("data", "pushName"),
    ("message", "senderName"),
    ("message", "pushName"),
    ("sender", "name"),
    ("contact", "name"),
)


def _dig(payload: Any, path: tuple[str, ...]) -> Any:
    node = payload
    for key in path:
        if not isinstance(node, dict):
            return None
        node = node.get(key)
    return node


def extract_phone(payload: Any) -> str | None:
    for path in _PHONE_PATHS:
        value = _dig(payload, path)
        if isinstance(value, (str, int)) and str(value).strip():
            return str(value).strip()
    return None


def extract_text(payload: Any) -> str:
    """Message body; nested {"message": "..."} objects are unwrapped. Empty string if absent."""
    for path in _TEXT_PATHS:
        value = _dig(payload, path)
        if value is None:
            continue
        if isinstance(value, str):
            return value
        if isinstance(value, dict) and isinstance(value.get("message"), str):
            return value["message"]
        # Present but not text-like (e.g. a media object under "message"): stop here
        return ""
    return ""


def extract_image_url(payload: Any) -> str | None:
    """First candidate that looks like an http(s) URL."""
    for path in _IMAGE_PATHS:
        value = _dig(payload, path)
        if isinstance(value, str) and value.startswith("http"):
            return value
    return None


def extract_contact_name(payload: Any) -> str | None:
    """Sender's first name, if the payload carries a display name."""
    for path in _NAME_PATHS:
        value = _dig(payload, path)
        if isinstance(value, str) and value.strip():
            return first_name(value)
    return None


def extract_display_name(payload: Any) -> str | None:
    """Full sender display name (for the contact log)."""
    for path in _NAME_PATHS:
        value = _dig(payload, path)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def is_from_me(payload: Any) -> bool:
    """Echo of a message we sent ourselves (the gateway reports those too)."""
    return isinstance(payload, dict) and payload.get("fromMe") is True


def is_group_message(payload: Any) -> bool:
    return isinstance(payload, dict) and payload.get("isGroup") is True
