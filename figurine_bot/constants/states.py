"""
Conversation state constants - centralized to avoid circular imports.
"""

from enum import Enum


class Mode(str, Enum):
    NONE = "none"
    MASCOT = "mascot-browsing"
    FIGURINE = "figurine-flow"


class MiniStyle(str, Enum):
    REALISTIC = "realistic"
    PIXAR = "pixar"
    PIXAR_REALISTIC = "pixar-realistic"
    CARTOON = "cartoon"
    ANIME = "anime"


class MiniSize(str, Enum):
    SIZE_16 = "16cm"
    SIZE_21 = "21cm"


class ConversationState(str, Enum):
    """Position of a customer in the scripted flow, derived from the session record."""

    UNSEEN = "UNSEEN"
    MAIN_MENU = "MAIN_MENU"
    MASCOT_BROWSING = "MASCOT_BROWSING"
    AWAITING_PHOTO = "AWAITING_PHOTO"
    AWAITING_STYLE = "AWAITING_STYLE"
    PAYMENT_PENDING = "PAYMENT_PENDING"
    PREVIEW_PENDING = "PREVIEW_PENDING"  # Paid, preview not delivered yet
    AWAITING_SIZE = "AWAITING_SIZE"
    QUOTED = "QUOTED"  # Terminal until a menu command


class EventKind(str, Enum):
    GREETING = "greeting"
    MENU = "menu"
    MAIN_CHOICE = "main_choice"
    PHOTO = "photo"
    STYLE_CHOICE = "style_choice"
    SIZE_CHOICE = "size_choice"
    PAID = "paid"
    HUMAN = "human"
    TEACH = "teach"
    FREE_TEXT = "free_text"


# Final figurine prices by size (shown only after the preview)
SIZE_PRICES_BRL = {
    MiniSize.SIZE_16: "R$399",
    MiniSize.SIZE_21: "R$699",
}

# Customer-facing style names (pt-BR)
STYLE_LABELS = {
    MiniStyle.REALISTIC: "Realista",
    MiniStyle.PIXAR: "Pixar",
    MiniStyle.PIXAR_REALISTIC: "Pixar realista",
    MiniStyle.CARTOON: "Cartoon",
    MiniStyle.ANIME: "Anime",
}
