"""Chat flow: keyword intents, the pure state machine, and the orchestrator that runs it."""

from figurine_bot.services.conversation.state_machine import (
    Event,
    TransitionContext,
    TransitionResult,
    classify_event,
    transition,
)

__all__ = [
    "Event",
    "TransitionContext",
    "TransitionResult",
    "classify_event",
    "transition",
]
