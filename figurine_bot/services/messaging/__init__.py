# Messaging: copy composer (YAML, hot reload) and outbound sends through the chat gateway
# Re-export so "from figurine_bot.services.messaging import ..." works.

from figurine_bot.services.messaging.message_composer import MessageComposer
from figurine_bot.services.messaging.outbound import Messenger

__all__ = [
    "MessageComposer",
    "Messenger",
]
