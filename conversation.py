"""
Per-chat conversation state.
Each chat gets its own filter and search word, kept in the chat_data
mapping that python-telegram-bot maintains per chat.
"""
import logging
from typing import Any, MutableMapping, Optional

logger = logging.getLogger(__name__)

# Conversation states (Idle is ConversationHandler.END)
AWAITING_FILTER_WORD = 1
AWAITING_SEARCH_WORD = 2

STATE_KEY = 'conversation'


class ConversationState:
    """Words configured by one chat."""

    def __init__(self):
        self.filter_word: Optional[str] = None
        self.search_word: Optional[str] = None

    @property
    def has_filter_word(self) -> bool:
        """An empty filter word counts as not configured."""
        return bool(self.filter_word)

    def __repr__(self) -> str:
        return (
            f"ConversationState(filter_word={self.filter_word!r}, "
            f"search_word={self.search_word!r})"
        )


def get_conversation_state(chat_data: MutableMapping[str, Any]) -> ConversationState:
    """
    Look up the state of a chat, creating it on first use.

    Args:
        chat_data: Per-chat storage from the callback context

    Returns:
        The chat's ConversationState
    """
    state = chat_data.get(STATE_KEY)
    if state is None:
        state = ConversationState()
        chat_data[STATE_KEY] = state
        logger.debug("Created conversation state")
    return state
