from datetime import datetime, timezone
from unittest.mock import AsyncMock, Mock

import pytest

from bot_handler import BotCommandHandler
from database import Database


SENT_DATE = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)


def make_update(text=None, chat_id=100, user_id=42, message_id=10, callback_data=None):
    """Build a fake Telegram update carrying a text message or a callback query."""
    update = Mock()
    update.effective_chat.id = chat_id
    update.effective_user.id = user_id

    message = Mock()
    message.text = text
    message.message_id = message_id
    message.date = SENT_DATE
    message.reply_text = AsyncMock()
    update.effective_message = message

    if callback_data is not None:
        update.callback_query.data = callback_data
        update.callback_query.answer = AsyncMock()
    else:
        update.callback_query = None

    return update


def make_context(chat_data=None):
    """Build a fake callback context with its own chat_data."""
    context = Mock()
    context.chat_data = {} if chat_data is None else chat_data
    context.bot.send_message = AsyncMock()
    return context


@pytest.fixture
def db():
    """Mock database gateway."""
    return Mock(spec=Database)


@pytest.fixture
def handler(db):
    return BotCommandHandler("test-token", db)


@pytest.fixture
def context():
    return make_context()
