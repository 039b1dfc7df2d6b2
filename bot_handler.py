"""
Telegram Bot command handler for the filter word conversation.
Classifies messages against a per-chat filter word, stores them and
lets users read the stored messages back.
"""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple
from warnings import filterwarnings
from telegram import InlineKeyboardButton, InlineKeyboardMarkup, Update
from telegram.constants import MessageLimit
from telegram.ext import (
    Application,
    ApplicationHandlerStop,
    CallbackQueryHandler,
    CommandHandler,
    ContextTypes,
    ConversationHandler,
    MessageHandler,
    TypeHandler,
    filters
)
from telegram.warnings import PTBUserWarning

from conversation import (
    AWAITING_FILTER_WORD,
    AWAITING_SEARCH_WORD,
    get_conversation_state
)
from database import Database, MessagePartition
from filters import WordFilter, parse_single_word

logger = logging.getLogger(__name__)

# The conversation is keyed by chat, so callback queries are tracked per chat too
filterwarnings(action="ignore", message=r".*CallbackQueryHandler", category=PTBUserWarning)

# Callback tokens of the /show keyboard
SHOW_WITH_FILTER = "show_with_filter"
SHOW_WITHOUT_FILTER = "show_without_filter"

SHOW_WITH_FILTER_LABEL = "Show messages with filter word"
SHOW_WITHOUT_FILTER_LABEL = "Show messages without filter word"

START_TEXT = (
    "Welcome! This bot will first ask you for a word, and then for a sentence. "
    "It will then check if the sentence contains the word or not.\n"
    "Use /filter to define the filter word\n"
    "Use /show to search for messages"
)
HELP_TEXT = (
    "Available commands:\n"
    "/start - Start the bot\n"
    "/filter - Define a filter word\n"
    "/show - Show the stored messages\n"
    "/stop - Stop the bot\n"
    "/help - Display this help message"
)
FILTER_PROMPT_TEXT = "Write the filter word (one word only)"
FILTER_ONE_WORD_TEXT = "Please provide only one word. Try /filter again."
FILTER_WORD_SAVED_TEXT = "Word received.\nPlease send a sentence in the next messages."
SEARCH_PROMPT_TEXT = "Please enter the filter word:"
SEARCH_ONE_WORD_TEXT = "Please provide only one word. Try /show again."
SEARCH_WORD_SAVED_TEXT = "Word received.\nSearching for the messages with this filter word."
SHOW_PROMPT_TEXT = "Choose an option:"
NO_FILTER_WORD_TEXT = "No filter word found. Use /filter to enter one"
CONTAINS_WORD_TEXT = "The sentence contains the word!"
MISSING_WORD_TEXT = "The sentence doesn't contain the word. Please try again."
NO_MESSAGES_TEXT = "No messages found."
STOP_TEXT = "Stopping the bot.\nClosing database connection."

TEXT_INPUT = filters.UpdateType.MESSAGE & filters.TEXT & ~filters.COMMAND


def format_row(row: Dict[str, Any]) -> str:
    """Format one stored message for display."""
    return (
        f"Sender ID: {row['sender_id']}\n"
        f"Message: {row['message_text']}\n"
        f"Sent Date: {row['sent_date']}\n\n"
    )


def utf16_length(text: str) -> int:
    """Length of text in UTF-16 code units, the unit Telegram counts in."""
    return len(text.encode("utf-16-le")) // 2


def split_at_length(text: str, limit: int) -> Tuple[str, str]:
    """
    Split text after at most limit UTF-16 code units.

    Characters outside the Basic Multilingual Plane take two units and
    are never cut in half.
    """
    units = 0
    for index, char in enumerate(text):
        units += 2 if ord(char) > 0xFFFF else 1
        if units > limit:
            return text[:index], text[index:]
    return text, ""


def build_result_messages(
    rows: Sequence[Dict[str, Any]],
    limit: int = MessageLimit.MAX_TEXT_LENGTH
) -> List[str]:
    """
    Turn query rows into message texts that fit Telegram's length limit.

    Rows are packed into as few messages as possible without splitting
    a row, unless a single row is longer than the limit on its own.

    Args:
        rows: Rows with sender_id, message_text and sent_date
        limit: Maximum length of one message in UTF-16 code units

    Returns:
        List of message texts; ["No messages found."] when rows is empty
    """
    if not rows:
        return [NO_MESSAGES_TEXT]

    messages = []
    current = ""
    for row in rows:
        entry = format_row(row)

        while utf16_length(entry) > limit:
            if current:
                messages.append(current)
                current = ""
            head, entry = split_at_length(entry, limit)
            messages.append(head)

        if utf16_length(current) + utf16_length(entry) > limit:
            messages.append(current)
            current = ""
        current += entry

    if current:
        messages.append(current)

    return messages


class BotCommandHandler:
    """Handles bot commands, the filter word conversation and stored message queries."""

    def __init__(self, bot_token: str, db: Database, send_timeout: float = 10.0):
        """
        Initialize the bot command handler.

        Args:
            bot_token: Telegram bot token
            db: Open database gateway; closed by /stop or stop_bot()
            send_timeout: Timeout in seconds for each Bot API request
        """
        self.bot_token = bot_token
        self.db = db
        self.send_timeout = send_timeout
        self.application = None
        self.stopped = False
        self._stop_event = asyncio.Event()

    # ========== COMMANDS ==========

    async def start_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Handle /start command."""
        await update.effective_message.reply_text(START_TEXT)

    async def help_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Handle /help command."""
        await update.effective_message.reply_text(HELP_TEXT)

    async def filter_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
        """Start waiting for a filter word."""
        logger.info(f"📝 Chat {update.effective_chat.id} started /filter")
        await update.effective_message.reply_text(FILTER_PROMPT_TEXT)
        return AWAITING_FILTER_WORD

    async def show_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Offer the two stored message views as inline buttons."""
        keyboard = InlineKeyboardMarkup([
            [InlineKeyboardButton(SHOW_WITH_FILTER_LABEL, callback_data=SHOW_WITH_FILTER)],
            [InlineKeyboardButton(SHOW_WITHOUT_FILTER_LABEL, callback_data=SHOW_WITHOUT_FILTER)],
        ])
        await update.effective_message.reply_text(SHOW_PROMPT_TEXT, reply_markup=keyboard)

    async def stop_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
        """Handle /stop: confirm, close the database and stop processing updates."""
        logger.info(f"🛑 /stop received from chat {update.effective_chat.id}")
        self.stopped = True
        try:
            await update.effective_message.reply_text(STOP_TEXT)
        finally:
            self.db.close()
            self._stop_event.set()
        return ConversationHandler.END

    # ========== CONVERSATION ==========

    async def receive_filter_word(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
        """Store the filter word if the input is exactly one word."""
        message = update.effective_message
        word = parse_single_word(message.text)

        if word is None:
            await message.reply_text(FILTER_ONE_WORD_TEXT)
            return ConversationHandler.END

        state = get_conversation_state(context.chat_data)
        state.filter_word = word
        logger.info(f"✅ Chat {update.effective_chat.id} set filter word: {word}")

        await message.reply_text(FILTER_WORD_SAVED_TEXT, do_quote=True)
        return ConversationHandler.END

    async def show_with_filter(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
        """Handle the "with filter word" button: ask for the word to search."""
        await update.callback_query.answer()
        await context.bot.send_message(chat_id=update.effective_chat.id, text=SEARCH_PROMPT_TEXT)
        return AWAITING_SEARCH_WORD

    async def receive_search_word(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
        """Store the search word and reply with the matching stored messages."""
        message = update.effective_message
        word = parse_single_word(message.text)

        if word is None:
            await message.reply_text(SEARCH_ONE_WORD_TEXT)
            return ConversationHandler.END

        state = get_conversation_state(context.chat_data)
        state.search_word = word
        logger.info(f"🔍 Chat {update.effective_chat.id} searching for: {word}")

        await message.reply_text(SEARCH_WORD_SAVED_TEXT, do_quote=True)

        try:
            rows = self.db.get_messages_with_word(word)
        except Exception as e:
            logger.error(f"❌ Error querying messages with word '{word}': {e}", exc_info=True)
            rows = []

        await self._send_rows(update, context, rows)
        return ConversationHandler.END

    async def show_without_filter(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Handle the "without filter word" button: reply with every stored non-match."""
        await update.callback_query.answer()

        try:
            rows = self.db.get_messages_without_word()
        except Exception as e:
            logger.error(f"❌ Error querying messages without word: {e}", exc_info=True)
            rows = []

        await self._send_rows(update, context, rows)

    # ========== CLASSIFICATION ==========

    async def classify_message(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Check a sentence against the chat's filter word, store it and reply."""
        message = update.effective_message
        state = get_conversation_state(context.chat_data)

        if not state.has_filter_word:
            await message.reply_text(NO_FILTER_WORD_TEXT)
            return

        found = WordFilter(state.filter_word).matches(message.text)
        partition = MessagePartition.WITH_WORD if found else MessagePartition.WITHOUT_WORD

        sender = update.effective_user or update.effective_chat
        # sent_date column is TIMESTAMP without time zone and holds UTC
        sent_date = message.date or datetime.now(timezone.utc)
        sent_date = sent_date.astimezone(timezone.utc).replace(tzinfo=None)

        try:
            self.db.store_classified_message(
                sender_id=sender.id,
                message_text=message.text,
                sent_date=sent_date,
                filter_word=state.filter_word,
                partition=partition
            )
            logger.info(f"💾 Stored message {message.message_id} in {partition.value}")
        except Exception as e:
            logger.error(f"❌ Error storing message in {partition.value}: {e}", exc_info=True)

        reply = CONTAINS_WORD_TEXT if found else MISSING_WORD_TEXT
        await message.reply_text(reply, do_quote=True)

    # ========== HELPERS ==========

    async def _send_rows(
        self,
        update: Update,
        context: ContextTypes.DEFAULT_TYPE,
        rows: Sequence[Dict[str, Any]]
    ) -> None:
        """Send query results to the chat, split to fit the message limit."""
        for text in build_result_messages(rows):
            await context.bot.send_message(chat_id=update.effective_chat.id, text=text)

    async def ignore_after_stop(self, update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Drop every update that arrives after /stop."""
        if self.stopped:
            logger.debug("Ignoring update received after /stop")
            raise ApplicationHandlerStop

    async def error_handler(self, update: Optional[object], context: ContextTypes.DEFAULT_TYPE) -> None:
        """Log errors raised while handling an update."""
        logger.error(f"❌ Error while handling update: {context.error}", exc_info=context.error)

    def get_handlers(self):
        """Get all handlers, in the order they must be registered."""
        # Conversation for /filter and the "with filter word" button
        conversation_handler = ConversationHandler(
            entry_points=[
                CommandHandler('filter', self.filter_command),
                CallbackQueryHandler(self.show_with_filter, pattern=f"^{SHOW_WITH_FILTER}$"),
            ],
            states={
                AWAITING_FILTER_WORD: [
                    MessageHandler(TEXT_INPUT, self.receive_filter_word)
                ],
                AWAITING_SEARCH_WORD: [
                    MessageHandler(TEXT_INPUT, self.receive_search_word)
                ],
            },
            fallbacks=[
                CommandHandler('stop', self.stop_command),
                CommandHandler('help', self.help_command),
                CommandHandler('start', self.start_command),
                CommandHandler('show', self.show_command),
                CallbackQueryHandler(self.show_without_filter, pattern=f"^{SHOW_WITHOUT_FILTER}$"),
            ],
            allow_reentry=True,
            per_user=False,
        )

        return [
            conversation_handler,
            CommandHandler('start', self.start_command),
            CommandHandler('help', self.help_command),
            CommandHandler('show', self.show_command),
            CommandHandler('stop', self.stop_command),
            CallbackQueryHandler(self.show_without_filter, pattern=f"^{SHOW_WITHOUT_FILTER}$"),
            # Unknown commands are classified like any other sentence
            MessageHandler(filters.UpdateType.MESSAGE & filters.TEXT, self.classify_message),
        ]

    def register_handlers(self, application: Application) -> None:
        """Add the stop guard, all handlers and the error handler to an application."""
        # Group -1 runs before every other handler
        application.add_handler(TypeHandler(Update, self.ignore_after_stop), group=-1)
        for handler in self.get_handlers():
            application.add_handler(handler)
        application.add_error_handler(self.error_handler)

    # ========== LIFECYCLE ==========

    async def start_bot(self):
        """Start the bot application."""
        logger.info("🤖 Starting bot command handler...")

        # Updates are handled one at a time, in arrival order
        self.application = (
            Application.builder()
            .token(self.bot_token)
            .concurrent_updates(False)
            .connect_timeout(self.send_timeout)
            .read_timeout(self.send_timeout)
            .write_timeout(self.send_timeout)
            .build()
        )

        self.register_handlers(self.application)

        # Start polling
        await self.application.initialize()
        await self.application.start()
        await self.application.updater.start_polling()

        me = self.application.bot.username
        logger.info(f"✅ Bot @{me} started and listening for commands")

    async def wait_until_stopped(self):
        """Block until /stop has been handled."""
        await self._stop_event.wait()

    async def stop_bot(self):
        """Stop the bot application."""
        if self.application:
            logger.info("🛑 Stopping bot command handler...")
            if self.application.updater and self.application.updater.running:
                await self.application.updater.stop()
            if self.application.running:
                await self.application.stop()
            await self.application.shutdown()
            logger.info("✅ Bot command handler stopped")

        # Close database connection
        if self.db:
            self.db.close()
