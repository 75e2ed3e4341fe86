"""
Tests for the Telegram adapter: update routing, prompt rendering and wiring
"""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, Mock

import pytest
from telegram import InlineKeyboardMarkup, ReplyKeyboardMarkup, ReplyKeyboardRemove

from Database import DatabaseManager
from Journal.models import KeyboardKind, Prompt, PromptOption, UserEvent, WizardResult, WizardStatus
from Journal.wizard import OrderWizard
from Providers.loader import get_providers
from Providers.telegram.journal_bot import TelegramJournalBot
from Providers.telegram.journal_bot.handlers import HandlerManager
from Providers.telegram.journal_bot.views import ViewManager

USER_ID = 7
CHAT_ID = 70


@pytest.fixture
def shown():
    return WizardResult(WizardStatus.SHOWN, Prompt(text="ok"))


@pytest.fixture
def wizard(shown):
    wizard = Mock()
    for name in (
        "start", "handle", "cancel", "preview", "list_open_orders", "start_close",
        "start_survey", "statistics", "recent_orders", "trend_overview",
    ):
        getattr(wizard, name).return_value = shown
    return wizard


@pytest.fixture
def views():
    views = MagicMock()
    views.send_prompt = AsyncMock()
    views.send_main_menu = AsyncMock()
    views.send_error = AsyncMock()
    return views


@pytest.fixture
def handlers(wizard, views):
    return HandlerManager(wizard, views)


def message_update(text, args=None):
    message = MagicMock()
    message.text = text
    update = MagicMock()
    update.effective_message = message
    update.effective_user.id = USER_ID
    update.effective_chat.id = CHAT_ID
    context = SimpleNamespace(args=args or [])
    return update, context


def callback_update(data):
    query = MagicMock()
    query.answer = AsyncMock()
    query.data = data
    query.from_user.id = USER_ID
    query.message.chat_id = CHAT_ID
    update = MagicMock()
    update.callback_query = query
    return update, SimpleNamespace(args=[])


class TestHandlerRouting:

    def test_text_goes_to_wizard(self, handlers, wizard, views, shown):
        update, context = message_update("/BTCUSDT")
        asyncio.run(handlers.handle_message(update, context))

        wizard.handle.assert_called_once_with(UserEvent(user_id=USER_ID, chat_id=CHAT_ID, text="/BTCUSDT"))
        views.send_prompt.assert_awaited_once_with(update.effective_message, shown.prompt)

    def test_close_callback(self, handlers, wizard):
        update, context = callback_update("close:12")
        asyncio.run(handlers.handle_callback(update, context))

        update.callback_query.answer.assert_awaited_once()
        wizard.start_close.assert_called_once_with(USER_ID, 12)
        wizard.handle.assert_not_called()

    def test_menu_callbacks(self, handlers, wizard):
        asyncio.run(handlers.handle_callback(*callback_update("neworder")))
        asyncio.run(handlers.handle_callback(*callback_update("closeorder")))
        asyncio.run(handlers.handle_callback(*callback_update("trend")))

        wizard.start.assert_called_once_with(USER_ID)
        wizard.list_open_orders.assert_called_once_with(USER_ID)
        wizard.trend_overview.assert_called_once_with()

    def test_stats_callback(self, handlers, wizard):
        asyncio.run(handlers.handle_callback(*callback_update("stats:last_week")))
        wizard.statistics.assert_called_once_with(USER_ID, "last_week")

    def test_wizard_tokens_become_selections(self, handlers, wizard):
        asyncio.run(handlers.handle_callback(*callback_update("harsi:bullish")))
        wizard.handle.assert_called_once_with(
            UserEvent(user_id=USER_ID, chat_id=CHAT_ID, selection="harsi:bullish")
        )

    def test_stats_command_period(self, handlers, wizard):
        update, context = message_update("/stats THIS_MONTH", args=["THIS_MONTH"])
        asyncio.run(handlers.handle_stats(update, context))
        wizard.statistics.assert_called_once_with(USER_ID, "this_month")

    def test_stats_command_defaults_to_all(self, handlers, wizard):
        asyncio.run(handlers.handle_stats(*message_update("/stats")))
        wizard.statistics.assert_called_once_with(USER_ID, "all")

    def test_survey_command(self, handlers, wizard):
        asyncio.run(handlers.handle_survey(*message_update("/survey ETHUSDT", args=["ETHUSDT"])))
        wizard.start_survey.assert_called_once_with(USER_ID, "ETHUSDT")

    def test_start_shows_menu(self, handlers, views):
        update, context = message_update("/start")
        asyncio.run(handlers.handle_start(update, context))
        views.send_main_menu.assert_awaited_once_with(update.effective_message)

    def test_errors_are_reported(self, handlers, wizard, views):
        wizard.handle.side_effect = RuntimeError("boom")
        update, context = message_update("100")
        asyncio.run(handlers.handle_message(update, context))
        views.send_error.assert_awaited_once_with(update.effective_message)
        views.send_prompt.assert_not_awaited()


class TestViewManager:

    def test_remove_keyboard(self):
        assert isinstance(ViewManager.build_markup(Prompt(text="x", keyboard=KeyboardKind.REMOVE)), ReplyKeyboardRemove)

    def test_no_options(self):
        assert ViewManager.build_markup(Prompt(text="x")) is None

    def test_inline_keyboard(self):
        prompt = Prompt(text="x", options=[[PromptOption("/LONG", "dir:LONG"), PromptOption("/SHORT", "dir:SHORT")]])
        markup = ViewManager.build_markup(prompt)
        assert isinstance(markup, InlineKeyboardMarkup)
        assert [b.callback_data for b in markup.inline_keyboard[0]] == ["dir:LONG", "dir:SHORT"]

    def test_reply_keyboard(self):
        prompt = Prompt(text="x", options=[[PromptOption("/skip", "skip")]], keyboard=KeyboardKind.REPLY)
        markup = ViewManager.build_markup(prompt)
        assert isinstance(markup, ReplyKeyboardMarkup)
        assert markup.keyboard[0][0].text == "/skip"

    def test_send_prompt(self):
        message = MagicMock()
        message.reply_text = AsyncMock()
        asyncio.run(ViewManager().send_prompt(message, Prompt(text="hello")))
        message.reply_text.assert_awaited_once_with("hello", reply_markup=None)


def bot_settings(**overrides):
    values = {
        "telegram_bot_enabled": True,
        "telegram_bot_token": "123:abc",
        "market_data_enabled": False,
        "kucoin_base_url": "https://api.kucoin.com",
        "market_data_timeout": 5,
        "harsi_timeframes": ["1d", "8h"],
        "quantity_presets": [0.5],
        "note_presets": ["Breakout"],
    }
    values.update(overrides)
    return SimpleNamespace(**values)


class TestJournalBotWiring:

    def test_from_settings_builds_wizard(self, db_path):
        bot = TelegramJournalBot.from_settings(bot_settings(), DatabaseManager(db_path))
        assert bot.name == "telegram_journal_bot"
        assert isinstance(bot.wizard, OrderWizard)
        assert bot.wizard.quantity_presets == [0.5]
        assert bot.market_data is None

    def test_market_data_client_when_enabled(self, db_path):
        bot = TelegramJournalBot.from_settings(bot_settings(market_data_enabled=True), DatabaseManager(db_path))
        assert bot.wizard.market_data is bot.market_data
        bot.market_data.close()

    @pytest.mark.parametrize("overrides", [{"telegram_bot_enabled": False}, {"telegram_bot_token": ""}])
    def test_disabled_or_unconfigured(self, db_path, overrides):
        assert TelegramJournalBot.from_settings(bot_settings(**overrides), DatabaseManager(db_path)) is None
        assert get_providers(bot_settings(**overrides), DatabaseManager(db_path)) == []

    def test_register_handlers(self, db_path):
        bot = TelegramJournalBot.from_settings(bot_settings(), DatabaseManager(db_path))
        app = Mock()
        bot.register_handlers(app)
        assert app.add_handler.call_count == 12
