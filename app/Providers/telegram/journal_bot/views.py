"""
View methods for rendering wizard prompts as Telegram messages
"""

from typing import Optional, Union

from loguru import logger
from telegram import (
    InlineKeyboardButton, InlineKeyboardMarkup, KeyboardButton, ReplyKeyboardMarkup, ReplyKeyboardRemove,
)

from Journal.models import KeyboardKind, Prompt

Markup = Union[InlineKeyboardMarkup, ReplyKeyboardMarkup, ReplyKeyboardRemove]

MAIN_MENU_TEXT = (
    "📒 HARSI Trade Journal\n\n"
    "Log an order, record its close price, and review your R statistics."
)

MAIN_MENU_BUTTONS = [
    [InlineKeyboardButton("🆕 New order", callback_data="neworder"),
     InlineKeyboardButton("💵 Close order", callback_data="closeorder")],
    [InlineKeyboardButton("📋 Orders", callback_data="orders"),
     InlineKeyboardButton("📊 R statistics", callback_data="stats")],
    [InlineKeyboardButton("📈 Latest trend", callback_data="trend"),
     InlineKeyboardButton("🔄 New survey", callback_data="survey")],
]

ERROR_TEXT = "❌ Something went wrong, please try again."


class ViewManager:
    """Turns Prompt objects into Telegram replies"""

    @staticmethod
    def build_markup(prompt: Prompt) -> Optional[Markup]:
        """Keyboard for a prompt, or None when it has no options"""
        if prompt.keyboard is KeyboardKind.REMOVE:
            return ReplyKeyboardRemove()
        if not prompt.options:
            return None
        if prompt.keyboard is KeyboardKind.REPLY:
            rows = [[KeyboardButton(option.label) for option in row] for row in prompt.options]
            return ReplyKeyboardMarkup(rows, resize_keyboard=True, one_time_keyboard=True)
        rows = [
            [InlineKeyboardButton(option.label, callback_data=option.token) for option in row]
            for row in prompt.options
        ]
        return InlineKeyboardMarkup(rows)

    async def send_prompt(self, message, prompt: Prompt) -> None:
        await message.reply_text(prompt.text, reply_markup=self.build_markup(prompt))

    async def send_main_menu(self, message) -> None:
        await message.reply_text(MAIN_MENU_TEXT, reply_markup=InlineKeyboardMarkup(MAIN_MENU_BUTTONS))

    async def send_error(self, message) -> None:
        try:
            await message.reply_text(ERROR_TEXT)
        except Exception as e:
            logger.error(f"Could not deliver error notice: {e}")
