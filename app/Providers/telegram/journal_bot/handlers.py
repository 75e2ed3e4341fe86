"""
Command, callback and message handlers for the journal bot

Every update is normalized to a wizard call; the wizard runs in a worker
thread and its prompt is rendered by the ViewManager.
"""

import asyncio
from typing import Callable

from loguru import logger
from telegram import Update
from telegram.ext import ContextTypes

from Journal.models import UserEvent, WizardResult
from Journal.prompts import Tokens, parse_token


class HandlerManager:
    """Routes Telegram updates to the order wizard"""

    def __init__(self, wizard, views):
        self.wizard = wizard
        self.views = views

        # Single-word callbacks from the main menu
        self.menu_callbacks = {
            "neworder": self.wizard.start,
            "closeorder": self.wizard.list_open_orders,
            "orders": self.wizard.recent_orders,
            "stats": self.wizard.statistics,
            "survey": self.wizard.start_survey,
        }

    async def _respond(self, message, operation: Callable[..., WizardResult], *args) -> WizardResult:
        """Run a wizard operation off the event loop and send its prompt"""
        result = await asyncio.to_thread(operation, *args)
        await self.views.send_prompt(message, result.prompt)
        return result

    async def handle_start(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Handle /start and /menu - show the main menu"""
        try:
            await self.views.send_main_menu(update.effective_message)
        except Exception as e:
            logger.error(f"Error handling start: {e}")

    async def handle_new_order(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        try:
            await self._respond(update.effective_message, self.wizard.start, update.effective_user.id)
        except Exception as e:
            logger.error(f"Error starting order: {e}")
            await self.views.send_error(update.effective_message)

    async def handle_cancel(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        try:
            await self._respond(update.effective_message, self.wizard.cancel, update.effective_user.id)
        except Exception as e:
            logger.error(f"Error cancelling order: {e}")
            await self.views.send_error(update.effective_message)

    async def handle_preview(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        try:
            await self._respond(update.effective_message, self.wizard.preview, update.effective_user.id)
        except Exception as e:
            logger.error(f"Error showing preview: {e}")
            await self.views.send_error(update.effective_message)

    async def handle_close_order(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Handle /closeorder - list open orders to pick from"""
        try:
            await self._respond(update.effective_message, self.wizard.list_open_orders, update.effective_user.id)
        except Exception as e:
            logger.error(f"Error listing open orders: {e}")
            await self.views.send_error(update.effective_message)

    async def handle_orders(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        try:
            await self._respond(update.effective_message, self.wizard.recent_orders, update.effective_user.id)
        except Exception as e:
            logger.error(f"Error listing orders: {e}")
            await self.views.send_error(update.effective_message)

    async def handle_stats(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Handle /stats [period]"""
        try:
            period = context.args[0].lower() if context.args else "all"
            await self._respond(update.effective_message, self.wizard.statistics, update.effective_user.id, period)
        except Exception as e:
            logger.error(f"Error showing statistics: {e}")
            await self.views.send_error(update.effective_message)

    async def handle_trend(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Handle /trend [symbol]"""
        try:
            symbol = context.args[0] if context.args else None
            await self._respond(update.effective_message, self.wizard.trend_overview, symbol)
        except Exception as e:
            logger.error(f"Error showing trend: {e}")
            await self.views.send_error(update.effective_message)

    async def handle_survey(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Handle /survey [symbol]"""
        try:
            symbol = context.args[0] if context.args else None
            await self._respond(update.effective_message, self.wizard.start_survey, update.effective_user.id, symbol)
        except Exception as e:
            logger.error(f"Error starting survey: {e}")
            await self.views.send_error(update.effective_message)

    async def handle_callback(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Handle inline button callbacks"""
        query = update.callback_query
        try:
            await query.answer()
            user_id = query.from_user.id
            callback_data = query.data or ""
            logger.info(f"Callback received from {user_id}: {callback_data}")

            if callback_data in self.menu_callbacks:
                await self._respond(query.message, self.menu_callbacks[callback_data], user_id)
                return
            if callback_data == "trend":
                await self._respond(query.message, self.wizard.trend_overview)
                return

            kind, value = parse_token(callback_data)
            if kind == Tokens.CLOSE and value.isdigit():
                await self._respond(query.message, self.wizard.start_close, user_id, int(value))
                return
            if kind == Tokens.STATS:
                await self._respond(query.message, self.wizard.statistics, user_id, value)
                return

            event = UserEvent(user_id=user_id, chat_id=query.message.chat_id, selection=callback_data)
            await self._respond(query.message, self.wizard.handle, event)
        except Exception as e:
            logger.error(f"Error handling callback: {e}")
            await self.views.send_error(query.message)

    async def handle_message(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """
        Handle free text and unregistered commands such as /BTCUSDT, /LONG or
        /skip, forwarding them to the wizard as text
        """
        message = update.effective_message
        try:
            event = UserEvent(
                user_id=update.effective_user.id,
                chat_id=update.effective_chat.id,
                text=message.text,
            )
            await self._respond(message, self.wizard.handle, event)
        except Exception as e:
            logger.error(f"Error handling message: {e}")
            await self.views.send_error(message)
