"""
Telegram Journal Bot

Provider that exposes the order wizard over the Telegram Bot API:
- handlers: command, callback and message routing
- views: prompt rendering and the main menu

Uses python-telegram-bot with async/await; polling runs alongside the
other providers without owning the event loop.
"""

from typing import Optional

from loguru import logger
from telegram.ext import Application, CallbackQueryHandler, CommandHandler, MessageHandler, filters

from Journal.wizard import OrderWizard
from Providers.market import KuCoinClient
from Providers.provider import Provider

from .handlers import HandlerManager
from .views import ViewManager


class TelegramJournalBot(Provider):
    """Interactive Telegram bot for logging and reviewing trades"""

    def __init__(self, bot_token: str, wizard: OrderWizard, market_data: Optional[KuCoinClient] = None):
        self.bot_token = bot_token
        self.wizard = wizard
        self.market_data = market_data
        self.app: Optional[Application] = None

        self.views = ViewManager()
        self.handlers = HandlerManager(self.wizard, self.views)

    @property
    def name(self) -> str:
        return "telegram_journal_bot"

    @staticmethod
    def from_settings(settings, database_manager) -> Optional["TelegramJournalBot"]:
        """Build the bot and its wizard from settings, or None when disabled"""
        if not settings.telegram_bot_enabled:
            logger.info("Telegram journal bot disabled in settings")
            return None
        if not settings.telegram_bot_token:
            logger.error("Telegram bot token not configured")
            return None

        market_data = None
        if settings.market_data_enabled:
            market_data = KuCoinClient(settings.kucoin_base_url, settings.market_data_timeout)

        wizard = OrderWizard(
            store=database_manager.get_conversation_store(),
            order_repository=database_manager.get_order_repository(),
            trend_repository=database_manager.get_trend_repository(),
            market_data=market_data,
            harsi_timeframes=settings.harsi_timeframes,
            quantity_presets=settings.quantity_presets,
            note_presets=settings.note_presets,
        )
        return TelegramJournalBot(settings.telegram_bot_token, wizard, market_data)

    def register_handlers(self, app: Application) -> None:
        h = self.handlers
        app.add_handler(CommandHandler("start", h.handle_start))
        app.add_handler(CommandHandler("menu", h.handle_start))
        app.add_handler(CommandHandler("neworder", h.handle_new_order))
        app.add_handler(CommandHandler(["cancel", "cancelorder"], h.handle_cancel))
        app.add_handler(CommandHandler("preview", h.handle_preview))
        app.add_handler(CommandHandler("closeorder", h.handle_close_order))
        app.add_handler(CommandHandler("orders", h.handle_orders))
        app.add_handler(CommandHandler("stats", h.handle_stats))
        app.add_handler(CommandHandler("trend", h.handle_trend))
        app.add_handler(CommandHandler("survey", h.handle_survey))
        app.add_handler(CallbackQueryHandler(h.handle_callback))
        # Free text plus commands like /BTCUSDT, /LONG, /skip go to the wizard
        app.add_handler(MessageHandler(filters.TEXT, h.handle_message))

    async def start_monitoring(self) -> None:
        """Start polling without closing the shared event loop"""
        try:
            logger.info("Initializing Telegram journal bot...")
            self.app = Application.builder().token(self.bot_token).build()
            self.register_handlers(self.app)

            await self.app.initialize()
            await self.app.start()
            await self.app.updater.start_polling()
            logger.success("Telegram journal bot polling started")
        except Exception as e:
            logger.error(f"Error in start_monitoring: {e}")

    async def stop(self) -> None:
        try:
            if self.app:
                await self.app.updater.stop()
                await self.app.stop()
                await self.app.shutdown()
                logger.info("Telegram journal bot stopped")
        except Exception as e:
            logger.error(f"Error stopping bot: {e}")
        finally:
            if self.market_data:
                self.market_data.close()
