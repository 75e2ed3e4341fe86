"""Provider loader to instantiate providers from configuration.

Example settings.json:
    {
      "telegram_bot": { "enabled": true, "bot_token": "..." },
      "market_data": { "enabled": true }
    }
"""
from typing import List

from loguru import logger

from .provider import Provider
from .telegram.journal_bot import TelegramJournalBot


def get_providers(settings, database_manager) -> List[Provider]:
    """Create provider instances based on settings"""
    providers: List[Provider] = []

    try:
        journal_bot = TelegramJournalBot.from_settings(settings, database_manager)
        if journal_bot:
            providers.append(journal_bot)
            logger.info("Telegram journal bot loaded")
    except Exception as e:
        logger.warning(f"Failed to load Telegram journal bot: {e}")

    if not providers:
        logger.warning("No providers configured. Add a telegram_bot section to settings.json")

    return providers
