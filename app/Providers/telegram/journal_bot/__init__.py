"""
Journal Bot Package

- journal_bot.py: Provider that owns the python-telegram-bot Application
- handlers.py: Command, callback and message routing to the order wizard
- views.py: Prompt rendering and the main menu
"""

from .journal_bot import TelegramJournalBot

__all__ = ['TelegramJournalBot']
