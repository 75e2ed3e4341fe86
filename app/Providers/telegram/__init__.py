"""Telegram provider package for the HARSI journal."""

from .journal_bot import TelegramJournalBot

__all__ = ["TelegramJournalBot"]
