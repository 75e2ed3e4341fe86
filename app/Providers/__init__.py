"""Providers package for the HARSI journal.

Front ends and outside data sources:
- telegram.journal_bot: Telegram Bot API front end for the order wizard
- market: KuCoin public market data used for prompt hints

Usage:
    from Providers.loader import get_providers
    providers = get_providers(settings, database_manager)
    for prov in providers:
        await prov.start_monitoring()
"""

from .provider import Provider
from . import loader

__all__ = [
    "Provider",
    "loader",
]
