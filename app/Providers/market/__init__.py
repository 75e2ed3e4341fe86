"""Market data providers"""

from .kucoin_client import KuCoinClient

__all__ = ["KuCoinClient"]
