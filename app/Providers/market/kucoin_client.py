"""
KuCoin public market data client

Used for prompt hints only: the current price shown at the entry step and
the recent low offered as a stop-loss suggestion.
"""

from typing import List, Optional

import requests
from loguru import logger

from Journal.errors import MarketDataError
from Journal.models import TradingSymbol

KUCOIN_SYMBOLS = {
    TradingSymbol.BTCUSDT: "BTC-USDT",
    TradingSymbol.ETHUSDT: "ETH-USDT",
}

SUCCESS_CODE = "200000"


class KuCoinClient:
    """Thin wrapper over the KuCoin public REST API"""

    def __init__(self, base_url: str = "https://api.kucoin.com", timeout: float = 10, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json", "User-Agent": "harsi-journal-bot"})

    def _get(self, path: str, params: dict):
        url = f"{self.base_url}{path}"
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except requests.exceptions.RequestException as e:
            logger.warning(f"KuCoin request {path} failed: {e}")
            raise MarketDataError(f"KuCoin request failed: {e}") from e
        except ValueError as e:
            raise MarketDataError(f"KuCoin returned invalid JSON: {e}") from e

        if not isinstance(payload, dict):
            raise MarketDataError(f"Unexpected KuCoin response: {type(payload).__name__}")
        if payload.get("code") != SUCCESS_CODE or payload.get("data") is None:
            raise MarketDataError(f"KuCoin API error: {payload.get('msg') or payload.get('code')}")
        return payload["data"]

    def get_current_price(self, symbol: TradingSymbol) -> Optional[float]:
        """Last traded price, None for symbols KuCoin does not list"""
        kucoin_symbol = KUCOIN_SYMBOLS.get(symbol)
        if kucoin_symbol is None:
            return None
        data = self._get("/api/v1/market/orderbook/level1", {"symbol": kucoin_symbol})
        try:
            return float(data["price"])
        except (KeyError, TypeError, ValueError) as e:
            raise MarketDataError(f"Unexpected KuCoin ticker payload: {data}") from e

    def get_closed_candle_lows(self, symbol: TradingSymbol, interval: str = "15min", limit: int = 3) -> List[float]:
        """
        Lows of the latest closed candles, newest first.

        KuCoin lists candles newest first as
        [time, open, close, high, low, volume, turnover]; the first entry is
        the candle still forming and is skipped.
        """
        kucoin_symbol = KUCOIN_SYMBOLS.get(symbol)
        if kucoin_symbol is None:
            return []
        data = self._get("/api/v1/market/candles", {"symbol": kucoin_symbol, "type": interval})
        try:
            return [float(candle[4]) for candle in data[1:limit + 1]]
        except (IndexError, TypeError, ValueError) as e:
            raise MarketDataError(f"Unexpected KuCoin candle payload: {e}") from e

    def get_lowest_price_in_closed_candles(self, symbol: TradingSymbol) -> Optional[float]:
        """Lowest low of the last three closed 15-minute candles"""
        lows = self.get_closed_candle_lows(symbol)
        return min(lows) if lows else None

    def close(self) -> None:
        self.session.close()
