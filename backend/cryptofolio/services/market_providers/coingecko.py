import logging
from datetime import datetime
from typing import Dict, List

import httpx

from cryptofolio.core.config import settings
from cryptofolio.schemas.market_data import CryptoPrice, PricePoint, Timeframe
from cryptofolio.services.market_providers.base import (
    PARSE_ERRORS,
    MarketDataProvider,
    ProviderError,
    read_json,
    to_decimal,
)

logger = logging.getLogger(__name__)

# CoinGecko 使用 coin id 而非交易代码
COIN_IDS = {
    "BTC": "bitcoin",
    "ETH": "ethereum",
    "ADA": "cardano",
    "SOL": "solana",
    "DOT": "polkadot",
    "MATIC": "matic-network",
    "AVAX": "avalanche-2",
    "LINK": "chainlink",
    "UNI": "uniswap",
    "ATOM": "cosmos",
}

CHART_DAYS = {
    Timeframe.ONE_HOUR: "0.042",
    Timeframe.ONE_DAY: "1",
    Timeframe.ONE_WEEK: "7",
    Timeframe.ONE_MONTH: "30",
    Timeframe.ONE_YEAR: "365",
}


class CoinGeckoProvider(MarketDataProvider):
    """CoinGecko REST API; provides market cap and 1h/7d changes."""
    name = "coingecko"

    def __init__(self, transport=None):
        super().__init__(transport)
        self.base_url = settings.COINGECKO_BASE_URL
        self.api_key = settings.COINGECKO_API_KEY

    def _headers(self) -> Dict[str, str]:
        return {"x-cg-pro-api-key": self.api_key} if self.api_key else {}

    async def get_prices(self, symbols: List[str]) -> Dict[str, CryptoPrice]:
        ids = {COIN_IDS[s]: s for s in symbols if s in COIN_IDS}
        unsupported = [s for s in symbols if s not in COIN_IDS]
        if unsupported:
            logger.info(f"CoinGecko has no id mapping for {unsupported}")
        if not ids:
            return {}

        async with self._client(self._headers()) as client:
            response = await client.get(
                "/api/v3/coins/markets",
                params={
                    "vs_currency": "usd",
                    "ids": ",".join(ids),
                    "price_change_percentage": "1h,24h,7d,30d",
                },
            )
            response.raise_for_status()
            coins = read_json(response)

        try:
            return self._parse_markets(coins, ids)
        except PARSE_ERRORS as e:
            raise ProviderError(f"Unexpected CoinGecko markets payload: {e!r}") from e

    def _parse_markets(self, coins: List[dict], ids: Dict[str, str]) -> Dict[str, CryptoPrice]:
        prices: Dict[str, CryptoPrice] = {}
        for coin in coins:
            symbol = ids.get(coin.get("id"))
            if symbol is None or coin.get("current_price") is None:
                continue
            change_24h = coin.get("price_change_percentage_24h_in_currency")
            if change_24h is None:
                change_24h = coin.get("price_change_percentage_24h")
            prices[symbol] = CryptoPrice(
                symbol=symbol,
                name=coin.get("name") or symbol,
                price=to_decimal(coin["current_price"]),
                change_1h=to_decimal(coin.get("price_change_percentage_1h_in_currency")),
                change_24h=to_decimal(change_24h),
                change_7d=to_decimal(coin.get("price_change_percentage_7d_in_currency")),
                volume_24h=to_decimal(coin.get("total_volume")),
                market_cap=to_decimal(coin.get("market_cap")),
                high_24h=to_decimal(coin.get("high_24h")),
                low_24h=to_decimal(coin.get("low_24h")),
                last_updated=datetime.utcnow(),
            )
        return prices

    async def get_historical_prices(self, symbol: str, timeframe: Timeframe) -> List[PricePoint]:
        coin_id = COIN_IDS.get(symbol)
        if coin_id is None:
            raise ProviderError(f"CoinGecko does not support {symbol}")

        async with self._client(self._headers()) as client:
            response = await client.get(
                f"/api/v3/coins/{coin_id}/market_chart",
                params={"vs_currency": "usd", "days": CHART_DAYS[Timeframe(timeframe)]},
            )
            response.raise_for_status()
            data = read_json(response)

        try:
            volumes = {int(ts): v for ts, v in data.get("total_volumes", [])}
            return [
                PricePoint(
                    timestamp=datetime.utcfromtimestamp(ts / 1000),
                    price=to_decimal(price),
                    volume=to_decimal(volumes[int(ts)]) if int(ts) in volumes else None,
                )
                for ts, price in data.get("prices", [])
            ]
        except PARSE_ERRORS as e:
            raise ProviderError(f"Unexpected CoinGecko chart payload for {symbol}: {e!r}") from e

    async def ping(self) -> bool:
        try:
            async with self._client(self._headers()) as client:
                response = await client.get("/api/v3/ping")
                return response.status_code == 200
        except httpx.HTTPError as e:
            logger.warning(f"CoinGecko ping failed: {e}")
            return False
