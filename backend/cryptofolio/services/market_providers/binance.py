import asyncio
import json
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

QUOTE_ASSET = "USDT"

COIN_NAMES = {
    "BTC": "Bitcoin",
    "ETH": "Ethereum",
    "ADA": "Cardano",
    "SOL": "Solana",
    "DOT": "Polkadot",
    "MATIC": "Polygon",
    "AVAX": "Avalanche",
    "LINK": "Chainlink",
    "UNI": "Uniswap",
    "ATOM": "Cosmos",
}

# timeframe -> (K 线周期, 条数)
KLINE_PARAMS = {
    Timeframe.ONE_HOUR: ("1m", 60),
    Timeframe.ONE_DAY: ("1h", 24),
    Timeframe.ONE_WEEK: ("1h", 168),
    Timeframe.ONE_MONTH: ("1d", 30),
    Timeframe.ONE_YEAR: ("1d", 365),
}


class BinanceProvider(MarketDataProvider):
    """
    Binance public REST API. Prices are quoted against USDT; Binance has no
    market cap or 1h/7d change, so those fields stay 0.
    """
    name = "binance"

    def __init__(self, transport=None):
        super().__init__(transport)
        self.base_url = settings.BINANCE_BASE_URL

    def _parse_ticker(self, ticker: dict) -> CryptoPrice:
        symbol = ticker["symbol"][: -len(QUOTE_ASSET)]
        price = to_decimal(ticker.get("lastPrice"))
        return CryptoPrice(
            symbol=symbol,
            name=COIN_NAMES.get(symbol, symbol),
            price=price,
            change_24h=to_decimal(ticker.get("priceChangePercent")),
            # volume 为基础资产数量，换算成 USDT 成交额
            volume_24h=to_decimal(ticker.get("volume")) * price,
            high_24h=to_decimal(ticker.get("highPrice")),
            low_24h=to_decimal(ticker.get("lowPrice")),
            last_updated=datetime.utcnow(),
        )

    async def _get_one(self, client: httpx.AsyncClient, symbol: str) -> dict:
        response = await client.get("/api/v3/ticker/24hr", params={"symbol": f"{symbol}{QUOTE_ASSET}"})
        response.raise_for_status()
        return read_json(response)

    async def get_prices(self, symbols: List[str]) -> Dict[str, CryptoPrice]:
        if not symbols:
            return {}
        pairs = [f"{s}{QUOTE_ASSET}" for s in symbols]

        async with self._client() as client:
            response = await client.get(
                "/api/v3/ticker/24hr",
                params={"symbols": json.dumps(pairs, separators=(",", ":"))},
            )
            if response.status_code == 400:
                # 批量请求中只要有一个未知交易对，Binance 会拒绝整批
                if len(symbols) == 1:
                    logger.info(f"Binance has no {pairs[0]} pair")
                    return {}
                logger.warning(f"Binance rejected batch {pairs}, retrying per symbol")
                tickers = await self._get_individually(client, symbols)
            else:
                response.raise_for_status()
                tickers = read_json(response)

        try:
            parsed = [self._parse_ticker(ticker) for ticker in tickers]
        except PARSE_ERRORS as e:
            raise ProviderError(f"Unexpected Binance ticker payload: {e!r}") from e
        return {price.symbol: price for price in parsed if price.symbol in symbols}

    async def _get_individually(self, client: httpx.AsyncClient, symbols: List[str]) -> List[dict]:
        results = await asyncio.gather(
            *(self._get_one(client, s) for s in symbols), return_exceptions=True
        )
        tickers = []
        errors = []
        for symbol, result in zip(symbols, results):
            if isinstance(result, httpx.HTTPStatusError) and result.response.status_code == 400:
                logger.info(f"Binance has no {symbol}{QUOTE_ASSET} pair")
            elif isinstance(result, Exception):
                errors.append(result)
            else:
                tickers.append(result)
        if errors and not tickers:
            raise errors[0]
        return tickers

    async def get_historical_prices(self, symbol: str, timeframe: Timeframe) -> List[PricePoint]:
        interval, limit = KLINE_PARAMS[Timeframe(timeframe)]
        async with self._client() as client:
            response = await client.get(
                "/api/v3/klines",
                params={"symbol": f"{symbol}{QUOTE_ASSET}", "interval": interval, "limit": limit},
            )
            response.raise_for_status()
            klines = read_json(response)

        # [open_time, open, high, low, close, volume, ...]
        try:
            return [
                PricePoint(
                    timestamp=datetime.utcfromtimestamp(k[0] / 1000),
                    price=to_decimal(k[4]),
                    volume=to_decimal(k[5]),
                )
                for k in klines
            ]
        except PARSE_ERRORS as e:
            raise ProviderError(f"Unexpected Binance kline payload: {e!r}") from e

    async def ping(self) -> bool:
        try:
            async with self._client() as client:
                response = await client.get("/api/v3/ping")
                return response.status_code == 200
        except httpx.HTTPError as e:
            logger.warning(f"Binance ping failed: {e}")
            return False
