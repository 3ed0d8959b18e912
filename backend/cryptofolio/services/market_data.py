import asyncio
import logging
import time
from typing import Any, Dict, Hashable, Iterable, List, Optional

import httpx
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from cryptofolio.core.config import settings
from cryptofolio.core.exceptions import NotFoundError, UpstreamUnavailableError, ValidationError
from cryptofolio.schemas.market_data import AdapterStatus, CryptoPrice, PricePoint, Timeframe
from cryptofolio.services.market_providers import MarketDataProvider, ProviderError, ProviderFactory
from cryptofolio.utils.symbols import filter_valid_symbols, normalize_symbol

logger = logging.getLogger(__name__)


def is_transient_error(exc: BaseException) -> bool:
    """只重试网络故障、429 与 5xx"""
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return status == 429 or status >= 500
    return isinstance(exc, httpx.TransportError)


class TTLCache:
    """进程内缓存，条目按写入时间过期"""

    def __init__(self, ttl: float):
        self.ttl = ttl
        self._data: Dict[Hashable, Any] = {}

    def get(self, key: Hashable) -> Optional[Any]:
        entry = self._data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if time.monotonic() >= expires_at:
            del self._data[key]
            return None
        return value

    def set(self, key: Hashable, value: Any) -> None:
        now = time.monotonic()
        self._purge(now)
        self._data[key] = (value, now + self.ttl)

    def _purge(self, now: float) -> None:
        # 不再被读取的过期条目在写入时统一清理
        expired = [key for key, (_, expires_at) in self._data.items() if now >= expires_at]
        for key in expired:
            del self._data[key]

    def clear(self) -> None:
        self._data.clear()

    def __len__(self) -> int:
        return len(self._data)


# 行情数据中台 (Market Data Service Hub)
# 职责：缓存优先 -> 主数据源 (带重试) -> 备用数据源 (带重试)
# 只有所有数据源都失败时才抛出 UpstreamUnavailableError；单个币种缺失只是不出现在结果中
class MarketDataService:
    def __init__(
        self,
        primary: MarketDataProvider,
        fallback: Optional[MarketDataProvider] = None,
        price_ttl: float = settings.PRICE_CACHE_TTL,
        historical_ttl: float = settings.HISTORICAL_CACHE_TTL,
        primary_attempts: int = settings.PRIMARY_RETRY_ATTEMPTS,
        fallback_attempts: int = settings.FALLBACK_RETRY_ATTEMPTS,
        retry_wait: float = settings.RETRY_WAIT_SECONDS,
    ):
        self.primary = primary
        self.fallback = fallback
        self.primary_attempts = primary_attempts
        self.fallback_attempts = fallback_attempts
        self.retry_wait = retry_wait
        self.active_fallback = False
        self._price_cache = TTLCache(price_ttl)
        self._history_cache = TTLCache(historical_ttl)

    async def _with_retry(self, provider: MarketDataProvider, attempts: int, method: str, *args):
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(attempts),
            wait=wait_exponential(multiplier=self.retry_wait, max=self.retry_wait * 4),
            retry=retry_if_exception(is_transient_error),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        ):
            with attempt:
                return await getattr(provider, method)(*args)

    async def _fetch_prices(self, symbols: List[str]) -> Dict[str, CryptoPrice]:
        # 1. 主数据源 (Step 1: Primary)
        try:
            prices = await self._with_retry(self.primary, self.primary_attempts, "get_prices", symbols)
            if self.active_fallback:
                logger.info(f"Primary provider {self.primary.name} recovered")
            self.active_fallback = False
        except (httpx.HTTPError, ProviderError) as e:
            logger.warning(f"Primary provider {self.primary.name} failed: {e}")
            if self.fallback is None:
                raise UpstreamUnavailableError("market-data", "Unable to fetch cryptocurrency prices") from e
            # 2. 备用数据源 (Step 2: Fallback)
            self.active_fallback = True
            logger.warning(f"Switching to fallback provider {self.fallback.name}")
            try:
                return await self._with_retry(self.fallback, self.fallback_attempts, "get_prices", symbols)
            except (httpx.HTTPError, ProviderError) as fallback_error:
                logger.error(f"Fallback provider {self.fallback.name} failed: {fallback_error}")
                raise UpstreamUnavailableError(
                    "market-data", "Unable to fetch cryptocurrency prices"
                ) from fallback_error

        # 3. 主数据源未覆盖的币种尝试用备用源补齐，失败不影响已有结果
        missing = [s for s in symbols if s not in prices]
        if missing and self.fallback is not None:
            try:
                extra = await self.fallback.get_prices(missing)
                prices.update(extra)
            except (httpx.HTTPError, ProviderError) as e:
                logger.warning(f"Fallback lookup for {missing} failed: {e}")
        return prices

    async def get_current_prices(self, symbols: Iterable[str]) -> Dict[str, CryptoPrice]:
        """
        批量获取行情 (Batched price lookup)
        - 返回值可能缺少部分币种，调用方需自行处理
        - 所有数据源均失败时抛出 UpstreamUnavailableError
        """
        valid = filter_valid_symbols(symbols)
        if not valid:
            return {}

        result: Dict[str, CryptoPrice] = {}
        uncached: List[str] = []
        for symbol in valid:
            cached = self._price_cache.get(symbol)
            if cached is not None:
                result[symbol] = cached
            else:
                uncached.append(symbol)

        if uncached:
            logger.debug(f"Fetching prices for {uncached} ({len(result)} cached)")
            fetched = await self._fetch_prices(uncached)
            for symbol, price in fetched.items():
                self._price_cache.set(symbol, price)
                result[symbol] = price

        return {s: result[s] for s in valid if s in result}

    async def get_current_price(self, symbol: str) -> CryptoPrice:
        symbol = normalize_symbol(symbol)
        prices = await self.get_current_prices([symbol])
        if symbol not in prices:
            raise NotFoundError("Cryptocurrency", symbol)
        return prices[symbol]

    async def get_historical_prices(self, symbol: str, timeframe: str) -> List[PricePoint]:
        symbol = normalize_symbol(symbol)
        try:
            tf = Timeframe(timeframe)
        except ValueError:
            allowed = ", ".join(t.value for t in Timeframe)
            raise ValidationError(f"Invalid timeframe '{timeframe}' (allowed: {allowed})")

        key = (symbol, tf.value)
        cached = self._history_cache.get(key)
        if cached is not None:
            return cached

        providers = [(self.primary, self.primary_attempts)]
        if self.fallback is not None:
            providers.append((self.fallback, self.fallback_attempts))

        last_error: Optional[Exception] = None
        for provider, attempts in providers:
            try:
                history = await self._with_retry(provider, attempts, "get_historical_prices", symbol, tf)
                self._history_cache.set(key, history)
                return history
            except (httpx.HTTPError, ProviderError) as e:
                logger.warning(f"{provider.name} history for {symbol} {tf.value} failed: {e}")
                last_error = e
        raise UpstreamUnavailableError(
            "market-data", f"Unable to fetch historical prices for {symbol}"
        ) from last_error

    async def get_adapter_status(self) -> AdapterStatus:
        checks = [self.primary.ping()]
        if self.fallback is not None:
            checks.append(self.fallback.ping())
        results = await asyncio.gather(*checks)
        return AdapterStatus(
            primary=results[0],
            fallback=results[1] if len(results) > 1 else False,
            active_fallback=self.active_fallback,
        )

    def clear_cache(self) -> None:
        self._price_cache.clear()
        self._history_cache.clear()
        logger.info("Market data cache cleared")


_service: Optional[MarketDataService] = None


def get_market_data_service() -> MarketDataService:
    """进程级单例：缓存需要在请求之间共享"""
    global _service
    if _service is None:
        _service = MarketDataService(
            primary=ProviderFactory.get_provider(settings.MARKET_DATA_PRIMARY),
            fallback=ProviderFactory.get_provider(settings.MARKET_DATA_FALLBACK)
            if settings.MARKET_DATA_FALLBACK else None,
        )
    return _service
