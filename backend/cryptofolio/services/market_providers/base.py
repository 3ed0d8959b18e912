from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any, Dict, List, Optional

import httpx

from cryptofolio.core.config import settings
from cryptofolio.schemas.market_data import CryptoPrice, PricePoint, Timeframe


class ProviderError(Exception):
    """数据源返回了无法使用的结果 (如不支持的币种)"""


# 上游返回 200 但内容无法解析时可能出现的异常
PARSE_ERRORS = (ValueError, KeyError, TypeError, IndexError, AttributeError, ArithmeticError)


def read_json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError as e:
        raise ProviderError(f"Malformed response from {response.request.url.path}") from e


def to_decimal(value: Any) -> Decimal:
    # 上游 JSON 可能给出 null / 数字 / 字符串，统一经 str 转为 Decimal
    if value is None or value == "":
        return Decimal("0")
    return Decimal(str(value))


# 行情数据源抽象基类 (Interface/Abstract Base Class)
# Binance、CoinGecko 等数据源都必须实现以下方法
class MarketDataProvider(ABC):
    name = "base"
    base_url = ""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        # transport 仅用于测试注入 (httpx.MockTransport)
        self._transport = transport

    def _client(self, headers: Optional[Dict[str, str]] = None) -> httpx.AsyncClient:
        kwargs: Dict[str, Any] = {
            "base_url": self.base_url,
            "timeout": settings.HTTP_TIMEOUT,
            "headers": headers or {},
        }
        if self._transport is not None:
            kwargs["transport"] = self._transport
        elif settings.HTTP_PROXY:
            kwargs["proxy"] = settings.HTTP_PROXY
        return httpx.AsyncClient(**kwargs)

    @abstractmethod
    async def get_prices(self, symbols: List[str]) -> Dict[str, CryptoPrice]:
        """
        批量获取实时报价。无法报价的币种直接省略，不抛异常；
        网络或上游整体故障时抛出 httpx.HTTPError
        """
        pass

    @abstractmethod
    async def get_historical_prices(self, symbol: str, timeframe: Timeframe) -> List[PricePoint]:
        """获取历史价格序列，用于走势图"""
        pass

    @abstractmethod
    async def ping(self) -> bool:
        """健康检查"""
        pass
