from typing import Dict

from cryptofolio.services.market_providers.base import MarketDataProvider
from cryptofolio.services.market_providers.binance import BinanceProvider
from cryptofolio.services.market_providers.coingecko import CoinGeckoProvider

# 数据源工厂 (Factory Pattern)
# 职责：根据配置名称返回对应的数据源实例
class ProviderFactory:
    # 使用类变量缓存单例对象，避免重复创建实例
    _instances: Dict[str, MarketDataProvider] = {}

    _registry = {
        "binance": BinanceProvider,
        "coingecko": CoinGeckoProvider,
    }

    @classmethod
    def get_provider(cls, source: str) -> MarketDataProvider:
        source = source.lower()
        if source not in cls._registry:
            raise ValueError(f"Unknown market data provider '{source}'")
        if source not in cls._instances:
            cls._instances[source] = cls._registry[source]()
        return cls._instances[source]
