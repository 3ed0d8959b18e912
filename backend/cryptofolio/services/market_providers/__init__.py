from cryptofolio.services.market_providers.base import MarketDataProvider, ProviderError
from cryptofolio.services.market_providers.binance import BinanceProvider
from cryptofolio.services.market_providers.coingecko import CoinGeckoProvider
from cryptofolio.services.market_providers.factory import ProviderFactory

__all__ = ["MarketDataProvider", "ProviderError", "BinanceProvider", "CoinGeckoProvider", "ProviderFactory"]
