import asyncio
import logging
import sys
import os

# Ensure backend directory is in python path
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from sqlalchemy import union
from sqlalchemy.future import select

from cryptofolio.core.config import settings
from cryptofolio.core.database import SessionLocal
from cryptofolio.core.exceptions import UpstreamUnavailableError
from cryptofolio.core.logging import setup_logging
from cryptofolio.models import Holding, WatchlistItem
from cryptofolio.services.market_data import MarketDataService, get_market_data_service

setup_logging()
logger = logging.getLogger(__name__)


async def tracked_symbols() -> list:
    """所有持仓与自选中出现过的代码"""
    async with SessionLocal() as db:
        stmt = union(select(Holding.symbol), select(WatchlistItem.symbol))
        result = await db.execute(stmt)
        return sorted(result.scalars().all())


async def refresh_once(market_data: MarketDataService) -> int:
    symbols = await tracked_symbols()
    if not symbols:
        logger.info("ℹ️ No tracked symbols to refresh.")
        return 0

    # 清空缓存后重新拉取，相当于一次强制刷新
    market_data.clear_cache()
    prices = await market_data.get_current_prices(symbols)
    missing = sorted(set(symbols) - set(prices))
    logger.info(f"🔄 Refreshed {len(prices)}/{len(symbols)} symbols")
    if missing:
        logger.warning(f"⚠️ No price for: {', '.join(missing)}")
    return len(prices)


async def auto_refresh_job():
    """
    Background job that periodically re-fetches prices for every tracked symbol.
    """
    logger.info("🚀 Starting auto-refresh background job...")
    market_data = get_market_data_service()

    while True:
        try:
            await refresh_once(market_data)
        except UpstreamUnavailableError as e:
            logger.error(f"❌ Market data unavailable: {e.message}")

        logger.info(f"💤 Sleeping for {settings.REFRESH_INTERVAL_SECONDS} seconds...")
        await asyncio.sleep(settings.REFRESH_INTERVAL_SECONDS)

if __name__ == "__main__":
    try:
        asyncio.run(auto_refresh_job())
    except KeyboardInterrupt:
        logger.info("🛑 Auto-refresh job stopped by user.")
