import logging
from typing import List, Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession

from cryptofolio.core.exceptions import AlreadyExistsError, NotFoundError, UnauthorizedError
from cryptofolio.models.watchlist import WatchlistItem
from cryptofolio.repositories.watchlist_repository import WatchlistRepository
from cryptofolio.schemas.watchlist import EnrichedWatchlistItem, WatchlistItemCreate
from cryptofolio.services.base import BaseService, repository_errors
from cryptofolio.services.enrichment import collect_symbols, enrich_watchlist
from cryptofolio.services.market_data import MarketDataService
from cryptofolio.utils.symbols import normalize_symbol

logger = logging.getLogger(__name__)


# 自选列表服务 (Watchlist Service)
class WatchlistService(BaseService):
    def __init__(self, db: AsyncSession, market_data: MarketDataService):
        super().__init__(db)
        self.repository = WatchlistRepository(db)
        self.market_data = market_data

    async def get_watchlist(
        self,
        user_id: str,
        sort_by: Optional[str] = None,
        sort_order: Optional[str] = "asc",
    ) -> List[EnrichedWatchlistItem]:
        """
        获取带行情的自选列表 (Get enriched watchlist)
        1. 读取用户的自选记录；为空时直接返回，不请求行情
        2. 一次批量请求全部代码的行情
        3. 拼接行情，缺失的币种置零
        """
        with repository_errors("WatchlistItem"):
            items = await self.repository.find_all(user_id, sort_by, sort_order)
        if not items:
            return []

        prices = await self.market_data.get_current_prices(collect_symbols(items))
        return enrich_watchlist(items, prices)

    async def add_to_watchlist(
        self, user_id: str, data: Union[WatchlistItemCreate, dict]
    ) -> WatchlistItem:
        if isinstance(data, dict):
            data = WatchlistItemCreate(**data)
        symbol = normalize_symbol(data.symbol)

        if await self.repository.exists(user_id, symbol):
            raise AlreadyExistsError(f"{symbol} is already in watchlist")

        with repository_errors("WatchlistItem", symbol):
            item = await self.repository.create(
                {"user_id": user_id, "symbol": symbol, "name": data.name, "notes": data.notes}
            )
        await self._commit()
        logger.info(f"User {user_id} added {symbol} to watchlist")
        return item

    async def remove_from_watchlist(self, user_id: str, item_id: str) -> None:
        # 先确认存在，再确认归属，最后删除
        item = await self.repository.find_by_id(item_id)
        if item is None:
            raise NotFoundError("WatchlistItem", item_id)
        if item.user_id != user_id:
            logger.warning(f"User {user_id} tried to remove watchlist item {item_id} owned by another user")
            raise UnauthorizedError("You do not have permission to remove this watchlist item")

        with repository_errors("WatchlistItem", item_id):
            await self.repository.delete(item_id, owner_id=user_id)
        await self._commit()

    async def is_in_watchlist(self, user_id: str, symbol: str) -> bool:
        return await self.repository.exists(user_id, normalize_symbol(symbol))
