from typing import Any, Dict, List, Optional

from sqlalchemy import select

from cryptofolio.models.watchlist import WatchlistItem
from cryptofolio.repositories.base import BaseRepository
from cryptofolio.utils.symbols import normalize_symbol


class WatchlistRepository(BaseRepository):
    model = WatchlistItem
    owner_field = "user_id"
    default_sort = "added_at"
    sortable_columns = {
        "symbol": "symbol",
        "name": "name",
        "added_at": "added_at",
    }
    updatable_fields = ("name", "notes")

    async def find_by_symbol(self, user_id: str, symbol: str) -> Optional[WatchlistItem]:
        stmt = select(WatchlistItem).where(
            WatchlistItem.user_id == user_id,
            WatchlistItem.symbol == normalize_symbol(symbol),
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def exists(self, user_id: str, symbol: str) -> bool:
        return await self.find_by_symbol(user_id, symbol) is not None

    async def create(self, data: Dict[str, Any]) -> WatchlistItem:
        item = WatchlistItem(
            user_id=data["user_id"],
            symbol=normalize_symbol(data["symbol"]),
            name=data["name"],
            notes=data.get("notes"),
        )
        return await self._insert(item)

    async def get_symbols(self, user_id: str) -> List[str]:
        symbols: List[str] = []
        for item in await self.find_all(user_id):
            if item.symbol not in symbols:
                symbols.append(item.symbol)
        return symbols
