from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import select, delete

from cryptofolio.models.holding import Holding
from cryptofolio.models.transaction import Transaction
from cryptofolio.repositories.base import BaseRepository, RecordNotFound
from cryptofolio.utils.symbols import normalize_symbol


class HoldingRepository(BaseRepository):
    model = Holding
    owner_field = "portfolio_id"
    sortable_columns = {
        "symbol": "symbol",
        "name": "name",
        "quantity": "quantity",
        "average_cost": "average_cost",
        "created_at": "created_at",
        "updated_at": "updated_at",
    }
    updatable_fields = ("name", "quantity", "average_cost", "notes")

    async def find_by_symbol(self, portfolio_id: str, symbol: str) -> Optional[Holding]:
        stmt = select(Holding).where(
            Holding.portfolio_id == portfolio_id,
            Holding.symbol == normalize_symbol(symbol),
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def exists(self, portfolio_id: str, symbol: str) -> bool:
        return await self.find_by_symbol(portfolio_id, symbol) is not None

    async def create(self, data: Dict[str, Any]) -> Holding:
        holding = Holding(
            portfolio_id=data["portfolio_id"],
            symbol=normalize_symbol(data["symbol"]),
            name=data["name"],
            quantity=Decimal(data["quantity"]),
            average_cost=Decimal(data["average_cost"]),
            notes=data.get("notes"),
        )
        return await self._insert(holding)

    async def delete(self, id: str, owner_id: Optional[str] = None) -> None:
        """删除持仓前先清理其交易流水，保证不留孤儿记录"""
        await self._get_scoped(id, owner_id)
        await self.db.execute(delete(Transaction).where(Transaction.holding_id == id))
        await self.db.execute(delete(Holding).where(Holding.id == id))
        await self.db.flush()

    async def delete_by_portfolio(self, portfolio_id: str) -> int:
        holding_ids = select(Holding.id).where(Holding.portfolio_id == portfolio_id)
        await self.db.execute(delete(Transaction).where(Transaction.holding_id.in_(holding_ids)))
        result = await self.db.execute(delete(Holding).where(Holding.portfolio_id == portfolio_id))
        await self.db.flush()
        return result.rowcount

    async def find_by_portfolios(self, portfolio_ids: List[str]) -> List[Holding]:
        if not portfolio_ids:
            return []
        stmt = (
            select(Holding)
            .where(Holding.portfolio_id.in_(portfolio_ids))
            .order_by(Holding.created_at.asc())
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_total_value(self, portfolio_id: str, prices: Mapping[str, Decimal]) -> Decimal:
        """sum(quantity * price)，缺失价格按 0 计"""
        total = Decimal("0")
        for holding in await self.find_all(portfolio_id):
            total += holding.quantity * prices.get(holding.symbol, Decimal("0"))
        return total

    async def get_symbols(self, portfolio_id: str) -> List[str]:
        symbols: List[str] = []
        for holding in await self.find_all(portfolio_id):
            if holding.symbol not in symbols:
                symbols.append(holding.symbol)
        return symbols
