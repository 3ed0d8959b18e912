from typing import Any, Dict, Optional

from sqlalchemy import select, update, delete, func

from cryptofolio.models.portfolio import Portfolio
from cryptofolio.repositories.base import BaseRepository
from cryptofolio.repositories.holding_repository import HoldingRepository


class PortfolioRepository(BaseRepository):
    model = Portfolio
    owner_field = "user_id"
    sortable_columns = {
        "name": "name",
        "created_at": "created_at",
        "updated_at": "updated_at",
    }
    updatable_fields = ("name", "description", "is_default")

    async def create(self, data: Dict[str, Any]) -> Portfolio:
        portfolio = Portfolio(
            user_id=data["user_id"],
            name=data["name"],
            description=data.get("description"),
            is_default=bool(data.get("is_default", False)),
        )
        return await self._insert(portfolio)

    async def exists(self, user_id: str, portfolio_id: str) -> bool:
        stmt = select(func.count()).select_from(Portfolio).where(
            Portfolio.user_id == user_id, Portfolio.id == portfolio_id
        )
        return (await self.db.execute(stmt)).scalar_one() > 0

    async def count(self, user_id: str) -> int:
        stmt = select(func.count()).select_from(Portfolio).where(Portfolio.user_id == user_id)
        return (await self.db.execute(stmt)).scalar_one()

    async def find_default(self, user_id: str) -> Optional[Portfolio]:
        stmt = select(Portfolio).where(Portfolio.user_id == user_id, Portfolio.is_default.is_(True))
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def set_as_default(self, user_id: str, portfolio_id: str) -> Portfolio:
        """先取消该用户其他组合的默认标记，再设置目标组合"""
        portfolio = await self._get_scoped(portfolio_id, user_id)
        await self.db.execute(
            update(Portfolio)
            .where(Portfolio.user_id == user_id, Portfolio.id != portfolio_id)
            .values(is_default=False)
        )
        portfolio.is_default = True
        await self.db.flush()
        await self.db.refresh(portfolio)
        return portfolio

    async def delete(self, id: str, owner_id: Optional[str] = None) -> None:
        """级联删除：交易 -> 持仓 -> 组合"""
        await self._get_scoped(id, owner_id)
        await HoldingRepository(self.db).delete_by_portfolio(id)
        await self.db.execute(delete(Portfolio).where(Portfolio.id == id))
        await self.db.flush()
