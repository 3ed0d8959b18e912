import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession

from cryptofolio.core.exceptions import AlreadyExistsError, NotFoundError, UnauthorizedError
from cryptofolio.models.holding import Holding
from cryptofolio.models.portfolio import Portfolio
from cryptofolio.repositories.holding_repository import HoldingRepository
from cryptofolio.repositories.portfolio_repository import PortfolioRepository
from cryptofolio.repositories.transaction_repository import TransactionRepository
from cryptofolio.schemas.holding import EnrichedHolding, HoldingCreate, HoldingDetail, HoldingUpdate
from cryptofolio.schemas.transaction import TransactionOut
from cryptofolio.services.base import BaseService, repository_errors
from cryptofolio.services.enrichment import collect_symbols, enrich_holdings
from cryptofolio.services.market_data import MarketDataService

logger = logging.getLogger(__name__)


# 持仓服务 (Holdings Service)
# 所有操作都显式传入 user_id，并校验组合归属
class HoldingsService(BaseService):
    def __init__(self, db: AsyncSession, market_data: MarketDataService):
        super().__init__(db)
        self.repository = HoldingRepository(db)
        self.portfolios = PortfolioRepository(db)
        self.transactions = TransactionRepository(db)
        self.market_data = market_data

    async def get_owned_portfolio(self, user_id: str, portfolio_id: str) -> Portfolio:
        portfolio = await self.portfolios.find_by_id(portfolio_id)
        if portfolio is None:
            raise NotFoundError("Portfolio", portfolio_id)
        if portfolio.user_id != user_id:
            raise UnauthorizedError("You do not have access to this portfolio")
        return portfolio

    async def get_owned_holding(self, user_id: str, holding_id: str) -> Holding:
        holding = await self.repository.find_by_id(holding_id)
        if holding is None:
            raise NotFoundError("Holding", holding_id)
        portfolio = await self.portfolios.find_by_id(holding.portfolio_id)
        if portfolio is None or portfolio.user_id != user_id:
            raise UnauthorizedError("You do not have access to this holding")
        return holding

    async def get_holdings(
        self,
        user_id: str,
        portfolio_id: str,
        sort_by: Optional[str] = None,
        sort_order: Optional[str] = "asc",
    ) -> List[EnrichedHolding]:
        """
        获取带行情与收益计算的持仓列表 (Get enriched holdings)
        排序由仓储层决定，富化过程不改变顺序
        """
        await self.get_owned_portfolio(user_id, portfolio_id)
        with repository_errors("Holding"):
            holdings = await self.repository.find_all(portfolio_id, sort_by, sort_order)
        if not holdings:
            return []

        prices = await self.market_data.get_current_prices(collect_symbols(holdings))
        return enrich_holdings(holdings, prices)

    async def get_holding(self, user_id: str, holding_id: str) -> HoldingDetail:
        """单个持仓详情；占比仍按整个组合计算"""
        holding = await self.get_owned_holding(user_id, holding_id)
        enriched = await self.get_holdings(user_id, holding.portfolio_id)
        match = next(h for h in enriched if h.id == holding_id)

        transactions = await self.transactions.find_all(holding_id, "date", "desc")
        return HoldingDetail(
            **match.model_dump(),
            transactions=[TransactionOut.model_validate(t) for t in transactions],
        )

    async def add_holding(
        self, user_id: str, portfolio_id: str, data: Union[HoldingCreate, dict]
    ) -> Holding:
        if isinstance(data, dict):
            data = HoldingCreate(**data)
        await self.get_owned_portfolio(user_id, portfolio_id)

        if await self.repository.exists(portfolio_id, data.symbol):
            raise AlreadyExistsError(f"Holding for {data.symbol} already exists in this portfolio")

        with repository_errors("Holding", data.symbol):
            holding = await self.repository.create({"portfolio_id": portfolio_id, **data.model_dump()})
        await self._commit()
        logger.info(f"Added holding {holding.symbol} to portfolio {portfolio_id}")
        return holding

    async def update_holding(
        self, user_id: str, holding_id: str, data: Union[HoldingUpdate, Dict[str, Any]]
    ) -> Holding:
        if isinstance(data, dict):
            data = HoldingUpdate(**data)
        changes = data.model_dump(exclude_unset=True)
        holding = await self.get_owned_holding(user_id, holding_id)
        if not changes:
            return holding

        with repository_errors("Holding", holding_id):
            holding = await self.repository.update(holding_id, changes)
        await self._commit()
        return holding

    async def remove_holding(self, user_id: str, holding_id: str) -> None:
        holding = await self.get_owned_holding(user_id, holding_id)
        with repository_errors("Holding", holding_id):
            await self.repository.delete(holding_id, owner_id=holding.portfolio_id)
        await self._commit()
        logger.info(f"Removed holding {holding.symbol} ({holding_id})")

    async def get_total_value(self, user_id: str, portfolio_id: str) -> Decimal:
        await self.get_owned_portfolio(user_id, portfolio_id)
        symbols = await self.repository.get_symbols(portfolio_id)
        if not symbols:
            return Decimal("0")
        prices = await self.market_data.get_current_prices(symbols)
        return await self.repository.get_total_value(
            portfolio_id, {symbol: p.price for symbol, p in prices.items()}
        )

    async def get_symbols(self, user_id: str, portfolio_id: str) -> List[str]:
        await self.get_owned_portfolio(user_id, portfolio_id)
        return await self.repository.get_symbols(portfolio_id)
