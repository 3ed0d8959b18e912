import logging
from collections import OrderedDict
from typing import Any, Dict, List, Union

from sqlalchemy.ext.asyncio import AsyncSession

from cryptofolio.core.exceptions import NotFoundError
from cryptofolio.models.portfolio import Portfolio
from cryptofolio.repositories.holding_repository import HoldingRepository
from cryptofolio.repositories.portfolio_repository import PortfolioRepository
from cryptofolio.schemas.portfolio import (
    HoldingPerformance,
    PortfolioCreate,
    PortfolioDetails,
    PortfolioOut,
    PortfolioStatistics,
    PortfolioSummary,
    PortfolioUpdate,
)
from cryptofolio.services.base import BaseService, repository_errors
from cryptofolio.services.calculations import calculate_portfolio_totals, pick_extremes
from cryptofolio.services.enrichment import collect_symbols, enrich_holdings
from cryptofolio.services.holdings import HoldingsService
from cryptofolio.services.market_data import MarketDataService

logger = logging.getLogger(__name__)


# 投资组合服务 (Portfolio Service)
class PortfolioService(BaseService):
    def __init__(self, db: AsyncSession, market_data: MarketDataService):
        super().__init__(db)
        self.repository = PortfolioRepository(db)
        self.holdings = HoldingRepository(db)
        self.holdings_service = HoldingsService(db, market_data)
        self.market_data = market_data

    async def _get_owned(self, user_id: str, portfolio_id: str) -> Portfolio:
        return await self.holdings_service.get_owned_portfolio(user_id, portfolio_id)

    async def create_portfolio(self, user_id: str, data: Union[PortfolioCreate, dict]) -> Portfolio:
        if isinstance(data, dict):
            data = PortfolioCreate(**data)
        # 用户的第一个组合自动成为默认组合
        make_default = data.is_default or await self.repository.count(user_id) == 0

        with repository_errors("Portfolio", data.name):
            portfolio = await self.repository.create(
                {"user_id": user_id, "name": data.name, "description": data.description}
            )
            if make_default:
                portfolio = await self.repository.set_as_default(user_id, portfolio.id)
        await self._commit()
        logger.info(f"User {user_id} created portfolio {portfolio.id} ({portfolio.name})")
        return portfolio

    async def get_portfolios(self, user_id: str) -> List[PortfolioSummary]:
        """
        组合列表及汇总数据 (List portfolios with value summaries)
        所有组合的持仓代码合并为一次批量行情请求
        """
        portfolios = await self.repository.find_all(user_id)
        holdings = await self.holdings.find_by_portfolios([p.id for p in portfolios])
        prices = await self.market_data.get_current_prices(collect_symbols(holdings)) if holdings else {}

        grouped: Dict[str, list] = OrderedDict((p.id, []) for p in portfolios)
        for holding in holdings:
            grouped[holding.portfolio_id].append(holding)

        summaries = []
        for portfolio in portfolios:
            enriched = enrich_holdings(grouped[portfolio.id], prices)
            summaries.append(
                PortfolioSummary(
                    **PortfolioOut.model_validate(portfolio).model_dump(),
                    **calculate_portfolio_totals(enriched),
                )
            )
        return summaries

    async def get_portfolio_details(self, user_id: str, portfolio_id: str) -> PortfolioDetails:
        portfolio = await self._get_owned(user_id, portfolio_id)
        enriched = await self.holdings_service.get_holdings(user_id, portfolio_id)
        return PortfolioDetails(
            **PortfolioOut.model_validate(portfolio).model_dump(),
            **calculate_portfolio_totals(enriched),
            holdings=enriched,
        )

    async def update_portfolio(
        self, user_id: str, portfolio_id: str, data: Union[PortfolioUpdate, Dict[str, Any]]
    ) -> Portfolio:
        if isinstance(data, dict):
            data = PortfolioUpdate(**data)
        portfolio = await self._get_owned(user_id, portfolio_id)
        changes = data.model_dump(exclude_unset=True)
        if not changes:
            return portfolio

        with repository_errors("Portfolio", portfolio_id):
            portfolio = await self.repository.update(portfolio_id, changes, owner_id=user_id)
        await self._commit()
        return portfolio

    async def delete_portfolio(self, user_id: str, portfolio_id: str) -> None:
        """删除组合及其全部持仓和交易；若删除的是默认组合，最早创建的剩余组合成为默认"""
        portfolio = await self._get_owned(user_id, portfolio_id)
        was_default = portfolio.is_default
        with repository_errors("Portfolio", portfolio_id):
            await self.repository.delete(portfolio_id, owner_id=user_id)
            if was_default:
                remaining = await self.repository.find_all(user_id)
                if remaining:
                    await self.repository.set_as_default(user_id, remaining[0].id)
        await self._commit()
        logger.info(f"User {user_id} deleted portfolio {portfolio_id}")

    async def set_default_portfolio(self, user_id: str, portfolio_id: str) -> Portfolio:
        await self._get_owned(user_id, portfolio_id)
        with repository_errors("Portfolio", portfolio_id):
            portfolio = await self.repository.set_as_default(user_id, portfolio_id)
        await self._commit()
        return portfolio

    async def get_default_portfolio(self, user_id: str) -> Portfolio:
        portfolio = await self.repository.find_default(user_id)
        if portfolio is None:
            raise NotFoundError("Default portfolio", user_id)
        return portfolio

    async def get_portfolio_statistics(self, user_id: str, portfolio_id: str) -> PortfolioStatistics:
        enriched = await self.holdings_service.get_holdings(user_id, portfolio_id)
        totals = calculate_portfolio_totals(enriched)
        extremes = pick_extremes(enriched)

        def perf(holding, field):
            if holding is None:
                return None
            return HoldingPerformance(symbol=holding.symbol, value=getattr(holding, field))

        return PortfolioStatistics(
            portfolio_id=portfolio_id,
            holdings_count=totals["holdings_count"],
            total_value=totals["total_value"],
            best_performer=perf(extremes["best_performer"], "gain_loss_percentage"),
            worst_performer=perf(extremes["worst_performer"], "gain_loss_percentage"),
            largest_holding=perf(extremes["largest_holding"], "current_value"),
        )
