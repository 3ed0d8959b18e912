from typing import List, Literal, Optional
from fastapi import APIRouter, Depends, Response

from cryptofolio.api.deps import get_current_user, get_holdings_service, get_portfolio_service
from cryptofolio.models.user import User
from cryptofolio.schemas.holding import EnrichedHolding, HoldingCreate, HoldingOut, HoldingsValue
from cryptofolio.schemas.portfolio import (
    PortfolioCreate,
    PortfolioDetails,
    PortfolioOut,
    PortfolioStatistics,
    PortfolioSummary,
    PortfolioUpdate,
)
from cryptofolio.services.holdings import HoldingsService
from cryptofolio.services.portfolio import PortfolioService

router = APIRouter()

HoldingSort = Literal["symbol", "name", "quantity", "average_cost", "created_at", "updated_at"]

@router.get("", response_model=List[PortfolioSummary])
async def list_portfolios(
    current_user: User = Depends(get_current_user),
    service: PortfolioService = Depends(get_portfolio_service),
):
    """组合列表 (含市值、成本、盈亏汇总)"""
    return await service.get_portfolios(current_user.id)

@router.post("", response_model=PortfolioOut, status_code=201)
async def create_portfolio(
    portfolio_in: PortfolioCreate,
    current_user: User = Depends(get_current_user),
    service: PortfolioService = Depends(get_portfolio_service),
):
    return await service.create_portfolio(current_user.id, portfolio_in)

@router.get("/default", response_model=PortfolioOut)
async def get_default_portfolio(
    current_user: User = Depends(get_current_user),
    service: PortfolioService = Depends(get_portfolio_service),
):
    return await service.get_default_portfolio(current_user.id)

@router.get("/{portfolio_id}", response_model=PortfolioDetails)
async def get_portfolio(
    portfolio_id: str,
    current_user: User = Depends(get_current_user),
    service: PortfolioService = Depends(get_portfolio_service),
):
    """组合详情：富化后的持仓 + 汇总"""
    return await service.get_portfolio_details(current_user.id, portfolio_id)

@router.patch("/{portfolio_id}", response_model=PortfolioOut)
async def update_portfolio(
    portfolio_id: str,
    portfolio_in: PortfolioUpdate,
    current_user: User = Depends(get_current_user),
    service: PortfolioService = Depends(get_portfolio_service),
):
    return await service.update_portfolio(current_user.id, portfolio_id, portfolio_in)

@router.delete("/{portfolio_id}", status_code=204)
async def delete_portfolio(
    portfolio_id: str,
    current_user: User = Depends(get_current_user),
    service: PortfolioService = Depends(get_portfolio_service),
):
    await service.delete_portfolio(current_user.id, portfolio_id)
    return Response(status_code=204)

@router.post("/{portfolio_id}/default", response_model=PortfolioOut)
async def set_default_portfolio(
    portfolio_id: str,
    current_user: User = Depends(get_current_user),
    service: PortfolioService = Depends(get_portfolio_service),
):
    return await service.set_default_portfolio(current_user.id, portfolio_id)

@router.get("/{portfolio_id}/statistics", response_model=PortfolioStatistics)
async def get_portfolio_statistics(
    portfolio_id: str,
    current_user: User = Depends(get_current_user),
    service: PortfolioService = Depends(get_portfolio_service),
):
    return await service.get_portfolio_statistics(current_user.id, portfolio_id)

# --- 组合内持仓 (Holdings within a portfolio) ---

@router.get("/{portfolio_id}/holdings", response_model=List[EnrichedHolding])
async def list_holdings(
    portfolio_id: str,
    sort_by: Optional[HoldingSort] = None,
    sort_order: Literal["asc", "desc"] = "asc",
    current_user: User = Depends(get_current_user),
    service: HoldingsService = Depends(get_holdings_service),
):
    return await service.get_holdings(current_user.id, portfolio_id, sort_by, sort_order)

@router.post("/{portfolio_id}/holdings", response_model=HoldingOut, status_code=201)
async def add_holding(
    portfolio_id: str,
    holding_in: HoldingCreate,
    current_user: User = Depends(get_current_user),
    service: HoldingsService = Depends(get_holdings_service),
):
    return await service.add_holding(current_user.id, portfolio_id, holding_in)

@router.get("/{portfolio_id}/holdings/value", response_model=HoldingsValue)
async def get_holdings_value(
    portfolio_id: str,
    current_user: User = Depends(get_current_user),
    service: HoldingsService = Depends(get_holdings_service),
):
    total = await service.get_total_value(current_user.id, portfolio_id)
    return HoldingsValue(portfolio_id=portfolio_id, total_value=total)

@router.get("/{portfolio_id}/holdings/symbols", response_model=List[str])
async def get_holding_symbols(
    portfolio_id: str,
    current_user: User = Depends(get_current_user),
    service: HoldingsService = Depends(get_holdings_service),
):
    return await service.get_symbols(current_user.id, portfolio_id)
