from typing import Literal
from fastapi import APIRouter, Depends, Query, Response

from cryptofolio.api.deps import get_current_user, get_holdings_service, get_transaction_service
from cryptofolio.models.user import User
from cryptofolio.schemas.holding import HoldingDetail, HoldingOut, HoldingUpdate
from cryptofolio.schemas.transaction import TransactionCreate, TransactionOut, TransactionPage
from cryptofolio.services.holdings import HoldingsService
from cryptofolio.services.transactions import MAX_PAGE_SIZE, TransactionService

router = APIRouter()

@router.get("/{holding_id}", response_model=HoldingDetail)
async def get_holding(
    holding_id: str,
    current_user: User = Depends(get_current_user),
    service: HoldingsService = Depends(get_holdings_service),
):
    """单个持仓：实时行情、盈亏、占比及交易流水"""
    return await service.get_holding(current_user.id, holding_id)

@router.patch("/{holding_id}", response_model=HoldingOut)
async def update_holding(
    holding_id: str,
    holding_in: HoldingUpdate,
    current_user: User = Depends(get_current_user),
    service: HoldingsService = Depends(get_holdings_service),
):
    return await service.update_holding(current_user.id, holding_id, holding_in)

@router.delete("/{holding_id}", status_code=204)
async def delete_holding(
    holding_id: str,
    current_user: User = Depends(get_current_user),
    service: HoldingsService = Depends(get_holdings_service),
):
    await service.remove_holding(current_user.id, holding_id)
    return Response(status_code=204)

@router.get("/{holding_id}/transactions", response_model=TransactionPage)
async def list_transactions(
    holding_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=MAX_PAGE_SIZE),
    sort_by: Literal["date", "quantity", "total_cost", "type"] = "date",
    sort_order: Literal["asc", "desc"] = "desc",
    current_user: User = Depends(get_current_user),
    service: TransactionService = Depends(get_transaction_service),
):
    return await service.get_transactions(current_user.id, holding_id, page, limit, sort_by, sort_order)

@router.post("/{holding_id}/transactions", response_model=TransactionOut, status_code=201)
async def add_transaction(
    holding_id: str,
    txn_in: TransactionCreate,
    current_user: User = Depends(get_current_user),
    service: TransactionService = Depends(get_transaction_service),
):
    """记录买入/卖出，并同步更新持仓数量与均价"""
    return await service.add_transaction(current_user.id, holding_id, txn_in)
