from typing import List, Literal, Optional
from fastapi import APIRouter, Depends, Response

from cryptofolio.api.deps import get_current_user, get_watchlist_service
from cryptofolio.models.user import User
from cryptofolio.schemas.watchlist import (
    EnrichedWatchlistItem,
    WatchlistCheck,
    WatchlistItemCreate,
    WatchlistItemOut,
)
from cryptofolio.services.watchlist import WatchlistService
from cryptofolio.utils.symbols import normalize_symbol

router = APIRouter()

@router.get("", response_model=List[EnrichedWatchlistItem])
async def get_watchlist(
    sort_by: Optional[Literal["symbol", "name", "added_at"]] = None,
    sort_order: Literal["asc", "desc"] = "asc",
    current_user: User = Depends(get_current_user),
    service: WatchlistService = Depends(get_watchlist_service),
):
    """获取自选列表 (含实时行情与趋势)"""
    return await service.get_watchlist(current_user.id, sort_by, sort_order)

@router.post("", response_model=WatchlistItemOut, status_code=201)
async def add_to_watchlist(
    item_in: WatchlistItemCreate,
    current_user: User = Depends(get_current_user),
    service: WatchlistService = Depends(get_watchlist_service),
):
    return await service.add_to_watchlist(current_user.id, item_in)

@router.get("/check/{symbol}", response_model=WatchlistCheck)
async def check_watchlist(
    symbol: str,
    current_user: User = Depends(get_current_user),
    service: WatchlistService = Depends(get_watchlist_service),
):
    in_watchlist = await service.is_in_watchlist(current_user.id, symbol)
    return WatchlistCheck(symbol=normalize_symbol(symbol), in_watchlist=in_watchlist)

@router.delete("/{item_id}", status_code=204)
async def remove_from_watchlist(
    item_id: str,
    current_user: User = Depends(get_current_user),
    service: WatchlistService = Depends(get_watchlist_service),
):
    await service.remove_from_watchlist(current_user.id, item_id)
    return Response(status_code=204)
