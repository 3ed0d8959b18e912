from typing import Dict, List
from fastapi import APIRouter, Depends, Query, Response

from cryptofolio.api.deps import get_current_user, get_market_data
from cryptofolio.core.config import settings
from cryptofolio.core.exceptions import ValidationError
from cryptofolio.models.user import User
from cryptofolio.schemas.market_data import AdapterStatus, CryptoPrice, MarketOverviewItem, PricePoint, Timeframe
from cryptofolio.services.market_data import MarketDataService
from cryptofolio.utils import trend

router = APIRouter()

def _parse_symbols(symbols: str) -> List[str]:
    parsed = [s for s in (part.strip() for part in symbols.split(",")) if s]
    if not parsed:
        raise ValidationError("At least one symbol is required")
    return parsed

@router.get("/prices", response_model=Dict[str, CryptoPrice])
async def get_prices(
    symbols: str = Query(..., description="Comma separated, e.g. BTC,ETH"),
    current_user: User = Depends(get_current_user),
    market_data: MarketDataService = Depends(get_market_data),
):
    return await market_data.get_current_prices(_parse_symbols(symbols))

@router.get("/overview", response_model=List[MarketOverviewItem])
async def get_market_overview(
    symbols: str = Query(..., description="Comma separated, e.g. BTC,ETH"),
    current_user: User = Depends(get_current_user),
    market_data: MarketDataService = Depends(get_market_data),
):
    """行情概览：趋势 + 前端展示用的格式化文本"""
    prices = await market_data.get_current_prices(_parse_symbols(symbols))
    overview = []
    for price in prices.values():
        direction = trend.calculate_trend(price.change_24h, settings.TREND_THRESHOLD)
        overview.append(MarketOverviewItem(
            symbol=price.symbol,
            name=price.name,
            price=price.price,
            change_24h=price.change_24h,
            trend=direction,
            trend_arrow=trend.get_trend_arrow(direction),
            trend_color=trend.get_trend_color(price.change_24h),
            change_display=trend.format_percentage_change(price.change_24h),
            volume_display=trend.format_volume(price.volume_24h),
            market_cap_display=trend.format_market_cap(price.market_cap),
        ))
    return overview

@router.get("/status", response_model=AdapterStatus)
async def get_adapter_status(
    market_data: MarketDataService = Depends(get_market_data),
):
    """数据源健康状态"""
    return await market_data.get_adapter_status()

@router.post("/cache/clear", status_code=204)
async def clear_cache(
    current_user: User = Depends(get_current_user),
    market_data: MarketDataService = Depends(get_market_data),
):
    market_data.clear_cache()
    return Response(status_code=204)

@router.get("/{symbol}", response_model=CryptoPrice)
async def get_price(
    symbol: str,
    current_user: User = Depends(get_current_user),
    market_data: MarketDataService = Depends(get_market_data),
):
    return await market_data.get_current_price(symbol)

@router.get("/{symbol}/history", response_model=List[PricePoint])
async def get_history(
    symbol: str,
    timeframe: Timeframe = Timeframe.ONE_DAY,
    current_user: User = Depends(get_current_user),
    market_data: MarketDataService = Depends(get_market_data),
):
    return await market_data.get_historical_prices(symbol, timeframe.value)
