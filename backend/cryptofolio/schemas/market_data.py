from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from decimal import Decimal
from enum import Enum

ZERO = Decimal("0")


class Timeframe(str, Enum):
    ONE_HOUR = "1h"
    ONE_DAY = "24h"
    ONE_WEEK = "7d"
    ONE_MONTH = "30d"
    ONE_YEAR = "1y"


class CryptoPrice(BaseModel):
    """单个币种的实时行情快照 (Price Snapshot)"""
    symbol: str
    name: Optional[str] = None
    price: Decimal
    change_1h: Decimal = ZERO
    change_24h: Decimal = ZERO
    change_7d: Decimal = ZERO
    volume_24h: Decimal = ZERO
    market_cap: Decimal = ZERO
    high_24h: Optional[Decimal] = None
    low_24h: Optional[Decimal] = None
    last_updated: datetime = Field(default_factory=datetime.utcnow)


class PricePoint(BaseModel):
    timestamp: datetime
    price: Decimal
    volume: Optional[Decimal] = None


class AdapterStatus(BaseModel):
    primary: bool
    fallback: bool
    active_fallback: bool


class MarketOverviewItem(BaseModel):
    """行情 + 趋势 + 展示文本，供前端直接渲染"""
    symbol: str
    name: Optional[str] = None
    price: Decimal
    change_24h: Decimal
    trend: str
    trend_arrow: str
    trend_color: str
    change_display: str
    volume_display: str
    market_cap_display: str
