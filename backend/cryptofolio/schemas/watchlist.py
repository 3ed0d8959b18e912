from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional
from datetime import datetime
from decimal import Decimal
from cryptofolio.schemas.common import validate_symbol


class WatchlistItemCreate(BaseModel):
    symbol: str
    name: str = Field(min_length=1, max_length=100)
    notes: Optional[str] = Field(default=None, max_length=1000)

    @field_validator("symbol")
    @classmethod
    def normalize_symbol(cls, v: str) -> str:
        return validate_symbol(v)


class WatchlistItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    symbol: str
    name: str
    notes: Optional[str] = None
    added_at: datetime


class EnrichedWatchlistItem(WatchlistItemOut):
    current_price: Decimal
    change_1h: Decimal
    change_24h: Decimal
    change_7d: Decimal
    volume_24h: Decimal
    market_cap: Decimal
    trend: str


class WatchlistCheck(BaseModel):
    symbol: str
    in_watchlist: bool
