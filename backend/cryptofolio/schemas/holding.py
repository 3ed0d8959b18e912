from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional
from datetime import datetime
from decimal import Decimal
from cryptofolio.schemas.common import validate_symbol, validate_positive
from cryptofolio.schemas.transaction import TransactionOut


class HoldingCreate(BaseModel):
    symbol: str
    name: str = Field(min_length=1, max_length=100)
    quantity: Decimal
    average_cost: Decimal
    notes: Optional[str] = Field(default=None, max_length=1000)

    @field_validator("symbol")
    @classmethod
    def normalize_symbol(cls, v: str) -> str:
        return validate_symbol(v)

    @field_validator("quantity", "average_cost")
    @classmethod
    def must_be_positive(cls, v):
        return validate_positive(v)


class HoldingUpdate(BaseModel):
    # 只修改显式提交的字段
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    quantity: Optional[Decimal] = None
    average_cost: Optional[Decimal] = None
    notes: Optional[str] = Field(default=None, max_length=1000)

    @field_validator("quantity", "average_cost")
    @classmethod
    def must_be_positive(cls, v):
        return validate_positive(v)


class HoldingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    portfolio_id: str
    symbol: str
    name: str
    quantity: Decimal
    average_cost: Decimal
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class EnrichedHolding(HoldingOut):
    current_price: Decimal
    change_1h: Decimal
    change_24h: Decimal
    change_7d: Decimal
    volume_24h: Decimal
    market_cap: Decimal
    trend: str
    current_value: Decimal
    cost_basis: Decimal
    gain_loss: Decimal
    gain_loss_percentage: Decimal
    allocation_percentage: Decimal


class HoldingDetail(EnrichedHolding):
    transactions: List[TransactionOut] = []


class HoldingsValue(BaseModel):
    portfolio_id: str
    total_value: Decimal
