from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import datetime
from decimal import Decimal
from cryptofolio.schemas.holding import EnrichedHolding


class PortfolioCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    is_default: bool = False


class PortfolioUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)


class PortfolioOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    name: str
    description: Optional[str] = None
    is_default: bool
    created_at: datetime
    updated_at: datetime


class PortfolioTotals(BaseModel):
    total_value: Decimal
    total_cost: Decimal
    total_gain_loss: Decimal
    total_gain_loss_percentage: Decimal
    holdings_count: int


class PortfolioSummary(PortfolioOut, PortfolioTotals):
    pass


class PortfolioDetails(PortfolioSummary):
    holdings: List[EnrichedHolding]


class HoldingPerformance(BaseModel):
    symbol: str
    value: Decimal


class PortfolioStatistics(BaseModel):
    portfolio_id: str
    holdings_count: int
    total_value: Decimal
    best_performer: Optional[HoldingPerformance] = None
    worst_performer: Optional[HoldingPerformance] = None
    largest_holding: Optional[HoldingPerformance] = None
