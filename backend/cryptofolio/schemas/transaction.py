from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional
from datetime import datetime, timezone
from decimal import Decimal
from cryptofolio.models.transaction import TransactionType
from cryptofolio.schemas.common import validate_positive


class TransactionCreate(BaseModel):
    type: TransactionType
    quantity: Decimal
    price_per_unit: Decimal
    fee: Decimal = Decimal("0")
    transaction_date: Optional[datetime] = None
    notes: Optional[str] = Field(default=None, max_length=500)

    @field_validator("quantity", "price_per_unit")
    @classmethod
    def must_be_positive(cls, v):
        return validate_positive(v)

    @field_validator("fee")
    @classmethod
    def fee_not_negative(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("Fee cannot be negative")
        return v

    @field_validator("transaction_date")
    @classmethod
    def not_in_future(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is None:
            return v
        # 带时区的时间统一转为 naive UTC 存储
        if v.tzinfo is not None:
            v = v.astimezone(timezone.utc).replace(tzinfo=None)
        if v > datetime.utcnow():
            raise ValueError("Transaction date cannot be in the future")
        return v


class TransactionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    holding_id: str
    type: TransactionType
    quantity: Decimal
    price_per_unit: Decimal
    total_cost: Decimal
    fee: Decimal
    transaction_date: datetime
    notes: Optional[str] = None
    created_at: datetime


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool


class TransactionPage(BaseModel):
    data: List[TransactionOut]
    pagination: Pagination
