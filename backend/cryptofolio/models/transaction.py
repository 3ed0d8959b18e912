from sqlalchemy import Column, String, Numeric, DateTime, ForeignKey
import uuid
import enum
from datetime import datetime
from cryptofolio.core.database import Base


class TransactionType(str, enum.Enum):
    BUY = "BUY"
    SELL = "SELL"


# 交易流水表：创建后不可修改
class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    holding_id = Column(String, ForeignKey("holdings.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(4), nullable=False)  # TransactionType 的值

    quantity = Column(Numeric(28, 8), nullable=False)
    price_per_unit = Column(Numeric(28, 8), nullable=False)
    total_cost = Column(Numeric(28, 8), nullable=False)  # quantity * price + fee
    fee = Column(Numeric(28, 8), nullable=False, default=0)

    transaction_date = Column(DateTime, nullable=False, default=datetime.utcnow)
    notes = Column(String(500), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
