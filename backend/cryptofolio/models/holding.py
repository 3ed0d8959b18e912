from sqlalchemy import Column, String, Numeric, DateTime, ForeignKey, UniqueConstraint
import uuid
from datetime import datetime
from cryptofolio.core.database import Base

# 持仓表 (Holding)
# 数量与成本使用 Numeric 存储，读出即为 Decimal，避免浮点误差累积
class Holding(Base):
    __tablename__ = "holdings"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    portfolio_id = Column(String, ForeignKey("portfolios.id", ondelete="CASCADE"), nullable=False, index=True)
    symbol = Column(String(10), nullable=False)   # 大写代码，如 BTC
    name = Column(String(100), nullable=False)

    quantity = Column(Numeric(28, 8), nullable=False)
    average_cost = Column(Numeric(28, 8), nullable=False)
    notes = Column(String(1000), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # 约束条件：同一组合内同一 Symbol 只能有一条记录
    __table_args__ = (
        UniqueConstraint('portfolio_id', 'symbol', name='unique_portfolio_symbol'),
    )
