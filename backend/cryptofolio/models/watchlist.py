from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint
import uuid
from datetime import datetime
from cryptofolio.core.database import Base

# 自选列表：纯观察用途，与持仓无关联
class WatchlistItem(Base):
    __tablename__ = "watchlist_items"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    symbol = Column(String(10), nullable=False)
    name = Column(String(100), nullable=False)
    notes = Column(String(1000), nullable=True)
    added_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint('user_id', 'symbol', name='unique_user_watchlist_symbol'),
    )
