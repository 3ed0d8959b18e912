# 用户模型定义
from sqlalchemy import Column, String, Boolean, DateTime
import uuid
from datetime import datetime
from cryptofolio.core.database import Base

# 用户核心表 (User Model)
# 职责：身份认证；所有投资组合与自选列表都以 user_id 作为归属
class User(Base):
    __tablename__ = "users"

    # UUID 主键，避免外部猜测用户总量
    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String, unique=True, index=True, nullable=False)
    # 只存储 bcrypt 哈希，不存明文
    hashed_password = Column(String, nullable=False)
    is_active = Column(Boolean, default=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    last_login = Column(DateTime, nullable=True)
