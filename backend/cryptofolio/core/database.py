from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy import event
from cryptofolio.core.config import settings

# 数据库引擎配置 (Database Engine Config)
# 异步驱动：行情请求期间不会阻塞其他请求
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=False,
    pool_pre_ping=True,
    connect_args={
        "check_same_thread": False,
        "timeout": 30,  # 数据库被锁时最多等待 30 秒
    } if "sqlite" in settings.DATABASE_URL else {}
)


def set_sqlite_pragma(dbapi_conn, connection_record):
    """SQLite 连接初始化：WAL 读写并发 + 外键级联删除"""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.execute("PRAGMA busy_timeout=30000")
    # SQLite 默认关闭外键约束，ON DELETE CASCADE 依赖它
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


if "sqlite" in settings.DATABASE_URL:
    event.listen(engine.sync_engine, "connect", set_sqlite_pragma)

# 会话工厂
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False  # 提交后仍可读取对象属性
)

# 所有 Model 的声明基类
Base = declarative_base()

# 依赖注入：每个请求一个 session，出错回滚
async def get_db():
    async with SessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
