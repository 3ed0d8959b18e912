import os

# 测试时不写 app.log
os.environ.setdefault("LOG_FILE", "")

from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List

import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from cryptofolio.core.database import Base, set_sqlite_pragma
from cryptofolio.core.exceptions import UpstreamUnavailableError
from cryptofolio.models import User
from cryptofolio.schemas.market_data import CryptoPrice


def make_price(symbol: str, price, change_24h="0", **extra) -> CryptoPrice:
    return CryptoPrice(
        symbol=symbol,
        name=symbol,
        price=Decimal(str(price)),
        change_24h=Decimal(str(change_24h)),
        last_updated=datetime(2024, 1, 1),
        **extra,
    )


class FakeMarketData:
    """记录调用次数的行情桩 (Recording market data stub)"""

    def __init__(self, prices: Dict[str, CryptoPrice] = None, fail: bool = False):
        self.prices = dict(prices or {})
        self.fail = fail
        self.calls: List[List[str]] = []

    def set_price(self, symbol: str, price, change_24h="0", **extra) -> None:
        self.prices[symbol] = make_price(symbol, price, change_24h, **extra)

    async def get_current_prices(self, symbols: Iterable[str]) -> Dict[str, CryptoPrice]:
        symbols = list(symbols)
        self.calls.append(symbols)
        if self.fail:
            raise UpstreamUnavailableError("market-data", "Unable to fetch cryptocurrency prices")
        return {s: self.prices[s] for s in symbols if s in self.prices}


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(engine.sync_engine, "connect", set_sqlite_pragma)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


async def _create_user(db, email: str) -> User:
    user = User(email=email, hashed_password="not-a-real-hash")
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest.fixture
async def alice(db) -> User:
    return await _create_user(db, "alice@example.com")


@pytest.fixture
async def bob(db) -> User:
    return await _create_user(db, "bob@example.com")


@pytest.fixture
def market() -> FakeMarketData:
    return FakeMarketData()
