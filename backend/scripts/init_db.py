import asyncio
import os
import sys
from decimal import Decimal

# Ensure backend directory is in python path
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from sqlalchemy.future import select

from cryptofolio.core import security
from cryptofolio.core.database import SessionLocal, Base, engine
from cryptofolio.models import User
from cryptofolio.services.holdings import HoldingsService
from cryptofolio.services.market_data import get_market_data_service
from cryptofolio.services.portfolio import PortfolioService
from cryptofolio.services.watchlist import WatchlistService

DEMO_EMAIL = "demo@cryptofolio.dev"
DEMO_PASSWORD = "demo-password"

HOLDINGS_TO_SEED = [
    ("BTC", "Bitcoin", Decimal("0.5"), Decimal("42000")),
    ("ETH", "Ethereum", Decimal("4"), Decimal("2200")),
    ("SOL", "Solana", Decimal("25"), Decimal("95")),
]

WATCHLIST_TO_SEED = [
    ("ADA", "Cardano"),
    ("LINK", "Chainlink"),
    ("DOT", "Polkadot"),
]


async def seed():
    async with engine.begin() as conn:
        print("🔧 Creating tables...")
        await conn.run_sync(Base.metadata.create_all)

    async with SessionLocal() as db:
        result = await db.execute(select(User).where(User.email == DEMO_EMAIL))
        if result.scalar_one_or_none():
            print("ℹ️ Demo user already exists, skipping seed.")
            return

        print("🌱 Seeding demo user...")
        user = User(email=DEMO_EMAIL, hashed_password=security.get_password_hash(DEMO_PASSWORD))
        db.add(user)
        await db.commit()
        await db.refresh(user)

        market_data = get_market_data_service()
        portfolio = await PortfolioService(db, market_data).create_portfolio(
            user.id, {"name": "Main", "description": "Demo portfolio"}
        )
        holdings = HoldingsService(db, market_data)
        for symbol, name, quantity, cost in HOLDINGS_TO_SEED:
            await holdings.add_holding(
                user.id, portfolio.id,
                {"symbol": symbol, "name": name, "quantity": quantity, "average_cost": cost},
            )

        watchlist = WatchlistService(db, market_data)
        for symbol, name in WATCHLIST_TO_SEED:
            await watchlist.add_to_watchlist(user.id, {"symbol": symbol, "name": name})

        print(f"✅ Seeded {len(HOLDINGS_TO_SEED)} holdings and {len(WATCHLIST_TO_SEED)} watchlist items.")
        print(f"   Login: {DEMO_EMAIL} / {DEMO_PASSWORD}")

if __name__ == "__main__":
    asyncio.run(seed())
