import logging

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from cryptofolio.core import security
from cryptofolio.core.database import get_db
from cryptofolio.core.exceptions import AuthenticationError
from cryptofolio.models.user import User
from cryptofolio.services.holdings import HoldingsService
from cryptofolio.services.market_data import MarketDataService, get_market_data_service
from cryptofolio.services.portfolio import PortfolioService
from cryptofolio.services.transactions import TransactionService
from cryptofolio.services.watchlist import WatchlistService

logger = logging.getLogger(__name__)

reusable_oauth2 = OAuth2PasswordBearer(
    tokenUrl="/api/auth/login"
)

async def get_current_user(
    db: AsyncSession = Depends(get_db),
    token: str = Depends(reusable_oauth2)
) -> User:
    # 身份只来自 JWT，没有任何默认用户
    user_id = security.decode_access_token(token)
    if not user_id:
        logger.info("Rejected request with invalid token")
        raise AuthenticationError("Could not validate credentials")

    stmt = select(User).where(User.id == user_id)
    result = await db.execute(stmt)
    user = result.scalar_one_or_none()

    if not user or not user.is_active:
        raise AuthenticationError("Could not validate credentials")

    return user


def get_market_data() -> MarketDataService:
    return get_market_data_service()


def get_watchlist_service(
    db: AsyncSession = Depends(get_db),
    market_data: MarketDataService = Depends(get_market_data),
) -> WatchlistService:
    return WatchlistService(db, market_data)


def get_holdings_service(
    db: AsyncSession = Depends(get_db),
    market_data: MarketDataService = Depends(get_market_data),
) -> HoldingsService:
    return HoldingsService(db, market_data)


def get_transaction_service(
    db: AsyncSession = Depends(get_db),
    market_data: MarketDataService = Depends(get_market_data),
) -> TransactionService:
    return TransactionService(db, market_data)


def get_portfolio_service(
    db: AsyncSession = Depends(get_db),
    market_data: MarketDataService = Depends(get_market_data),
) -> PortfolioService:
    return PortfolioService(db, market_data)
