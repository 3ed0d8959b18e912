from cryptofolio.repositories.base import (
    RepositoryError,
    UniqueConstraintViolation,
    RecordNotFound,
    InvalidSortError,
)
from cryptofolio.repositories.portfolio_repository import PortfolioRepository
from cryptofolio.repositories.holding_repository import HoldingRepository
from cryptofolio.repositories.transaction_repository import TransactionRepository
from cryptofolio.repositories.watchlist_repository import WatchlistRepository
