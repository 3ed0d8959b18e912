from cryptofolio.models.user import User
from cryptofolio.models.portfolio import Portfolio
from cryptofolio.models.holding import Holding
from cryptofolio.models.transaction import Transaction, TransactionType
from cryptofolio.models.watchlist import WatchlistItem
