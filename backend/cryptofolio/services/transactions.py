import logging
import math
from typing import Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession

from cryptofolio.core.exceptions import ValidationError
from cryptofolio.models.transaction import Transaction, TransactionType
from cryptofolio.repositories.holding_repository import HoldingRepository
from cryptofolio.repositories.transaction_repository import TransactionRepository
from cryptofolio.schemas.transaction import Pagination, TransactionCreate, TransactionOut, TransactionPage
from cryptofolio.services.base import BaseService, repository_errors
from cryptofolio.services.calculations import apply_transaction
from cryptofolio.services.holdings import HoldingsService
from cryptofolio.services.market_data import MarketDataService

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


# 交易流水服务 (Transaction Service)
class TransactionService(BaseService):
    def __init__(self, db: AsyncSession, market_data: MarketDataService):
        super().__init__(db)
        self.repository = TransactionRepository(db)
        self.holdings = HoldingRepository(db)
        self.holdings_service = HoldingsService(db, market_data)

    async def add_transaction(
        self, user_id: str, holding_id: str, data: Union[TransactionCreate, dict]
    ) -> Transaction:
        """
        记录一笔交易，并在同一事务中更新持仓的数量与均价
        - total_cost = quantity * price_per_unit + fee
        - 卖出数量不能超过当前持仓
        """
        if isinstance(data, dict):
            data = TransactionCreate(**data)
        holding = await self.holdings_service.get_owned_holding(user_id, holding_id)

        try:
            position = apply_transaction(
                holding.quantity, holding.average_cost, data.type, data.quantity, data.price_per_unit
            )
        except ValueError:
            raise ValidationError(
                f"Cannot sell {data.quantity} {holding.symbol}: only {holding.quantity} held"
            )

        with repository_errors("Transaction"):
            txn = await self.repository.create(
                {
                    "holding_id": holding_id,
                    "type": data.type,
                    "quantity": data.quantity,
                    "price_per_unit": data.price_per_unit,
                    "total_cost": data.quantity * data.price_per_unit + data.fee,
                    "fee": data.fee,
                    "transaction_date": data.transaction_date,
                    "notes": data.notes,
                }
            )
            await self.holdings.update(holding_id, position)
        await self._commit()

        logger.info(
            f"{TransactionType(data.type).value} {data.quantity} {holding.symbol} @ {data.price_per_unit}; "
            f"position now {position['quantity']} @ {position['average_cost']}"
        )
        return txn

    async def get_transactions(
        self,
        user_id: str,
        holding_id: str,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
        sort_by: Optional[str] = "date",
        sort_order: Optional[str] = "desc",
    ) -> TransactionPage:
        if page < 1:
            raise ValidationError("page must be >= 1")
        if not 1 <= limit <= MAX_PAGE_SIZE:
            raise ValidationError(f"limit must be between 1 and {MAX_PAGE_SIZE}")
        await self.holdings_service.get_owned_holding(user_id, holding_id)

        with repository_errors("Transaction"):
            rows, total = await self.repository.find_page(holding_id, page, limit, sort_by, sort_order)

        total_pages = math.ceil(total / limit) if total else 0
        return TransactionPage(
            data=[TransactionOut.model_validate(r) for r in rows],
            pagination=Pagination(
                page=page,
                limit=limit,
                total=total,
                total_pages=total_pages,
                has_next=page < total_pages,
                has_prev=page > 1,
            ),
        )
