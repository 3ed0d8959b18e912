from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import select, func

from cryptofolio.models.transaction import Transaction, TransactionType
from cryptofolio.repositories.base import BaseRepository


class TransactionRepository(BaseRepository):
    model = Transaction
    owner_field = "holding_id"
    sortable_columns = {
        "date": "transaction_date",
        "quantity": "quantity",
        "total_cost": "total_cost",
        "type": "type",
        "created_at": "created_at",
    }
    # 交易流水创建后不可修改
    updatable_fields = ()

    async def create(self, data: Dict[str, Any]) -> Transaction:
        fee = Decimal(data.get("fee") or 0)
        quantity = Decimal(data["quantity"])
        price = Decimal(data["price_per_unit"])
        txn = Transaction(
            holding_id=data["holding_id"],
            type=TransactionType(data["type"]).value,
            quantity=quantity,
            price_per_unit=price,
            fee=fee,
            total_cost=data.get("total_cost", quantity * price + fee),
            transaction_date=data.get("transaction_date") or datetime.utcnow(),
            notes=data.get("notes"),
        )
        return await self._insert(txn)

    async def exists(self, holding_id: str) -> bool:
        stmt = select(func.count()).select_from(Transaction).where(Transaction.holding_id == holding_id)
        return (await self.db.execute(stmt)).scalar_one() > 0

    async def count(self, holding_id: str) -> int:
        stmt = select(func.count()).select_from(Transaction).where(Transaction.holding_id == holding_id)
        return (await self.db.execute(stmt)).scalar_one()

    async def find_page(
        self,
        holding_id: str,
        page: int,
        limit: int,
        sort_column: Optional[str] = "date",
        sort_direction: Optional[str] = "desc",
    ) -> Tuple[List[Transaction], int]:
        stmt = (
            select(Transaction)
            .where(Transaction.holding_id == holding_id)
            .order_by(*self._order_by(sort_column, sort_direction))
            .offset((page - 1) * limit)
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all()), await self.count(holding_id)

    async def find_by_date_range(self, holding_id: str, start: datetime, end: datetime) -> List[Transaction]:
        stmt = (
            select(Transaction)
            .where(
                Transaction.holding_id == holding_id,
                Transaction.transaction_date >= start,
                Transaction.transaction_date <= end,
            )
            .order_by(Transaction.transaction_date.desc())
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_total_invested(self, holding_id: str) -> Decimal:
        """买入总额 - 卖出总额"""
        total = Decimal("0")
        for txn in await self.find_all(holding_id):
            if txn.type == TransactionType.BUY.value:
                total += txn.total_cost
            else:
                total -= txn.total_cost
        return total

    async def get_average_price(self, holding_id: str) -> Decimal:
        """买入加权均价；没有买入记录时为 0"""
        quantity = Decimal("0")
        cost = Decimal("0")
        for txn in await self.find_all(holding_id):
            if txn.type == TransactionType.BUY.value:
                quantity += txn.quantity
                cost += txn.quantity * txn.price_per_unit
        return cost / quantity if quantity > 0 else Decimal("0")
