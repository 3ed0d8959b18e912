from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from pydantic import ValidationError as SchemaValidationError

from cryptofolio.core.exceptions import NotFoundError, UnauthorizedError, ValidationError
from cryptofolio.repositories import HoldingRepository
from cryptofolio.services.holdings import HoldingsService
from cryptofolio.services.portfolio import PortfolioService
from cryptofolio.services.transactions import TransactionService

D = Decimal


@pytest.fixture
def service(db, market):
    return TransactionService(db, market)


@pytest.fixture
async def holding(db, market, alice):
    portfolio = await PortfolioService(db, market).create_portfolio(alice.id, {"name": "Main"})
    return await HoldingsService(db, market).add_holding(
        alice.id, portfolio.id, {"symbol": "ETH", "name": "Ethereum", "quantity": "2", "average_cost": "2000"}
    )


async def test_buy_updates_quantity_and_average_cost(service, db, alice, holding):
    txn = await service.add_transaction(
        alice.id, holding.id, {"type": "BUY", "quantity": "2", "price_per_unit": "3000", "fee": "10"}
    )
    assert txn.total_cost == D("6010")
    assert txn.fee == D("10")

    refreshed = await HoldingRepository(db).find_by_id(holding.id)
    assert refreshed.quantity == D("4")
    assert refreshed.average_cost == D("2500")


async def test_sell_reduces_quantity(service, db, alice, holding):
    txn = await service.add_transaction(alice.id, holding.id, {"type": "SELL", "quantity": "0.5", "price_per_unit": "4000"})
    assert txn.total_cost == D("2000")

    refreshed = await HoldingRepository(db).find_by_id(holding.id)
    assert refreshed.quantity == D("1.5")
    assert refreshed.average_cost == D("2000")


async def test_oversell_is_rejected(service, db, alice, holding):
    with pytest.raises(ValidationError):
        await service.add_transaction(alice.id, holding.id, {"type": "SELL", "quantity": "3", "price_per_unit": "4000"})
    page = await service.get_transactions(alice.id, holding.id)
    assert page.pagination.total == 0


async def test_transaction_on_other_users_holding(service, alice, bob, holding):
    with pytest.raises(UnauthorizedError):
        await service.add_transaction(bob.id, holding.id, {"type": "BUY", "quantity": "1", "price_per_unit": "1"})
    with pytest.raises(NotFoundError):
        await service.add_transaction(alice.id, "missing", {"type": "BUY", "quantity": "1", "price_per_unit": "1"})


def test_input_validation():
    from cryptofolio.schemas.transaction import TransactionCreate

    with pytest.raises(SchemaValidationError):
        TransactionCreate(type="BUY", quantity="0", price_per_unit="1")
    with pytest.raises(SchemaValidationError):
        TransactionCreate(type="BUY", quantity="1", price_per_unit="1", fee="-1")
    with pytest.raises(SchemaValidationError):
        TransactionCreate(type="HODL", quantity="1", price_per_unit="1")
    with pytest.raises(SchemaValidationError):
        TransactionCreate(
            type="BUY", quantity="1", price_per_unit="1",
            transaction_date=datetime.utcnow() + timedelta(days=2),
        )


async def test_pagination(service, alice, holding):
    base = datetime(2024, 1, 1)
    for day in range(12):
        await service.add_transaction(alice.id, holding.id, {
            "type": "BUY", "quantity": "1", "price_per_unit": str(100 + day),
            "transaction_date": base + timedelta(days=day),
        })

    page = await service.get_transactions(alice.id, holding.id, page=2, limit=5)
    assert len(page.data) == 5
    assert page.pagination.total == 12
    assert page.pagination.total_pages == 3
    assert page.pagination.has_next and page.pagination.has_prev
    # 默认按日期倒序：第二页从第 6 新的记录开始
    assert page.data[0].transaction_date == base + timedelta(days=6)

    last = await service.get_transactions(alice.id, holding.id, page=3, limit=5)
    assert len(last.data) == 2
    assert last.pagination.has_next is False


async def test_pagination_sorting_and_limits(service, alice, holding):
    for qty in ["3", "1", "2"]:
        await service.add_transaction(alice.id, holding.id, {"type": "BUY", "quantity": qty, "price_per_unit": "1"})

    page = await service.get_transactions(alice.id, holding.id, sort_by="quantity", sort_order="asc")
    assert [t.quantity for t in page.data] == [D("1"), D("2"), D("3")]

    with pytest.raises(ValidationError):
        await service.get_transactions(alice.id, holding.id, limit=101)
    with pytest.raises(ValidationError):
        await service.get_transactions(alice.id, holding.id, page=0)
    with pytest.raises(ValidationError):
        await service.get_transactions(alice.id, holding.id, sort_by="notes")


async def test_empty_history(service, alice, holding):
    page = await service.get_transactions(alice.id, holding.id)
    assert page.data == []
    assert page.pagination.total_pages == 0
    assert page.pagination.has_next is False
    assert page.pagination.has_prev is False
