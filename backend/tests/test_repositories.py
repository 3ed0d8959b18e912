from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from cryptofolio.models import Transaction
from cryptofolio.repositories import (
    HoldingRepository,
    InvalidSortError,
    PortfolioRepository,
    RecordNotFound,
    TransactionRepository,
    UniqueConstraintViolation,
    WatchlistRepository,
)

D = Decimal


@pytest.fixture
async def portfolio(db, alice):
    return await PortfolioRepository(db).create({"user_id": alice.id, "name": "Main"})


@pytest.fixture
async def other_portfolio(db, alice):
    return await PortfolioRepository(db).create({"user_id": alice.id, "name": "Cold storage"})


async def add_holding(db, portfolio_id, symbol, quantity="1", cost="100"):
    return await HoldingRepository(db).create({
        "portfolio_id": portfolio_id,
        "symbol": symbol,
        "name": symbol,
        "quantity": D(quantity),
        "average_cost": D(cost),
    })


async def test_create_normalizes_symbol_and_keeps_decimals(db, portfolio):
    holding = await add_holding(db, portfolio.id, "btc", "0.12345678", "43210.5")
    assert holding.symbol == "BTC"
    assert holding.quantity == D("0.12345678")
    assert holding.average_cost == D("43210.5")


async def test_holding_unique_per_portfolio(db, portfolio, other_portfolio):
    await add_holding(db, portfolio.id, "BTC")
    # 同一组合内重复
    with pytest.raises(UniqueConstraintViolation):
        await add_holding(db, portfolio.id, "BTC")


async def test_same_symbol_in_different_portfolio(db, portfolio, other_portfolio):
    await add_holding(db, portfolio.id, "BTC")
    other = await add_holding(db, other_portfolio.id, "BTC")
    assert other.portfolio_id == other_portfolio.id


async def test_find_by_symbol_is_case_insensitive(db, portfolio):
    await add_holding(db, portfolio.id, "ETH")
    repo = HoldingRepository(db)
    assert (await repo.find_by_symbol(portfolio.id, "eth")).symbol == "ETH"
    assert await repo.find_by_symbol(portfolio.id, "SOL") is None
    assert await repo.exists(portfolio.id, " Eth ")


async def test_find_all_defaults_to_creation_order(db, portfolio):
    for symbol in ["SOL", "BTC", "ETH"]:
        await add_holding(db, portfolio.id, symbol)
    rows = await HoldingRepository(db).find_all(portfolio.id)
    assert [h.symbol for h in rows] == ["SOL", "BTC", "ETH"]


async def test_find_all_explicit_sort(db, portfolio):
    await add_holding(db, portfolio.id, "SOL", quantity="5")
    await add_holding(db, portfolio.id, "BTC", quantity="1")
    await add_holding(db, portfolio.id, "ETH", quantity="3")
    repo = HoldingRepository(db)

    by_symbol = await repo.find_all(portfolio.id, "symbol", "asc")
    assert [h.symbol for h in by_symbol] == ["BTC", "ETH", "SOL"]

    by_quantity = await repo.find_all(portfolio.id, "quantity", "desc")
    assert [h.symbol for h in by_quantity] == ["SOL", "ETH", "BTC"]


async def test_find_all_rejects_unknown_sort(db, portfolio):
    repo = HoldingRepository(db)
    with pytest.raises(InvalidSortError):
        await repo.find_all(portfolio.id, "portfolio_id; DROP TABLE holdings")
    with pytest.raises(InvalidSortError):
        await repo.find_all(portfolio.id, "symbol", "sideways")


async def test_find_all_is_scoped_to_owner(db, portfolio, other_portfolio):
    await add_holding(db, portfolio.id, "BTC")
    await add_holding(db, other_portfolio.id, "ETH")
    rows = await HoldingRepository(db).find_all(portfolio.id)
    assert [h.symbol for h in rows] == ["BTC"]


async def test_partial_update_only_touches_given_fields(db, portfolio):
    holding = await add_holding(db, portfolio.id, "BTC", "2", "50000")
    updated = await HoldingRepository(db).update(holding.id, {"notes": "long term"})
    assert updated.notes == "long term"
    assert updated.quantity == D("2")
    assert updated.average_cost == D("50000")


async def test_update_and_delete_unknown_id(db, portfolio):
    repo = HoldingRepository(db)
    with pytest.raises(RecordNotFound):
        await repo.update("missing", {"notes": "x"})
    with pytest.raises(RecordNotFound):
        await repo.delete("missing")


async def test_delete_scoped_to_other_owner_is_not_found(db, portfolio, other_portfolio):
    holding = await add_holding(db, portfolio.id, "BTC")
    with pytest.raises(RecordNotFound):
        await HoldingRepository(db).delete(holding.id, owner_id=other_portfolio.id)
    assert await HoldingRepository(db).find_by_id(holding.id) is not None


async def test_delete_holding_removes_transactions(db, portfolio):
    holding = await add_holding(db, portfolio.id, "BTC")
    txns = TransactionRepository(db)
    for _ in range(3):
        await txns.create({"holding_id": holding.id, "type": "BUY", "quantity": D("1"), "price_per_unit": D("10")})

    await HoldingRepository(db).delete(holding.id)

    count = (await db.execute(select(func.count()).select_from(Transaction))).scalar_one()
    assert count == 0
    assert await HoldingRepository(db).find_by_id(holding.id) is None


async def test_get_total_value(db, portfolio, other_portfolio):
    repo = HoldingRepository(db)
    assert await repo.get_total_value(portfolio.id, {"BTC": D("1")}) == 0

    await add_holding(db, portfolio.id, "BTC", "2")
    await add_holding(db, portfolio.id, "ETH", "10")
    await add_holding(db, portfolio.id, "DOGE", "1000")
    total = await repo.get_total_value(portfolio.id, {"BTC": D("50000"), "ETH": D("3500")})
    assert total == D("135000")


async def test_get_symbols_in_creation_order(db, portfolio):
    for symbol in ["ETH", "BTC", "ADA"]:
        await add_holding(db, portfolio.id, symbol)
    assert await HoldingRepository(db).get_symbols(portfolio.id) == ["ETH", "BTC", "ADA"]


async def test_watchlist_unique_per_user(db, alice, bob):
    repo = WatchlistRepository(db)
    await repo.create({"user_id": alice.id, "symbol": "btc", "name": "Bitcoin"})
    await repo.create({"user_id": bob.id, "symbol": "BTC", "name": "Bitcoin"})
    with pytest.raises(UniqueConstraintViolation):
        await repo.create({"user_id": alice.id, "symbol": "BTC", "name": "Bitcoin"})


async def test_watchlist_symbols(db, alice):
    repo = WatchlistRepository(db)
    for symbol in ["SOL", "ADA"]:
        await repo.create({"user_id": alice.id, "symbol": symbol, "name": symbol})
    assert await repo.get_symbols(alice.id) == ["SOL", "ADA"]
    assert await repo.exists(alice.id, "ada")


async def test_transaction_aggregates(db, portfolio):
    holding = await add_holding(db, portfolio.id, "ETH")
    repo = TransactionRepository(db)
    await repo.create({"holding_id": holding.id, "type": "BUY", "quantity": D("2"), "price_per_unit": D("1000"), "fee": D("5")})
    await repo.create({"holding_id": holding.id, "type": "BUY", "quantity": D("2"), "price_per_unit": D("2000")})
    await repo.create({"holding_id": holding.id, "type": "SELL", "quantity": D("1"), "price_per_unit": D("3000")})

    assert await repo.exists(holding.id)
    # 2005 + 4000 - 3000
    assert await repo.get_total_invested(holding.id) == D("3005")
    assert await repo.get_average_price(holding.id) == D("1500")


async def test_transactions_by_date_range(db, portfolio):
    holding = await add_holding(db, portfolio.id, "ETH")
    repo = TransactionRepository(db)
    base = datetime(2024, 3, 1)
    for days in (0, 10, 20):
        await repo.create({
            "holding_id": holding.id, "type": "BUY", "quantity": D("1"),
            "price_per_unit": D("1"), "transaction_date": base + timedelta(days=days),
        })
    rows = await repo.find_by_date_range(holding.id, base + timedelta(days=5), base + timedelta(days=25))
    assert [r.transaction_date for r in rows] == [base + timedelta(days=20), base + timedelta(days=10)]


async def test_set_default_portfolio(db, alice, portfolio, other_portfolio):
    repo = PortfolioRepository(db)
    await repo.set_as_default(alice.id, portfolio.id)
    await repo.set_as_default(alice.id, other_portfolio.id)

    assert (await repo.find_default(alice.id)).id == other_portfolio.id
    assert (await repo.find_by_id(portfolio.id)).is_default is False


async def test_delete_portfolio_cascades(db, portfolio):
    holding = await add_holding(db, portfolio.id, "BTC")
    await TransactionRepository(db).create(
        {"holding_id": holding.id, "type": "BUY", "quantity": D("1"), "price_per_unit": D("1")}
    )
    await PortfolioRepository(db).delete(portfolio.id)

    assert await HoldingRepository(db).find_all(portfolio.id) == []
    count = (await db.execute(select(func.count()).select_from(Transaction))).scalar_one()
    assert count == 0
