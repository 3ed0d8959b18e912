from decimal import Decimal

import pytest

from cryptofolio.core.exceptions import NotFoundError, UnauthorizedError, UpstreamUnavailableError
from cryptofolio.repositories import HoldingRepository, PortfolioRepository
from cryptofolio.services.holdings import HoldingsService
from cryptofolio.services.portfolio import PortfolioService

D = Decimal


@pytest.fixture
def service(db, market):
    return PortfolioService(db, market)


@pytest.fixture
def holdings(db, market):
    return HoldingsService(db, market)


async def test_first_portfolio_becomes_default(service, alice):
    first = await service.create_portfolio(alice.id, {"name": "Main"})
    second = await service.create_portfolio(alice.id, {"name": "Trading"})
    assert first.is_default is True
    assert second.is_default is False
    assert (await service.get_default_portfolio(alice.id)).id == first.id


async def test_creating_default_moves_flag(service, db, alice):
    first = await service.create_portfolio(alice.id, {"name": "Main"})
    second = await service.create_portfolio(alice.id, {"name": "Trading", "is_default": True})
    assert second.is_default is True
    assert (await PortfolioRepository(db).find_by_id(first.id)).is_default is False


async def test_set_default_requires_ownership(service, alice, bob):
    portfolio = await service.create_portfolio(alice.id, {"name": "Main"})
    with pytest.raises(UnauthorizedError):
        await service.set_default_portfolio(bob.id, portfolio.id)
    with pytest.raises(NotFoundError):
        await service.get_default_portfolio(bob.id)


async def test_update_portfolio(service, alice):
    portfolio = await service.create_portfolio(alice.id, {"name": "Main", "description": "long term"})
    updated = await service.update_portfolio(alice.id, portfolio.id, {"name": "Core"})
    assert updated.name == "Core"
    assert updated.description == "long term"


async def test_portfolio_details(service, holdings, market, alice):
    portfolio = await service.create_portfolio(alice.id, {"name": "Main"})
    await holdings.add_holding(alice.id, portfolio.id, {"symbol": "BTC", "name": "Bitcoin", "quantity": "2", "average_cost": "50000"})
    await holdings.add_holding(alice.id, portfolio.id, {"symbol": "ETH", "name": "Ethereum", "quantity": "10", "average_cost": "3000"})
    market.set_price("BTC", 50000)
    market.set_price("ETH", 3500)

    details = await service.get_portfolio_details(alice.id, portfolio.id)

    assert details.total_value == D("135000")
    assert details.total_cost == D("130000")
    assert details.total_gain_loss == D("5000")
    assert details.holdings_count == 2
    assert [h.symbol for h in details.holdings] == ["BTC", "ETH"]


async def test_get_portfolios_uses_one_batched_call(service, holdings, market, alice, bob):
    main = await service.create_portfolio(alice.id, {"name": "Main"})
    trading = await service.create_portfolio(alice.id, {"name": "Trading"})
    await service.create_portfolio(alice.id, {"name": "Empty"})
    await service.create_portfolio(bob.id, {"name": "Bob's"})
    await holdings.add_holding(alice.id, main.id, {"symbol": "BTC", "name": "Bitcoin", "quantity": "1", "average_cost": "40000"})
    await holdings.add_holding(alice.id, trading.id, {"symbol": "BTC", "name": "Bitcoin", "quantity": "1", "average_cost": "60000"})
    await holdings.add_holding(alice.id, trading.id, {"symbol": "SOL", "name": "Solana", "quantity": "10", "average_cost": "100"})
    market.set_price("BTC", 50000)
    market.set_price("SOL", 150)

    summaries = await service.get_portfolios(alice.id)

    assert market.calls == [["BTC", "SOL"]]
    assert [s.name for s in summaries] == ["Main", "Trading", "Empty"]
    main_s, trading_s, empty_s = summaries
    assert main_s.total_value == D("50000")
    assert main_s.total_gain_loss == D("10000")
    assert trading_s.total_value == D("51500")
    assert trading_s.total_cost == D("61000")
    assert empty_s.holdings_count == 0
    assert empty_s.total_gain_loss_percentage == 0


async def test_get_portfolios_upstream_failure(service, holdings, market, alice):
    portfolio = await service.create_portfolio(alice.id, {"name": "Main"})
    await holdings.add_holding(alice.id, portfolio.id, {"symbol": "BTC", "name": "Bitcoin", "quantity": "1", "average_cost": "1"})
    market.fail = True
    with pytest.raises(UpstreamUnavailableError):
        await service.get_portfolios(alice.id)


async def test_delete_portfolio_cascades_and_moves_default(service, holdings, db, alice, bob):
    main = await service.create_portfolio(alice.id, {"name": "Main"})
    second = await service.create_portfolio(alice.id, {"name": "Second"})
    await holdings.add_holding(alice.id, main.id, {"symbol": "BTC", "name": "Bitcoin", "quantity": "1", "average_cost": "1"})

    with pytest.raises(UnauthorizedError):
        await service.delete_portfolio(bob.id, main.id)

    await service.delete_portfolio(alice.id, main.id)

    assert await HoldingRepository(db).find_all(main.id) == []
    assert (await service.get_default_portfolio(alice.id)).id == second.id
    with pytest.raises(NotFoundError):
        await service.get_portfolio_details(alice.id, main.id)


async def test_statistics(service, holdings, market, alice):
    portfolio = await service.create_portfolio(alice.id, {"name": "Main"})
    for symbol, qty, cost in [("BTC", "1", "40000"), ("ETH", "10", "4000"), ("SOL", "100", "100")]:
        await holdings.add_holding(alice.id, portfolio.id, {"symbol": symbol, "name": symbol, "quantity": qty, "average_cost": cost})
    market.set_price("BTC", 60000)
    market.set_price("ETH", 3000)
    market.set_price("SOL", 120)

    stats = await service.get_portfolio_statistics(alice.id, portfolio.id)

    assert stats.holdings_count == 3
    assert stats.total_value == D("102000")
    assert stats.best_performer.symbol == "BTC"
    assert stats.best_performer.value == D("50")
    assert stats.worst_performer.symbol == "ETH"
    assert stats.largest_holding.symbol == "BTC"


async def test_statistics_of_empty_portfolio(service, market, alice):
    portfolio = await service.create_portfolio(alice.id, {"name": "Main"})
    stats = await service.get_portfolio_statistics(alice.id, portfolio.id)
    assert stats.best_performer is None
    assert stats.total_value == 0
    assert market.calls == []
