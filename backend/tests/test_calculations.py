from decimal import Decimal
from types import SimpleNamespace

import pytest

from cryptofolio.models.transaction import TransactionType
from cryptofolio.services.calculations import (
    apply_transaction,
    calculate_allocation,
    calculate_gain_loss,
    calculate_portfolio_totals,
    pick_extremes,
)

D = Decimal


def test_gain_loss_profit():
    result = calculate_gain_loss(D("150"), D("100"))
    assert result == {"amount": D("50"), "percentage": D("50"), "is_profit": True}


def test_gain_loss_zero_cost_basis_reports_zero_percent():
    result = calculate_gain_loss(D("150"), D("0"))
    assert result["amount"] == D("150")
    assert result["percentage"] == 0


def test_allocation_sums_to_hundred():
    allocation = calculate_allocation([D("1"), D("1"), D("1")])
    assert abs(sum(allocation) - 100) < D("1e-20")


def test_allocation_with_zero_total():
    assert calculate_allocation([D("0"), D("0")]) == [0, 0]
    assert calculate_allocation([]) == []


def test_apply_buy_updates_weighted_average():
    position = apply_transaction(D("2"), D("50000"), TransactionType.BUY, D("2"), D("60000"))
    assert position == {"quantity": D("4"), "average_cost": D("55000")}


def test_apply_sell_keeps_average_cost():
    position = apply_transaction(D("4"), D("55000"), TransactionType.SELL, D("1"), D("70000"))
    assert position == {"quantity": D("3"), "average_cost": D("55000")}


def test_apply_sell_more_than_held():
    with pytest.raises(ValueError):
        apply_transaction(D("1"), D("100"), TransactionType.SELL, D("1.5"), D("120"))


def test_portfolio_totals_and_extremes():
    holdings = [
        SimpleNamespace(symbol="BTC", current_value=D("100000"), cost_basis=D("100000"), gain_loss_percentage=D("0")),
        SimpleNamespace(symbol="ETH", current_value=D("35000"), cost_basis=D("30000"), gain_loss_percentage=D("16.67")),
        SimpleNamespace(symbol="SOL", current_value=D("500"), cost_basis=D("1000"), gain_loss_percentage=D("-50")),
    ]
    totals = calculate_portfolio_totals(holdings)
    assert totals["total_value"] == D("135500")
    assert totals["total_cost"] == D("131000")
    assert totals["total_gain_loss"] == D("4500")
    assert totals["holdings_count"] == 3

    extremes = pick_extremes(holdings)
    assert extremes["best_performer"].symbol == "ETH"
    assert extremes["worst_performer"].symbol == "SOL"
    assert extremes["largest_holding"].symbol == "BTC"


def test_extremes_of_empty_portfolio():
    assert pick_extremes([]) == {"best_performer": None, "worst_performer": None, "largest_holding": None}
