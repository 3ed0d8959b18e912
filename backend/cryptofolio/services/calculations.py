# 组合收益计算 (Portfolio Calculations)
# 纯函数，输入输出均为 Decimal
from decimal import Decimal
from typing import Dict, List, Optional, Sequence

from cryptofolio.models.transaction import TransactionType

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def calculate_gain_loss(current_value: Decimal, cost_basis: Decimal) -> Dict[str, object]:
    """
    盈亏金额与百分比
    成本为 0 时百分比返回 0，而不是无穷大
    """
    amount = current_value - cost_basis
    percentage = (amount / cost_basis) * HUNDRED if cost_basis > 0 else ZERO
    return {"amount": amount, "percentage": percentage, "is_profit": amount > 0}


def calculate_allocation(values: Sequence[Decimal]) -> List[Decimal]:
    """各项占总额的百分比；总额为 0 时全部为 0"""
    total = sum(values, ZERO)
    if total <= 0:
        return [ZERO for _ in values]
    return [(value / total) * HUNDRED for value in values]


def apply_transaction(
    quantity: Decimal,
    average_cost: Decimal,
    txn_type: TransactionType,
    txn_quantity: Decimal,
    txn_price: Decimal,
) -> Dict[str, Decimal]:
    """
    加权平均成本法更新持仓
    - BUY:  新均价 = (原数量*原均价 + 买入数量*买入价) / 新数量
    - SELL: 数量减少，均价不变
    """
    if TransactionType(txn_type) == TransactionType.BUY:
        new_quantity = quantity + txn_quantity
        new_cost = (quantity * average_cost + txn_quantity * txn_price) / new_quantity
        return {"quantity": new_quantity, "average_cost": new_cost}

    if txn_quantity > quantity:
        raise ValueError("Cannot sell more than the held quantity")
    return {"quantity": quantity - txn_quantity, "average_cost": average_cost}


def calculate_portfolio_totals(holdings: Sequence) -> Dict[str, object]:
    total_value = sum((h.current_value for h in holdings), ZERO)
    total_cost = sum((h.cost_basis for h in holdings), ZERO)
    gain_loss = calculate_gain_loss(total_value, total_cost)
    return {
        "total_value": total_value,
        "total_cost": total_cost,
        "total_gain_loss": gain_loss["amount"],
        "total_gain_loss_percentage": gain_loss["percentage"],
        "holdings_count": len(holdings),
    }


def pick_extremes(holdings: Sequence) -> Dict[str, Optional[object]]:
    """收益最好 / 最差的持仓，以及市值最大的持仓"""
    if not holdings:
        return {"best_performer": None, "worst_performer": None, "largest_holding": None}
    return {
        "best_performer": max(holdings, key=lambda h: h.gain_loss_percentage),
        "worst_performer": min(holdings, key=lambda h: h.gain_loss_percentage),
        "largest_holding": max(holdings, key=lambda h: h.current_value),
    }
