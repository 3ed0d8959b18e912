"""
行情富化核心 (Price Enrichment Core)

把数据库中的持久化记录与实时行情快照拼接，并计算派生字段。

规则：
1. 输出顺序与输入顺序一致，这里从不重新排序
2. 某个币种没有行情时，所有行情字段为 0，趋势为 neutral，记录本身保留
3. 持仓的资产占比采用两遍计算：先算出每条的市值，再求和，最后分配占比

所有金额均为 Decimal。
"""
from decimal import Decimal
from typing import Dict, List, Mapping, Optional, Sequence

from cryptofolio.core.config import settings
from cryptofolio.models.holding import Holding
from cryptofolio.models.watchlist import WatchlistItem
from cryptofolio.schemas.holding import EnrichedHolding, HoldingOut
from cryptofolio.schemas.market_data import CryptoPrice
from cryptofolio.schemas.watchlist import EnrichedWatchlistItem, WatchlistItemOut
from cryptofolio.services.calculations import calculate_allocation, calculate_gain_loss
from cryptofolio.utils.trend import calculate_trend, TREND_NEUTRAL

ZERO = Decimal("0")


def collect_symbols(rows: Sequence) -> List[str]:
    """去重后的代码列表，保持首次出现顺序"""
    symbols: List[str] = []
    for row in rows:
        if row.symbol not in symbols:
            symbols.append(row.symbol)
    return symbols


def market_fields(price: Optional[CryptoPrice], threshold: Decimal) -> Dict[str, object]:
    """行情字段；price 为 None 时全部置零"""
    if price is None:
        return {
            "current_price": ZERO,
            "change_1h": ZERO,
            "change_24h": ZERO,
            "change_7d": ZERO,
            "volume_24h": ZERO,
            "market_cap": ZERO,
            "trend": TREND_NEUTRAL,
        }
    return {
        "current_price": price.price,
        "change_1h": price.change_1h,
        "change_24h": price.change_24h,
        "change_7d": price.change_7d,
        "volume_24h": price.volume_24h,
        "market_cap": price.market_cap,
        "trend": calculate_trend(price.change_24h, threshold),
    }


def _threshold(threshold: Optional[Decimal]) -> Decimal:
    if threshold is None:
        return Decimal(str(settings.TREND_THRESHOLD))
    return Decimal(str(threshold))


def enrich_watchlist(
    items: Sequence[WatchlistItem],
    prices: Mapping[str, CryptoPrice],
    threshold: Optional[Decimal] = None,
) -> List[EnrichedWatchlistItem]:
    t = _threshold(threshold)
    enriched = []
    for item in items:
        base = WatchlistItemOut.model_validate(item).model_dump()
        enriched.append(EnrichedWatchlistItem(**base, **market_fields(prices.get(item.symbol), t)))
    return enriched


def enrich_holdings(
    holdings: Sequence[Holding],
    prices: Mapping[str, CryptoPrice],
    threshold: Optional[Decimal] = None,
) -> List[EnrichedHolding]:
    t = _threshold(threshold)

    # 第一遍：行情字段、市值、成本、盈亏 (Pass 1: per-row values)
    rows = []
    for holding in holdings:
        fields = market_fields(prices.get(holding.symbol), t)
        current_value = holding.quantity * fields["current_price"]
        cost_basis = holding.quantity * holding.average_cost
        gain_loss = calculate_gain_loss(current_value, cost_basis)
        fields.update(
            current_value=current_value,
            cost_basis=cost_basis,
            gain_loss=gain_loss["amount"],
            gain_loss_percentage=gain_loss["percentage"],
        )
        rows.append((holding, fields))

    # 第二遍：所有市值都算完后才计算占比 (Pass 2: allocation)
    allocations = calculate_allocation([fields["current_value"] for _, fields in rows])

    enriched = []
    for (holding, fields), allocation in zip(rows, allocations):
        base = HoldingOut.model_validate(holding).model_dump()
        enriched.append(EnrichedHolding(**base, **fields, allocation_percentage=allocation))
    return enriched
