"""
趋势分类与展示格式化工具 (Trend Classification & Display Formatting)

纯函数，不依赖任何 IO，可在服务层与接口层随意复用。
"""
from decimal import Decimal
from typing import Union

Number = Union[Decimal, int, float]

TREND_UP = "up"
TREND_DOWN = "down"
TREND_NEUTRAL = "neutral"

DEFAULT_THRESHOLD = Decimal("0.5")


def _to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def calculate_trend(change: Number, threshold: Number = DEFAULT_THRESHOLD) -> str:
    """
    根据 24h 涨跌幅判断趋势 (Classify a percentage change)
    - change > threshold  -> up
    - change < -threshold -> down
    - 其他                -> neutral
    """
    c = _to_decimal(change)
    t = _to_decimal(threshold)
    if c > t:
        return TREND_UP
    if c < -t:
        return TREND_DOWN
    return TREND_NEUTRAL


def format_market_cap(value: Number) -> str:
    v = _to_decimal(value)
    if v >= Decimal("1e12"):
        return f"${v / Decimal('1e12'):.1f}T"
    if v >= Decimal("1e9"):
        return f"${v / Decimal('1e9'):.1f}B"
    if v >= Decimal("1e6"):
        return f"${v / Decimal('1e6'):.1f}M"
    if v >= Decimal("1e3"):
        return f"${v / Decimal('1e3'):.1f}K"
    return f"${v:.2f}"


def format_volume(value: Number) -> str:
    v = _to_decimal(value)
    if v >= Decimal("1e9"):
        return f"${v / Decimal('1e9'):.1f}B"
    if v >= Decimal("1e6"):
        return f"${v / Decimal('1e6'):.1f}M"
    if v >= Decimal("1e3"):
        return f"${v / Decimal('1e3'):.1f}K"
    return f"${v:.2f}"


def format_percentage_change(value: Number) -> str:
    v = _to_decimal(value)
    sign = "+" if v > 0 else ""
    return f"{sign}{v:.2f}%"


def get_trend_color(change: Number) -> str:
    """按涨跌符号着色，不使用趋势阈值"""
    c = _to_decimal(change)
    if c > 0:
        return "green"
    if c < 0:
        return "red"
    return "gray"


def get_trend_arrow(trend: str) -> str:
    return {TREND_UP: "↑", TREND_DOWN: "↓"}.get(trend, "→")
