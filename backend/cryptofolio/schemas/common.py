from decimal import Decimal
from typing import Optional
from cryptofolio.utils.symbols import SYMBOL_PATTERN, normalize_symbol


def validate_symbol(value: str) -> str:
    """大写化后校验代码格式 ("btc" -> "BTC")"""
    symbol = normalize_symbol(value)
    if not SYMBOL_PATTERN.match(symbol):
        raise ValueError("Symbol must be 1-10 letters or digits")
    return symbol


def validate_positive(value: Optional[Decimal]) -> Optional[Decimal]:
    if value is not None and value <= 0:
        raise ValueError("Value must be greater than 0")
    return value
