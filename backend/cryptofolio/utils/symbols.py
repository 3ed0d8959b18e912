import logging
import re
from typing import Iterable, List, Optional

logger = logging.getLogger(__name__)

# 代码格式：1-10 位大写字母或数字 (如 BTC, 1INCH)
SYMBOL_PATTERN = re.compile(r"^[A-Z0-9]{1,10}$")

# 稳定币本身就是计价单位，没有 XXXUSDT 交易对
STABLECOINS = frozenset({"USDT", "BUSD", "USDC", "DAI", "TUSD", "USDP", "FDUSD"})

# Binance 内部资产前缀 (理财、杠杆代币等)
INTERNAL_PREFIXES = ("LD", "RW", "BS", "BN")


def normalize_symbol(symbol: str) -> str:
    return symbol.strip().upper()


def get_symbol_filter_reason(symbol: str) -> Optional[str]:
    """返回该代码不能查询行情的原因；可查询时返回 None"""
    s = normalize_symbol(symbol)
    if not SYMBOL_PATTERN.match(s):
        return "invalid format"
    if s in STABLECOINS:
        return "stablecoin"
    # 内部资产 = 前缀 + 至少 3 位的底层资产代码 (LDBNB, BNSOL)；BNB、LDO 等真实币种不受影响
    for prefix in INTERNAL_PREFIXES:
        if s.startswith(prefix) and len(s) >= len(prefix) + 3:
            return f"internal asset prefix {prefix}"
    return None


def is_valid_crypto_symbol(symbol: str) -> bool:
    return get_symbol_filter_reason(symbol) is None


def filter_valid_symbols(symbols: Iterable[str]) -> List[str]:
    """去重、大写并剔除无法查询的代码，保留首次出现的顺序"""
    result: List[str] = []
    seen = set()
    for raw in symbols:
        s = normalize_symbol(raw)
        if s in seen:
            continue
        seen.add(s)
        reason = get_symbol_filter_reason(s)
        if reason:
            logger.warning(f"Skipping symbol {s}: {reason}")
            continue
        result.append(s)
    return result
