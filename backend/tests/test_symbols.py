import logging

from cryptofolio.utils.symbols import (
    filter_valid_symbols,
    get_symbol_filter_reason,
    is_valid_crypto_symbol,
    normalize_symbol,
)


def test_normalize_symbol():
    assert normalize_symbol("  btc ") == "BTC"


def test_stablecoins_are_not_priced():
    for symbol in ["USDT", "usdc", "DAI", "FDUSD"]:
        assert not is_valid_crypto_symbol(symbol)
    assert get_symbol_filter_reason("BUSD") == "stablecoin"


def test_internal_prefixed_assets_are_filtered():
    assert not is_valid_crypto_symbol("LDBNB")
    assert not is_valid_crypto_symbol("BNSOL")
    # 真实币种不能被误伤
    assert is_valid_crypto_symbol("BNB")
    assert is_valid_crypto_symbol("LDO")


def test_invalid_format():
    assert get_symbol_filter_reason("BTC-USD") == "invalid format"
    assert get_symbol_filter_reason("") == "invalid format"
    assert get_symbol_filter_reason("ABCDEFGHIJK") == "invalid format"


def test_filter_valid_symbols_dedupes_and_keeps_order(caplog):
    with caplog.at_level(logging.WARNING):
        result = filter_valid_symbols(["eth", "BTC", "USDT", "ETH", "sol"])
    assert result == ["ETH", "BTC", "SOL"]
    assert "USDT" in caplog.text
