import pytest

from fakes import FakeWeb3
from staking_yield.constants import WATCH_LIST_TOKENS
from staking_yield.wallet import fetch_wallet_balances, fetch_watch_list_prices, price_lookup_address

USER = "0x00000000000000000000000000000000000000aa"
WETH = WATCH_LIST_TOKENS["WETH"]["address"]
USDC = WATCH_LIST_TOKENS["USDC"]["address"]
DAI = WATCH_LIST_TOKENS["DAI"]["address"]


def test_eth_is_priced_through_weth():
    assert price_lookup_address("ETH", "0xeee") == WETH
    assert price_lookup_address("USDC", USDC) == USDC


def test_wallet_balances_sorted_and_dust_skipped(capsys):
    w3 = FakeWeb3(
        {
            USDC: {"balanceOf": 250_000_000},
            DAI: {"balanceOf": 10**12},  # 1e-6 DAI, below dust
        },
        balances={USER: 2 * 10**18},
    )
    cache = {WETH: 3000.0, USDC: 1.0, DAI: 1.0}
    wallet = fetch_wallet_balances(w3, USER, cache)

    assert [b.symbol for b in wallet.balances] == ["ETH", "USDC"]
    assert wallet.balances[0].value_usd == pytest.approx(6000.0)
    assert wallet.balances[1].balance == pytest.approx(250.0)
    assert wallet.total_value_usd == pytest.approx(6250.0)
    # WETH, WBTC and USDT have no readable balance in this fake.
    assert "Could not fetch balance for WBTC" in capsys.readouterr().err


def test_watch_list_prices_drop_unpriced():
    cache = {WETH: 3000.0, USDC: 1.0}
    prices = fetch_watch_list_prices(FakeWeb3(), cache)
    assert [(p.symbol, p.price) for p in prices] == [("ETH", 3000.0), ("WETH", 3000.0), ("USDC", 1.0)]
