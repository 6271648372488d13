"""Wallet balances and watch-list prices, priced through the shared run cache."""

import sys
from typing import TYPE_CHECKING

from staking_yield.constants import ERC20_MIN_ABI, WALLET_DUST_THRESHOLD, WATCH_LIST_TOKENS
from staking_yield.formatters import to_units
from staking_yield.models import TokenBalance, WalletBalances, WatchListPrice
from staking_yield.prices import PriceCache, resolve_price

if TYPE_CHECKING:
    from web3 import Web3  # pragma: no cover


def price_lookup_address(symbol: str, address: str) -> str:
    """Native ETH has no feed of its own; it is priced through WETH."""
    if symbol == "ETH":
        return WATCH_LIST_TOKENS["WETH"]["address"]
    return address


def fetch_watch_list_prices(w3: "Web3", cache: PriceCache) -> list[WatchListPrice]:
    """Price every watch-list token, dropping those without a price."""
    out: list[WatchListPrice] = []
    for token in WATCH_LIST_TOKENS.values():
        price = resolve_price(w3, price_lookup_address(token["symbol"], token["address"]), cache)
        if price > 0:
            out.append(
                WatchListPrice(
                    symbol=token["symbol"],
                    price=price,
                    address=token["address"],
                    decimals=token["decimals"],
                )
            )
    print(f"ℹ️  Updated prices for {len(out)} watch list tokens.", file=sys.stderr)
    return out


def fetch_wallet_balances(w3: "Web3", account: str, cache: PriceCache) -> WalletBalances:
    """
    Balances of the watch-list tokens held by `account`, largest USD value first.

    Dust below the threshold is skipped; tokens whose balance cannot be read are warned about
    and skipped.
    """
    owner = w3.to_checksum_address(account)
    balances: list[TokenBalance] = []

    for token in WATCH_LIST_TOKENS.values():
        symbol = token["symbol"]
        try:
            if symbol == "ETH":
                raw = w3.eth.get_balance(owner)
            else:
                contract = w3.eth.contract(address=w3.to_checksum_address(token["address"]), abi=ERC20_MIN_ABI)
                raw = contract.functions.balanceOf(owner).call()
        except Exception as ex:  # pylint: disable=broad-exception-caught
            print(f"⚠️  Could not fetch balance for {symbol}: {ex}", file=sys.stderr)
            continue

        balance = float(to_units(raw, token["decimals"]))
        if balance <= WALLET_DUST_THRESHOLD:
            continue
        price = resolve_price(w3, price_lookup_address(symbol, token["address"]), cache)
        balances.append(TokenBalance(symbol=symbol, balance=balance, value_usd=balance * price, price_usd=price))

    balances.sort(key=lambda b: b.value_usd, reverse=True)
    return WalletBalances(balances=balances, total_value_usd=sum(b.value_usd for b in balances))
