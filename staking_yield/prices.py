"""USD price resolution through Chainlink feeds, memoized per analysis run."""

import sys
from typing import TYPE_CHECKING

from staking_yield.constants import CHAINLINK_AGGREGATOR_MIN_ABI, CHAINLINK_FEEDS, STABLECOIN_TICKERS
from staking_yield.formatters import to_units

if TYPE_CHECKING:
    from web3 import Web3  # pragma: no cover

# Shared by every lookup of one run. Append-only: entries are never evicted or replaced.
PriceCache = dict[str, float]


def read_feed_price(w3: "Web3", feed_address: str) -> float:
    """
    Read the latest answer of a Chainlink aggregator, scaled by its decimals.

    Raises ValueError on a non-positive answer.
    """
    feed = w3.eth.contract(address=w3.to_checksum_address(feed_address), abi=CHAINLINK_AGGREGATOR_MIN_ABI)
    _, answer, _, _, _ = feed.functions.latestRoundData().call()
    if answer <= 0:
        raise ValueError(f"non-positive answer {answer} from feed {feed_address}")
    decimals = feed.functions.decimals().call()
    return float(to_units(answer, decimals))


def resolve_price(
    w3: "Web3",
    asset_address: str,
    cache: PriceCache,
    *,
    feeds: dict[str, str] | None = None,
) -> float:
    """
    Resolve the USD price of an asset.

    Returns 0.0 when the asset has no configured feed or the feed read fails; callers treat 0.0
    as "unpriced". Never raises. Only successful reads are written to `cache`.
    """
    if not asset_address:
        return 0.0
    key = asset_address.lower()
    if key in cache:
        return cache[key]

    feed_map = CHAINLINK_FEEDS if feeds is None else feeds
    feed_address = feed_map.get(key)
    if not feed_address:
        print(f"ℹ️  No Chainlink feed configured for {asset_address}", file=sys.stderr)
        return 0.0

    try:
        price = read_feed_price(w3, feed_address)
    except Exception as ex:  # pylint: disable=broad-exception-caught
        print(
            f"⚠️  Chainlink read failed for {asset_address}: {ex}. Valued at $0 unless a fallback applies.",
            file=sys.stderr,
        )
        return 0.0

    # Insert-if-absent: a concurrent resolution of the same key keeps the first value.
    return cache.setdefault(key, price)


def apply_stablecoin_fallback(price: float, symbol: str) -> float:
    """Price stablecoin-denominated positions at $1.00 when the oracle gave nothing."""
    if price > 0:
        return price
    normalized = symbol.upper()
    if any(ticker in normalized for ticker in STABLECOIN_TICKERS):
        return 1.0
    return 0.0
