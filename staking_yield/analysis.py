"""Per-asset analysis pipeline and the multi-asset run loop.

Each asset goes reconstruction -> validation -> decomposition independently. A fatal error on
one asset is recorded and the run moves on to the next one; aggregates are recomputed from the
full result set after every completed asset.
"""

import sys
from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING

from tqdm import tqdm

from staking_yield.constants import BLOCKS_PER_DAY
from staking_yield.errors import AssetAnalysisError
from staking_yield.formatters import format_usd
from staking_yield.models import AssetResult, PortfolioAggregates
from staking_yield.onchain import LidoSnapshotSource, VaultSnapshotSource, build_snapshot_source
from staking_yield.prices import PriceCache, apply_stablecoin_fallback, resolve_price
from staking_yield.reports import compute_portfolio_aggregates
from staking_yield.snapshots import reconstruct
from staking_yield.validation import find_clamped_deltas, validate_snapshot_sequence
from staking_yield.yields import build_asset_result

if TYPE_CHECKING:
    from web3 import Web3  # pragma: no cover


@dataclass
class RunOutcome:
    """Results of one analysis run. `aggregates` always reflects every result in `results`."""

    results: list[AssetResult] = field(default_factory=list)
    failures: dict[str, str] = field(default_factory=dict)
    aggregates: PortfolioAggregates = field(default_factory=lambda: compute_portfolio_aggregates([]))

    def add(self, result: AssetResult) -> None:
        self.results.append(result)
        self.aggregates = compute_portfolio_aggregates(self.results)


def resolve_asset_price(
    w3: "Web3", source: LidoSnapshotSource | VaultSnapshotSource, cache: PriceCache
) -> float:
    """Oracle price of the position's underlying, with the stablecoin fallback applied."""
    price = resolve_price(w3, source.underlying_address, cache)
    if price == 0.0:
        price = apply_stablecoin_fallback(price, source.asset.symbol)
        if price > 0:
            tqdm.write(f"ℹ️  No oracle price for {source.asset.symbol}; applying $1.00 stablecoin fallback.", file=sys.stderr)
        else:
            tqdm.write(f"⚠️  {source.asset.symbol} is unpriced and will be valued at $0.", file=sys.stderr)
    return price


def analyze_asset(
    w3: "Web3",
    asset_address: str,
    account: str,
    *,
    lookback_days: int,
    price_cache: PriceCache,
    blocks_per_day: int = BLOCKS_PER_DAY,
    today: date | None = None,
    use_cache: bool = True,
    progress: bool = False,
    reward_decimals_cache: dict[str, int] | None = None,
    chain_id: int | None = None,
) -> AssetResult:
    """
    Reconstruct and decompose one staking position.

    Raises AssetAnalysisError (carrying the asset address) when the position cannot be set up.
    Missing history is not an error: the result simply has no daily records.
    """
    try:
        source = build_snapshot_source(w3, asset_address, account, reward_decimals_cache=reward_decimals_cache)
        current_block = int(w3.eth.block_number)
        if use_cache and chain_id is None:
            chain_id = int(w3.eth.chain_id)
    except AssetAnalysisError:
        raise
    except Exception as ex:  # pylint: disable=broad-exception-caught
        raise AssetAnalysisError(asset_address, str(ex)) from ex

    symbol = source.asset.symbol
    price = resolve_asset_price(w3, source, price_cache)
    tqdm.write(f"🔗 {symbol}: price {format_usd(price, decimals=4)}, tracing {lookback_days} days", file=sys.stderr)

    snapshots = reconstruct(
        source,
        current_block=current_block,
        lookback_days=lookback_days,
        blocks_per_day=blocks_per_day,
        today=today,
        use_cache=use_cache,
        chain_id=chain_id,
        progress=progress,
    )
    if not snapshots:
        tqdm.write(f"⚠️  {symbol}: no valid historical data points.", file=sys.stderr)

    for issue in validate_snapshot_sequence(snapshots, asset=symbol):
        tqdm.write(f"⚠️  {issue}", file=sys.stderr)
    for note in find_clamped_deltas(snapshots, asset=symbol):
        tqdm.write(f"ℹ️  {note}", file=sys.stderr)

    return build_asset_result(
        source.asset,
        snapshots,
        price_usd=price,
        total_supply=source.total_supply(),
        block_number=current_block,
        lookback_days=lookback_days,
        underlying_address=source.underlying_address,
    )


def run_analysis(
    w3: "Web3",
    account: str,
    asset_addresses: list[str],
    *,
    lookback_days: int,
    price_cache: PriceCache | None = None,
    use_cache: bool = True,
    today: date | None = None,
    progress: bool = True,
) -> RunOutcome:
    """Analyze every asset in turn; one asset's failure never blocks the others."""
    outcome = RunOutcome()
    cache: PriceCache = price_cache if price_cache is not None else {}
    reward_decimals: dict[str, int] = {}
    chain_id: int | None = None
    if use_cache:
        try:
            chain_id = int(w3.eth.chain_id)
        except Exception as ex:  # pylint: disable=broad-exception-caught
            print(f"⚠️  Could not read chain id, snapshot cache disabled: {ex}", file=sys.stderr)
            use_cache = False

    with tqdm(asset_addresses, desc="📊 Analyzing positions", unit="asset", file=sys.stderr, disable=not progress) as pbar:
        for address in pbar:
            try:
                result = analyze_asset(
                    w3,
                    address,
                    account,
                    lookback_days=lookback_days,
                    price_cache=cache,
                    today=today,
                    use_cache=use_cache,
                    progress=progress,
                    reward_decimals_cache=reward_decimals,
                    chain_id=chain_id,
                )
            except Exception as ex:  # pylint: disable=broad-exception-caught
                outcome.failures[address] = str(ex)
                tqdm.write(f"⚠️  Failed to analyze {address}: {ex}", file=sys.stderr)
                continue

            outcome.add(result)
            pbar.set_postfix(value=format_usd(outcome.aggregates.global_summary.total_value_usd))

    return outcome
