"""CLI and main logic."""

import argparse
import os
import sys

from staking_yield.analysis import run_analysis
from staking_yield.console import (
    print_aggregates,
    print_asset_result,
    print_failures,
    print_gas_stats,
    print_wallet,
)
from staking_yield.constants import ANALYSIS_WINDOWS, DEFAULT_ANALYSIS_DAYS, LIDO_STETH_ADDRESS
from staking_yield.gas import fetch_gas_stats
from staking_yield.prices import PriceCache
from staking_yield.wallet import fetch_wallet_balances, fetch_watch_list_prices

# Internal defaults (not exposed as CLI flags)
DEFAULT_TIMEOUT = 30


def parse_args(argv: list[str]) -> argparse.Namespace:
    """Parse command-line arguments."""
    p = argparse.ArgumentParser(
        description="Reconstruct historical staking yield (Lido stETH, Umbrella stake tokens) for an account."
    )
    p.add_argument(
        "--rpc-url",
        default=None,
        help="Execution-layer RPC URL. Required if ETH_RPC_URL environment variable is not set.",
    )
    p.add_argument("--account", required=True, help="Account whose staking positions are analyzed.")
    p.add_argument(
        "--asset",
        action="append",
        default=None,
        help="Staking token address to analyze (repeatable). Default: Lido stETH.",
    )
    p.add_argument(
        "--days",
        type=int,
        choices=ANALYSIS_WINDOWS,
        default=DEFAULT_ANALYSIS_DAYS,
        help=f"Lookback window in days. Default: {DEFAULT_ANALYSIS_DAYS}.",
    )
    p.add_argument("--no-gas", action="store_true", help="Skip the gas base-fee summary.")
    p.add_argument("--wallet", action="store_true", help="Also show wallet balances and watch-list prices.")
    p.add_argument(
        "--no-cache",
        action="store_true",
        help="Disable caching for this run (fetch all data fresh from network).",
    )
    return p.parse_args(argv)


def main(argv: list[str]) -> int:
    """Main entry point."""
    args = parse_args(argv)

    use_cache = not args.no_cache

    try:
        from web3 import Web3
    except ImportError as ex:  # pragma: no cover
        print("Missing dependency. Run: pip install -e .", file=sys.stderr)
        raise SystemExit(2) from ex

    rpc_url = args.rpc_url or os.getenv("ETH_RPC_URL")
    if not rpc_url:
        print(
            "Error: RPC URL is required. Provide --rpc-url or set ETH_RPC_URL environment variable.",
            file=sys.stderr,
        )
        return 2

    w3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": DEFAULT_TIMEOUT}))
    if not w3.is_connected():
        print(f"Error: failed to connect to RPC at {rpc_url}", file=sys.stderr)
        return 2

    assets = args.asset or [LIDO_STETH_ADDRESS]
    print(f"ℹ️  Analyzing {len(assets)} position(s) for {args.account} over {args.days} days", file=sys.stderr)

    # One cache for the whole run, shared by staking positions and the wallet section.
    price_cache: PriceCache = {}

    gas_stats = None
    if not args.no_gas:
        try:
            gas_stats = fetch_gas_stats(w3)
        except Exception as ex:  # pylint: disable=broad-exception-caught
            print(f"⚠️  Could not fetch gas analytics: {ex}", file=sys.stderr)

    outcome = run_analysis(
        w3,
        args.account,
        assets,
        lookback_days=args.days,
        price_cache=price_cache,
        use_cache=use_cache,
    )

    print("")
    for result in outcome.results:
        print_asset_result(result)
    print_failures(outcome.failures)

    if outcome.results:
        print_aggregates(outcome.aggregates)

    if gas_stats is not None:
        print_gas_stats(gas_stats)

    if args.wallet:
        try:
            prices = fetch_watch_list_prices(w3, price_cache)
            wallet = fetch_wallet_balances(w3, args.account, price_cache)
        except Exception as ex:  # pylint: disable=broad-exception-caught
            print(f"⚠️  Could not fetch wallet balances: {ex}", file=sys.stderr)
        else:
            print_wallet(wallet, prices)

    if not outcome.results:
        print("No staking position could be analyzed.", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
