"""Console output formatting."""

from staking_yield.formatters import (
    format_amount,
    format_compact,
    format_gwei,
    format_rate,
    format_usd,
    short_address,
)
from staking_yield.models import (
    AggregateSummary,
    AssetResult,
    GasStats,
    PortfolioAggregates,
    WalletBalances,
    WatchListPrice,
)


def print_asset_result(r: AssetResult) -> None:
    """Print one position's summary and its daily yield table."""
    print("=" * 70)
    print(f"🪙 {r.asset.symbol}  •  {r.asset.name}")
    print(f"   Contract: {r.asset.address}  •  block {r.block_number}")
    print("=" * 70)

    if not r.has_history:
        print("   ⚠️  No historical data available for this position.")
        print("")
        return

    print(f"   💰 Balance: {format_amount(r.current_balance)} shares")
    print(
        f"   🔁 Underlying value: {format_amount(r.current_underlying_value)}"
        f"  ({format_usd(r.value_usd)} @ {format_usd(r.price_usd, decimals=4)})"
    )
    if r.total_supply:
        print(f"   🏦 Total staked: {format_compact(r.total_supply)}")
    print(f"   📅 Period earnings ({r.lookback_days}d): {format_amount(r.period_earnings)}"
          f"  ({format_usd(r.period_earnings * r.price_usd)})")
    print(f"   📈 Annualized rate: {format_rate(r.annualized_rate)}")
    print(f"   🧩 {r.yield_breakdown}")
    print("")
    print_daily_records(r)


def print_daily_records(r: AssetResult) -> None:
    print(f"   {'Date':<8} {'Value growth':>14} {'Incentives':>14} {'Total':>14} {'Value (USD)':>14} {'APR':>8}")
    print("   " + "─" * 76)
    for rec in r.daily_records:
        print(
            f"   {rec.date:<8} {rec.value_growth_yield:>14.6f} {rec.incentive_yield:>14.6f}"
            f" {rec.total_daily_yield:>14.6f} {format_usd(rec.underlying_value_usd):>14}"
            f" {format_rate(rec.daily_annualized_rate):>8}"
        )
    print("")


def _print_summary(title: str, s: AggregateSummary) -> None:
    print(title)
    print(f"   Positions: {s.asset_count}")
    print(f"   Total value: {format_usd(s.total_value_usd)}")
    print(f"   Daily earnings: {format_usd(s.total_daily_earnings_usd, decimals=4)}")
    print(f"   Period earnings: {format_usd(s.total_period_earnings_usd, decimals=4)}")
    print(f"   Weighted annualized rate: {format_rate(s.weighted_annualized_rate)}")
    print("")


def print_aggregates(agg: PortfolioAggregates) -> None:
    """Print global and per-family summaries."""
    print("=" * 70)
    print("🧾 PORTFOLIO AGGREGATES")
    print("=" * 70)
    _print_summary("🌐 GLOBAL", agg.global_summary)
    _print_summary("💧 LIDO (rebasing)", agg.rebasing)
    _print_summary("☂️  UMBRELLA (vault)", agg.vault)


def print_failures(failures: dict[str, str]) -> None:
    if not failures:
        return
    print("❌ FAILED POSITIONS")
    for address, reason in failures.items():
        print(f"   {short_address(address)}: {reason}")
    print("")


def print_gas_stats(stats: GasStats) -> None:
    """Print base-fee statistics for the last mined blocks (values in gwei)."""
    print("⛽ GAS (base fee, last 5 blocks)")
    print(f"   Latest: {format_gwei(stats.latest)}  •  Median: {format_gwei(stats.median)}")
    print(f"   Top 20% avg: {format_gwei(stats.top20_avg)}  •  Bottom 80% avg: {format_gwei(stats.bottom80_avg)}")
    print(f"   Range: {format_gwei(stats.min)} - {format_gwei(stats.max)}")
    print("")


def print_wallet(wallet: WalletBalances, prices: list[WatchListPrice]) -> None:
    print("👛 WALLET")
    if not wallet.balances:
        print("   No watch-list balances.")
    for b in wallet.balances:
        print(f"   {b.symbol:<6} {format_amount(b.balance, decimals=4):>16}  {format_usd(b.value_usd):>14}")
    print(f"   Total: {format_usd(wallet.total_value_usd)}")
    if prices:
        print("   Prices: " + "  ".join(f"{p.symbol} {format_usd(p.price)}" for p in prices))
    print("")
