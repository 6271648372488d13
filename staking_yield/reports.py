"""Portfolio aggregation across asset results."""

from collections.abc import Callable, Iterable

from staking_yield.constants import LIDO_STETH_SYMBOL
from staking_yield.models import AggregateSummary, AssetResult, PortfolioAggregates


def is_rebasing_asset(symbol: str) -> bool:
    """Family classifier: stETH is the rebasing family, everything else is a vault."""
    return symbol.lower() == LIDO_STETH_SYMBOL.lower()


def daily_earnings_usd(r: AssetResult) -> float:
    """Average daily earnings of a result over its lookback window, in USD."""
    return r.period_earnings / max(1, r.lookback_days) * r.price_usd


def compute_aggregates(results: Iterable[AssetResult]) -> AggregateSummary:
    """
    Value-weighted roll-up of a set of results.

    Unpriced assets count towards `asset_count` and contribute $0 value. The weighted rate is 0
    when the total value is 0.
    """
    asset_count = 0
    total_value_usd = 0.0
    total_daily_earnings_usd = 0.0
    total_period_earnings_usd = 0.0
    weighted_rate_numerator = 0.0

    for r in results:
        value_usd = r.value_usd
        asset_count += 1
        total_value_usd += value_usd
        total_daily_earnings_usd += daily_earnings_usd(r)
        total_period_earnings_usd += r.period_earnings * r.price_usd
        weighted_rate_numerator += r.annualized_rate * value_usd

    return AggregateSummary(
        total_value_usd=total_value_usd,
        total_daily_earnings_usd=total_daily_earnings_usd,
        total_period_earnings_usd=total_period_earnings_usd,
        weighted_annualized_rate=weighted_rate_numerator / total_value_usd if total_value_usd > 0 else 0.0,
        asset_count=asset_count,
    )


def compute_portfolio_aggregates(
    results: Iterable[AssetResult],
    classifier: Callable[[str], bool] = is_rebasing_asset,
) -> PortfolioAggregates:
    """Global and per-family aggregates, always recomputed from the complete result set."""
    all_results = list(results)
    rebasing = [r for r in all_results if classifier(r.asset.symbol)]
    vault = [r for r in all_results if not classifier(r.asset.symbol)]
    return PortfolioAggregates(
        global_summary=compute_aggregates(all_results),
        rebasing=compute_aggregates(rebasing),
        vault=compute_aggregates(vault),
    )
