"""Yield decomposition: value growth vs. incentives, per day and over the period.

Both staking families go through the same arithmetic:
- value growth is the exchange-rate gain on the current balance,
- incentives are the growth of the accrued-rewards counter,
- negative deltas of either are clamped to zero (losses and claims are not reported).
"""

from staking_yield.constants import DAYS_PER_YEAR
from staking_yield.models import AssetResult, DailyYieldRecord, Snapshot, TrackedAsset


def decompose(snapshots: list[Snapshot], *, price_usd: float = 0.0) -> list[DailyYieldRecord]:
    """Convert an ascending snapshot sequence into one yield record per snapshot."""
    records: list[DailyYieldRecord] = []
    prev: Snapshot | None = None

    for cur in snapshots:
        value_growth = 0.0
        incentive = 0.0
        if prev is not None:
            value_growth = max(0.0, cur.exchange_rate - prev.exchange_rate) * cur.balance
            incentive = max(0.0, cur.accrued_rewards - prev.accrued_rewards)

        total = value_growth + incentive
        daily_rate = (total / cur.underlying_value) * DAYS_PER_YEAR if cur.underlying_value > 0 else 0.0

        records.append(
            DailyYieldRecord(
                date=cur.label,
                value_growth_yield=value_growth,
                incentive_yield=incentive,
                total_daily_yield=total,
                balance=cur.balance,
                underlying_value=cur.underlying_value,
                underlying_value_usd=cur.underlying_value * price_usd,
                is_historical=True,
                daily_annualized_rate=daily_rate,
            )
        )
        prev = cur

    return records


def period_earnings(records: list[DailyYieldRecord]) -> float:
    return sum(r.total_daily_yield for r in records)


def annualized_rate(records: list[DailyYieldRecord], current_underlying_value: float) -> float:
    """
    Average daily yield over the period, projected to a year against the current position size.

    Anchoring to the current size (instead of averaging per-day rates) keeps the rate stable when
    the balance changed sharply during the window.
    """
    if current_underlying_value <= 0:
        return 0.0
    days_covered = max(1, len(records) - 1)
    return (period_earnings(records) / days_covered) * DAYS_PER_YEAR / current_underlying_value


def build_asset_result(
    asset: TrackedAsset,
    snapshots: list[Snapshot],
    *,
    price_usd: float,
    total_supply: float = 0.0,
    block_number: int = 0,
    lookback_days: int = 0,
    underlying_address: str = "",
) -> AssetResult:
    """Decompose a position's snapshots and derive its period statistics."""
    records = decompose(snapshots, price_usd=price_usd)
    current = snapshots[-1] if snapshots else None
    current_value = current.underlying_value if current else 0.0

    return AssetResult(
        asset=asset,
        period_earnings=period_earnings(records),
        annualized_rate=annualized_rate(records, current_value),
        price_usd=price_usd,
        total_supply=total_supply,
        daily_records=records,
        current_balance=current.balance if current else 0.0,
        current_underlying_value=current_value,
        value_growth_earnings=sum(r.value_growth_yield for r in records),
        incentive_earnings=sum(r.incentive_yield for r in records),
        block_number=block_number,
        lookback_days=lookback_days,
        underlying_address=underlying_address,
    )
