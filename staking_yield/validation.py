"""Validation of reconstructed snapshot sequences."""

from staking_yield.models import Snapshot


def validate_snapshot_sequence(snapshots: list[Snapshot], *, asset: str, warn_only: bool = True) -> list[str]:
    """
    Validate sequence invariants: strictly increasing heights, positive rates, non-negative
    balances and reward totals.

    Returns list of validation warnings/errors. If warn_only=False, raises ValueError on the first issue.
    """
    issues: list[str] = []

    def report(msg: str) -> None:
        issues.append(msg)
        if not warn_only:
            raise ValueError(msg)

    for prev, cur in zip(snapshots, snapshots[1:]):
        if cur.block_height <= prev.block_height:
            report(
                f"{asset}: snapshots out of order: block {cur.block_height} follows block {prev.block_height}"
            )

    for s in snapshots:
        if s.exchange_rate <= 0:
            report(f"{asset} (block {s.block_height}): non-positive exchange rate {s.exchange_rate}")
        if s.balance < 0:
            report(f"{asset} (block {s.block_height}): negative balance {s.balance}")
        if s.accrued_rewards < 0:
            report(f"{asset} (block {s.block_height}): negative accrued rewards {s.accrued_rewards}")

    return issues


def find_clamped_deltas(snapshots: list[Snapshot], *, asset: str) -> list[str]:
    """
    List the day-over-day decreases that the decomposition reports as zero yield.

    A falling exchange rate is a value loss; a falling reward counter is usually a claim. Neither
    shows up as negative earnings, so they are surfaced here instead.
    """
    notes: list[str] = []
    for prev, cur in zip(snapshots, snapshots[1:]):
        if cur.exchange_rate < prev.exchange_rate:
            loss = (prev.exchange_rate - cur.exchange_rate) * cur.balance
            notes.append(
                f"{asset} ({prev.label} → {cur.label}): exchange rate decreased "
                f"{prev.exchange_rate:.8f} → {cur.exchange_rate:.8f}; value loss of {loss:.6f} not reported"
            )
        if cur.accrued_rewards < prev.accrued_rewards:
            notes.append(
                f"{asset} ({prev.label} → {cur.label}): accrued rewards decreased "
                f"{prev.accrued_rewards:.6f} → {cur.accrued_rewards:.6f} (likely a claim); ignored"
            )
    return notes
