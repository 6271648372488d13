"""Historical snapshot reconstruction at a fixed daily block cadence."""

import sys
import time
from collections.abc import Callable
from datetime import date, timedelta
from typing import Protocol

from tqdm import tqdm

from staking_yield.cache import load_cached_snapshot, store_cached_snapshot
from staking_yield.constants import BLOCKS_PER_DAY, PACE_EVERY_FETCHES, PACE_SECONDS
from staking_yield.models import Snapshot, SnapshotAttempt, TrackedAsset

CURRENT_LABEL = "Today"


class SnapshotSource(Protocol):
    """Anything that can read a position's state at a given block."""

    asset: TrackedAsset
    account: str

    def fetch_at(self, block: int, label: str) -> Snapshot:
        """Read the snapshot at `block`; raises when the block cannot be read."""


def snapshot_label(offset: int, today: date) -> str:
    """Label for a day-offset: "Today" for the latest block, else the calendar day."""
    if offset == 0:
        return CURRENT_LABEL
    return (today - timedelta(days=offset)).strftime("%b %d")


def target_heights(current_block: int, lookback_days: int, blocks_per_day: int) -> list[tuple[int, int]]:
    """(offset, block) pairs for offsets 0..lookback_days, newest first."""
    if lookback_days < 0:
        raise ValueError("lookback_days must be >= 0")
    if blocks_per_day <= 0:
        raise ValueError("blocks_per_day must be > 0")
    return [(i, current_block - blocks_per_day * i) for i in range(lookback_days + 1)]


def attempt_snapshot(
    source: SnapshotSource,
    offset: int,
    block: int,
    label: str,
    *,
    use_cache: bool = True,
    chain_id: int | None = None,
) -> tuple[SnapshotAttempt, bool]:
    """
    Read one height. Returns the attempt and whether the data source was actually hit.

    Any failure of the read is captured in the attempt instead of propagating. The disk cache
    is keyed by chain, so it is only used when `chain_id` is known.
    """
    use_cache = use_cache and chain_id is not None
    if block < 0:
        return SnapshotAttempt(offset=offset, block_height=block, error="block height below genesis"), False

    if use_cache:
        cached = load_cached_snapshot(source.asset.address, source.account, block, label, chain_id=chain_id)
        if cached is not None:
            return SnapshotAttempt(offset=offset, block_height=block, snapshot=cached), False

    try:
        snapshot = source.fetch_at(block, label)
    except Exception as ex:  # pylint: disable=broad-exception-caught
        return SnapshotAttempt(offset=offset, block_height=block, error=f"{type(ex).__name__}: {ex}"), True

    if use_cache and snapshot.is_valid:
        store_cached_snapshot(source.asset.address, source.account, snapshot, chain_id=chain_id)
    return SnapshotAttempt(offset=offset, block_height=block, snapshot=snapshot), True


def collect_attempts(
    source: SnapshotSource,
    *,
    current_block: int,
    lookback_days: int,
    blocks_per_day: int = BLOCKS_PER_DAY,
    today: date | None = None,
    use_cache: bool = True,
    chain_id: int | None = None,
    pace_every: int = PACE_EVERY_FETCHES,
    pace_seconds: float = PACE_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
    progress: bool = False,
) -> list[SnapshotAttempt]:
    """Read every day-offset sequentially, pausing briefly after every `pace_every` network reads."""
    day = today or date.today()
    heights = target_heights(current_block, lookback_days, blocks_per_day)
    attempts: list[SnapshotAttempt] = []
    fetches = 0

    with tqdm(
        heights,
        desc=f"⏳ Tracing {source.asset.symbol}",
        unit="day",
        file=sys.stderr,
        leave=False,
        disable=not progress,
    ) as pbar:
        for offset, block in pbar:
            attempt, fetched = attempt_snapshot(
                source, offset, block, snapshot_label(offset, day), use_cache=use_cache, chain_id=chain_id
            )
            attempts.append(attempt)
            if fetched:
                fetches += 1
                if pace_every > 0 and fetches % pace_every == 0:
                    sleep(pace_seconds)
            pbar.set_postfix(ok=sum(1 for a in attempts if a.ok))

    return attempts


def assemble_sequence(attempts: list[SnapshotAttempt]) -> list[Snapshot]:
    """
    Turn attempts into a snapshot sequence: strictly increasing by block height, one entry
    per height, only snapshots with a positive exchange rate. Failed attempts are dropped.
    """
    snapshots = sorted((a.snapshot for a in attempts if a.snapshot is not None), key=lambda s: s.block_height)
    sequence: list[Snapshot] = []
    for s in snapshots:
        if not s.is_valid:
            continue
        if sequence and sequence[-1].block_height == s.block_height:
            continue
        sequence.append(s)
    return sequence


def reconstruct(
    source: SnapshotSource,
    *,
    current_block: int,
    lookback_days: int,
    blocks_per_day: int = BLOCKS_PER_DAY,
    **kwargs,
) -> list[Snapshot]:
    """
    Reconstruct a position's snapshot sequence over the lookback window.

    An empty list means no historical data could be read; it is not an error.
    """
    attempts = collect_attempts(
        source,
        current_block=current_block,
        lookback_days=lookback_days,
        blocks_per_day=blocks_per_day,
        **kwargs,
    )
    return assemble_sequence(attempts)


def current_snapshot(sequence: list[Snapshot]) -> Snapshot | None:
    """The latest valid snapshot. The offset-0 read may have failed, so this can be older."""
    return sequence[-1] if sequence else None
