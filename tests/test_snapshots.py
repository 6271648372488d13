from datetime import date

import pytest

from staking_yield.constants import FAMILY_VAULT
from staking_yield.models import Snapshot, SnapshotAttempt, TrackedAsset
from staking_yield.snapshots import (
    assemble_sequence,
    collect_attempts,
    current_snapshot,
    reconstruct,
    snapshot_label,
    target_heights,
)

TODAY = date(2024, 3, 10)


class ScriptedSource:
    """Snapshot source answering from a {block: rate | Exception} script."""

    def __init__(self, script: dict[int, object], balance: float = 10.0):
        self.asset = TrackedAsset(address="0xstake", symbol="stkwaUSDC", name="Umbrella USDC", family=FAMILY_VAULT)
        self.account = "0xuser"
        self.script = script
        self.balance = balance
        self.calls: list[int] = []

    def fetch_at(self, block: int, label: str) -> Snapshot:
        self.calls.append(block)
        outcome = self.script.get(block, RuntimeError("missing trie node"))
        if isinstance(outcome, Exception):
            raise outcome
        return Snapshot(
            block_height=block,
            label=label,
            balance=self.balance,
            underlying_value=self.balance * outcome,
            exchange_rate=outcome,
            accrued_rewards=0.0,
        )


def run(source, *, current_block=1000, lookback_days=3, blocks_per_day=100, **kwargs):
    kwargs.setdefault("sleep", lambda _: None)
    return reconstruct(
        source,
        current_block=current_block,
        lookback_days=lookback_days,
        blocks_per_day=blocks_per_day,
        today=TODAY,
        use_cache=False,
        **kwargs,
    )


def test_target_heights_newest_first():
    assert target_heights(1000, 3, 100) == [(0, 1000), (1, 900), (2, 800), (3, 700)]


@pytest.mark.parametrize(("days", "cadence"), [(-1, 100), (3, 0)])
def test_target_heights_rejects_bad_input(days, cadence):
    with pytest.raises(ValueError):
        target_heights(1000, days, cadence)


def test_labels():
    assert snapshot_label(0, TODAY) == "Today"
    assert snapshot_label(1, TODAY) == "Mar 09"
    assert snapshot_label(10, TODAY) == "Feb 29"


def test_sequence_is_ascending_with_labels():
    source = ScriptedSource({1000: 1.03, 900: 1.02, 800: 1.01, 700: 1.00})
    seq = run(source)
    assert [s.block_height for s in seq] == [700, 800, 900, 1000]
    assert [s.label for s in seq] == ["Mar 07", "Mar 08", "Mar 09", "Today"]
    # Reads are issued newest first, one at a time.
    assert source.calls == [1000, 900, 800, 700]


def test_failed_heights_are_omitted_not_zero_filled():
    source = ScriptedSource({1000: 1.03, 800: 1.01})
    seq = run(source)
    assert [s.block_height for s in seq] == [800, 1000]


def test_non_positive_rates_are_discarded():
    source = ScriptedSource({1000: 1.03, 900: 0.0, 800: -1.0, 700: 1.0})
    assert [s.block_height for s in run(source)] == [700, 1000]


def test_current_is_latest_valid_when_latest_read_fails():
    source = ScriptedSource({900: 1.02, 800: 1.01})
    seq = run(source)
    assert current_snapshot(seq).block_height == 900
    assert current_snapshot(seq).label == "Mar 09"


def test_all_failures_give_empty_sequence():
    seq = run(ScriptedSource({}))
    assert seq == []
    assert current_snapshot(seq) is None


def test_heights_below_genesis_are_failed_attempts():
    source = ScriptedSource({150: 1.0, 50: 0.99})
    attempts = collect_attempts(
        source,
        current_block=150,
        lookback_days=3,
        blocks_per_day=100,
        today=TODAY,
        use_cache=False,
        sleep=lambda _: None,
    )
    assert [a.ok for a in attempts] == [True, True, False, False]
    assert attempts[2].error == "block height below genesis"
    assert source.calls == [150, 50]


def test_failure_reason_is_recorded():
    attempts = collect_attempts(
        ScriptedSource({}),
        current_block=1000,
        lookback_days=0,
        blocks_per_day=100,
        today=TODAY,
        use_cache=False,
    )
    assert len(attempts) == 1
    assert not attempts[0].ok
    assert "missing trie node" in attempts[0].error


def test_pause_after_every_fifth_fetch():
    sleeps: list[float] = []
    script = {1000 - 100 * i: 1.0 + i / 100 for i in range(11)}
    run(ScriptedSource(script), lookback_days=10, sleep=sleeps.append, pace_seconds=0.05)
    # 11 sequential reads -> pauses after the 5th and the 10th
    assert sleeps == [0.05, 0.05]


def test_assemble_deduplicates_heights():
    s = Snapshot(block_height=5, label="a", balance=1, underlying_value=1, exchange_rate=1, accrued_rewards=0)
    dup = Snapshot(block_height=5, label="b", balance=1, underlying_value=1, exchange_rate=1, accrued_rewards=0)
    later = Snapshot(block_height=9, label="c", balance=1, underlying_value=1.1, exchange_rate=1.1, accrued_rewards=0)
    attempts = [
        SnapshotAttempt(offset=0, block_height=9, snapshot=later),
        SnapshotAttempt(offset=1, block_height=5, snapshot=s),
        SnapshotAttempt(offset=2, block_height=5, snapshot=dup),
        SnapshotAttempt(offset=3, block_height=1, error="boom"),
    ]
    seq = assemble_sequence(attempts)
    assert [(x.block_height, x.label) for x in seq] == [(5, "a"), (9, "c")]


@pytest.fixture
def disk_cache(tmp_path, monkeypatch):
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path))
    return tmp_path


def run_cached(source, *, lookback_days=3, chain_id=1, sleep=lambda _: None):
    return reconstruct(
        source,
        current_block=1000,
        lookback_days=lookback_days,
        blocks_per_day=100,
        today=TODAY,
        use_cache=True,
        chain_id=chain_id,
        sleep=sleep,
    )


def test_second_run_is_served_from_disk(disk_cache):
    source = ScriptedSource({1000: 1.03, 900: 1.02, 800: 1.01, 700: 1.00})
    first = run_cached(source)
    assert source.calls == [1000, 900, 800, 700]

    source.calls.clear()
    second = run_cached(source)
    assert source.calls == []
    assert second == first


def test_invalid_snapshots_are_not_written_to_disk(disk_cache):
    source = ScriptedSource({1000: 1.03, 900: 0.0, 800: -1.0})
    run_cached(source, lookback_days=2)

    source.calls.clear()
    run_cached(source, lookback_days=2)
    assert source.calls == [900, 800]


def test_failed_reads_are_retried_on_the_next_run(disk_cache):
    source = ScriptedSource({1000: 1.03})
    run_cached(source, lookback_days=1)

    source.script[900] = 1.02
    source.calls.clear()
    seq = run_cached(source, lookback_days=1)
    assert source.calls == [900]
    assert [s.block_height for s in seq] == [900, 1000]


def test_cache_hits_do_not_count_towards_pacing(disk_cache):
    source = ScriptedSource({1000 - 100 * i: 1.0 + i / 100 for i in range(11)})
    run_cached(source, lookback_days=4)

    sleeps: list[float] = []
    source.calls.clear()
    run_cached(source, lookback_days=10, sleep=sleeps.append)
    # 5 heights come from disk, 6 are fetched -> one pause after the 5th fetch
    assert source.calls == [500, 400, 300, 200, 100, 0]
    assert len(sleeps) == 1


def test_cache_is_scoped_to_the_chain(disk_cache):
    source = ScriptedSource({1000: 1.03, 900: 1.02})
    run_cached(source, lookback_days=1, chain_id=1)

    source.calls.clear()
    run_cached(source, lookback_days=1, chain_id=17000)
    assert source.calls == [1000, 900]


def test_cache_unused_without_chain_id(disk_cache):
    source = ScriptedSource({1000: 1.03, 900: 1.02})
    run_cached(source, lookback_days=1, chain_id=None)

    source.calls.clear()
    run_cached(source, lookback_days=1, chain_id=1)
    assert source.calls == [1000, 900]
