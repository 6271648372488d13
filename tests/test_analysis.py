from datetime import date

import pytest

from fakes import FakeWeb3, Reverted
from staking_yield.analysis import RunOutcome, analyze_asset, resolve_asset_price, run_analysis
from staking_yield.constants import LIDO_STETH_ADDRESS
from staking_yield.errors import AssetAnalysisError
from staking_yield.onchain import LidoSnapshotSource

USER = "0x00000000000000000000000000000000000000aa"
BROKEN = "0xdead000000000000000000000000000000000000"
E18 = 10**18
TODAY = date(2024, 3, 10)


def lido_web3(**kwargs) -> FakeWeb3:
    # Pooled ETH per share grows by 1e-9 per block; 4 shares held throughout.
    return FakeWeb3(
        {
            LIDO_STETH_ADDRESS: {
                "sharesOf": lambda account, block: 4 * E18,
                "getPooledEthByShares": lambda shares, block: shares + block * 10**9,
                "totalSupply": 9_000_000 * E18,
            }
        },
        **kwargs,
    )


def analyze(w3, address=LIDO_STETH_ADDRESS, **kwargs):
    kwargs.setdefault("price_cache", {LIDO_STETH_ADDRESS: 3000.0})
    return analyze_asset(
        w3,
        address,
        USER,
        lookback_days=2,
        blocks_per_day=100,
        today=TODAY,
        use_cache=False,
        **kwargs,
    )


def test_analyze_lido_position():
    result = analyze(lido_web3(block_number=1_000))
    assert [r.date for r in result.daily_records] == ["Mar 08", "Mar 09", "Today"]
    assert result.current_balance == pytest.approx(4.0)
    # 100 blocks/day * 1e-9 * 4 shares
    assert result.period_earnings == pytest.approx(2 * 4e-7)
    assert result.value_growth_earnings == pytest.approx(result.period_earnings)
    assert result.incentive_earnings == 0
    assert result.price_usd == 3000.0
    assert result.block_number == 1_000
    assert result.lookback_days == 2
    assert result.total_supply == pytest.approx(9_000_000)
    assert result.underlying_address == LIDO_STETH_ADDRESS


def test_missing_history_is_not_an_error(capsys):
    w3 = FakeWeb3({LIDO_STETH_ADDRESS: {"sharesOf": Reverted("pruned")}}, block_number=1_000)
    result = analyze(w3)
    assert not result.has_history
    assert result.period_earnings == 0
    assert "no valid historical data" in capsys.readouterr().err


def test_block_number_failure_is_fatal_for_the_asset():
    with pytest.raises(AssetAnalysisError, match="connection refused"):
        analyze(lido_web3(block_number=ConnectionError("connection refused")))


def test_unpriced_asset_warns(capsys):
    w3 = lido_web3(block_number=1_000)
    source = LidoSnapshotSource(w3, USER)
    assert resolve_asset_price(w3, source, {}) == 0.0
    assert "unpriced" in capsys.readouterr().err


def test_run_continues_past_failed_asset():
    cache = {LIDO_STETH_ADDRESS: 3000.0}
    outcome = run_analysis(
        lido_web3(block_number=50_000),
        USER,
        [BROKEN, LIDO_STETH_ADDRESS],
        lookback_days=7,
        price_cache=cache,
        use_cache=False,
        today=TODAY,
        progress=False,
    )
    assert [r.asset.symbol for r in outcome.results] == ["stETH"]
    assert list(outcome.failures) == [BROKEN]
    assert "Fatal error for" in outcome.failures[BROKEN]

    agg = outcome.aggregates
    assert agg.global_summary.asset_count == 1
    assert agg.rebasing.asset_count == 1
    assert agg.vault.asset_count == 0
    assert agg.global_summary.total_value_usd == pytest.approx(outcome.results[0].current_underlying_value * 3000.0)


def test_run_outcome_recomputes_aggregates():
    outcome = RunOutcome()
    assert outcome.aggregates.global_summary.asset_count == 0
    result = analyze(lido_web3(block_number=1_000))
    outcome.add(result)
    assert outcome.aggregates.global_summary.asset_count == 1
    assert outcome.aggregates.global_summary.weighted_annualized_rate == pytest.approx(result.annualized_rate)


def test_cached_run_reuses_snapshots_for_the_same_chain(tmp_path, monkeypatch):
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path))
    reads: list[int] = []

    def contracts() -> dict:
        def pooled(shares, block):
            reads.append(block)
            return shares + block * 10**9

        return {LIDO_STETH_ADDRESS: {"sharesOf": lambda account, block: 4 * E18, "getPooledEthByShares": pooled}}

    def run(chain_id: int):
        return run_analysis(
            FakeWeb3(contracts(), block_number=50_000, chain_id=chain_id),
            USER,
            [LIDO_STETH_ADDRESS],
            lookback_days=2,
            price_cache={LIDO_STETH_ADDRESS: 3000.0},
            today=TODAY,
            progress=False,
        )

    first = run(1)
    assert len(reads) == 3

    reads.clear()
    second = run(1)
    assert reads == []
    assert second.results[0].period_earnings == pytest.approx(first.results[0].period_earnings)

    run(17000)
    assert len(reads) == 3
