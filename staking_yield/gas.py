"""Base-fee statistics over the last few mined blocks."""

from typing import TYPE_CHECKING

from staking_yield.constants import GAS_TOP_PERCENT, GAS_WINDOW_SIZE
from staking_yield.errors import InsufficientGasDataError
from staking_yield.formatters import as_int, wei_to_gwei
from staking_yield.models import GasStats

if TYPE_CHECKING:
    from web3 import Web3  # pragma: no cover


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def top_count(sample_count: int, top_percent: int = GAS_TOP_PERCENT) -> int:
    """Number of samples in the top bucket: ceil(top_percent% of the samples), at least one."""
    return max(1, -(-sample_count * top_percent // 100))


def summarize_base_fees(base_fees: list[float], *, window: int = GAS_WINDOW_SIZE) -> GasStats:
    """
    Summarize a chronological window of base fees.

    `latest` is the last sample in chronological order; every other field comes from a sorted
    copy. The median is the middle element (the window size is odd).
    """
    if len(base_fees) < window:
        raise InsufficientGasDataError(f"Insufficient gas history data: need {window} samples, got {len(base_fees)}")
    if len(base_fees) > window:
        raise ValueError(f"Expected {window} base fee samples, got {len(base_fees)}")

    samples = list(base_fees)
    ordered = sorted(samples)
    n_top = top_count(len(ordered))

    return GasStats(
        latest=samples[-1],
        median=ordered[len(ordered) // 2],
        top20_avg=_mean(ordered[len(ordered) - n_top :]),
        bottom80_avg=_mean(ordered[: len(ordered) - n_top]),
        min=ordered[0],
        max=ordered[-1],
    )


def fetch_recent_base_fees(w3: "Web3", count: int = GAS_WINDOW_SIZE) -> list[int]:
    """
    Base fees (wei) of the last `count` mined blocks, oldest first.

    eth_feeHistory also returns the projected fee of the next block as a trailing entry; only the
    mined blocks are kept.
    """
    response = w3.provider.make_request("eth_feeHistory", [hex(count), "latest", []])
    if "error" in response:
        raise RuntimeError(f"RPC error: {response['error']}")
    base_fees = (response.get("result") or {}).get("baseFeePerGas") or []
    if len(base_fees) < count:
        raise InsufficientGasDataError(f"Insufficient gas history data: got {len(base_fees)} base fees")
    return [as_int(v) for v in base_fees[:count]]


def fetch_gas_stats(w3: "Web3", *, window: int = GAS_WINDOW_SIZE) -> GasStats:
    """Fetch and summarize recent base fees, in gwei."""
    base_fees_gwei = [wei_to_gwei(v) for v in fetch_recent_base_fees(w3, window)]
    return summarize_base_fees(base_fees_gwei, window=window)
