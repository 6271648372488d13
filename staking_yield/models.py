"""Data models for staking yield analysis."""

from dataclasses import dataclass, field
from decimal import Decimal


@dataclass(frozen=True)
class TrackedAsset:
    """A staking position's token, as handed to the analysis by the caller."""

    address: str
    symbol: str
    name: str
    # "rebasing" (Lido stETH) or "vault" (Umbrella-style ERC-4626 stake token).
    family: str


@dataclass(frozen=True)
class Snapshot:
    """State of one position at one historical block height."""

    block_height: int
    label: str
    # Share balance, decimal-normalized.
    balance: float
    # balance * exchange_rate, in underlying units.
    underlying_value: float
    # Underlying units redeemable for one share at this block.
    exchange_rate: float
    # Sum of all unclaimed reward tokens, each normalized by its own decimals.
    accrued_rewards: float

    @property
    def is_valid(self) -> bool:
        return self.exchange_rate > 0


@dataclass(frozen=True)
class SnapshotAttempt:
    """Outcome of reading one day-offset: either a snapshot or the reason it is missing."""

    offset: int
    block_height: int
    snapshot: Snapshot | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.snapshot is not None


@dataclass(frozen=True)
class ConversionStep:
    """One `previewRedeem` hop in a vault's share -> underlying conversion pipeline."""

    vault_address: str
    output_decimals: int


@dataclass(frozen=True)
class RewardAmount:
    """Unclaimed balance of a single reward token."""

    token: str
    raw_amount: int
    decimals: int

    @property
    def amount(self) -> Decimal:
        return Decimal(self.raw_amount) / Decimal(10**self.decimals)


@dataclass(frozen=True)
class DailyYieldRecord:
    """Yield earned between two adjacent snapshots, attributed to the later one."""

    date: str
    # Exchange-rate appreciation: max(0, rate delta) * balance.
    value_growth_yield: float
    # Reward counter growth: max(0, rewards delta).
    incentive_yield: float
    total_daily_yield: float
    balance: float
    underlying_value: float
    underlying_value_usd: float
    is_historical: bool
    daily_annualized_rate: float


@dataclass(frozen=True)
class AssetResult:
    """Decomposed yield history and period statistics for one staking position."""

    asset: TrackedAsset
    period_earnings: float
    annualized_rate: float
    price_usd: float
    total_supply: float
    daily_records: list[DailyYieldRecord] = field(default_factory=list)
    current_balance: float = 0.0
    current_underlying_value: float = 0.0
    value_growth_earnings: float = 0.0
    incentive_earnings: float = 0.0
    block_number: int = 0
    lookback_days: int = 0
    underlying_address: str = ""

    @property
    def has_history(self) -> bool:
        return bool(self.daily_records)

    @property
    def value_usd(self) -> float:
        return self.current_underlying_value * self.price_usd

    @property
    def yield_breakdown(self) -> str:
        """Share of period earnings coming from value growth vs. incentives."""
        if self.period_earnings > 0:
            growth_pct = self.value_growth_earnings / self.period_earnings * 100
            incentive_pct = self.incentive_earnings / self.period_earnings * 100
        else:
            growth_pct = incentive_pct = 0.0
        return f"Value growth: {growth_pct:.0f}% + Incentives: {incentive_pct:.0f}%"


@dataclass(frozen=True)
class AggregateSummary:
    """Value-weighted roll-up over a set of asset results."""

    total_value_usd: float
    total_daily_earnings_usd: float
    total_period_earnings_usd: float
    weighted_annualized_rate: float
    asset_count: int


@dataclass(frozen=True)
class PortfolioAggregates:
    """Global and per-family aggregates for one analysis run."""

    global_summary: AggregateSummary
    rebasing: AggregateSummary
    vault: AggregateSummary


@dataclass(frozen=True)
class GasStats:
    """Summary of recent base fees (units follow the input samples)."""

    latest: float
    median: float
    top20_avg: float
    bottom80_avg: float
    min: float
    max: float


@dataclass(frozen=True)
class TokenBalance:
    """Wallet balance of a watch-list token."""

    symbol: str
    balance: float
    value_usd: float
    price_usd: float


@dataclass(frozen=True)
class WalletBalances:
    """All non-dust watch-list balances of an account."""

    balances: list[TokenBalance]
    total_value_usd: float


@dataclass(frozen=True)
class WatchListPrice:
    """Oracle price of a watch-list token."""

    symbol: str
    price: float
    address: str
    decimals: int
