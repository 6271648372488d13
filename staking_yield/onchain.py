"""Per-block position reads for the two staking families."""

from decimal import Decimal
from typing import TYPE_CHECKING, Any

from staking_yield.constants import (
    DEFAULT_REWARD_TOKEN_DECIMALS,
    FAMILY_REBASING,
    FAMILY_VAULT,
    LIDO_STETH_ADDRESS,
    LIDO_STETH_DECIMALS,
    LIDO_STETH_MIN_ABI,
    LIDO_STETH_NAME,
    LIDO_STETH_SYMBOL,
    REWARDS_CONTROLLER_MIN_ABI,
)
from staking_yield.contracts import (
    ConversionPath,
    pooled_eth_per_share,
    read_token_decimals,
    read_token_metadata,
    redeem_through_path,
    resolve_conversion_path,
    resolve_rewards_controller,
    vault_contract,
)
from staking_yield.formatters import as_int, to_units
from staking_yield.models import RewardAmount, Snapshot, TrackedAsset

if TYPE_CHECKING:
    from web3 import Web3  # pragma: no cover

# Reward methods tried in order: effective rewards first, raw unclaimed-by-asset as fallback.
REWARD_LEDGER_METHODS = ("calculateCurrentUserRewards", "getRewardsByAsset")


def is_lido_address(address: str) -> bool:
    return address.lower() == LIDO_STETH_ADDRESS


class LidoSnapshotSource:
    """
    Rebasing family (Lido stETH).

    The balance is tracked in shares so it stays flat between rebases; all yield shows up as
    growth of the pooled ETH per share. Accrued rewards are always zero.
    """

    def __init__(self, w3: "Web3", account: str, *, address: str = LIDO_STETH_ADDRESS):
        self.w3 = w3
        self.account = account
        self.asset = TrackedAsset(
            address=address,
            symbol=LIDO_STETH_SYMBOL,
            name=LIDO_STETH_NAME,
            family=FAMILY_REBASING,
        )
        self.underlying_address = address
        self._contract = w3.eth.contract(address=w3.to_checksum_address(address), abi=LIDO_STETH_MIN_ABI)

    def total_supply(self) -> float:
        try:
            raw = self._contract.functions.totalSupply().call()
        except Exception:  # pylint: disable=broad-exception-caught
            return 0.0
        return float(to_units(raw, LIDO_STETH_DECIMALS))

    def balance_at(self, block: int) -> float:
        shares = self._contract.functions.sharesOf(self.w3.to_checksum_address(self.account)).call(
            block_identifier=block
        )
        return float(to_units(shares, LIDO_STETH_DECIMALS))

    def exchange_rate_at(self, block: int) -> float:
        return pooled_eth_per_share(self.w3, self.asset.address, block_identifier=block)

    def accrued_rewards_at(self, block: int) -> list[RewardAmount]:  # pylint: disable=unused-argument
        return []

    def fetch_at(self, block: int, label: str) -> Snapshot:
        balance = self.balance_at(block)
        rate = self.exchange_rate_at(block)
        return Snapshot(
            block_height=block,
            label=label,
            balance=balance,
            underlying_value=balance * rate,
            exchange_rate=rate,
            accrued_rewards=0.0,
        )


class VaultSnapshotSource:
    """
    Vault family (Umbrella-style stake tokens).

    Yield is split between the share -> underlying rate, resolved through a fixed
    `previewRedeem` pipeline, and incentives accrued in a rewards controller.
    """

    def __init__(
        self,
        w3: "Web3",
        asset: TrackedAsset,
        account: str,
        *,
        share_decimals: int,
        path: ConversionPath,
        rewards_controller: str,
        total_supply_raw: int = 0,
        reward_decimals_cache: dict[str, int] | None = None,
    ):
        self.w3 = w3
        self.asset = asset
        self.account = account
        self.share_decimals = share_decimals
        self.path = path
        self.rewards_controller = rewards_controller
        self.total_supply_raw = total_supply_raw
        self.underlying_address = path.underlying_address
        self._reward_decimals = reward_decimals_cache if reward_decimals_cache is not None else {}
        self._stake = vault_contract(w3, asset.address)
        self._controller = w3.eth.contract(
            address=w3.to_checksum_address(rewards_controller), abi=REWARDS_CONTROLLER_MIN_ABI
        )

    @classmethod
    def setup(cls, w3: "Web3", asset_address: str, account: str, **kwargs: Any) -> "VaultSnapshotSource":
        """Read metadata and resolve the conversion path and controller once per position."""
        meta = read_token_metadata(w3, asset_address)
        asset = TrackedAsset(address=asset_address, symbol=meta.symbol, name=meta.name, family=FAMILY_VAULT)
        return cls(
            w3,
            asset,
            account,
            share_decimals=meta.decimals,
            path=resolve_conversion_path(w3, asset_address, meta.decimals),
            rewards_controller=resolve_rewards_controller(w3, asset_address),
            total_supply_raw=meta.total_supply_raw,
            **kwargs,
        )

    def total_supply(self) -> float:
        return float(to_units(self.total_supply_raw, self.share_decimals))

    def balance_at(self, block: int) -> float:
        raw = self._stake.functions.balanceOf(self.w3.to_checksum_address(self.account)).call(block_identifier=block)
        return float(to_units(raw, self.share_decimals))

    def exchange_rate_at(self, block: int) -> float:
        """Underlying units redeemable for exactly one share unit."""
        one_share = 10**self.share_decimals
        underlying_raw = redeem_through_path(self.w3, self.path.steps, one_share, block_identifier=block)
        return float(to_units(underlying_raw, self.path.underlying_decimals))

    def reward_token_decimals(self, token: str) -> int:
        key = token.lower()
        if key not in self._reward_decimals:
            self._reward_decimals[key] = read_token_decimals(self.w3, token, default=DEFAULT_REWARD_TOKEN_DECIMALS)
        return self._reward_decimals[key]

    def accrued_rewards_at(self, block: int) -> list[RewardAmount]:
        """
        Unclaimed rewards of the position at a block, one entry per reward token.

        Tries each ledger method in turn; if every method fails the position has no
        readable rewards and an empty list is returned.
        """
        asset_addr = self.w3.to_checksum_address(self.asset.address)
        user_addr = self.w3.to_checksum_address(self.account)
        for method in REWARD_LEDGER_METHODS:
            try:
                tokens, amounts = getattr(self._controller.functions, method)(asset_addr, user_addr).call(
                    block_identifier=block
                )
            except Exception:  # pylint: disable=broad-exception-caught
                continue
            return [
                RewardAmount(token=str(token), raw_amount=as_int(raw), decimals=self.reward_token_decimals(str(token)))
                for token, raw in zip(tokens, amounts)
            ]
        return []

    def fetch_at(self, block: int, label: str) -> Snapshot:
        balance = self.balance_at(block)
        rate = self.exchange_rate_at(block)
        # Reward tokens may not share the position's decimals, so sum normalized amounts.
        rewards = sum((r.amount for r in self.accrued_rewards_at(block)), Decimal(0))
        return Snapshot(
            block_height=block,
            label=label,
            balance=balance,
            underlying_value=balance * rate,
            exchange_rate=rate,
            accrued_rewards=float(rewards),
        )


def build_snapshot_source(
    w3: "Web3",
    asset_address: str,
    account: str,
    *,
    reward_decimals_cache: dict[str, int] | None = None,
) -> LidoSnapshotSource | VaultSnapshotSource:
    """Pick the snapshot strategy for an asset address."""
    if is_lido_address(asset_address):
        return LidoSnapshotSource(w3, account, address=asset_address.lower())
    return VaultSnapshotSource.setup(w3, asset_address, account, reward_decimals_cache=reward_decimals_cache)
