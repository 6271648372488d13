"""Contract setup: token metadata, conversion pipelines and rewards controllers."""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from staking_yield.constants import (
    DEFAULT_REWARDS_CONTROLLER,
    ERC20_MIN_ABI,
    LIDO_STETH_DECIMALS,
    LIDO_STETH_MIN_ABI,
    VAULT_TOKEN_ABI,
)
from staking_yield.errors import AssetAnalysisError
from staking_yield.formatters import as_int, to_units
from staking_yield.models import ConversionStep

if TYPE_CHECKING:
    from web3 import Web3  # pragma: no cover

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


@dataclass(frozen=True)
class TokenMetadata:
    """Identity of a staking token read at setup time."""

    symbol: str
    name: str
    decimals: int
    total_supply_raw: int


@dataclass(frozen=True)
class ConversionPath:
    """Share -> underlying conversion resolved once per position."""

    steps: list[ConversionStep]
    underlying_address: str
    underlying_decimals: int


def _try_call(contract_function, default: Any = None) -> Any:
    """Call a contract view, returning `default` instead of raising."""
    try:
        return contract_function.call()
    except Exception:  # pylint: disable=broad-exception-caught
        return default


def _is_address(value: Any) -> bool:
    return bool(value) and str(value).lower() != ZERO_ADDRESS


def vault_contract(w3: "Web3", address: str) -> Any:
    return w3.eth.contract(address=w3.to_checksum_address(address), abi=VAULT_TOKEN_ABI)


def read_token_metadata(w3: "Web3", token_address: str) -> TokenMetadata:
    """
    Read symbol, name, decimals and total supply, defaulting each field on failure.

    Raises AssetAnalysisError when none of them can be read, since the address is then not a
    token we can analyze.
    """
    token = w3.eth.contract(address=w3.to_checksum_address(token_address), abi=ERC20_MIN_ABI)
    fields = {
        "symbol": _try_call(token.functions.symbol()),
        "name": _try_call(token.functions.name()),
        "decimals": _try_call(token.functions.decimals()),
        "total_supply_raw": _try_call(token.functions.totalSupply()),
    }
    if all(value is None for value in fields.values()):
        raise AssetAnalysisError(token_address, "token metadata could not be read")

    return TokenMetadata(
        symbol=str(fields["symbol"]) if fields["symbol"] is not None else "UNKNOWN",
        name=str(fields["name"]) if fields["name"] is not None else "Unknown Token",
        decimals=as_int(fields["decimals"], default=18),
        total_supply_raw=as_int(fields["total_supply_raw"]),
    )


def read_token_decimals(w3: "Web3", token_address: str, *, default: int = 18) -> int:
    token = w3.eth.contract(address=w3.to_checksum_address(token_address), abi=ERC20_MIN_ABI)
    return as_int(_try_call(token.functions.decimals()), default=default)


def resolve_conversion_path(w3: "Web3", stake_address: str, stake_decimals: int) -> ConversionPath:
    """
    Resolve the chain of ERC-4626 redemptions from a stake token down to its final underlying.

    Umbrella stake tokens wrap a waToken (static aToken) that wraps the underlying, giving two
    hops. Every `previewRedeem` hop that exists is kept even when an `asset()` getter cannot be
    read: a wrapper without `asset()` still redeems, its output is priced as the wrapper token;
    a stake token without `asset()` still redeems once, in its own decimals.
    """
    stake = vault_contract(w3, stake_address)
    intermediate = _try_call(stake.functions.asset())
    if not _is_address(intermediate):
        return ConversionPath(
            steps=[ConversionStep(vault_address=stake_address, output_decimals=stake_decimals)],
            underlying_address=stake_address,
            underlying_decimals=stake_decimals,
        )

    intermediate_decimals = read_token_decimals(w3, intermediate)
    wrapper = vault_contract(w3, intermediate)
    underlying = _try_call(wrapper.functions.asset())
    if not _is_address(underlying):
        return ConversionPath(
            steps=[
                ConversionStep(vault_address=stake_address, output_decimals=intermediate_decimals),
                ConversionStep(vault_address=str(intermediate), output_decimals=intermediate_decimals),
            ],
            underlying_address=str(intermediate),
            underlying_decimals=intermediate_decimals,
        )

    underlying_decimals = read_token_decimals(w3, underlying)
    return ConversionPath(
        steps=[
            ConversionStep(vault_address=stake_address, output_decimals=intermediate_decimals),
            ConversionStep(vault_address=str(intermediate), output_decimals=underlying_decimals),
        ],
        underlying_address=str(underlying),
        underlying_decimals=underlying_decimals,
    )


def redeem_through_path(
    w3: "Web3", steps: list[ConversionStep], shares_raw: int, *, block_identifier: int | str = "latest"
) -> int:
    """Push a raw share amount through every `previewRedeem` hop at the given block."""
    amount = int(shares_raw)
    for step in steps:
        contract = vault_contract(w3, step.vault_address)
        amount = as_int(contract.functions.previewRedeem(amount).call(block_identifier=block_identifier))
    return amount


def resolve_rewards_controller(w3: "Web3", stake_address: str) -> str:
    """Find the rewards controller of a stake token: REWARD_CONTROLLER(), getIncentivesController(), default."""
    stake = vault_contract(w3, stake_address)
    for getter in (stake.functions.REWARD_CONTROLLER, stake.functions.getIncentivesController):
        controller = _try_call(getter())
        if _is_address(controller):
            return str(controller)
    return DEFAULT_REWARDS_CONTROLLER


def pooled_eth_per_share(w3: "Web3", lido_address: str, *, block_identifier: int | str = "latest") -> float:
    """
    ETH backing one stETH share at a block: getPooledEthByShares(1e18) / 1e18.

    Returns 0.0 when the contract reports nothing, which marks the snapshot invalid.
    """
    lido_contract = w3.eth.contract(address=w3.to_checksum_address(lido_address), abi=LIDO_STETH_MIN_ABI)
    one_share = 10**LIDO_STETH_DECIMALS
    pooled = lido_contract.functions.getPooledEthByShares(one_share).call(block_identifier=block_identifier)
    return float(to_units(pooled, LIDO_STETH_DECIMALS))
