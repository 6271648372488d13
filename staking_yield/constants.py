"""Constants and configuration for staking yield analysis."""

from decimal import Decimal

# Lido stETH (rebasing family). Yield is carried entirely by the share rate.
LIDO_STETH_ADDRESS = "0xae7ab96520de3a18e5e111b5eaab095312d7fe84"
LIDO_STETH_SYMBOL = "stETH"
LIDO_STETH_NAME = "Liquid staked Ether 2.0"
LIDO_STETH_DECIMALS = 18

# Aave Umbrella RewardsController, used when a staking token does not expose its own controller.
DEFAULT_REWARDS_CONTROLLER = "0x4655Ce3D625a63d30bA704087E52B4C31E38188B"

# Minimal ERC-20 ABI plus the two controller getters found on Umbrella staking tokens.
ERC20_MIN_ABI: list[dict] = [
    {
        "type": "function",
        "name": "balanceOf",
        "stateMutability": "view",
        "inputs": [{"name": "account", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "totalSupply",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "decimals",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint8"}],
    },
    {
        "type": "function",
        "name": "symbol",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "string"}],
    },
    {
        "type": "function",
        "name": "name",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "string"}],
    },
    {
        "type": "function",
        "name": "REWARD_CONTROLLER",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "address"}],
    },
    {
        "type": "function",
        "name": "getIncentivesController",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "address"}],
    },
]

# ERC-4626 redemption previews. Umbrella stake tokens wrap a waToken which itself wraps the underlying.
ERC4626_MIN_ABI: list[dict] = [
    {
        "type": "function",
        "name": "asset",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "address"}],
    },
    {
        "type": "function",
        "name": "convertToAssets",
        "stateMutability": "view",
        "inputs": [{"name": "shares", "type": "uint256"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "previewRedeem",
        "stateMutability": "view",
        "inputs": [{"name": "shares", "type": "uint256"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
]

VAULT_TOKEN_ABI: list[dict] = ERC20_MIN_ABI + ERC4626_MIN_ABI

# Minimal ABI for Lido (stETH) - shares accounting.
LIDO_STETH_MIN_ABI: list[dict] = [
    {
        "type": "function",
        "name": "sharesOf",
        "stateMutability": "view",
        "inputs": [{"name": "_account", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "getPooledEthByShares",
        "stateMutability": "view",
        "inputs": [{"name": "_sharesAmount", "type": "uint256"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "totalSupply",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint256"}],
    },
]

_REWARDS_LIST_OUTPUTS = [
    {"name": "rewardsList", "type": "address[]"},
    {"name": "unclaimedAmounts", "type": "uint256[]"},
]

# Minimal ABI for the Aave V3 / Umbrella RewardsController.
REWARDS_CONTROLLER_MIN_ABI: list[dict] = [
    {
        "type": "function",
        "name": "calculateCurrentUserRewards",
        "stateMutability": "view",
        "inputs": [
            {"name": "asset", "type": "address"},
            {"name": "user", "type": "address"},
        ],
        "outputs": _REWARDS_LIST_OUTPUTS,
    },
    {
        "type": "function",
        "name": "getRewardsByAsset",
        "stateMutability": "view",
        "inputs": [
            {"name": "asset", "type": "address"},
            {"name": "user", "type": "address"},
        ],
        "outputs": _REWARDS_LIST_OUTPUTS,
    },
]

CHAINLINK_AGGREGATOR_MIN_ABI: list[dict] = [
    {
        "type": "function",
        "name": "latestRoundData",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [
            {"name": "roundId", "type": "uint80"},
            {"name": "answer", "type": "int256"},
            {"name": "startedAt", "type": "uint256"},
            {"name": "updatedAt", "type": "uint256"},
            {"name": "answeredInRound", "type": "uint80"},
        ],
    },
    {
        "type": "function",
        "name": "decimals",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint8"}],
    },
]

# Underlying token address (lowercase) -> Chainlink USD feed (Ethereum mainnet).
CHAINLINK_FEEDS: dict[str, str] = {
    # USDC / USD
    "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48": "0x8fFfFfd4AfB6115b954Bd326cbe7B4BA576818f6",
    # USDT / USD
    "0xdac17f958d2ee523a2206206994597c13d831ec7": "0x3E7d1eAB13ad0104d2750B8863b489D65364e32D",
    # DAI / USD
    "0x6b175474e89094c44da98b954eedeac495271d0f": "0xAed0c38402a5d19df6E4c03F4E2DceD6e29c1ee9",
    # WETH -> ETH / USD
    "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2": "0x5f4eC3Df9cbd43714FE2740f5E3616155c5b8419",
    # WBTC -> BTC / USD
    "0x2260fac5e5542a773aa44fbcfedf7c193bc2c599": "0xF4030086522a5bEEa4988F8cA5B36dbC97BeE88c",
    # stETH / USD
    LIDO_STETH_ADDRESS: "0xCfE54B5cD566aB89272946F602D76Ea879CAb4a8",
}

# Tickers that get a $1.00 price when no oracle price is available.
STABLECOIN_TICKERS = ("USDT", "USDC", "DAI")

NATIVE_ETH_ADDRESS = "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE"

# Tokens shown in the wallet section. ETH is priced through the WETH feed.
WATCH_LIST_TOKENS: dict[str, dict] = {
    "ETH": {"address": NATIVE_ETH_ADDRESS, "decimals": 18, "symbol": "ETH"},
    "WETH": {"address": "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2", "decimals": 18, "symbol": "WETH"},
    "WBTC": {"address": "0x2260fac5e5542a773aa44fbcfedf7c193bc2c599", "decimals": 8, "symbol": "WBTC"},
    "USDC": {"address": "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48", "decimals": 6, "symbol": "USDC"},
    "USDT": {"address": "0xdac17f958d2ee523a2206206994597c13d831ec7", "decimals": 6, "symbol": "USDT"},
    "DAI": {"address": "0x6b175474e89094c44da98b954eedeac495271d0f", "decimals": 18, "symbol": "DAI"},
}
WALLET_DUST_THRESHOLD = 0.00001

# Lookback windows offered by the CLI (days).
ANALYSIS_WINDOWS = (7, 14, 30, 90)
DEFAULT_ANALYSIS_DAYS = 7

# Ethereum PoS: 12s slots -> 86400 / 12 blocks per day.
BLOCKS_PER_DAY = 7200
DAYS_PER_YEAR = 365

# Politeness delay between sequential historical reads.
PACE_EVERY_FETCHES = 5
PACE_SECONDS = 0.05

# Gas analytics window: base fees of the last N mined blocks.
GAS_WINDOW_SIZE = 5
GAS_TOP_PERCENT = 20
WEI_PER_GWEI = Decimal(10**9)

DEFAULT_REWARD_TOKEN_DECIMALS = 18

FAMILY_REBASING = "rebasing"
FAMILY_VAULT = "vault"

# Cache configuration
CACHE_DIR_NAME = ".staking_yield_cache"
CACHE_VERSION = "1"  # Increment to invalidate all caches
