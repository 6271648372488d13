"""Formatting and conversion utilities."""

from decimal import Decimal

from staking_yield.constants import WEI_PER_GWEI


def as_int(value, *, default: int = 0) -> int:
    """Convert value to int, handling various types."""
    if value is None:
        return default
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        v = value.strip()
        if v.startswith("0x"):
            return int(v, 16)
        return int(v)
    return int(value)


def to_units(raw_amount, decimals: int) -> Decimal:
    """Normalize a raw integer token amount by its decimals (e.g. 1500000 @ 6 -> 1.5)."""
    return Decimal(as_int(raw_amount)) / Decimal(10 ** int(decimals))


def wei_to_gwei(value_wei) -> float:
    """Convert a wei amount to gwei."""
    return float(Decimal(as_int(value_wei)) / WEI_PER_GWEI)


def format_usd(value: float, *, decimals: int = 2) -> str:
    """Format a USD amount with thousands separators."""
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.{decimals}f}"


def format_rate(rate: float, *, decimals: int = 2) -> str:
    """Format an annualized rate given as a fraction (0.0345 -> 3.45%)."""
    return f"{rate * 100:.{decimals}f}%"


def format_amount(value: float, *, decimals: int = 6) -> str:
    """Format a token amount, trimming trailing zeros."""
    s = f"{value:.{decimals}f}".rstrip("0").rstrip(".")
    return s or "0"


def format_gwei(value: float) -> str:
    """Format a gas price already expressed in gwei."""
    return f"{value:.2f} gwei"


def format_compact(value: float) -> str:
    """Format large supplies compactly (12_345_678 -> 12.35M)."""
    magnitude = abs(value)
    if magnitude >= 1_000_000_000:
        return f"{value / 1_000_000_000:.2f}B"
    if magnitude >= 1_000_000:
        return f"{value / 1_000_000:.2f}M"
    if magnitude >= 1_000:
        return f"{value / 1_000:.2f}K"
    return f"{value:.2f}"


def short_address(address: str) -> str:
    """Shorten an address for display."""
    if len(address) <= 16:
        return address
    return f"{address[:10]}...{address[-6:]}"
