"""Staking yield reconstruction package."""

from typing import NoReturn

__version__ = "0.1.0"


def _entry_point() -> NoReturn:
    """Entry point for the staking-yield script."""
    import sys

    from staking_yield.cli import main

    raise SystemExit(main(sys.argv[1:]))


def _clear_cache_entry_point() -> NoReturn:
    """Entry point for clearing the snapshot cache."""
    from staking_yield.cache import clear_cache

    clear_cache()
    raise SystemExit(0)
