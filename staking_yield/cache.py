"""Disk cache for immutable historical chain reads."""

import hashlib
import json
import os
import shutil
import sys
from pathlib import Path
from typing import Any

from staking_yield.constants import CACHE_DIR_NAME, CACHE_VERSION
from staking_yield.models import Snapshot


def get_cache_dir() -> Path:
    """Get the cache directory path. Uses XDG_CACHE_HOME if available, otherwise ~/.cache."""
    cache_home = os.getenv("XDG_CACHE_HOME")
    if cache_home:
        base = Path(cache_home)
    else:
        base = Path.home() / ".cache"
    cache_dir = base / CACHE_DIR_NAME
    cache_dir.mkdir(parents=True, exist_ok=True)
    return cache_dir


def clear_cache() -> None:
    """Clear all cached data."""
    cache_dir = get_cache_dir()
    if cache_dir.exists():
        shutil.rmtree(cache_dir)
        print("✅ Cache cleared successfully.", file=sys.stderr)
    else:
        print("ℹ️  Cache directory does not exist (nothing to clear).", file=sys.stderr)


def cache_key(prefix: str, *parts: Any) -> str:
    """Generate a deterministic cache key from prefix and parts."""
    key_str = f"{prefix}:{CACHE_VERSION}:" + ":".join(str(p).lower() for p in parts)
    return hashlib.sha256(key_str.encode()).hexdigest()


def get_cached(key: str) -> Any | None:
    """Get cached data by key. Returns None if not found or invalid."""
    cache_file = get_cache_dir() / f"{key}.json"
    if not cache_file.exists():
        return None
    try:
        with cache_file.open("r", encoding="utf-8") as f:
            return json.load(f)
    except Exception:  # pylint: disable=broad-exception-caught
        # Corrupted entries are treated as misses
        return None


def set_cached(key: str, data: Any) -> None:
    """Store data in cache."""
    cache_file = get_cache_dir() / f"{key}.json"
    try:
        with cache_file.open("w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=None, separators=(",", ":"))
    except Exception:  # pylint: disable=broad-exception-caught
        # If caching fails, continue without cache
        pass


_SNAPSHOT_FIELDS = ("block_height", "balance", "underlying_value", "exchange_rate", "accrued_rewards")


def snapshot_cache_key(asset_address: str, account: str, block_height: int, *, chain_id: int) -> str:
    """Key for a position's state at one block of one chain."""
    return cache_key("snapshot", chain_id, asset_address, account, block_height)


def load_cached_snapshot(
    asset_address: str, account: str, block_height: int, label: str, *, chain_id: int
) -> Snapshot | None:
    """Return a cached snapshot relabelled for the current run, or None on a miss."""
    cached = get_cached(snapshot_cache_key(asset_address, account, block_height, chain_id=chain_id))
    if not isinstance(cached, dict):
        return None
    try:
        values = {name: cached[name] for name in _SNAPSHOT_FIELDS}
    except KeyError:
        return None
    return Snapshot(label=label, **values)


def store_cached_snapshot(asset_address: str, account: str, snapshot: Snapshot, *, chain_id: int) -> None:
    """Persist a snapshot. Labels are relative to the run date and are not stored."""
    data = {name: getattr(snapshot, name) for name in _SNAPSHOT_FIELDS}
    set_cached(snapshot_cache_key(asset_address, account, snapshot.block_height, chain_id=chain_id), data)
