"""Exceptions raised by the analysis core."""


class AssetAnalysisError(RuntimeError):
    """A position could not be analyzed at all (its core metadata is unreadable)."""

    def __init__(self, asset_address: str, reason: str):
        super().__init__(f"Fatal error for {asset_address}: {reason}")
        self.asset_address = asset_address
        self.reason = reason


class InsufficientGasDataError(ValueError):
    """Fewer base-fee samples than the gas summary window requires."""
