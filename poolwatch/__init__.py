"""poolwatch — scheduled liquidity-pool monitoring with change-rate alerts."""

__version__ = "0.1.0"
