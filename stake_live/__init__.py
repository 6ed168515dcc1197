"""STAKE LIVE - terminal dashboard for staking reward rates."""

__version__ = "1.0.0"
