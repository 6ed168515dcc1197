"""Data models for STAKE LIVE."""
from .events import (
    ContractSnapshot,
    FormattedStats,
    PollResult,
    RateStats,
    RewardSample,
    RewardStats,
    RewardTransfer,
    StakedToken,
    StakeTransaction,
)
from .accumulator_state import AccumulatorState

__all__ = [
    "ContractSnapshot",
    "FormattedStats",
    "PollResult",
    "RateStats",
    "RewardSample",
    "RewardStats",
    "RewardTransfer",
    "StakedToken",
    "StakeTransaction",
    "AccumulatorState",
]
