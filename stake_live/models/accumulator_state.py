"""Reward accumulator state for STAKE LIVE."""

from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Optional

from .events import RewardSample


@dataclass
class AccumulatorState:
    """Mutable state behind a RewardAccumulator.

    One instance per tracked address per process. `baseline_cumulative` is
    None until the first sample (or an explicit initial amount) arrives.
    """

    session_start: int = 0  # Unix epoch milliseconds
    baseline_cumulative: Optional[int] = None
    last_cumulative: int = 0

    # Increments within the trailing window, oldest first
    window_history: Deque[RewardSample] = field(default_factory=deque)

    warmed_up: bool = False
    rollback_count: int = 0

    @property
    def initialized(self) -> bool:
        return self.baseline_cumulative is not None

    def session_total(self) -> int:
        """Rewards gained since session start, clamped at zero."""
        if self.baseline_cumulative is None:
            return 0
        return max(0, self.last_cumulative - self.baseline_cumulative)
