"""Reward-rate accumulator for STAKE LIVE.

Turns the staking contract's cumulative "earned" counter, sampled at
irregular poll intervals, into:
- a session total (rewards gained since the session started),
- a session-average rate,
- a trailing-window rate extrapolated to minute/hour/day.

Counter decreases (claim, unstake, contract-side reset) restart the session
and discard the window history. This is deliberate: after a claim the old
baseline no longer means anything.

The trailing-window rate always divides by the full window length, even when
the session is younger than the window, so it under-reads during the first
minutes of a session.
"""

from dataclasses import replace
from typing import Any, Callable, Optional, Tuple

from ..config.settings import (
    PER_DAY_DECIMALS,
    PER_HOUR_DECIMALS,
    PER_MINUTE_DECIMALS,
    REWARD_WINDOW_MS,
    SESSION_TOTAL_DECIMALS,
    TOKEN_DECIMALS,
    WARMUP_POINTS,
    WARMUP_SAMPLE_AMOUNT,
)
from ..models.accumulator_state import AccumulatorState
from ..models.events import FormattedStats, RateStats, RewardSample, RewardStats
from .session_clock import wallclock_ms
from .units import format_number, format_units, normalize_amount, parse_units, to_display

MS_PER_MINUTE = 60_000


class RewardAccumulator:
    """Tracks session and trailing-window reward statistics for one wallet.

    Not thread-safe: a single poll loop owns the instance and is the only
    caller of update() and get_stats().
    """

    def __init__(
        self,
        clock: Callable[[], int] = wallclock_ms,
        window_ms: int = REWARD_WINDOW_MS,
        decimals: int = TOKEN_DECIMALS,
        seed_warmup: bool = True,
    ) -> None:
        if window_ms < MS_PER_MINUTE:
            raise ValueError(f"window_ms must be at least one minute, got {window_ms}")
        self._clock = clock
        self.window_ms = window_ms
        self.window_minutes = window_ms // MS_PER_MINUTE
        self.decimals = decimals
        self.seed_warmup = seed_warmup
        self._state = AccumulatorState(session_start=self._clock())

    @property
    def state(self) -> AccumulatorState:
        return self._state

    @property
    def is_initialized(self) -> bool:
        return self._state.initialized

    @property
    def history(self) -> Tuple[RewardSample, ...]:
        """Snapshot of the window history, oldest first."""
        return tuple(self._state.window_history)

    def update(self, current_cumulative: Any) -> None:
        """Feed the latest cumulative earned counter (base units).

        Raises:
            InvalidAmountError: If the value is not a non-negative integer.
        """
        current = normalize_amount(current_cumulative)
        now = self._clock()
        state = self._state

        if not state.initialized:
            self._start_session(current, now)
            state.window_history.append(RewardSample(observed_at=now, amount=0))
        elif current < state.last_cumulative:
            # Claim or reset: the old baseline is meaningless from here on
            state.window_history.clear()
            self._start_session(current, now)
            state.window_history.append(RewardSample(observed_at=now, amount=0))
            state.rollback_count += 1
        else:
            delta = current - state.last_cumulative
            if delta > 0:
                state.window_history.append(RewardSample(observed_at=now, amount=delta))
                state.last_cumulative = current
            elif state.window_history:
                # No new rewards: stretch the newest sample up to now
                state.window_history[-1] = replace(state.window_history[-1], observed_at=now)
            else:
                state.window_history.append(RewardSample(observed_at=now, amount=0))

        self._expire_old_samples(now)

    def set_initial_amount(self, cumulative: Any) -> None:
        """Start the session from an authoritative first reading.

        Leaves the window history untouched.

        Raises:
            InvalidAmountError: If the value is not a non-negative integer.
        """
        current = normalize_amount(cumulative)
        self._start_session(current, self._clock())

    def reset(self) -> None:
        """Drop all state, as if freshly constructed."""
        self._state = AccumulatorState(session_start=self._clock())

    def get_stats(self) -> RewardStats:
        """Compute session and trailing-window statistics.

        Prunes expired samples first. While uninitialized, seeds a small
        synthetic history once so early rate displays are non-zero.
        """
        now = self._clock()
        state = self._state
        self._expire_old_samples(now)

        if not state.initialized and self.seed_warmup and not state.warmed_up:
            self._seed_warmup(now)

        elapsed_ms = now - state.session_start
        session_duration_minutes = max(1.0, elapsed_ms / MS_PER_MINUTE)

        session_total = state.session_total()
        window_total = sum(sample.amount for sample in state.window_history)

        per_minute = window_total // self.window_minutes
        per_hour = per_minute * 60
        per_day = per_hour * 24

        session_per_minute = 0
        if elapsed_ms > 0:
            session_per_minute = session_total * MS_PER_MINUTE // elapsed_ms

        return RewardStats(
            session_total=to_display(session_total, self.decimals),
            session_duration_minutes=session_duration_minutes,
            session_per_minute=to_display(session_per_minute, self.decimals),
            current_rate=RateStats(
                per_minute=to_display(per_minute, self.decimals),
                per_hour=to_display(per_hour, self.decimals),
                per_day=to_display(per_day, self.decimals),
            ),
            formatted=FormattedStats(
                session_total=self._format(session_total, SESSION_TOTAL_DECIMALS),
                session_per_minute=self._format(session_per_minute, PER_MINUTE_DECIMALS),
                per_minute=self._format(per_minute, PER_MINUTE_DECIMALS),
                per_hour=self._format(per_hour, PER_HOUR_DECIMALS),
                per_day=self._format(per_day, PER_DAY_DECIMALS),
            ),
            session_total_units=session_total,
            window_total_units=window_total,
            session_per_minute_units=session_per_minute,
            per_minute_units=per_minute,
            per_hour_units=per_hour,
            per_day_units=per_day,
            window_samples=len(state.window_history),
        )

    def _start_session(self, cumulative: int, now: int) -> None:
        self._state.baseline_cumulative = cumulative
        self._state.last_cumulative = cumulative
        self._state.session_start = now

    def _expire_old_samples(self, now: int) -> None:
        """Remove samples observed before now - window."""
        cutoff = now - self.window_ms
        history = self._state.window_history
        while history and history[0].observed_at < cutoff:
            history.popleft()

    def _seed_warmup(self, now: int, amount: Optional[int] = None) -> None:
        """One synthetic sample per minute across the window, newest at now."""
        if amount is None:
            amount = parse_units(WARMUP_SAMPLE_AMOUNT, self.decimals)
        points = min(WARMUP_POINTS, self.window_minutes)
        for i in range(points - 1, -1, -1):
            self._state.window_history.append(
                RewardSample(observed_at=now - i * MS_PER_MINUTE, amount=amount)
            )
        self._state.warmed_up = True

    def _format(self, units: int, decimals: int) -> str:
        return format_number(format_units(units, self.decimals), decimals)
