"""Session clock for STAKE LIVE.

All accumulator timing is integer milliseconds so session rates can be
computed with exact integer math.

Live mode: wallclock, never below the newest observed timestamp.
Replay mode: only observed timestamps, no wallclock (demo runs and tests).
"""

import time
from typing import Optional


def wallclock_ms() -> int:
    """Current unix time in milliseconds."""
    return int(time.time() * 1000)


class SessionClock:
    """Millisecond clock that can be driven by observed timestamps.

    Call the instance (or now()) to read the time; both forms are accepted
    wherever a `Callable[[], int]` clock is expected.
    """

    def __init__(self, replay_mode: bool = False) -> None:
        self._replay_mode = replay_mode
        self._last_observed: Optional[int] = None

    def observe(self, ts_ms: int) -> None:
        """Record an observed timestamp (keeps the maximum)."""
        if self._last_observed is None or ts_ms > self._last_observed:
            self._last_observed = ts_ms

    def advance(self, delta_ms: int) -> int:
        """Move the observed time forward by delta_ms and return it."""
        base = self._last_observed if self._last_observed is not None else wallclock_ms()
        self.observe(base + delta_ms)
        return self.now()

    def now(self) -> int:
        """Return the current session time in milliseconds.

        Fallback (nothing observed yet): wallclock.
        """
        if self._last_observed is None:
            return wallclock_ms()

        if self._replay_mode:
            return self._last_observed

        return max(wallclock_ms(), self._last_observed)

    def __call__(self) -> int:
        return self.now()

    @property
    def replay_mode(self) -> bool:
        return self._replay_mode

    @property
    def last_observed(self) -> Optional[int]:
        """The newest observed timestamp. None if nothing observed yet."""
        return self._last_observed
