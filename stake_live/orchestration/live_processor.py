"""Main polling loop for STAKE LIVE.

Each poll:
1. Fetch a ContractSnapshot for the tracked wallet
2. Feed the earned counter into the reward accumulator (good snapshots only)
3. Read back session/window statistics
4. Log the poll to JSONL
5. Hand the combined PollResult to the CLI renderer
"""

import time
from dataclasses import replace
from typing import List, Optional

from ..cli.renderer import CLIRenderer
from ..config.settings import POLL_INTERVAL_DEFAULT
from ..core.reward_accumulator import RewardAccumulator
from ..core.session_clock import SessionClock
from ..core.units import format_number, format_units, normalize_amount
from ..integrations.chain_fetcher import ChainStateFetcher
from ..logging.session_logger import SessionLogger
from ..models.events import ContractSnapshot, PollResult


class LiveProcessor:
    """Owns the session's accumulator and drives it from chain polls.

    Single-threaded: polling and rendering share one loop, so the
    accumulator is never touched concurrently.
    """

    def __init__(
        self,
        address: str,
        fetcher: Optional[ChainStateFetcher],
        session_logger: SessionLogger,
        cli_renderer: CLIRenderer,
        refresh_rate: float = POLL_INTERVAL_DEFAULT,
        clock: Optional[SessionClock] = None,
        accumulator: Optional[RewardAccumulator] = None,
    ) -> None:
        self.address = address
        self.fetcher = fetcher
        self.session_logger = session_logger
        self.renderer = cli_renderer
        self.refresh_rate = refresh_rate

        self.clock = clock if clock is not None else SessionClock()
        self.accumulator = (
            accumulator if accumulator is not None else RewardAccumulator(clock=self.clock)
        )

        self.last_result: Optional[PollResult] = None
        self._last_good: Optional[ContractSnapshot] = None
        self._next_poll_at = 0.0
        self._running = False

    def run(self, display_tick: float = 1.0) -> None:
        """Main loop: poll every refresh_rate seconds, redraw every tick.

        Runs until interrupted (Ctrl+C) or shutdown() is called.
        """
        if self.fetcher is None:
            raise RuntimeError("Live mode needs a ChainStateFetcher; use run_demo() without one")

        self._running = True
        self.session_logger.log_session_start({
            "address": self.address,
            "refresh_rate": self.refresh_rate,
            "rpc_url": self.fetcher.rpc.rpc_url,
            "mode": "live",
        })

        self.renderer.clear_screen()
        self.renderer.add_info(f"Session started for {self.address[:10]}...")

        try:
            while self._running:
                if time.time() >= self._next_poll_at:
                    self._next_poll_at = time.time() + self.refresh_rate
                    self.poll()
                self._refresh_display()
                time.sleep(display_tick)
        except KeyboardInterrupt:
            pass
        finally:
            self.shutdown()

    def run_demo(self, snapshots: List[ContractSnapshot], step_delay: float = 0.5) -> None:
        """Replay pre-built snapshots instead of polling the chain.

        The clock follows each snapshot's fetched_at, so rates come out as if
        the polls had really been that far apart.
        """
        self._running = True
        self.session_logger.log_session_start({
            "address": self.address,
            "mode": "demo",
            "snapshots": len(snapshots),
        })

        self.renderer.clear_screen()
        self.renderer.add_info("DEMO MODE - Replaying simulated polls...")

        try:
            for snapshot in snapshots:
                if not self._running:
                    break
                self.clock.observe(snapshot.fetched_at)
                self.process_snapshot(snapshot)
                self._refresh_display()
                time.sleep(step_delay)

            self.renderer.add_info("DEMO MODE - All polls replayed. Press Ctrl+C to exit.")
            while self._running:
                self._refresh_display()
                time.sleep(1.0)
        except KeyboardInterrupt:
            pass
        finally:
            self.shutdown()

    def poll(self) -> PollResult:
        """Fetch one snapshot and fold it into the session."""
        if self.fetcher is None:
            raise RuntimeError("No ChainStateFetcher configured")
        snapshot = self.fetcher.fetch_chain_state(self.address)
        return self.process_snapshot(snapshot)

    def process_snapshot(self, snapshot: ContractSnapshot) -> PollResult:
        """Feed a snapshot through the accumulator and build the poll result.

        Failed snapshots never reach the accumulator: their zero defaults
        would read as a claim and wipe the session. The display keeps the
        last good counters instead.
        """
        now = self.clock.now()
        rollback = False

        if snapshot.success:
            earned = normalize_amount(snapshot.earned_rewards)
            if not self.accumulator.is_initialized:
                self.accumulator.set_initial_amount(earned)
                self.renderer.add_info(
                    f"Tracking from {format_number(format_units(earned), 6)} earned", now
                )
            else:
                state = self.accumulator.state
                previous = state.last_cumulative
                rollbacks_before = state.rollback_count
                self.accumulator.update(earned)
                if state.rollback_count != rollbacks_before:
                    rollback = True
                    self.session_logger.log_rollback(now, previous, earned)
                    self.renderer.add_rollback(now, previous, earned)
            self._last_good = snapshot
            shown = snapshot
        else:
            self.session_logger.log_fetch_failure(snapshot)
            self.renderer.add_fetch_failure(snapshot)
            shown = snapshot
            if self._last_good is not None:
                shown = replace(
                    self._last_good,
                    success=False,
                    error=snapshot.error,
                    fetched_at=snapshot.fetched_at,
                )

        result = PollResult(
            snapshot=shown,
            stats=self.accumulator.get_stats(),
            polled_at=now,
            session_start=self.accumulator.state.session_start,
            rollback=rollback,
        )
        self.session_logger.log_poll(result)
        self.last_result = result
        return result

    def reset_session(self) -> None:
        """Start a fresh session on the next good poll."""
        self.accumulator.reset()
        self._last_good = None
        self.renderer.add_info("Session reset", self.clock.now())

    def _refresh_display(self) -> None:
        """Render and display the current frame."""
        next_in = None
        if self.fetcher is not None and self._next_poll_at:
            next_in = self._next_poll_at - time.time()
        frame = self.renderer.render_frame(
            self.last_result, self.clock.now(), address=self.address, next_refresh_in=next_in
        )
        self.renderer.display(frame)

    def shutdown(self) -> None:
        """Clean shutdown: close logger."""
        if not self._running:
            return
        self._running = False
        self.session_logger.log_session_end("user_shutdown")
