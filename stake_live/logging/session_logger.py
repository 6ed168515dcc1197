"""JSONL session logger for STAKE LIVE."""

import json
import time
from pathlib import Path
from typing import Any, Dict, Optional, TextIO

from ..config.settings import LOG_DIR, LOG_LEVEL_DEFAULT
from ..models.events import ContractSnapshot, PollResult

LOG_LEVELS = ("FULL", "SESSION_ONLY")


class SessionLogger:
    """Writes session events to a JSONL file.

    In SESSION_ONLY mode (default), session start/end, rollbacks and fetch
    failures are logged. In FULL mode every poll is logged as well.
    Base-unit amounts are written as strings.
    """

    def __init__(
        self,
        address: str,
        log_level: str = LOG_LEVEL_DEFAULT,
        output_dir: str = LOG_DIR,
    ) -> None:
        if log_level not in LOG_LEVELS:
            raise ValueError(f"Unknown log level {log_level!r}, expected one of {LOG_LEVELS}")
        self.address = address
        self.log_level = log_level
        self._dir = Path(output_dir)
        self._dir.mkdir(parents=True, exist_ok=True)

        ts = int(time.time())
        filename = f"stake_live_session_{address}_{ts}.jsonl"
        self._filepath = self._dir / filename
        self._file: Optional[TextIO] = open(self._filepath, "a", encoding="utf-8")

    def _write_line(self, data: Dict[str, Any]) -> None:
        """Write a single JSON line to the log file."""
        if self._file and not self._file.closed:
            self._file.write(json.dumps(data, separators=(",", ":")) + "\n")
            self._file.flush()

    def log_session_start(self, config: Dict[str, Any]) -> None:
        """Log session start event (always logged regardless of level)."""
        self._write_line({
            "event_type": "SESSION_START",
            "timestamp": int(time.time() * 1000),
            "address": self.address,
            "config": config,
        })

    def log_poll(self, result: PollResult) -> None:
        """Log a poll result (only in FULL mode)."""
        if self.log_level != "FULL":
            return
        snapshot = result.snapshot
        stats = result.stats
        self._write_line({
            "event_type": "POLL",
            "timestamp": result.polled_at,
            "success": snapshot.success,
            "earned_rewards": snapshot.earned_rewards,
            "staked_amount": snapshot.staked_amount,
            "total_staked": snapshot.total_staked,
            "reward_rate": snapshot.reward_rate,
            "token_count": len(snapshot.token_ids),
            "session_total_units": str(stats.session_total_units),
            "window_total_units": str(stats.window_total_units),
            "per_minute_units": str(stats.per_minute_units),
            "session_per_minute_units": str(stats.session_per_minute_units),
            "session_duration_minutes": stats.session_duration_minutes,
            "window_samples": stats.window_samples,
        })

    def log_rollback(self, timestamp: int, previous: int, current: int) -> None:
        """Log a detected counter decrease (claim/unstake/reset)."""
        self._write_line({
            "event_type": "ROLLBACK",
            "timestamp": timestamp,
            "previous_cumulative": str(previous),
            "current_cumulative": str(current),
        })

    def log_fetch_failure(self, snapshot: ContractSnapshot) -> None:
        """Log a poll whose snapshot was incomplete."""
        self._write_line({
            "event_type": "FETCH_FAILED",
            "timestamp": snapshot.fetched_at,
            "error": snapshot.error or "unknown",
        })

    def log_session_end(self, reason: str) -> None:
        """Log session end event (always logged regardless of level)."""
        self._write_line({
            "event_type": "SESSION_END",
            "timestamp": int(time.time() * 1000),
            "reason": reason,
        })
        self.close()

    def close(self) -> None:
        """Close the log file."""
        if self._file and not self._file.closed:
            self._file.close()

    @property
    def filepath(self) -> Path:
        """Return the path to the log file."""
        return self._filepath
