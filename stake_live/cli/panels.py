"""Panel formatters for STAKE LIVE CLI.

Formats the wallet overview, session statistics, per-token breakdown and
event stream into lists of display-ready strings.
"""

import time
from typing import List, Optional

from ..config.settings import (
    BALANCE_DECIMALS,
    MAX_EVENT_BUFFER_BYTES,
    MAX_TOKEN_LINES,
    REWARD_WINDOW_MINUTES,
    TOKEN_SYMBOL,
)
from ..core.units import format_number, format_units
from ..models.events import ContractSnapshot, PollResult, RewardTransfer, StakeTransaction


def format_duration(seconds: float) -> str:
    """Format seconds as "45s", "3m 05s" or "1h 02m 07s"."""
    total = max(0, int(seconds))
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours > 0:
        return f"{hours}h {minutes:02d}m {secs:02d}s"
    if minutes > 0:
        return f"{minutes}m {secs:02d}s"
    return f"{secs}s"


def short_address(address: str, chars: int = 4) -> str:
    """Shorten a 0x address for display (0xa267...A1D9)."""
    if len(address) <= 2 * chars + 2:
        return address
    return f"{address[:chars + 2]}...{address[-chars:]}"


def _format_time(ts_ms: int) -> str:
    """Format unix milliseconds as HH:MM:SS."""
    return time.strftime("%H:%M:%S", time.localtime(ts_ms // 1000))


def _format_datetime(ts_ms: int) -> str:
    return time.strftime("%Y-%m-%d %H:%M", time.localtime(ts_ms // 1000))


def _amount(units: str, decimals: int = BALANCE_DECIMALS) -> str:
    """Base-unit integer string -> formatted display amount."""
    try:
        return format_number(format_units(int(units)), decimals)
    except (TypeError, ValueError):
        return format_number("nan", decimals)


def _pad(lines: List[str], max_lines: int) -> List[str]:
    while len(lines) < max_lines:
        lines.append("")
    return lines[:max_lines]


class OverviewPanel:
    """Wallet balance and staking overview (left pane)."""

    def __init__(self, symbol: str = TOKEN_SYMBOL) -> None:
        self.symbol = symbol

    def render(self, result: PollResult, max_lines: int = 12) -> List[str]:
        snapshot = result.snapshot
        sym = self.symbol
        status = "OK" if snapshot.success else "FAILED"
        lines = [
            f" WALLET: {short_address(snapshot.address)}",
            f" Balance: {format_number(snapshot.balance, BALANCE_DECIMALS)} {sym}",
            f" Last poll: {_format_time(result.polled_at)} [{status}]",
            "",
            " STAKING OVERVIEW",
            f" Staked:       {_amount(snapshot.staked_amount)} {sym}",
            f" Earned:       {_amount(snapshot.earned_rewards)} {sym}",
            f" Total Staked: {_amount(snapshot.total_staked)} {sym}",
            f" Reward Rate:  {_amount(snapshot.reward_rate)} {sym}/day",
            f" Stake Tokens: {len(snapshot.token_ids)}",
            f" Node Reward:  {self._latest_reward(snapshot.latest_reward)}",
            f" Last Stake:   {self._last_stake(snapshot.last_stake)}",
        ]
        return _pad(lines, max_lines)

    def _latest_reward(self, reward: Optional[RewardTransfer]) -> str:
        if reward is None:
            return "-"
        return f"{format_number(reward.value, 6)} {self.symbol} at {_format_datetime(reward.timestamp)}"

    def _last_stake(self, stake: Optional[StakeTransaction]) -> str:
        if stake is None:
            return "-"
        target = f"#{stake.token_id}" if stake.token_id else "new token"
        return (
            f"{_amount(stake.amount)} {self.symbol} -> {target}"
            f" at {_format_datetime(stake.timestamp)}"
        )


class SessionPanel:
    """Session totals and trailing-window rates (right pane)."""

    def __init__(self, symbol: str = TOKEN_SYMBOL) -> None:
        self.symbol = symbol

    def render(self, result: PollResult, current_time: int, max_lines: int = 12) -> List[str]:
        """Render session statistics.

        The duration ticks with current_time between polls; everything else
        is as of the last poll.
        """
        stats = result.stats
        fmt = stats.formatted
        sym = self.symbol

        duration = format_duration((current_time - result.session_start) / 1000)
        lines = [
            " SESSION",
            f" Duration:  {duration}",
            f" Rewards:   {fmt.session_total} {sym}",
            f" Average:   {fmt.session_per_minute} {sym}/min",
            "",
            f" CURRENT RATE ({REWARD_WINDOW_MINUTES}m window)",
            f" Per minute: {fmt.per_minute} {sym}",
            f" Per hour:   {fmt.per_hour} {sym}",
            f" Per day:    {fmt.per_day} {sym}",
            f" Samples:    {stats.window_samples}",
        ]
        return _pad(lines, max_lines)


class TokenPanel:
    """Per stake-token breakdown."""

    def __init__(self, symbol: str = TOKEN_SYMBOL) -> None:
        self.symbol = symbol

    def render(self, snapshot: ContractSnapshot, max_lines: int = 8) -> List[str]:
        lines = [" STAKE TOKENS"]
        if not snapshot.staked_tokens:
            lines.append(" (none)")
            return _pad(lines, max_lines)

        cap = min(MAX_TOKEN_LINES, max_lines - 1)
        tokens = snapshot.staked_tokens
        shown = tokens if len(tokens) <= cap else tokens[: cap - 1]
        for token in shown:
            lines.append(
                f" #{token.token_id:<8} staked {_amount(token.staked_amount)} {self.symbol}"
                f" | reward {_amount(token.reward_amount, 6)} {self.symbol}"
            )
        remaining = len(tokens) - len(shown)
        if remaining > 0:
            lines.append(f" (+{remaining} more stake tokens)")
        return _pad(lines, max_lines)


class EventPanel:
    """Formats scrolling event stream."""

    def __init__(self, buffer_size: int = 100) -> None:
        self._events: List[str] = []
        self._buffer_size = buffer_size
        self._buffer_bytes: int = 0
        self._max_buffer_bytes: int = MAX_EVENT_BUFFER_BYTES

    def add_rollback(self, ts_ms: int, previous: int, current: int) -> None:
        """Earned counter went down: session restarted."""
        self._append(
            f"[{_format_time(ts_ms)}] CLAIM/RESET: earned {format_number(format_units(previous), 6)}"
            f" -> {format_number(format_units(current), 6)}, session restarted"
        )

    def add_fetch_failure(self, snapshot: ContractSnapshot) -> None:
        self._append(
            f"[{_format_time(snapshot.fetched_at)}] FETCH FAILED: {snapshot.error or 'unknown'}"
        )

    def add_info(self, message: str, ts_ms: Optional[int] = None) -> None:
        """Add an informational message to the stream."""
        ts = _format_time(ts_ms if ts_ms is not None else int(time.time() * 1000))
        self._append(f"[{ts}] {message}")

    def render(self, max_lines: int = 10) -> List[str]:
        """Render most recent events (newest at bottom)."""
        lines = [" EVENT STREAM", ""]
        recent = self._events[-(max_lines - 2):] if max_lines > 2 else []
        for ev in recent:
            lines.append(f" {ev}")
        return _pad(lines, max_lines)

    def _append(self, event_str: str) -> None:
        """Append event and enforce both count and byte caps."""
        event_bytes = len(event_str.encode("utf-8", errors="replace"))
        self._events.append(event_str)
        self._buffer_bytes += event_bytes

        # Evict oldest until both caps satisfied
        while self._events and (
            len(self._events) > self._buffer_size
            or self._buffer_bytes > self._max_buffer_bytes
        ):
            removed = self._events.pop(0)
            self._buffer_bytes -= len(removed.encode("utf-8", errors="replace"))
