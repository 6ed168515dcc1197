"""Terminal rendering engine for STAKE LIVE CLI.

Renders a split-screen display with the wallet overview (left), session
statistics (right), the per-token breakdown and a scrolling event stream
(bottom).
"""

import os
import sys
from typing import List, Optional

from ..config.settings import TOKEN_SYMBOL
from ..models.events import ContractSnapshot, PollResult
from .layout import calculate_layout
from .panels import (
    EventPanel,
    OverviewPanel,
    SessionPanel,
    TokenPanel,
    format_duration,
    short_address,
)


def _get_terminal_size() -> tuple:
    """Get terminal dimensions, with fallback."""
    try:
        size = os.get_terminal_size()
        return size.columns, size.lines
    except (OSError, ValueError):
        return 120, 40


class CLIRenderer:
    """Renders adaptive split-screen terminal display."""

    def __init__(self, symbol: str = TOKEN_SYMBOL) -> None:
        self.overview_panel = OverviewPanel(symbol=symbol)
        self.session_panel = SessionPanel(symbol=symbol)
        self.token_panel = TokenPanel(symbol=symbol)
        self.event_panel = EventPanel()

    def add_rollback(self, ts_ms: int, previous: int, current: int) -> None:
        self.event_panel.add_rollback(ts_ms, previous, current)

    def add_fetch_failure(self, snapshot: ContractSnapshot) -> None:
        self.event_panel.add_fetch_failure(snapshot)

    def add_info(self, message: str, ts_ms: Optional[int] = None) -> None:
        """Add informational message to event stream."""
        self.event_panel.add_info(message, ts_ms)

    def render_frame(
        self,
        result: Optional[PollResult],
        current_time: int,
        address: str = "",
        next_refresh_in: Optional[float] = None,
    ) -> str:
        """Render a complete display frame.

        Args:
            result: Latest poll result, None before the first poll.
            current_time: Current time in unix milliseconds.
            address: Tracked wallet (header fallback before the first poll).
            next_refresh_in: Seconds until the next poll, if known.

        Returns:
            Complete frame as a single string ready for terminal output.
        """
        cols, rows = _get_terminal_size()
        layout = calculate_layout(cols, rows)

        output_lines: List[str] = []
        output_lines.extend(self._render_header(result, current_time, cols, address, next_refresh_in))

        left_width = cols // 2 - 1
        right_width = cols - left_width - 3  # 3 for border + separator
        full_width = cols - 2
        top_height = layout["top_panel"]

        if result is None:
            left_lines = [" Waiting for first poll..."]
            right_lines: List[str] = []
            token_lines = [" STAKE TOKENS"]
        else:
            left_lines = self.overview_panel.render(result, top_height)
            right_lines = self.session_panel.render(result, current_time, top_height)
            token_lines = self.token_panel.render(result.snapshot, layout["token_panel"])

        # Side-by-side panels
        output_lines.append("+" + "-" * left_width + "+" + "-" * right_width + "+")
        for i in range(top_height):
            left = left_lines[i] if i < len(left_lines) else ""
            right = right_lines[i] if i < len(right_lines) else ""
            left = left[:left_width].ljust(left_width)
            right = right[:right_width].ljust(right_width)
            output_lines.append(f"|{left}|{right}|")

        # Token breakdown (full width)
        output_lines.append("+" + "-" * full_width + "+")
        for i in range(layout["token_panel"]):
            line = token_lines[i] if i < len(token_lines) else ""
            output_lines.append("|" + line[:full_width].ljust(full_width) + "|")

        # Event stream (full width)
        output_lines.append("+" + "-" * full_width + "+")
        for line in self.event_panel.render(layout["event_stream"]):
            output_lines.append("|" + line[:full_width].ljust(full_width) + "|")
        output_lines.append("+" + "-" * full_width + "+")

        return "\n".join(output_lines)

    def _render_header(
        self,
        result: Optional[PollResult],
        current_time: int,
        cols: int,
        address: str,
        next_refresh_in: Optional[float],
    ) -> List[str]:
        """Render the header bar."""
        wallet = result.snapshot.address if result is not None else address
        header_text = f" STAKE LIVE | Wallet: {short_address(wallet) if wallet else '-'}"
        if result is not None:
            duration = format_duration((current_time - result.session_start) / 1000)
            header_text += f" | Session: {duration}"
        if next_refresh_in is not None:
            header_text += f" | Next refresh: {max(0, int(next_refresh_in))}s"
        header_text += " "

        border = "=" * (cols - 2)
        return [
            "+" + border + "+",
            "|" + header_text[: cols - 2].ljust(cols - 2) + "|",
            "+" + border + "+",
            "",
        ]

    def clear_screen(self) -> None:
        """Clear the terminal screen."""
        sys.stdout.write("\033[2J\033[H")
        sys.stdout.flush()

    def display(self, frame: str) -> None:
        """Write frame to terminal (move cursor to top, overwrite)."""
        sys.stdout.write("\033[H")
        sys.stdout.write(frame)
        sys.stdout.flush()
