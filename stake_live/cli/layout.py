"""Adaptive layout calculation for STAKE LIVE CLI.

Calculates panel heights based on terminal dimensions with
breakpoints for large/medium/small modes.
"""

from typing import Dict

# Fixed allocations
HEADER_ROWS = 4
MIN_EVENT_ROWS = 4
MIN_TOP_ROWS = 10
BORDER_OVERHEAD = 6  # Top/bottom borders + separators


def calculate_layout(cols: int, rows: int) -> Dict[str, int]:
    """Calculate panel heights based on terminal dimensions.

    Args:
        cols: Terminal width in columns.
        rows: Terminal height in rows.

    Returns:
        Dict with keys: header, top_panel, token_panel, event_stream, cols.
    """
    available = rows - HEADER_ROWS - BORDER_OVERHEAD

    if rows >= 50:
        top_h = 14
        token_h = 12
    elif rows >= 40:
        top_h = 12
        token_h = 8
    elif rows >= 30:
        top_h = 11
        token_h = 5
    else:
        top_h = MIN_TOP_ROWS
        token_h = 3

    used = top_h + token_h
    event_h = max(MIN_EVENT_ROWS, available - used)

    # Overshot: give rows back from the token list first
    if used + event_h > available:
        excess = used + event_h - available
        cut = min(excess, token_h - 2)
        token_h -= cut
        excess -= cut
        top_h = max(MIN_TOP_ROWS, top_h - excess)

    return {
        "header": HEADER_ROWS,
        "top_panel": top_h,
        "token_panel": token_h,
        "event_stream": event_h,
        "cols": cols,
    }
