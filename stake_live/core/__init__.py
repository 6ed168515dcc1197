"""Core logic for STAKE LIVE."""
from .reward_accumulator import RewardAccumulator
from .session_clock import SessionClock, wallclock_ms
from .units import (
    InvalidAmountError,
    format_number,
    format_units,
    normalize_amount,
    parse_units,
    to_display,
)

__all__ = [
    "RewardAccumulator",
    "SessionClock",
    "wallclock_ms",
    "InvalidAmountError",
    "format_number",
    "format_units",
    "normalize_amount",
    "parse_units",
    "to_display",
]
