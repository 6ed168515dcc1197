"""Session replay and offline reporting for STAKE LIVE."""

import json
from pathlib import Path
from typing import Any, Dict, List

import pandas as pd

from ..config.settings import TOKEN_DECIMALS
from ..core.units import to_display

FRAME_COLUMNS = [
    "timestamp",
    "success",
    "earned_rewards",
    "session_total",
    "per_minute",
    "session_per_minute",
    "session_duration_minutes",
    "window_samples",
]


def replay_session(filepath: str) -> List[Dict[str, Any]]:
    """Read a JSONL session log and return parsed events.

    Args:
        filepath: Path to a .jsonl session log file.

    Returns:
        List of parsed event dicts from the session log.

    Raises:
        FileNotFoundError: If the log file does not exist.
    """
    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"Session log not found: {filepath}")

    events: List[Dict[str, Any]] = []
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            events.append(json.loads(line))
        except json.JSONDecodeError:
            continue  # Skip malformed lines

    return events


def session_frame(events: List[Dict[str, Any]], decimals: int = TOKEN_DECIMALS) -> pd.DataFrame:
    """One row per POLL event, amounts in display units.

    POLL events only exist in FULL-level logs; other levels give an empty
    frame.
    """
    rows = []
    for ev in events:
        if ev.get("event_type") != "POLL":
            continue
        try:
            rows.append({
                "timestamp": int(ev["timestamp"]),
                "success": bool(ev.get("success", True)),
                "earned_rewards": to_display(int(ev["earned_rewards"]), decimals),
                "session_total": to_display(int(ev["session_total_units"]), decimals),
                "per_minute": to_display(int(ev["per_minute_units"]), decimals),
                "session_per_minute": to_display(int(ev["session_per_minute_units"]), decimals),
                "session_duration_minutes": float(ev.get("session_duration_minutes", 0.0)),
                "window_samples": int(ev.get("window_samples", 0)),
            })
        except (KeyError, TypeError, ValueError):
            continue  # Skip events written by an incompatible version

    frame = pd.DataFrame(rows, columns=FRAME_COLUMNS)
    if not frame.empty:
        frame["timestamp"] = pd.to_datetime(frame["timestamp"], unit="ms", utc=True)
    return frame


def summarize_session(events: List[Dict[str, Any]], decimals: int = TOKEN_DECIMALS) -> Dict[str, Any]:
    """Headline numbers for a replayed session."""
    frame = session_frame(events, decimals)
    counts: Dict[str, int] = {}
    for ev in events:
        kind = str(ev.get("event_type", "UNKNOWN"))
        counts[kind] = counts.get(kind, 0) + 1

    summary: Dict[str, Any] = {
        "polls": int(len(frame)),
        "rollbacks": counts.get("ROLLBACK", 0),
        "fetch_failures": counts.get("FETCH_FAILED", 0),
        "final_session_total": 0.0,
        "mean_per_minute": 0.0,
        "max_per_minute": 0.0,
        "duration_minutes": 0.0,
    }
    if frame.empty:
        return summary

    summary["final_session_total"] = float(frame["session_total"].iloc[-1])
    summary["mean_per_minute"] = float(frame["per_minute"].mean())
    summary["max_per_minute"] = float(frame["per_minute"].max())
    span = frame["timestamp"].iloc[-1] - frame["timestamp"].iloc[0]
    summary["duration_minutes"] = span.total_seconds() / 60.0
    return summary


def write_tsv(df: pd.DataFrame, path: str) -> None:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(out, sep="\t", index=False)
