"""Session logging for STAKE LIVE."""
from .session_logger import SessionLogger
from .log_replay import replay_session, session_frame, summarize_session, write_tsv

__all__ = ["SessionLogger", "replay_session", "session_frame", "summarize_session", "write_tsv"]
