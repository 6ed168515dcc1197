"""Terminal dashboard for STAKE LIVE."""
