"""Poll loop orchestration for STAKE LIVE."""
