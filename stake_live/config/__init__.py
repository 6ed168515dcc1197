"""Configuration for STAKE LIVE."""
