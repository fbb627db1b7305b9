"""Job planning, run metrics and pipeline orchestration."""
