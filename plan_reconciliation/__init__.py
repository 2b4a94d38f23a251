"""Training plan reconciliation: availability-aware redistribution and adaptation detection."""

__version__ = "0.1.0"
