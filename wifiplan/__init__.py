"""Core modules for walk-survey access-point placement.

This package contains the reusable components that turn a handful of
signal-strength captures, taken while walking through a building, into an
access-point placement recommendation:
- sensors: Signal normalization and dead-reckoning primitives
- calibration: Calibration points and the capture session
- spatial: Relative per-floor layout built by dead reckoning
- placement: Grid-search optimizer, coverage helpers, recommendations
- eval: Plotting helpers
"""

__version__ = "0.1.0"
