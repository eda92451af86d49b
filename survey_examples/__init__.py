"""
Walk-survey examples.

Examples:
    - example_placement.py: Capture a two-storey walk, recommend an
      access-point position and remediation products
"""

__all__ = []
