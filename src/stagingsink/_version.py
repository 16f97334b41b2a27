"""
Package version.

Kept in a separate module so packaging metadata and runtime agree.
"""

__version__ = "0.1.0"
