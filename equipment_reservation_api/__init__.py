"""
Top-level package for the Equipment Reservation API.

All functionality lives in submodules under ``app``.
"""

__all__ = []
