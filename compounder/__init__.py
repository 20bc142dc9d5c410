"""Tiered compound interest projections with USD conversion."""

__version__ = "0.1.0"
