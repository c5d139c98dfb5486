"""
Adapters layer - External booking data sources.
"""

from .fixture_store import FixtureBookingStore

__all__ = ["FixtureBookingStore"]
