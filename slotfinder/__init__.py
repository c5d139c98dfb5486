"""
slotfinder - availability resolution for appointment booking.
"""

__version__ = "0.3.0"
