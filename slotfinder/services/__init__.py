"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .availability_service import AvailabilityService, BookingDataSourceProtocol

__all__ = ["AvailabilityService", "BookingDataSourceProtocol"]
