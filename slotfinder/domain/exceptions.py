"""
Domain-specific exception hierarchy for the slotfinder application.
"""


class SlotFinderError(Exception):
    """Base class for all application-level errors."""


class ScheduleError(SlotFinderError):
    """Raised when a working-hours record cannot be interpreted."""


class DataSourceError(SlotFinderError):
    """Raised when booking data cannot be loaded or parsed."""


class NotFoundError(SlotFinderError):
    """Raised when a requested entity does not exist."""


class BusinessNotFoundError(NotFoundError):
    """Raised when a business cannot be resolved by id or phone."""


class ProfessionalNotFoundError(NotFoundError):
    """Raised when a professional does not belong to the business."""


class ServiceNotFoundError(NotFoundError):
    """Raised when a service is not offered by the business."""


class InvalidDurationError(SlotFinderError, ValueError):
    """Raised when a non-positive slot duration is requested."""
