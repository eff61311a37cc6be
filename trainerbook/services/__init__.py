"""
Service layer helpers that orchestrate repositories and domain logic.
"""

from .booking_lifecycle import BookingLifecycle
from .repositories import BookingRepository, TrainerRepository
from .scheduling import SchedulingService

__all__ = ["BookingLifecycle", "BookingRepository", "SchedulingService", "TrainerRepository"]
