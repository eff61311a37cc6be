"""
Adapters layer - Storage implementations of the repository protocols.
"""

from .json_store import JsonBookingRepository, JsonDataStore
from .memory_repository import InMemoryBookingRepository, InMemoryTrainerRepository

__all__ = [
    "InMemoryBookingRepository",
    "InMemoryTrainerRepository",
    "JsonBookingRepository",
    "JsonDataStore",
]
