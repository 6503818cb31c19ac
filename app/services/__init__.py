"""
Services for availability resolution, slot assignment, batch scheduling and persistence.
"""

from .store import SchedulingStore, SupabaseStore
from .availability import AvailabilityResolver
from .slot_assigner import SlotAssigner, SlotLockRegistry
from .batch_scheduler import BatchScheduler

__all__ = [
    "SchedulingStore",
    "SupabaseStore",
    "AvailabilityResolver",
    "SlotAssigner",
    "SlotLockRegistry",
    "BatchScheduler"
]
