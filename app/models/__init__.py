"""
Data models for the scheduling system.
"""

from .models import (
    Tier,
    ScheduleStatus,
    Individual,
    Department,
    TimeSlot,
    AvailabilityWindow,
    Schedule,
    BatchSuccess,
    BatchFailure,
    BatchResult
)

__all__ = [
    "Tier",
    "ScheduleStatus",
    "Individual",
    "Department",
    "TimeSlot",
    "AvailabilityWindow",
    "Schedule",
    "BatchSuccess",
    "BatchFailure",
    "BatchResult"
]
