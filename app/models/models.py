"""
Data models for the Department Auto-Scheduling Service.
Defines all data structures used throughout the application.
"""

from dataclasses import dataclass, field
from datetime import date, time
from enum import Enum
from functools import total_ordering
from typing import Any, Dict, List, Optional, Union

from app.core.config import NOT_AVAILABLE_TIER, SCHEDULE_STATUS_SCHEDULED


@total_ordering
class Tier(Enum):
    """
    Availability priority. Lower value = more preferred.
    UNAVAILABLE is the sentinel and is never assignable.
    """
    FIRST = 1
    SECOND = 2
    THIRD = 3
    UNAVAILABLE = NOT_AVAILABLE_TIER

    def __lt__(self, other):
        if not isinstance(other, Tier):
            return NotImplemented
        return self.value < other.value

    @property
    def is_assignable(self) -> bool:
        return self is not Tier.UNAVAILABLE

    @classmethod
    def from_value(cls, value) -> "Tier":
        """Parse a stored tier; raises ValueError when out of range."""
        if isinstance(value, Tier):
            return value
        if isinstance(value, bool) or value is None:
            raise ValueError(f"Invalid tier: {value!r}")
        return cls(int(value))


class ScheduleStatus(Enum):
    SCHEDULED = SCHEDULE_STATUS_SCHEDULED

    @classmethod
    def parse(cls, value) -> Union["ScheduleStatus", str]:
        """Known statuses as members; anything else written by other tools is kept as the raw string."""
        if not value:
            return cls.SCHEDULED
        try:
            return cls(value)
        except ValueError:
            return str(value)


@dataclass
class Individual:
    id: str
    name: str
    email: str = ""

    def __hash__(self):
        return hash(self.id)

    def __eq__(self, other):
        if isinstance(other, Individual):
            return self.id == other.id
        return False


@dataclass
class Department:
    id: str
    name: str

    def __hash__(self):
        return hash(self.id)

    def __eq__(self, other):
        if isinstance(other, Department):
            return self.id == other.id
        return False


@dataclass
class TimeSlot:
    date: date
    start_time: time
    end_time: time
    id: Optional[str] = None
    is_active: bool = True

    def __str__(self):
        return f"{self.date} {self.start_time.strftime('%H:%M')}-{self.end_time.strftime('%H:%M')}"

    def to_row(self) -> Dict[str, Any]:
        row = {
            "date": self.date.isoformat(),
            "start_time": self.start_time.strftime("%H:%M:%S"),
            "end_time": self.end_time.strftime("%H:%M:%S"),
            "is_active": self.is_active,
        }
        if self.id is not None:
            row["id"] = self.id
        return row


@dataclass
class AvailabilityWindow:
    """A preference window: any slot fully inside [start_time, end_time] on `date` gets `tier`."""
    individual_id: str
    date: date
    start_time: time
    end_time: time
    tier: Tier

    def contains(self, slot: TimeSlot) -> bool:
        return (
            self.date == slot.date
            and self.start_time <= slot.start_time
            and self.end_time >= slot.end_time
        )


@dataclass
class Schedule:
    individual_id: str
    department_id: str
    time_slot_id: str
    status: Union[ScheduleStatus, str] = ScheduleStatus.SCHEDULED
    id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    # Read-side display fields joined from the related records
    individual: Optional[Individual] = None
    department: Optional[Department] = None
    time_slot: Optional[TimeSlot] = None

    def to_record(self) -> Dict[str, Any]:
        """Columns written on insert."""
        return {
            "individual_id": self.individual_id,
            "department_id": self.department_id,
            "time_slot_id": self.time_slot_id,
            "status": self.status.value if isinstance(self.status, ScheduleStatus) else self.status,
        }

    def to_dict(self) -> Dict[str, Any]:
        data = {"id": self.id, **self.to_record(), "created_at": self.created_at, "updated_at": self.updated_at}
        if self.individual:
            data["individual"] = {"name": self.individual.name, "email": self.individual.email}
        if self.department:
            data["department"] = {"name": self.department.name}
        if self.time_slot:
            data["time_slot"] = {
                "date": self.time_slot.date.isoformat(),
                "start_time": self.time_slot.start_time.strftime("%H:%M:%S"),
                "end_time": self.time_slot.end_time.strftime("%H:%M:%S"),
            }
        return data


@dataclass
class BatchSuccess:
    schedule: Schedule
    time_slot: TimeSlot
    department: Department


@dataclass
class BatchFailure:
    error: str
    time_slot: TimeSlot
    department: Department
    code: Optional[str] = None


@dataclass
class BatchResult:
    date: date
    successes: List[BatchSuccess] = field(default_factory=list)
    failures: List[BatchFailure] = field(default_factory=list)
    skipped: int = 0

    @property
    def total_processed(self) -> int:
        return len(self.successes) + len(self.failures)

    def get_summary(self) -> str:
        summary = f"Batch for {self.date}\n"
        summary += f"Processed: {self.total_processed}\n"
        summary += f"Successes: {len(self.successes)}\n"
        summary += f"Failures: {len(self.failures)}\n"
        summary += f"Already filled: {self.skipped}\n"
        return summary

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "successes": [
                {
                    "schedule": s.schedule.to_dict(),
                    "time_slot": s.time_slot.to_row(),
                    "department": {"id": s.department.id, "name": s.department.name},
                }
                for s in self.successes
            ],
            "failures": [
                {
                    "error": f.error,
                    "code": f.code,
                    "time_slot": f.time_slot.to_row(),
                    "department": {"id": f.department.id, "name": f.department.name},
                }
                for f in self.failures
            ],
            "total_processed": self.total_processed,
        }
