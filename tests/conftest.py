"""
Shared fixtures for the scheduling tests.

`InMemoryStore` is a SchedulingStore double: loads return rows in
insertion order, and failures can be queued per method to exercise the
retry policy.
"""

import os
import sys
from collections import Counter, defaultdict
from dataclasses import replace
from datetime import date, datetime, time
from itertools import count

import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.core.errors import DuplicateResource
from app.core.retry import RetryPolicy
from app.models import AvailabilityWindow, Department, Individual, Schedule, Tier, TimeSlot
from app.services.store import SchedulingStore


def t(value: str) -> time:
    return datetime.strptime(value, "%H:%M").time()


class InMemoryStore(SchedulingStore):
    def __init__(self, unique_pairs: bool = False):
        self.individuals = []
        self.departments = []
        self.time_slots = []
        self.availability = []
        self.schedules = []
        self.unique_pairs = unique_pairs
        self.calls = Counter()
        self._failures = defaultdict(list)
        self._ids = count(1)

    # -- test setup helpers ------------------------------------------------

    def add_individual(self, individual_id, name=None, email=""):
        individual = Individual(id=individual_id, name=name or individual_id, email=email)
        self.individuals.append(individual)
        return individual

    def add_department(self, department_id, name=None):
        department = Department(id=department_id, name=name or department_id)
        self.departments.append(department)
        return department

    def add_time_slot(self, slot_id, slot_date, start, end, is_active=True):
        slot = TimeSlot(id=slot_id, date=slot_date, start_time=t(start), end_time=t(end), is_active=is_active)
        self.time_slots.append(slot)
        return slot

    def add_availability(self, individual_id, slot_date, start, end, tier):
        self.availability.append(AvailabilityWindow(
            individual_id=individual_id,
            date=slot_date,
            start_time=t(start),
            end_time=t(end),
            tier=Tier.from_value(tier),
        ))

    def add_schedule(self, individual_id, department_id, time_slot_id):
        schedule = Schedule(
            id=f"existing-{next(self._ids)}",
            individual_id=individual_id,
            department_id=department_id,
            time_slot_id=time_slot_id,
        )
        self.schedules.append(schedule)
        return schedule

    def fail(self, method, *errors):
        """Queue errors raised by the next calls to `method`."""
        self._failures[method].extend(errors)

    def _call(self, method):
        self.calls[method] += 1
        if self._failures[method]:
            raise self._failures[method].pop(0)

    def _slot(self, time_slot_id):
        return next((s for s in self.time_slots if s.id == time_slot_id), None)

    # -- SchedulingStore ---------------------------------------------------

    def load_time_slots(self, slot_date):
        self._call("load_time_slots")
        return [s for s in self.time_slots if s.date == slot_date and s.is_active]

    def load_time_slot(self, time_slot_id):
        self._call("load_time_slot")
        return self._slot(time_slot_id)

    def load_departments(self):
        self._call("load_departments")
        return list(self.departments)

    def load_individuals(self):
        self._call("load_individuals")
        return list(self.individuals)

    def load_schedules_for_slot(self, time_slot_id):
        self._call("load_schedules_for_slot")
        return [s.individual_id for s in self.schedules if s.time_slot_id == time_slot_id]

    def load_schedules_for_date(self, slot_date):
        self._call("load_schedules_for_date")
        slot_ids = {s.id for s in self.time_slots if s.date == slot_date}
        return [s for s in self.schedules if s.time_slot_id in slot_ids]

    def load_availability_windows(self, individual_id, slot_date):
        self._call("load_availability_windows")
        return [w for w in self.availability if w.individual_id == individual_id and w.date == slot_date]

    def insert_schedule(self, schedule):
        self._call("insert_schedule")
        if self.unique_pairs and any(
            s.department_id == schedule.department_id and s.time_slot_id == schedule.time_slot_id
            for s in self.schedules
        ):
            raise DuplicateResource("Resource already exists")

        created = Schedule(
            id=f"sched-{next(self._ids)}",
            individual_id=schedule.individual_id,
            department_id=schedule.department_id,
            time_slot_id=schedule.time_slot_id,
            status=schedule.status,
            created_at=datetime(2024, 1, 1).isoformat(),
        )
        self.schedules.append(created)

        return replace(
            created,
            individual=next((i for i in self.individuals if i.id == schedule.individual_id), None),
            department=next((d for d in self.departments if d.id == schedule.department_id), None),
            time_slot=self._slot(schedule.time_slot_id),
        )

    def upsert_time_slots(self, slots):
        self._call("upsert_time_slots")
        for slot in slots:
            existing = next(
                (s for s in self.time_slots if s.date == slot.date and s.start_time == slot.start_time),
                None
            )
            if existing:
                existing.end_time = slot.end_time
                existing.is_active = slot.is_active
            else:
                slot.id = f"slot-{next(self._ids)}"
                self.time_slots.append(slot)
        return len(slots)


class RecordingSleep:
    def __init__(self):
        self.delays = []

    def __call__(self, seconds):
        self.delays.append(seconds)


DAY = date(2024, 1, 1)


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def retry(sleep):
    """Default retry-everything policy with a recorded, non-blocking sleep."""
    return RetryPolicy(max_attempts=3, base_delay=1.0, sleep=sleep)


@pytest.fixture
def front_desk_store():
    """
    One department, two half-hour slots on 2024-01-01.
    A is tier 1 for 09:00-10:00; B is tier 2 for 09:00-09:30 only.
    """
    s = InMemoryStore()
    s.add_department("dept-front", "Front Desk")
    s.add_time_slot("slot-0900", DAY, "09:00", "09:30")
    s.add_time_slot("slot-0930", DAY, "09:30", "10:00")
    s.add_individual("ind-a", "A")
    s.add_individual("ind-b", "B")
    s.add_availability("ind-a", DAY, "09:00", "10:00", 1)
    s.add_availability("ind-b", DAY, "09:00", "09:30", 2)
    return s
