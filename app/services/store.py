"""
Persistence collaborator for the scheduling engine.

`SchedulingStore` is the read/write contract the engine depends on;
`SupabaseStore` implements it against the Supabase (PostgREST) tables.
Nothing is cached between calls.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, time
from typing import Any, Dict, List, Optional

from postgrest.exceptions import APIError
from supabase import Client, create_client

from app.core import config
from app.core.errors import AppError, handle_database_error
from app.core.logging_config import get_logger, log_database, logged_operation
from app.core.retry import RetryPolicy
from app.models import (
    AvailabilityWindow, Department, Individual, Schedule, ScheduleStatus, Tier, TimeSlot
)

logger = get_logger(__name__)

# Embedded display fields returned with every schedule read
SCHEDULE_SELECT = (
    "*, individuals(name, email), departments(name), "
    "time_slots(date, start_time, end_time)"
)
SCHEDULE_SELECT_FOR_DATE = (
    "*, individuals(name, email), departments(name), "
    "time_slots!inner(date, start_time, end_time)"
)


class SchedulingStore(ABC):
    """Read/write operations the scheduling engine needs from the store."""

    @abstractmethod
    def load_time_slots(self, slot_date: date) -> List[TimeSlot]:
        """Active time slots on a date, ordered by start time."""

    @abstractmethod
    def load_time_slot(self, time_slot_id: str) -> Optional[TimeSlot]:
        """A single time slot, or None when it does not exist."""

    @abstractmethod
    def load_departments(self) -> List[Department]:
        ...

    @abstractmethod
    def load_individuals(self) -> List[Individual]:
        ...

    @abstractmethod
    def load_schedules_for_slot(self, time_slot_id: str) -> List[str]:
        """Ids of individuals holding a schedule for this time slot, any department."""

    @abstractmethod
    def load_schedules_for_date(self, slot_date: date) -> List[Schedule]:
        ...

    @abstractmethod
    def load_availability_windows(self, individual_id: str, slot_date: date) -> List[AvailabilityWindow]:
        """Windows in store order; the resolver relies on that order."""

    @abstractmethod
    def insert_schedule(self, schedule: Schedule) -> Schedule:
        """
        Persist a schedule and return it enriched with display fields.
        Raises DuplicateResource when a uniqueness constraint rejects it.
        """

    @abstractmethod
    def upsert_time_slots(self, slots: List[TimeSlot]) -> int:
        """Insert or refresh slots keyed on (date, start_time); returns the row count."""


def _parse_date(value) -> Optional[date]:
    if value is None or isinstance(value, date):
        return value
    return datetime.strptime(value.strip()[:10], "%Y-%m-%d").date()


def _parse_time(value) -> Optional[time]:
    if value is None or isinstance(value, time):
        return value

    value = value.strip()
    formats = [
        '%H:%M:%S',
        '%H:%M',
        '%H:%M:%S.%f',
    ]
    for fmt in formats:
        try:
            return datetime.strptime(value, fmt).time()
        except ValueError:
            continue

    raise ValueError(f"Could not parse time: {value}")


def _row_to_time_slot(row: Dict[str, Any]) -> TimeSlot:
    return TimeSlot(
        id=str(row["id"]) if row.get("id") is not None else None,
        date=_parse_date(row["date"]),
        start_time=_parse_time(row["start_time"]),
        end_time=_parse_time(row["end_time"]),
        is_active=row.get("is_active", True),
    )


def _row_to_individual(row: Dict[str, Any]) -> Individual:
    return Individual(id=str(row["id"]), name=row.get("name", ""), email=row.get("email") or "")


def _row_to_department(row: Dict[str, Any]) -> Department:
    return Department(id=str(row["id"]), name=row.get("name", ""))


def _row_to_schedule(row: Dict[str, Any]) -> Schedule:
    schedule = Schedule(
        id=str(row["id"]) if row.get("id") is not None else None,
        individual_id=str(row["individual_id"]),
        department_id=str(row["department_id"]),
        time_slot_id=str(row["time_slot_id"]),
        status=ScheduleStatus.parse(row.get("status")),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )

    individual = row.get("individuals")
    if individual:
        schedule.individual = Individual(
            id=schedule.individual_id,
            name=individual.get("name", ""),
            email=individual.get("email") or "",
        )

    department = row.get("departments")
    if department:
        schedule.department = Department(id=schedule.department_id, name=department.get("name", ""))

    time_slot = row.get("time_slots")
    if time_slot:
        schedule.time_slot = _row_to_time_slot({**time_slot, "id": schedule.time_slot_id})

    return schedule


class SupabaseStore(SchedulingStore):
    def __init__(self, client: Optional[Client] = None, retry: Optional[RetryPolicy] = None):
        """
        Args:
            client: Supabase client; built from the configured credentials when omitted
            retry: Policy for the read-back after an insert, which must never repeat the insert
        """
        if client is None:
            url, key = config.get_supabase_credentials()
            client = create_client(url, key)
        self.client = client
        self.retry = retry or RetryPolicy.from_config()

    def _execute(self, query):
        try:
            return query.execute()
        except APIError as e:
            raise handle_database_error(e) from e

    def load_time_slots(self, slot_date: date) -> List[TimeSlot]:
        with logged_operation("load_time_slots", date=str(slot_date)):
            response = self._execute(
                self.client.table(config.TABLE_TIME_SLOTS)
                .select("*")
                .eq("is_active", True)
                .eq("date", slot_date.isoformat())
                .order("start_time")
            )
            slots = [_row_to_time_slot(row) for row in response.data]
            log_database(logger, "SELECT", config.TABLE_TIME_SLOTS, date=str(slot_date), count=len(slots))
            return slots

    def load_time_slot(self, time_slot_id: str) -> Optional[TimeSlot]:
        with logged_operation("load_time_slot", time_slot_id=time_slot_id):
            response = self._execute(
                self.client.table(config.TABLE_TIME_SLOTS)
                .select("*")
                .eq("id", time_slot_id)
                .limit(1)
            )
            log_database(logger, "SELECT", config.TABLE_TIME_SLOTS, id=time_slot_id, count=len(response.data))
            if not response.data:
                return None
            return _row_to_time_slot(response.data[0])

    def load_departments(self) -> List[Department]:
        with logged_operation("load_departments"):
            response = self._execute(
                self.client.table(config.TABLE_DEPARTMENTS).select("*").order("name")
            )
            log_database(logger, "SELECT", config.TABLE_DEPARTMENTS, count=len(response.data))
            return [_row_to_department(row) for row in response.data]

    def load_individuals(self) -> List[Individual]:
        with logged_operation("load_individuals"):
            response = self._execute(
                self.client.table(config.TABLE_INDIVIDUALS).select("*").order("name")
            )
            log_database(logger, "SELECT", config.TABLE_INDIVIDUALS, count=len(response.data))
            return [_row_to_individual(row) for row in response.data]

    def load_schedules_for_slot(self, time_slot_id: str) -> List[str]:
        with logged_operation("load_schedules_for_slot", time_slot_id=time_slot_id):
            response = self._execute(
                self.client.table(config.TABLE_SCHEDULES)
                .select("individual_id")
                .eq("time_slot_id", time_slot_id)
            )
            log_database(
                logger, "SELECT", config.TABLE_SCHEDULES, time_slot_id=time_slot_id, count=len(response.data)
            )
            return [str(row["individual_id"]) for row in response.data]

    def load_schedules_for_date(self, slot_date: date) -> List[Schedule]:
        with logged_operation("load_schedules_for_date", date=str(slot_date)):
            response = self._execute(
                self.client.table(config.TABLE_SCHEDULES)
                .select(SCHEDULE_SELECT_FOR_DATE)
                .eq("time_slots.date", slot_date.isoformat())
            )
            schedules = [_row_to_schedule(row) for row in response.data]
            log_database(logger, "SELECT", config.TABLE_SCHEDULES, date=str(slot_date), count=len(schedules))
            return schedules

    def load_availability_windows(self, individual_id: str, slot_date: date) -> List[AvailabilityWindow]:
        with logged_operation("load_availability_windows", individual_id=individual_id, date=str(slot_date)):
            response = self._execute(
                self.client.table(config.TABLE_AVAILABILITY)
                .select("start_time, end_time, tier")
                .eq("individual_id", individual_id)
                .eq("date", slot_date.isoformat())
            )

            windows = []
            for row in response.data:
                try:
                    tier = Tier.from_value(row.get("tier"))
                except ValueError:
                    logger.warning(
                        f"Availability row for individual {individual_id} on {slot_date} "
                        f"has invalid tier {row.get('tier')!r}; treating as not available"
                    )
                    tier = Tier.UNAVAILABLE
                windows.append(AvailabilityWindow(
                    individual_id=individual_id,
                    date=slot_date,
                    start_time=_parse_time(row["start_time"]),
                    end_time=_parse_time(row["end_time"]),
                    tier=tier,
                ))

            log_database(
                logger, "SELECT", config.TABLE_AVAILABILITY,
                individual_id=individual_id, date=str(slot_date), count=len(windows),
            )
            return windows

    def insert_schedule(self, schedule: Schedule) -> Schedule:
        """
        Insert a schedule, then read it back with the joined display fields.

        Once the insert has committed this method does not raise: a failed
        read-back is retried on its own and, if it still fails, the bare
        inserted row is returned. Callers retrying `insert_schedule` can
        therefore only repeat an insert that did not happen.
        """
        with logged_operation("insert_schedule", time_slot_id=schedule.time_slot_id):
            response = self._execute(
                self.client.table(config.TABLE_SCHEDULES).insert(schedule.to_record())
            )
            inserted = response.data[0]
            new_id = inserted["id"]
            log_database(logger, "INSERT", config.TABLE_SCHEDULES, id=new_id)

            try:
                enriched = self.retry.run(lambda: self._execute(
                    self.client.table(config.TABLE_SCHEDULES)
                    .select(SCHEDULE_SELECT)
                    .eq("id", new_id)
                    .limit(1)
                ))
            except AppError as e:
                logger.warning(f"Schedule {new_id} saved but display fields could not be loaded: {e.message}")
                return _row_to_schedule(inserted)

            if not enriched.data:
                return _row_to_schedule(inserted)
            return _row_to_schedule(enriched.data[0])

    def upsert_time_slots(self, slots: List[TimeSlot]) -> int:
        if not slots:
            return 0
        with logged_operation("upsert_time_slots", count=len(slots)):
            response = self._execute(
                self.client.table(config.TABLE_TIME_SLOTS)
                .upsert([slot.to_row() for slot in slots], on_conflict="date,start_time")
            )
            log_database(logger, "UPSERT", config.TABLE_TIME_SLOTS, count=len(response.data))
            return len(response.data)
