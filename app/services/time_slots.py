"""
Bulk generation of fixed-length time slots.
"""

from datetime import date, datetime, timedelta
from typing import List, Optional

from app.core.config import DAY_END_HOUR, DAY_START_HOUR, SLOT_DURATION_MINUTES
from app.core.logging_config import get_logger, log_audit
from app.core.retry import RetryPolicy
from app.models import TimeSlot
from app.services.store import SchedulingStore

logger = get_logger(__name__)


def build_time_slots_for_date(slot_date: date, start_hour: int = DAY_START_HOUR,
                              end_hour: int = DAY_END_HOUR,
                              duration_minutes: int = SLOT_DURATION_MINUTES) -> List[TimeSlot]:
    """
    Contiguous active slots from start_hour up to end_hour.
    A trailing partial slot that would run past end_hour is not created.
    """
    if not 0 <= start_hour < end_hour <= 24:
        raise ValueError(f"Invalid hour range: {start_hour}-{end_hour}")
    if duration_minutes <= 0:
        raise ValueError(f"Slot duration must be positive, got {duration_minutes}")

    day_start = datetime.combine(slot_date, datetime.min.time())
    current = day_start + timedelta(hours=start_hour)
    day_end = day_start + timedelta(hours=end_hour)
    step = timedelta(minutes=duration_minutes)

    slots = []
    # An end of 24:00 cannot be stored as a time of day
    while current + step <= day_end and (current + step).date() == slot_date:
        slots.append(TimeSlot(
            date=slot_date,
            start_time=current.time(),
            end_time=(current + step).time(),
            is_active=True,
        ))
        current += step

    return slots


def generate_time_slots_for_date(store: SchedulingStore, slot_date: date,
                                 start_hour: int = DAY_START_HOUR, end_hour: int = DAY_END_HOUR,
                                 duration_minutes: int = SLOT_DURATION_MINUTES,
                                 retry: Optional[RetryPolicy] = None) -> int:
    """Create (or refresh) a date's slots in the store and return how many were written."""
    retry = retry or RetryPolicy.from_config()
    slots = build_time_slots_for_date(slot_date, start_hour, end_hour, duration_minutes)
    count = retry.run(lambda: store.upsert_time_slots(slots))
    logger.info(f"Generated {count} time slots for {slot_date}")
    return count


def generate_time_slots_for_range(store: SchedulingStore, start_date: date, end_date: date,
                                  start_hour: int = DAY_START_HOUR, end_hour: int = DAY_END_HOUR,
                                  duration_minutes: int = SLOT_DURATION_MINUTES,
                                  retry: Optional[RetryPolicy] = None) -> int:
    """Generate slots for every date from start_date to end_date inclusive."""
    if end_date < start_date:
        raise ValueError(f"End date {end_date} is before start date {start_date}")

    total_slots = 0
    current_date = start_date
    while current_date <= end_date:
        total_slots += generate_time_slots_for_date(
            store, current_date, start_hour, end_hour, duration_minutes, retry=retry
        )
        current_date += timedelta(days=1)

    log_audit(
        logger, "generate_time_slots", None,
        start_date=str(start_date), end_date=str(end_date), total_slots=total_slots,
    )
    return total_slots
