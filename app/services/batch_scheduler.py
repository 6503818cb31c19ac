"""
Batch scheduling: fill every open (time slot, department) pair for a date.
"""

from datetime import date
from typing import Optional, Set, Tuple

from app.core.errors import handle_error
from app.core.logging_config import get_logger, logged_operation
from app.core.retry import RetryPolicy
from app.models import BatchFailure, BatchResult, BatchSuccess
from app.services.availability import AvailabilityResolver
from app.services.slot_assigner import SlotAssigner
from app.services.store import SchedulingStore

logger = get_logger(__name__)


class BatchScheduler:
    """
    Runs the slot assigner over the time slot x department matrix of a date.

    Pairs are processed sequentially in load order (time slots outer,
    departments inner). Pairs already holding a schedule are skipped, so
    a re-run only touches what is still open. A failing pair is recorded
    and never aborts the batch.
    """

    def __init__(self, store: SchedulingStore, retry: Optional[RetryPolicy] = None,
                 assigner: Optional[SlotAssigner] = None):
        """
        Args:
            store: Persistence collaborator
            retry: Policy for store calls; built from config when omitted
            assigner: Used for every run instead of a fresh per-run assigner
        """
        self.store = store
        self.retry = retry or RetryPolicy.from_config()
        self.assigner = assigner

    def _assigner_for_run(self) -> SlotAssigner:
        if self.assigner is not None:
            return self.assigner
        # Windows memoised for this run only
        resolver = AvailabilityResolver(self.store, retry=self.retry, cache_windows=True)
        return SlotAssigner(self.store, resolver=resolver, retry=self.retry)

    def schedule_all(self, schedule_date: date) -> BatchResult:
        """
        Args:
            schedule_date: Date whose slots should be filled

        Returns:
            BatchResult with one entry per pair that was open at enumeration time
        """
        with logged_operation("schedule_all", date=str(schedule_date)):
            time_slots = self.retry.run(lambda: self.store.load_time_slots(schedule_date))
            departments = self.retry.run(self.store.load_departments)
            existing = self.retry.run(lambda: self.store.load_schedules_for_date(schedule_date))

            filled: Set[Tuple[str, str]] = {(s.time_slot_id, s.department_id) for s in existing}
            logger.info(
                f"Batch for {schedule_date}: {len(time_slots)} time slots x "
                f"{len(departments)} departments, {len(filled)} already filled"
            )

            assigner = self._assigner_for_run()
            result = BatchResult(date=schedule_date)

            for time_slot in time_slots:
                for department in departments:
                    if (time_slot.id, department.id) in filled:
                        result.skipped += 1
                        continue

                    try:
                        schedule = assigner.assign(department.id, time_slot.id)
                    except Exception as e:
                        error = handle_error(e)
                        logger.warning(f"Could not fill {department.name} at {time_slot}: {error.message}")
                        result.failures.append(BatchFailure(
                            error=error.message,
                            time_slot=time_slot,
                            department=department,
                            code=error.code,
                        ))
                        continue

                    result.successes.append(BatchSuccess(
                        schedule=schedule,
                        time_slot=time_slot,
                        department=department,
                    ))

            logger.info(
                f"Batch for {schedule_date} complete: {len(result.successes)} scheduled, "
                f"{len(result.failures)} failed, {result.skipped} already filled"
            )
            return result
