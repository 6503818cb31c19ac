"""
Slot assignment: pick the best unassigned individual for a (department, time slot).

Selection is greedy over the individuals in load order. An individual
qualifies when their tier is assignable and strictly better than the
current best, so ties keep the first one encountered.

Concurrency: the exclusion-set read, the availability reads and the
schedule insert are not transactional. Within a process the sequence
runs under a lock keyed by time_slot_id; across processes two
assignments for the same slot can still race, and strict exclusivity
needs a unique constraint on (department_id, time_slot_id) in the
store, which surfaces here as DuplicateResource.
"""

import threading
from typing import Optional
from weakref import WeakValueDictionary

from app.core.errors import NoCandidateAvailable, NotFound
from app.core.logging_config import get_logger, log_audit
from app.core.retry import RetryPolicy
from app.models import Individual, Schedule, ScheduleStatus, Tier
from app.services.availability import AvailabilityResolver
from app.services.store import SchedulingStore

logger = get_logger(__name__)


class SlotLockRegistry:
    """
    One lock per time_slot_id, created on first use.

    Entries are weak: a lock lives only while a caller holds or waits on it.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: "WeakValueDictionary[str, threading.Lock]" = WeakValueDictionary()

    def __len__(self):
        return len(self._locks)

    def lock_for(self, time_slot_id: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(time_slot_id)
            if lock is None:
                lock = self._locks[time_slot_id] = threading.Lock()
            return lock


# Shared by every assigner in the process
slot_locks = SlotLockRegistry()


class SlotAssigner:
    def __init__(self, store: SchedulingStore, resolver: Optional[AvailabilityResolver] = None,
                 retry: Optional[RetryPolicy] = None, locks: Optional[SlotLockRegistry] = None):
        self.store = store
        self.retry = retry or RetryPolicy.from_config()
        self.resolver = resolver or AvailabilityResolver(store, retry=self.retry)
        self.locks = locks or slot_locks

    def assign(self, department_id: str, time_slot_id: str) -> Schedule:
        """
        Assign the best available individual to a department for a time slot.

        Args:
            department_id: Department receiving the individual
            time_slot_id: Slot to fill

        Returns:
            The persisted schedule, enriched with display fields

        Raises:
            NotFound: The time slot does not exist
            NoCandidateAvailable: Nobody outside the exclusion set has an assignable tier
        """
        with self.locks.lock_for(time_slot_id):
            time_slot = self.retry.run(lambda: self.store.load_time_slot(time_slot_id))
            if time_slot is None:
                raise NotFound(f"Time slot {time_slot_id} not found")

            individuals = self.retry.run(self.store.load_individuals)

            # Anyone already holding this slot, in any department
            excluded = set(self.retry.run(lambda: self.store.load_schedules_for_slot(time_slot_id)))

            best_candidate: Optional[Individual] = None
            best_tier: Optional[Tier] = None

            for individual in individuals:
                if individual.id in excluded:
                    continue

                tier = self.resolver.resolve(individual.id, time_slot)

                if tier.is_assignable and (best_tier is None or tier < best_tier):
                    best_candidate = individual
                    best_tier = tier

            if best_candidate is None:
                raise NoCandidateAvailable(f"No available person found for time slot {time_slot}")

            logger.info(
                f"Selected {best_candidate.name} ({best_tier.name}) for department "
                f"{department_id} at {time_slot}"
            )

            schedule = Schedule(
                individual_id=best_candidate.id,
                department_id=department_id,
                time_slot_id=time_slot_id,
                status=ScheduleStatus.SCHEDULED,
            )
            created = self.retry.run(lambda: self.store.insert_schedule(schedule))

        log_audit(
            logger, "auto_schedule", created.id,
            individual_id=best_candidate.id, department_id=department_id,
            time_slot_id=time_slot_id, tier=best_tier.value,
        )
        return created
