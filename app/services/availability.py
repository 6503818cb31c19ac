"""
Availability resolution: the effective tier of an individual for a time slot.
"""

from datetime import date
from typing import Dict, List, Optional, Tuple

from app.core.logging_config import get_logger
from app.core.retry import RetryPolicy
from app.models import AvailabilityWindow, Tier, TimeSlot
from app.services.store import SchedulingStore

logger = get_logger(__name__)


class AvailabilityResolver:
    """
    Resolves an individual's tier for a time slot from their availability windows.

    The first window (in store order) that fully contains the slot wins;
    overlapping windows are not ranked by specificity. No matching window
    means Tier.UNAVAILABLE.
    """

    def __init__(self, store: SchedulingStore, retry: Optional[RetryPolicy] = None,
                 cache_windows: bool = False):
        """
        Args:
            store: Persistence collaborator
            retry: Policy wrapped around each store read
            cache_windows: Memoise windows per (individual, date) for the
                lifetime of this resolver
        """
        self.store = store
        self.retry = retry or RetryPolicy.from_config()
        self.cache_windows = cache_windows
        self._windows: Dict[Tuple[str, date], List[AvailabilityWindow]] = {}

    def _load_windows(self, individual_id: str, slot_date: date) -> List[AvailabilityWindow]:
        key = (individual_id, slot_date)
        if self.cache_windows and key in self._windows:
            return self._windows[key]

        windows = self.retry.run(lambda: self.store.load_availability_windows(individual_id, slot_date))
        if self.cache_windows:
            self._windows[key] = windows
        return windows

    def resolve(self, individual_id: str, time_slot: TimeSlot) -> Tier:
        for window in self._load_windows(individual_id, time_slot.date):
            if window.contains(time_slot):
                logger.debug(f"Individual {individual_id} is {window.tier.name} for {time_slot}")
                return window.tier

        logger.debug(f"Individual {individual_id} has no availability for {time_slot}")
        return Tier.UNAVAILABLE
