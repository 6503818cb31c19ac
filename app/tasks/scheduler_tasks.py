"""
Celery tasks for batch scheduling.
"""

from datetime import date

from app.core.celery_app import celery_app
from app.core.errors import handle_error
from app.core.logging_config import get_logger
from app.services.batch_scheduler import BatchScheduler
from app.services.store import SupabaseStore

logger = get_logger(__name__)


@celery_app.task(bind=True, name="batch_schedule")
def batch_schedule_task(self, schedule_date: str):
    """
    Async task to fill every open slot of a date.

    Args:
        schedule_date: ISO date (YYYY-MM-DD)

    Returns:
        dict: Batch result, or an error payload when the batch could not start
    """
    try:
        self.update_state(
            state="PROGRESS",
            meta={"status": f"Scheduling open slots for {schedule_date}..."}
        )

        result = BatchScheduler(SupabaseStore()).schedule_all(date.fromisoformat(schedule_date))

        return {
            "success": True,
            "message": (
                f"Batch complete: {len(result.successes)} scheduled, "
                f"{len(result.failures)} failed"
            ),
            **result.to_dict()
        }

    except Exception as e:
        error = handle_error(e)
        logger.exception(f"Error in batch_schedule_task for {schedule_date}")

        return {
            "success": False,
            "message": f"Batch scheduling failed: {error.message}",
            "error": error.to_dict()
        }
