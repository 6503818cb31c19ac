"""
API routes for auto-scheduling and time slot generation.
"""

from datetime import date, datetime
from functools import lru_cache
from typing import Any, Dict, List, Optional

from celery.result import AsyncResult
from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from app.core.celery_app import celery_app
from app.core.errors import AppError, handle_error
from app.core.logging_config import get_logger
from app.core.retry import RetryPolicy
from app.services.batch_scheduler import BatchScheduler
from app.services.slot_assigner import SlotAssigner
from app.services.store import SchedulingStore, SupabaseStore
from app.services.time_slots import generate_time_slots_for_range
from app.tasks.scheduler_tasks import batch_schedule_task

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["schedule"])


@lru_cache(maxsize=1)
def get_store() -> SchedulingStore:
    return SupabaseStore()


def get_retry_policy() -> RetryPolicy:
    return RetryPolicy.from_config()


class AutoScheduleRequest(BaseModel):
    """Request model for a single assignment."""
    department_id: str
    time_slot_id: str


class BatchScheduleRequest(BaseModel):
    """Request model for a batch run."""
    date: date


class GenerateTimeSlotsRequest(BaseModel):
    """Request model for time slot generation."""
    start_date: date
    end_date: Optional[date] = None
    start_hour: Optional[int] = None
    end_hour: Optional[int] = None


class BatchScheduleResponse(BaseModel):
    """Response model for a batch run."""
    success: bool
    message: str
    date: str
    successes: List[Dict[str, Any]]
    failures: List[Dict[str, Any]]
    total_processed: int
    generation_time: float


def _raise_http(error: Exception):
    app_error = handle_error(error)
    raise HTTPException(status_code=app_error.status_code, detail=app_error.to_dict()) from error


@router.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "timestamp": datetime.now().isoformat()}


@router.post("/schedules/auto")
def auto_schedule(request: AutoScheduleRequest,
                  store: SchedulingStore = Depends(get_store),
                  retry: RetryPolicy = Depends(get_retry_policy)):
    """Assign the best available individual to one (department, time slot)."""
    try:
        schedule = SlotAssigner(store, retry=retry).assign(request.department_id, request.time_slot_id)
    except AppError as e:
        logger.info(f"Auto-schedule rejected: {e.code}: {e.message}")
        _raise_http(e)
    except Exception as e:
        logger.exception("Auto-schedule failed")
        _raise_http(e)
    return schedule.to_dict()


@router.post("/schedules/batch", response_model=BatchScheduleResponse)
def batch_schedule(request: BatchScheduleRequest,
                   store: SchedulingStore = Depends(get_store),
                   retry: RetryPolicy = Depends(get_retry_policy)):
    """
    Fill every open (time slot, department) pair of a date.

    Per-pair failures are reported in `failures`; only a failure to load
    the date's slots, departments or schedules fails the request.
    """
    start_time = datetime.now()
    try:
        result = BatchScheduler(store, retry=retry).schedule_all(request.date)
    except Exception as e:
        logger.exception(f"Batch scheduling failed for {request.date}")
        _raise_http(e)

    generation_time = (datetime.now() - start_time).total_seconds()
    return BatchScheduleResponse(
        success=True,
        message=f"Batch complete: {len(result.successes)} scheduled, {len(result.failures)} failed",
        generation_time=generation_time,
        **result.to_dict()
    )


@router.post("/schedules/batch/async")
async def batch_schedule_async(request: BatchScheduleRequest):
    """
    Start an async batch run.

    Returns:
        dict: Task ID for polling status
    """
    try:
        task = batch_schedule_task.delay(request.date.isoformat())

        return {
            "task_id": task.id,
            "status": "PENDING",
            "message": f"Batch scheduling started for {request.date}"
        }
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to start task: {str(e)}")


@router.get("/schedules/batch/status/{task_id}")
async def get_batch_status(task_id: str):
    """
    Get status of an async batch run.

    Args:
        task_id: Celery task ID
    """
    try:
        task_result = AsyncResult(task_id, app=celery_app)

        if task_result.state == "PENDING":
            response = {
                "task_id": task_id,
                "status": "PENDING",
                "message": "Task is waiting to start..."
            }
        elif task_result.state == "PROGRESS":
            response = {
                "task_id": task_id,
                "status": "PROGRESS",
                "message": task_result.info.get("status", "Processing...")
            }
        elif task_result.state == "SUCCESS":
            response = {
                "task_id": task_id,
                "status": "SUCCESS",
                "result": task_result.result
            }
        elif task_result.state == "FAILURE":
            response = {
                "task_id": task_id,
                "status": "FAILURE",
                "message": str(task_result.info)
            }
        else:
            response = {
                "task_id": task_id,
                "status": task_result.state,
                "message": f"Task state: {task_result.state}"
            }

        return response
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to get task status: {str(e)}")


@router.get("/schedules")
def list_schedules(schedule_date: date = Query(..., alias="date"),
                   store: SchedulingStore = Depends(get_store),
                   retry: RetryPolicy = Depends(get_retry_policy)):
    """Schedules whose time slot falls on `date`, with display fields."""
    try:
        schedules = retry.run(lambda: store.load_schedules_for_date(schedule_date))
    except Exception as e:
        _raise_http(e)
    return {"date": schedule_date.isoformat(), "total": len(schedules), "schedules": [s.to_dict() for s in schedules]}


@router.post("/time-slots/generate")
def generate_time_slots(request: GenerateTimeSlotsRequest,
                        store: SchedulingStore = Depends(get_store),
                        retry: RetryPolicy = Depends(get_retry_policy)):
    """Create the active slots for a date or an inclusive date range."""
    end_date = request.end_date or request.start_date
    hours = {}
    if request.start_hour is not None:
        hours["start_hour"] = request.start_hour
    if request.end_hour is not None:
        hours["end_hour"] = request.end_hour

    try:
        total = generate_time_slots_for_range(store, request.start_date, end_date, retry=retry, **hours)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except Exception as e:
        _raise_http(e)

    return {
        "start_date": request.start_date.isoformat(),
        "end_date": end_date.isoformat(),
        "total_slots": total
    }
