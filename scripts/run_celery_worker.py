"""
Run a Celery worker for async batch scheduling.
"""

import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.core.celery_app import celery_app
from app.core.config import LOG_LEVEL
from app.core.logging_config import setup_logging

if __name__ == "__main__":
    setup_logging()

    # Batch runs write sequentially per date; more workers only parallelise across dates
    concurrency = os.getenv("CELERY_CONCURRENCY", "1")

    print("=" * 60)
    print("Department Auto-Scheduling - Celery Worker")
    print("=" * 60)
    print(f"Processing batch scheduling tasks (concurrency={concurrency})")
    print("=" * 60)

    celery_app.worker_main([
        "worker",
        f"--loglevel={LOG_LEVEL.lower()}",
        f"--concurrency={concurrency}",
        "--pool=solo" if os.name == "nt" else "--pool=prefork"  # Use solo pool on Windows
    ])
