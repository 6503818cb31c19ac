"""
Command-line batch scheduler.
Fills every open (time slot, department) pair for a date.
"""

import sys
import argparse
from datetime import date, datetime
import logging
import os

# Add project root to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.core.errors import AppError
from app.core.logging_config import setup_logging
from app.services.batch_scheduler import BatchScheduler
from app.services.store import SupabaseStore
from app.services.time_slots import generate_time_slots_for_date


def main():
    """
    Run one batch for the given date and print a summary.
    Exit code is 0 when the batch ran, even if some pairs failed.
    """
    parser = argparse.ArgumentParser(
        description='Department Auto-Scheduling - fill open time slots for a date'
    )
    parser.add_argument(
        'date',
        type=date.fromisoformat,
        help='Date to schedule (YYYY-MM-DD)'
    )
    parser.add_argument(
        '--generate-slots',
        action='store_true',
        help='Create the default time slots for the date before scheduling'
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable verbose output'
    )

    args = parser.parse_args()
    setup_logging(logging.DEBUG if args.verbose else logging.INFO)

    print("\n" + "=" * 80)
    print("DEPARTMENT AUTO-SCHEDULING")
    print("=" * 80)
    print(f"Started at: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print("=" * 80)

    try:
        store = SupabaseStore()

        if args.generate_slots:
            print(f"\n[STEP 1] Generating time slots for {args.date}...")
            count = generate_time_slots_for_date(store, args.date)
            print(f"  - {count} time slots written")

        print(f"\n[STEP 2] Scheduling open slots for {args.date}...")
        result = BatchScheduler(store).schedule_all(args.date)

        print("\n" + "=" * 80)
        print("BATCH SUMMARY")
        print("=" * 80)
        print(result.get_summary())

        for success in result.successes:
            individual = success.schedule.individual
            name = individual.name if individual else success.schedule.individual_id
            print(f"  [OK]   {success.time_slot}  {success.department.name}: {name}")

        for failure in result.failures:
            print(f"  [FAIL] {failure.time_slot}  {failure.department.name}: {failure.error}")

        print(f"\nCompleted at: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
        print("=" * 80)

        return 0

    except KeyboardInterrupt:
        print("\n\nScheduling interrupted by user.")
        return 1

    except AppError as e:
        print(f"\n\nERROR [{e.code}]: {e.message}")
        return 1

    except ValueError as e:
        # Missing Supabase credentials
        print(f"\n\nERROR: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
