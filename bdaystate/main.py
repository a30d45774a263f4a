#!/usr/bin/env python3
"""
Birthday state publisher
Collects birthdays from all sources, publishes them to the state file and exits
"""

import os
import sys
import logging
import argparse
from datetime import date, datetime

from .aggregator import BirthdayAggregator, source_deadline
from .carddav_client import CardDAVSource
from .config import (
    get_output_config,
    get_source_config,
    load_manual_birthdays,
    setup_logging,
    validate_environment,
)
from .ical_client import ICalSource
from .models import sort_by_days_left
from .reconciler import BirthdayReconciler
from .store import JsonFileStore

BANNER = """
  bdaystate - birthday state publisher
  settings + iCalendar + CardDAV  ->  state file
"""


def print_banner():
    """Print the banner"""
    print(BANNER)
    print(f"Version: {os.getenv('VERSION', '1.0.0')}")
    print(f"Started: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print("─" * 50)
    print()


def build_aggregator(today: date) -> BirthdayAggregator:
    sources = get_source_config()
    output = get_output_config()

    ical_source = ICalSource(
        sources['ical_url'],
        sources['ical_username'],
        sources['ical_password'],
        sources['ical_ignore_cert_errors'],
        sources['fetch_timeout'],
    )
    carddav_source = CardDAVSource(
        sources['carddav_url'],
        sources['carddav_username'],
        sources['carddav_password'],
        sources['carddav_ignore_cert_errors'],
        sources['fetch_timeout'],
    )

    return BirthdayAggregator(
        load_manual_birthdays(sources['birthdays_file']),
        ical_source,
        carddav_source,
        today=today,
        date_format=output['date_format'],
        leap_day_rule=output['leap_day_rule'],
        deadline=source_deadline(sources['fetch_timeout']),
    )


def diagnose() -> bool:
    """Collect from every source and print the result without touching the state file"""
    today = date.today()
    result = build_aggregator(today).collect_sync()

    print("Birthdays per source:")
    for label, count in result.counts.items():
        print(f"  {label}: {count}")
    print("-" * 50)

    for record in sort_by_days_left(result.birthdays):
        print(f"  {record.date_format}  {record.name} turns {record.age} "
              f"(in {record.days_left} days)")

    return result.total > 0


def run_once(dry_run: bool = False) -> bool:
    """One complete run: collect, reconcile, save"""
    logger = logging.getLogger(__name__)
    output = get_output_config()
    today = date.today()

    result = build_aggregator(today).collect_sync()

    try:
        store = JsonFileStore(output['state_file'])
        target = store.copy() if dry_run else store

        reconciler = BirthdayReconciler(
            target,
            text_template=output['text_template'],
            separator=output['separator'],
            today=today,
            date_format=output['date_format'],
        )
        report = reconciler.reconcile(result.birthdays, result.significant)
    except Exception as e:
        logger.error(f"Error while publishing birthdays: {e}")
        if logger.getEffectiveLevel() <= logging.DEBUG:
            import traceback
            logger.debug(traceback.format_exc())
        return False

    if dry_run:
        logger.info(f"Dry run: {target.mutations} changes would be written "
                    f"({len(report.added)} added, {len(report.updated)} updated, "
                    f"{len(report.deleted)} deleted)")
        return True

    store.save()
    logger.info("Everything done")
    return True


def health_check() -> bool:
    """Health check function"""
    logger = logging.getLogger(__name__)

    try:
        logger.info("Performing health check...")

        import requests  # noqa: F401
        import vobject  # noqa: F401

        if not validate_environment():
            return False

        logger.info("Health check passed")
        return True

    except ImportError as e:
        logger.error(f"Health check failed: {e}")
        return False


def main():
    """Main function with argument parsing"""
    parser = argparse.ArgumentParser(description='Birthday state publisher')
    parser.add_argument('--diagnose', action='store_true', help='Collect and print birthdays, do not publish')
    parser.add_argument('--health-check', action='store_true', help='Run health check')
    parser.add_argument('--dry-run', action='store_true', help='Reconcile without saving the state file')
    parser.add_argument('--no-banner', action='store_true', help='Skip banner')

    args = parser.parse_args()

    setup_logging()

    if not args.no_banner:
        print_banner()

    if args.health_check:
        sys.exit(0 if health_check() else 1)

    if not validate_environment():
        sys.exit(1)

    if args.diagnose:
        sys.exit(0 if diagnose() else 1)

    success = run_once(dry_run=args.dry_run)
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
